"""
ClimateGuard Services
Centralized export of all service classes
"""

from .base_service import BaseService
from .reading_store import ReadingStore
from .alert_service import AlertService, active_alert_query
from .weather_data import OpenWeatherClient
from .ingestion import IngestionPipeline, IngestionRunner, IngestionReport, CITY_ROSTER
from .scheduler import SchedulerService

# Health and utilities
from .health import ServiceHealth
from .db_indexes import ensure_service_indexes

__all__ = [
    # Base classes
    "BaseService",

    # Stores
    "ReadingStore",
    "AlertService",
    "active_alert_query",

    # Ingestion
    "OpenWeatherClient",
    "IngestionPipeline",
    "IngestionRunner",
    "IngestionReport",
    "CITY_ROSTER",
    "SchedulerService",

    # Health & utilities
    "ServiceHealth",
    "ensure_service_indexes",
]
