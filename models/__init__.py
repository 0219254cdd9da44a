"""
ClimateGuard Data Models
Centralized export of all Pydantic models
"""

# Base models and enums
from .base import (
    ReadingDomain,
    AlertType,
    AlertSeverity,
    SEVERITY_ORDER,
    HeatAlertLevel,
    AQICategory,
    WQICategory,
    Coordinates,
    City,
)

# Persisted documents and request payloads
from .model import (
    ReadingBase,
    TemperatureBlock,
    HeatwaveReading,
    PollutantValue,
    AQIBlock,
    AirQualityReading,
    RainfallBlock,
    WaterLevelBlock,
    FloodReading,
    WaterParameters,
    WQIBlock,
    WaterQualityReading,
    FloodUpdate,
    WaterQualityUpdate,
    AlertModel,
)

__all__ = [
    # Base
    "ReadingDomain",
    "AlertType",
    "AlertSeverity",
    "SEVERITY_ORDER",
    "HeatAlertLevel",
    "AQICategory",
    "WQICategory",
    "Coordinates",
    "City",

    # Readings
    "ReadingBase",
    "TemperatureBlock",
    "HeatwaveReading",
    "PollutantValue",
    "AQIBlock",
    "AirQualityReading",
    "RainfallBlock",
    "WaterLevelBlock",
    "FloodReading",
    "WaterParameters",
    "WQIBlock",
    "WaterQualityReading",
    "FloodUpdate",
    "WaterQualityUpdate",

    # Alerts
    "AlertModel",
]
