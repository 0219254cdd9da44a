"""
Shared base models and enums for ClimateGuard
Used by readings, alerts and the ingestion pipeline
"""

from pydantic import BaseModel, Field, confloat
from enum import Enum


# ============= Enums =============

class ReadingDomain(str, Enum):
    """Environmental domains with their own reading collection"""
    HEATWAVE = "heatwave"
    AIR_QUALITY = "air_quality"
    FLOOD = "flood"
    WATER_QUALITY = "water_quality"

    @property
    def collection(self) -> str:
        return {
            ReadingDomain.HEATWAVE: "heatwave_data",
            ReadingDomain.AIR_QUALITY: "air_quality",
            ReadingDomain.FLOOD: "flood_data",
            ReadingDomain.WATER_QUALITY: "water_quality",
        }[self]


class AlertType(str, Enum):
    HEATWAVE = "heatwave"
    FLOOD = "flood"
    AIR_QUALITY = "air_quality"
    WATER_QUALITY = "water_quality"


class AlertSeverity(str, Enum):
    """Ordinal alert severity: info < warning < critical < emergency"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER.index(self)


SEVERITY_ORDER = [
    AlertSeverity.INFO,
    AlertSeverity.WARNING,
    AlertSeverity.CRITICAL,
    AlertSeverity.EMERGENCY,
]


class HeatAlertLevel(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"


class AQICategory(str, Enum):
    GOOD = "good"
    SATISFACTORY = "satisfactory"
    MODERATE = "moderate"
    POOR = "poor"
    VERY_POOR = "very_poor"
    SEVERE = "severe"


class WQICategory(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    VERY_POOR = "very_poor"


# ============= Base Location Model =============

class Coordinates(BaseModel):
    """Geographic coordinate as persisted on readings and alerts"""
    lat: confloat(ge=-90.0, le=90.0)
    lng: confloat(ge=-180.0, le=180.0)


class City(BaseModel):
    """Roster entry bounding the ingestion pipeline"""
    name: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., max_length=100)
    lat: confloat(ge=-90.0, le=90.0)
    lng: confloat(ge=-180.0, le=180.0)

    model_config = {"frozen": True}

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)
