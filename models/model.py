from pydantic import BaseModel, Field, ConfigDict, confloat
from typing import Dict, Optional, Any
from datetime import datetime, timezone

# Import shared base models
from .base import (
    AlertType,
    AlertSeverity,
    AQICategory,
    Coordinates,
    HeatAlertLevel,
    WQICategory,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    """Base for persisted documents; field names are stored in camelCase"""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Readings ---

class ReadingBase(Document):
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(default="", max_length=100)
    coordinates: Coordinates
    source: str = "OpenWeather"
    recorded_at: datetime = Field(default_factory=utcnow, alias="recordedAt")


class TemperatureBlock(Document):
    current: float
    feels_like: Optional[float] = Field(None, alias="feelsLike")
    min: Optional[float] = None
    max: Optional[float] = None
    unit: str = "celsius"


class HeatwaveReading(ReadingBase):
    temperature: TemperatureBlock
    heat_index: float = Field(..., alias="heatIndex")
    humidity: confloat(ge=0.0, le=100.0)
    alert_level: HeatAlertLevel = Field(HeatAlertLevel.GREEN, alias="alertLevel")


class PollutantValue(Document):
    value: Optional[float] = None
    unit: str = "µg/m³"


class AQIBlock(Document):
    value: int = Field(..., ge=0)
    category: AQICategory


class AirQualityReading(ReadingBase):
    aqi: AQIBlock
    pollutants: Dict[str, PollutantValue] = Field(default_factory=dict)


class RainfallBlock(Document):
    current: Optional[float] = Field(None, ge=0.0)
    last_24_hours: Optional[float] = Field(None, ge=0.0, alias="last24Hours")
    predicted: Optional[float] = Field(None, ge=0.0)
    unit: str = "mm"


class WaterLevelBlock(Document):
    current: Optional[float] = None
    threshold: Optional[float] = None
    unit: str = "meters"


class FloodReading(ReadingBase):
    rainfall: RainfallBlock = Field(default_factory=RainfallBlock)
    risk_level: str = Field("low", pattern=r"^(low|moderate|high|severe)$", alias="riskLevel")
    water_level: Optional[WaterLevelBlock] = Field(None, alias="waterLevel")


class WaterParameters(Document):
    """Raw water sample values; units per BIS drinking water tables"""
    ph: float = Field(..., ge=0.0, le=14.0)
    dissolved_oxygen: float = Field(..., ge=0.0, alias="dissolvedOxygen")
    bod: float = Field(..., ge=0.0)
    turbidity: float = Field(..., ge=0.0)
    total_coliform: float = Field(..., ge=0.0, alias="totalColiform")
    nitrate: float = Field(..., ge=0.0)
    fluoride: float = Field(..., ge=0.0)
    iron: float = Field(..., ge=0.0)


class WQIBlock(Document):
    value: int = Field(..., ge=0)
    category: WQICategory


class WaterQualityReading(ReadingBase):
    water_body: Dict[str, str] = Field(
        default_factory=lambda: {"name": "Municipal Tap Water", "type": "tap_water"},
        alias="waterBody",
    )
    wqi: WQIBlock
    parameters: WaterParameters
    is_safe_for_drinking: bool = Field(..., alias="isSafeForDrinking")


# --- Admin update payloads ---

class FloodUpdate(BaseModel):
    city: str = Field(..., min_length=1, max_length=100)
    state: str = ""
    lat: confloat(ge=-90.0, le=90.0)
    lng: confloat(ge=-180.0, le=180.0)
    rainfall: RainfallBlock = Field(default_factory=RainfallBlock)
    risk_level: str = Field("low", pattern=r"^(low|moderate|high|severe)$")
    water_level: Optional[WaterLevelBlock] = None
    source: str = "authority"


class WaterQualityUpdate(BaseModel):
    city: str = Field(..., min_length=1, max_length=100)
    state: str = ""
    lat: confloat(ge=-90.0, le=90.0)
    lng: confloat(ge=-180.0, le=180.0)
    parameters: WaterParameters
    source: str = "authority"


# --- Alerts ---

class AlertModel(Document):
    type: AlertType
    severity: AlertSeverity
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    city: str = Field(..., min_length=1, max_length=100)
    state: Optional[str] = None
    valid_from: datetime = Field(default_factory=utcnow, alias="validFrom")
    valid_until: Optional[datetime] = Field(None, alias="validUntil")
    is_active: bool = Field(True, alias="isActive")
    issued_by: str = Field("system", pattern=r"^(system|authority|imd|cpcb)$", alias="issuedBy")
    source: Optional[str] = None
    metadata: Dict[str, float] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    def to_document(self) -> Dict[str, Any]:
        # validUntil is stored even when open-ended so the active query can match null
        doc = super().to_document()
        doc.setdefault("validUntil", None)
        return doc

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "type": "heatwave",
                "severity": "emergency",
                "title": "Heatwave Emergency - Delhi",
                "message": "Temperature: 46°C, Heat Index: 49.2°C",
                "city": "Delhi",
                "state": "Delhi",
                "validFrom": "2026-05-20T10:00:00Z",
                "validUntil": "2026-05-21T10:00:00Z",
                "metadata": {"temperature": 46.0}
            }
        }
    )
