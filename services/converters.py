"""
Unit converters and severity classifiers.

Pure functions shared by the ingestion pipeline and the admin update
routes. Nothing here touches the network or the database.
"""

from typing import Dict, Optional
from dataclasses import dataclass, field

from models.base import AlertSeverity, AQICategory, HeatAlertLevel, WQICategory

# Rothfusz regression, NWS coefficients adapted for Celsius input
HEAT_INDEX_COEFFICIENTS = (
    -8.78469475556,
    1.61139411,
    2.33854883889,
    -0.14611605,
    -0.012308094,
    -0.0164248277778,
    0.002211732,
    0.00072546,
    -0.000003582,
)
HEAT_INDEX_MIN_TEMP_C = 27.0

# (level, min temperature, min heat index), most severe first
HEAT_ALERT_BANDS = (
    (HeatAlertLevel.RED, 45.0, 52.0),
    (HeatAlertLevel.ORANGE, 40.0, 45.0),
    (HeatAlertLevel.YELLOW, 37.0, 40.0),
)

# inclusive upper bounds
AQI_BANDS = (
    (50, AQICategory.GOOD),
    (100, AQICategory.SATISFACTORY),
    (200, AQICategory.MODERATE),
    (300, AQICategory.POOR),
    (400, AQICategory.VERY_POOR),
)

WQI_BANDS = (
    (25, WQICategory.EXCELLENT),
    (50, WQICategory.GOOD),
    (75, WQICategory.FAIR),
    (100, WQICategory.POOR),
)

# parameter -> (check, points when within limit, points when outside)
WQI_WEIGHTS = {
    "ph": (lambda v: 6.5 <= v <= 8.5, 10, 20),
    "dissolved_oxygen": (lambda v: v >= 6, 10, 15),
    "bod": (lambda v: v <= 3, 10, 20),
    "turbidity": (lambda v: v <= 5, 10, 15),
    "total_coliform": (lambda v: v <= 50, 10, 20),
    "nitrate": (lambda v: v <= 45, 5, 15),
    "fluoride": (lambda v: v <= 1.5, 5, 10),
    "iron": (lambda v: v <= 0.3, 5, 10),
}
WQI_SAFE_DRINKING_MAX = 50


def heat_index(temp_c: float, humidity: float) -> float:
    """Apparent temperature in Celsius.

    Below 27°C the regression is not valid and the air temperature is
    returned unchanged.
    """
    if temp_c < HEAT_INDEX_MIN_TEMP_C:
        return temp_c

    c1, c2, c3, c4, c5, c6, c7, c8, c9 = HEAT_INDEX_COEFFICIENTS
    t, rh = temp_c, humidity
    value = (
        c1
        + c2 * t
        + c3 * rh
        + c4 * t * rh
        + c5 * t * t
        + c6 * rh * rh
        + c7 * t * t * rh
        + c8 * t * rh * rh
        + c9 * t * t * rh * rh
    )
    return round(value, 1)


def heat_alert_level(temp_c: float, heat_index_c: float) -> HeatAlertLevel:
    """Most severe band satisfied by either the temperature or the heat index."""
    for level, min_temp, min_heat_index in HEAT_ALERT_BANDS:
        if temp_c >= min_temp or heat_index_c >= min_heat_index:
            return level
    return HeatAlertLevel.GREEN


def aqi_category(value: float) -> AQICategory:
    for upper, category in AQI_BANDS:
        if value <= upper:
            return category
    return AQICategory.SEVERE


def wqi_category(value: float) -> WQICategory:
    for upper, category in WQI_BANDS:
        if value <= upper:
            return category
    return WQICategory.VERY_POOR


@dataclass
class AQIResult:
    value: int
    category: AQICategory
    pollutants: Dict[str, Dict[str, Optional[float]]] = field(default_factory=dict)


def approximate_aqi(components: Dict[str, Optional[float]]) -> Optional[AQIResult]:
    """Rough AQI estimate from raw OpenWeather concentrations.

    Uses ``max(pm2_5 * 2, pm10)`` instead of the CPCB sub-index
    breakpoint tables. This is an approximation for dashboard display
    and alerting only; it is not a regulatory AQI.

    Returns None when either PM value is missing.
    """
    pm25 = components.get("pm2_5")
    pm10 = components.get("pm10")
    if pm25 is None or pm10 is None:
        return None

    value = int(round(max(pm25 * 2, pm10)))
    co = components.get("co")

    pollutants = {
        "pm25": {"value": pm25, "unit": "µg/m³"},
        "pm10": {"value": pm10, "unit": "µg/m³"},
        "no2": {"value": components.get("no2"), "unit": "µg/m³"},
        "so2": {"value": components.get("so2"), "unit": "µg/m³"},
        # OpenWeather reports CO in µg/m³
        "co": {"value": co / 1000 if co is not None else None, "unit": "mg/m³"},
        "o3": {"value": components.get("o3"), "unit": "µg/m³"},
        "nh3": {"value": components.get("nh3"), "unit": "µg/m³"},
    }
    return AQIResult(value=value, category=aqi_category(value), pollutants=pollutants)


def water_quality_index(parameters: Dict[str, float]) -> int:
    """Weighted-sum WQI over the eight monitored parameters.

    Each parameter contributes a fixed number of points depending on
    whether it is inside its permissible limit. Lower is better.
    """
    total = 0
    for name, (within_limit, good_points, bad_points) in WQI_WEIGHTS.items():
        total += good_points if within_limit(parameters[name]) else bad_points
    return total


def is_safe_for_drinking(wqi: float) -> bool:
    return wqi <= WQI_SAFE_DRINKING_MAX


def heat_alert_severity(level: HeatAlertLevel) -> Optional[AlertSeverity]:
    if level == HeatAlertLevel.RED:
        return AlertSeverity.EMERGENCY
    if level == HeatAlertLevel.ORANGE:
        return AlertSeverity.WARNING
    return None


def aqi_alert_severity(category: AQICategory) -> Optional[AlertSeverity]:
    return {
        AQICategory.SEVERE: AlertSeverity.EMERGENCY,
        AQICategory.VERY_POOR: AlertSeverity.CRITICAL,
        AQICategory.POOR: AlertSeverity.WARNING,
    }.get(category)
