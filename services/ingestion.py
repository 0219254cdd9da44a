"""
External Data Ingestion Pipeline
Pulls OpenWeather data for the city roster, derives heatwave and air
quality readings, persists them and raises threshold alerts.
"""

import asyncio
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import structlog
from pymongo.errors import ConnectionFailure

from config import settings
from models.base import AlertType, City, HeatAlertLevel, ReadingDomain
from models.model import (
    AirQualityReading,
    AlertModel,
    AQIBlock,
    HeatwaveReading,
    PollutantValue,
    TemperatureBlock,
)
from services.alert_service import AlertService
from services.converters import (
    aqi_alert_severity,
    approximate_aqi,
    heat_alert_level,
    heat_alert_severity,
    heat_index,
)
from services.exceptions import IngestionAlreadyRunning, StoreUnavailableError
from services.reading_store import ReadingStore
from services.weather_data import OpenWeatherClient
from utils.db import StoreStatus

logger = structlog.get_logger(__name__)

SOURCE_TAG = "OpenWeather"

# Major Indian cities covered by the hourly fetch
CITY_ROSTER: List[City] = [
    City(name="Delhi", state="Delhi", lat=28.6139, lng=77.2090),
    City(name="Mumbai", state="Maharashtra", lat=19.0760, lng=72.8777),
    City(name="Chennai", state="Tamil Nadu", lat=13.0827, lng=80.2707),
    City(name="Kolkata", state="West Bengal", lat=22.5726, lng=88.3639),
    City(name="Bangalore", state="Karnataka", lat=12.9716, lng=77.5946),
    City(name="Hyderabad", state="Telangana", lat=17.3850, lng=78.4867),
    City(name="Ahmedabad", state="Gujarat", lat=23.0225, lng=72.5714),
    City(name="Pune", state="Maharashtra", lat=18.5204, lng=73.8567),
    City(name="Jaipur", state="Rajasthan", lat=26.9124, lng=75.7873),
    City(name="Lucknow", state="Uttar Pradesh", lat=26.8467, lng=80.9462),
]


class DomainStatus(str, Enum):
    STORED = "stored"
    NO_DATA = "no_data"
    FAILED = "failed"


@dataclass
class CityOutcome:
    city: str
    heatwave: DomainStatus = DomainStatus.NO_DATA
    air_quality: DomainStatus = DomainStatus.NO_DATA
    alerts_created: int = 0
    alerts_suppressed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return DomainStatus.STORED in (self.heatwave, self.air_quality)


@dataclass
class IngestionReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    cities: List[CityOutcome] = field(default_factory=list)

    @property
    def readings_stored(self) -> int:
        return sum(
            (c.heatwave == DomainStatus.STORED) + (c.air_quality == DomainStatus.STORED)
            for c in self.cities
        )

    @property
    def alerts_created(self) -> int:
        return sum(c.alerts_created for c in self.cities)

    @property
    def cities_failed(self) -> List[str]:
        return [c.city for c in self.cities if not c.succeeded]

    def outcome(self, city: str) -> Optional[CityOutcome]:
        return next((c for c in self.cities if c.city == city), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "readings_stored": self.readings_stored,
            "alerts_created": self.alerts_created,
            "cities_failed": self.cities_failed,
            "cities": [
                {**asdict(c), "heatwave": c.heatwave.value, "air_quality": c.air_quality.value}
                for c in self.cities
            ],
        }


class IngestionPipeline:
    """
    One pass over the city roster.

    Cities are processed strictly in order with a fixed delay between
    them; that delay is the only throttle against provider rate limits.
    Heatwave and air quality are independent units of work per city.
    """

    def __init__(
        self,
        client: OpenWeatherClient,
        readings: ReadingStore,
        alerts: AlertService,
        probe: Callable[[], Awaitable[StoreStatus]],
        cities: Sequence[City] = CITY_ROSTER,
        city_delay_seconds: Optional[float] = None,
    ):
        self.client = client
        self.readings = readings
        self.alerts = alerts
        self.probe = probe
        self.cities = list(cities)
        self.city_delay_seconds = (
            settings.ingestion_city_delay_seconds if city_delay_seconds is None else city_delay_seconds
        )

    async def run(self) -> IngestionReport:
        status = await self.probe()
        if not status.available:
            logger.error("Store unavailable, skipping ingestion", error=status.error)
            raise StoreUnavailableError(status.error or "MongoDB unavailable")

        report = IngestionReport(started_at=datetime.now(timezone.utc))
        logger.info("Starting external data fetch", cities=len(self.cities))

        for index, city in enumerate(self.cities):
            outcome = CityOutcome(city=city.name)
            report.cities.append(outcome)
            try:
                await self._process_heatwave(city, outcome)
            except ConnectionFailure as e:
                raise self._store_lost(city, e) from e
            except Exception as e:
                outcome.heatwave = DomainStatus.FAILED
                outcome.errors.append(f"heatwave: {e}")
                logger.error("Heatwave processing failed", city=city.name, error=str(e), exc_info=True)

            try:
                await self._process_air_quality(city, outcome)
            except ConnectionFailure as e:
                raise self._store_lost(city, e) from e
            except Exception as e:
                outcome.air_quality = DomainStatus.FAILED
                outcome.errors.append(f"air_quality: {e}")
                logger.error("Air quality processing failed", city=city.name, error=str(e), exc_info=True)

            if index < len(self.cities) - 1 and self.city_delay_seconds > 0:
                await asyncio.sleep(self.city_delay_seconds)

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            "External data fetch completed",
            readings_stored=report.readings_stored,
            alerts_created=report.alerts_created,
            cities_failed=report.cities_failed,
        )
        return report

    def _store_lost(self, city: City, error: Exception) -> StoreUnavailableError:
        # every later city would hit the same server selection timeout
        logger.error("Store lost mid-run, aborting ingestion", city=city.name, error=str(error))
        return StoreUnavailableError(str(error) or "MongoDB connection lost")

    async def _process_heatwave(self, city: City, outcome: CityOutcome):
        weather = await self.client.fetch_city_weather(city.name, city.coordinates)
        if weather is None:
            logger.warning("No weather data this cycle", city=city.name)
            return

        hi = heat_index(weather.temperature, weather.humidity)
        level = heat_alert_level(weather.temperature, hi)
        now = datetime.now(timezone.utc)

        reading = HeatwaveReading(
            city=city.name,
            state=city.state,
            coordinates=city.coordinates,
            temperature=TemperatureBlock(
                current=weather.temperature,
                feels_like=weather.feels_like,
                min=weather.temp_min,
                max=weather.temp_max,
            ),
            heat_index=hi,
            humidity=weather.humidity,
            alert_level=level,
            source=SOURCE_TAG,
            recorded_at=now,
        )
        await self.readings.insert(ReadingDomain.HEATWAVE, reading)
        outcome.heatwave = DomainStatus.STORED

        severity = heat_alert_severity(level)
        if severity is None:
            return

        label = "Emergency" if level == HeatAlertLevel.RED else "Warning"
        alert = AlertModel(
            type=AlertType.HEATWAVE,
            severity=severity,
            title=f"Heatwave {label} - {city.name}",
            message=f"Temperature: {weather.temperature}°C, Heat Index: {hi}°C",
            city=city.name,
            state=city.state,
            valid_from=now,
            valid_until=now + timedelta(hours=settings.heatwave_alert_hours),
            issued_by="system",
            source=SOURCE_TAG,
            metadata={"temperature": weather.temperature},
        )
        await self._record_alert(alert, outcome, now)

    async def _process_air_quality(self, city: City, outcome: CityOutcome):
        pollution = await self.client.fetch_city_pollution(city.name, city.coordinates)
        if pollution is None:
            logger.warning("No air pollution data this cycle", city=city.name)
            return

        aqi = approximate_aqi(pollution.as_dict())
        if aqi is None:
            logger.warning("Pollution data missing PM values", city=city.name)
            return

        now = datetime.now(timezone.utc)
        reading = AirQualityReading(
            city=city.name,
            state=city.state,
            coordinates=city.coordinates,
            aqi=AQIBlock(value=aqi.value, category=aqi.category),
            pollutants={name: PollutantValue(**values) for name, values in aqi.pollutants.items()},
            source=SOURCE_TAG,
            recorded_at=now,
        )
        await self.readings.insert(ReadingDomain.AIR_QUALITY, reading)
        outcome.air_quality = DomainStatus.STORED

        severity = aqi_alert_severity(aqi.category)
        if severity is None:
            return

        alert = AlertModel(
            type=AlertType.AIR_QUALITY,
            severity=severity,
            title=f"Air Quality Alert - {city.name}",
            message=f"AQI: {aqi.value} ({aqi.category.value.replace('_', ' ')})",
            city=city.name,
            state=city.state,
            valid_from=now,
            valid_until=now + timedelta(hours=settings.air_quality_alert_hours),
            issued_by="system",
            source=SOURCE_TAG,
            metadata={"aqi": aqi.value},
        )
        await self._record_alert(alert, outcome, now)

    async def _record_alert(self, alert: AlertModel, outcome: CityOutcome, now: datetime):
        alert_id = await self.alerts.create_alert(alert, now=now)
        if alert_id is None:
            outcome.alerts_suppressed += 1
        else:
            outcome.alerts_created += 1


class IngestionRunner:
    """
    Single entry point shared by the scheduler and the manual trigger.
    Never lets two pipeline runs overlap: a second caller is rejected.
    """

    def __init__(self, pipeline: IngestionPipeline):
        self.pipeline = pipeline
        self._lock = asyncio.Lock()
        self.last_report: Optional[IngestionReport] = None
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_ingestion(self) -> IngestionReport:
        if self._lock.locked():
            logger.warning("Ingestion already in progress, rejecting run")
            raise IngestionAlreadyRunning("An ingestion run is already in progress")

        async with self._lock:
            try:
                report = await self.pipeline.run()
            except Exception as e:
                self.last_error = str(e) or e.__class__.__name__
                raise
            self.last_report = report
            self.last_error = None
            return report

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "last_error": self.last_error,
            "last_report": self.last_report.to_dict() if self.last_report else None,
        }
