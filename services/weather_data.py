"""
OpenWeather Data Client
Fetches current weather, air pollution and geocoding data.

Every public method fails soft: missing credentials, HTTP errors,
timeouts and malformed payloads are logged and turned into None.
"""

import httpx
import structlog
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from config import settings
from models.base import Coordinates

logger = structlog.get_logger(__name__)

POLLUTANT_KEYS = ("pm2_5", "pm10", "no2", "so2", "co", "o3", "nh3")


@dataclass
class WeatherSnapshot:
    temperature: float
    feels_like: Optional[float]
    temp_min: Optional[float]
    temp_max: Optional[float]
    humidity: float


@dataclass
class PollutantSnapshot:
    pm2_5: Optional[float] = None
    pm10: Optional[float] = None
    no2: Optional[float] = None
    so2: Optional[float] = None
    co: Optional[float] = None
    o3: Optional[float] = None
    nh3: Optional[float] = None

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {key: getattr(self, key) for key in POLLUTANT_KEYS}


class OpenWeatherClient:
    """
    Thin async client for the OpenWeather REST APIs.
    Uses one pooled httpx.AsyncClient with a bounded timeout per call.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        country: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openweather_api_key
        self.country = country or settings.geocode_country
        self.client = httpx.AsyncClient(
            base_url=base_url or settings.openweather_url,
            timeout=timeout or settings.http_timeout_seconds,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def _get(self, path: str, params: Dict) -> Optional[object]:
        if not self.configured:
            logger.warning("OpenWeather API key not configured")
            return None

        try:
            response = await self.client.get(path, params={**params, "appid": self.api_key})
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException:
            logger.error("OpenWeather request timed out", path=path)
            return None
        except httpx.HTTPStatusError as e:
            logger.error("OpenWeather returned an error", path=path, status_code=e.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error("OpenWeather request failed", path=path, error=str(e))
            return None

    async def fetch_weather(self, lat: float, lon: float) -> Optional[WeatherSnapshot]:
        """
        Fetch current weather in metric units.

        Returns:
            WeatherSnapshot or None if the call failed
        """
        data = await self._get("/data/2.5/weather", {"lat": lat, "lon": lon, "units": "metric"})
        if data is None:
            return None

        try:
            main = data["main"]
            snapshot = WeatherSnapshot(
                temperature=float(main["temp"]),
                feels_like=main.get("feels_like"),
                temp_min=main.get("temp_min"),
                temp_max=main.get("temp_max"),
                humidity=float(main["humidity"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed weather payload", lat=lat, lon=lon, error=str(e))
            return None

        logger.info("Fetched weather", lat=lat, lon=lon)
        return snapshot

    async def fetch_air_pollution(self, lat: float, lon: float) -> Optional[PollutantSnapshot]:
        """
        Fetch current raw pollutant concentrations (µg/m³).

        Returns:
            PollutantSnapshot or None if the call failed
        """
        data = await self._get("/data/2.5/air_pollution", {"lat": lat, "lon": lon})
        if data is None:
            return None

        try:
            components = data["list"][0]["components"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Malformed air pollution payload", lat=lat, lon=lon, error=str(e))
            return None

        logger.info("Fetched air pollution", lat=lat, lon=lon)
        return PollutantSnapshot(**{key: components.get(key) for key in POLLUTANT_KEYS})

    async def geocode(self, city: str, country: Optional[str] = None) -> Optional[Tuple[float, float]]:
        """Resolve a city name to (lat, lon) within one country."""
        query = f"{city},{country or self.country}"
        data = await self._get("/geo/1.0/direct", {"q": query, "limit": 1})
        if not data:
            logger.warning("Geocoding returned no result", city=city)
            return None

        try:
            return float(data[0]["lat"]), float(data[0]["lon"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Malformed geocoding payload", city=city, error=str(e))
            return None

    async def _resolve(self, city: str, coordinates: Optional[Coordinates]) -> Optional[Tuple[float, float]]:
        if coordinates is not None:
            return coordinates.lat, coordinates.lng
        return await self.geocode(city)

    async def fetch_city_weather(
        self, city: str, coordinates: Optional[Coordinates] = None
    ) -> Optional[WeatherSnapshot]:
        location = await self._resolve(city, coordinates)
        if location is None:
            return None
        return await self.fetch_weather(*location)

    async def fetch_city_pollution(
        self, city: str, coordinates: Optional[Coordinates] = None
    ) -> Optional[PollutantSnapshot]:
        location = await self._resolve(city, coordinates)
        if location is None:
            return None
        return await self.fetch_air_pollution(*location)
