from fastapi import APIRouter, Depends, HTTPException, Path, Query
from typing import Optional
import structlog

from models.base import Coordinates, ReadingDomain
from models.model import (
    FloodReading,
    FloodUpdate,
    WaterQualityReading,
    WaterQualityUpdate,
    WQIBlock,
)
from services.converters import is_safe_for_drinking, water_quality_index, wqi_category
from services.reading_store import ReadingStore
from utils.dependencies import get_reading_store, rate_limit, verify_api_key

logger = structlog.get_logger(__name__)


def build_reading_router(domain: ReadingDomain, prefix: str, tag: str) -> APIRouter:
    """Current and history endpoints shared by every reading domain"""
    router = APIRouter(prefix=f"/api/v1/{prefix}", tags=[tag])

    @router.get("/current/{city}", summary=f"Latest {tag.lower()} reading for a city")
    async def get_current(
        city: str = Path(..., min_length=1, max_length=100, description="City name (case-insensitive)"),
        store: ReadingStore = Depends(get_reading_store),
    ):
        try:
            data = await store.latest(domain, city)
        except Exception as e:
            logger.error("Failed to fetch latest reading", domain=domain.value, city=city, error=str(e), exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch reading")

        if data is None:
            raise HTTPException(status_code=404, detail="No data available for this city")
        return {"data": data}

    @router.get("/history/{city}", summary=f"{tag} reading history for a city")
    async def get_history(
        city: str = Path(..., min_length=1, max_length=100, description="City name (case-insensitive)"),
        limit: int = Query(50, ge=1, le=500, description="Maximum number of readings to return"),
        hours_back: Optional[int] = Query(None, ge=1, le=24 * 365, description="Only readings newer than this"),
        store: ReadingStore = Depends(get_reading_store),
    ):
        try:
            readings = await store.history(domain, city, limit=limit, hours_back=hours_back)
        except Exception as e:
            logger.error("Failed to fetch reading history", domain=domain.value, city=city, error=str(e), exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch reading history")
        return {"city": city, "count": len(readings), "readings": readings}

    return router


heatwave_router = build_reading_router(ReadingDomain.HEATWAVE, "heatwave", "Heatwave")
air_quality_router = build_reading_router(ReadingDomain.AIR_QUALITY, "air-quality", "Air Quality")
flood_router = build_reading_router(ReadingDomain.FLOOD, "flood", "Flood")
water_quality_router = build_reading_router(ReadingDomain.WATER_QUALITY, "water-quality", "Water Quality")


@flood_router.post("/update", summary="Record a flood reading (admin)", status_code=201)
async def update_flood(
    payload: FloodUpdate,
    store: ReadingStore = Depends(get_reading_store),
    _: bool = Depends(rate_limit),
    api_key: bool = Depends(verify_api_key),
):
    reading = FloodReading(
        city=payload.city,
        state=payload.state,
        coordinates=Coordinates(lat=payload.lat, lng=payload.lng),
        rainfall=payload.rainfall,
        risk_level=payload.risk_level,
        water_level=payload.water_level,
        source=payload.source,
    )
    reading_id = await store.insert(ReadingDomain.FLOOD, reading)
    return {"message": "Flood data updated", "id": reading_id, "data": reading.to_document()}


@water_quality_router.post("/update", summary="Record a water quality sample (admin)", status_code=201)
async def update_water_quality(
    payload: WaterQualityUpdate,
    store: ReadingStore = Depends(get_reading_store),
    _: bool = Depends(rate_limit),
    api_key: bool = Depends(verify_api_key),
):
    wqi = water_quality_index(payload.parameters.model_dump())
    reading = WaterQualityReading(
        city=payload.city,
        state=payload.state,
        coordinates=Coordinates(lat=payload.lat, lng=payload.lng),
        wqi=WQIBlock(value=wqi, category=wqi_category(wqi)),
        parameters=payload.parameters,
        is_safe_for_drinking=is_safe_for_drinking(wqi),
        source=payload.source,
    )
    reading_id = await store.insert(ReadingDomain.WATER_QUALITY, reading)
    return {"message": "Water quality data updated", "id": reading_id, "data": reading.to_document()}
