from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
import structlog

from config import settings
from services.exceptions import IngestionAlreadyRunning, StoreUnavailableError
from services.health import ServiceHealth
from services.ingestion import IngestionRunner
from utils.dependencies import get_ingestion_runner, get_redis, rate_limit, verify_api_key

logger = structlog.get_logger(__name__)

router = APIRouter(
    tags=["System & Monitoring"]
)


@router.get("/health", summary="Service health check", tags=["Monitoring"])
async def health_check(request: Request):
    """MongoDB, Redis, OpenWeather credentials and scheduler state"""
    health_status = await ServiceHealth.check_all_services(request.app, redis=await get_redis())
    health_status["version"] = settings.api_version

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)
    return health_status


@router.post("/api/v1/ingestion/run", summary="Trigger one ingestion pass (admin)", tags=["Ingestion"])
async def run_ingestion(
    runner: IngestionRunner = Depends(get_ingestion_runner),
    _: bool = Depends(rate_limit),
    api_key: bool = Depends(verify_api_key),
):
    """Runs the same guarded pipeline as the hourly job"""
    try:
        report = await runner.run_ingestion()
    except IngestionAlreadyRunning:
        raise HTTPException(status_code=409, detail="Ingestion already in progress")
    except StoreUnavailableError as e:
        logger.error("Manual ingestion failed, store unavailable", error=str(e))
        raise HTTPException(status_code=503, detail="Database not connected")
    except Exception as e:
        logger.error("Manual ingestion failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Ingestion failed")

    return {"message": "Data fetch completed", "report": report.to_dict()}


@router.get("/api/v1/ingestion/status", summary="Last ingestion report", tags=["Ingestion"])
async def ingestion_status(runner: IngestionRunner = Depends(get_ingestion_runner)):
    return runner.status()
