# main.py - ClimateGuard API
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time
import structlog

from config import settings
from utils.db import StoreProbe, init_mongo, close_mongo
from middleware import setup_logging_middleware
from services.alert_service import AlertService
from services.ingestion import IngestionPipeline, IngestionRunner
from services.reading_store import ReadingStore
from services.scheduler import SchedulerService
from services.weather_data import OpenWeatherClient

# Import Routers
from routers import alerts, readings, system

# --- Structured Logging Setup ---
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def build_services(app: FastAPI, db) -> IngestionRunner:
    """Wire stores, client and pipeline onto app.state"""
    app.state.store_probe = StoreProbe(db)
    app.state.reading_store = ReadingStore(db)
    app.state.alert_service = AlertService(db)
    pipeline = IngestionPipeline(
        client=app.state.weather_client,
        readings=app.state.reading_store,
        alerts=app.state.alert_service,
        probe=app.state.store_probe,
    )
    app.state.ingestion_runner = IngestionRunner(pipeline)
    return app.state.ingestion_runner


# --- Lifespan Event Handler ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Starting ClimateGuard API", version=settings.api_version)
    app.state.start_time = time.time()
    app.state.weather_client = OpenWeatherClient()
    app.state.scheduler = None

    # Motor reconnects lazily, so services are wired even when the first
    # ping fails; each ingestion run probes the store itself
    connected = False
    try:
        await init_mongo(app)
        connected = True
        logger.info("MongoDB initialized successfully")
    except Exception as e:
        logger.error("MongoDB not reachable at startup, ingestion will retry each run", error=str(e))

    db = getattr(app.state, "db", None)
    if db is None:
        logger.error("MongoDB client could not be created, ingestion disabled")
    else:
        runner = build_services(app, db)
        if connected:
            try:
                await app.state.store_probe()
            except Exception as e:
                logger.error("Index creation failed", error=str(e))

        if settings.scheduler_enabled:
            app.state.scheduler = SchedulerService(runner)
            app.state.scheduler.start()

    logger.info("Application startup completed")

    yield

    # Shutdown
    logger.info("Shutting down ClimateGuard API")

    if app.state.scheduler is not None:
        app.state.scheduler.shutdown()

    try:
        await app.state.weather_client.close()
    except Exception as e:
        logger.error("Error closing OpenWeather client", error=str(e))

    try:
        await close_mongo(app)
        logger.info("MongoDB connection closed")
    except Exception as e:
        logger.error("Error closing MongoDB", error=str(e))

    logger.info("Application shutdown completed")


# --- App Setup ---
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Setup logging middleware
app = setup_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# --- Include Routers ---
app.include_router(system.router)
app.include_router(alerts.router)
app.include_router(readings.heatwave_router)
app.include_router(readings.air_quality_router)
app.include_router(readings.flood_router)
app.include_router(readings.water_quality_router)


# --- Exception Handlers ---
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred" if not settings.debug else str(exc),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@app.get("/", summary="API Information", tags=["General"])
async def root():
    """Get basic API information"""
    return {
        "message": "ClimateGuard - City Climate Monitoring",
        "version": settings.api_version,
        "docs": "/docs",
        "health": "/health",
        "api": {
            "heatwave": "/api/v1/heatwave",
            "air_quality": "/api/v1/air-quality",
            "flood": "/api/v1/flood",
            "water_quality": "/api/v1/water-quality",
            "alerts": "/api/v1/alerts",
            "ingestion": "/api/v1/ingestion"
        }
    }
