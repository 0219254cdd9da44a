"""
MongoDB connection lifecycle and availability probe
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from config import settings

logger = structlog.get_logger(__name__)


@dataclass
class StoreStatus:
    """Result of a connection probe; passed around instead of a global flag"""
    available: bool
    latency_ms: Optional[float] = None
    error: Optional[str] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def probe_store(db: Optional[AsyncIOMotorDatabase]) -> StoreStatus:
    """Ping MongoDB and report whether it is usable"""
    if db is None:
        return StoreStatus(available=False, error="Database not initialized")

    start = datetime.now(timezone.utc)
    try:
        await db.command("ping")
    except Exception as e:
        logger.warning("MongoDB probe failed", error=str(e))
        return StoreStatus(available=False, error=str(e))

    latency_ms = (datetime.now(timezone.utc) - start).total_seconds() * 1000
    return StoreStatus(available=True, latency_ms=round(latency_ms, 2))


class StoreProbe:
    """
    Availability check handed to the ingestion pipeline.

    Indexes are created the first time the store answers, so a process
    that booted while MongoDB was down still gets them once it recovers.
    """

    def __init__(self, db: Optional[AsyncIOMotorDatabase], indexes_ready: bool = False):
        self.db = db
        self.indexes_ready = indexes_ready

    async def __call__(self) -> StoreStatus:
        status = await probe_store(self.db)
        if status.available and not self.indexes_ready:
            try:
                await ensure_indexes(self.db)
                self.indexes_ready = True
            except PyMongoError as e:
                logger.warning("Index creation failed, retrying next run", error=str(e))
        return status


@retry(
    stop=stop_after_attempt(settings.mongodb_connect_attempts),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(PyMongoError),
    reraise=True,
)
async def _connect(client: AsyncIOMotorClient):
    await client.admin.command("ping")


async def init_mongo(app: FastAPI):
    """Create the Motor client, wait for MongoDB and attach it to app.state"""
    client = AsyncIOMotorClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        connectTimeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True,
    )
    app.state.mongo_client = client
    app.state.db = client[settings.mongodb_db]

    await _connect(client)
    logger.info("MongoDB connected", database=settings.mongodb_db)


async def close_mongo(app: FastAPI):
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
    app.state.mongo_client = None
    app.state.db = None


def get_db(app: FastAPI) -> AsyncIOMotorDatabase:
    db = getattr(app.state, "db", None)
    if db is None:
        raise RuntimeError("MongoDB is not initialized")
    return db


async def ensure_indexes(db: AsyncIOMotorDatabase):
    # services imports this module for StoreStatus
    from services.db_indexes import ensure_service_indexes
    await ensure_service_indexes(db)
