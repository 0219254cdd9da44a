"""
Database Index Management for ClimateGuard
Supports the latest-reading and active-alert queries
"""

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from models.base import ReadingDomain

logger = structlog.get_logger(__name__)

ALERTS_COLLECTION = "alerts"


async def ensure_service_indexes(db: AsyncIOMotorDatabase):
    """
    Create all necessary indexes for service collections

    Args:
        db: MongoDB database instance
    """
    logger.info("Creating database indexes...")

    try:
        for domain in ReadingDomain:
            await db[domain.collection].create_index([
                ("city", 1),
                ("recordedAt", -1)
            ], name=f"{domain.collection}_city_recorded_idx")

        logger.info("Reading indexes created")

        await db[ALERTS_COLLECTION].create_index([
            ("city", 1),
            ("isActive", 1),
            ("validUntil", -1)
        ], name="alerts_city_active_idx")

        await db[ALERTS_COLLECTION].create_index([
            ("type", 1),
            ("severity", 1)
        ], name="alerts_type_severity_idx")

        await db[ALERTS_COLLECTION].create_index([
            ("createdAt", -1)
        ], name="alerts_created_idx")

        logger.info("Alert indexes created")

    except Exception as e:
        logger.error("Failed to create indexes", error=str(e))
        raise
