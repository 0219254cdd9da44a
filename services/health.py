"""
Service Health Check Module
"""

import structlog
from typing import Dict, Any
from datetime import datetime, timezone

from utils.db import probe_store

logger = structlog.get_logger(__name__)


class ServiceHealth:
    """Health check utilities for services"""

    @staticmethod
    async def check_database(db) -> Dict[str, Any]:
        status = await probe_store(db)
        if status.available:
            return {"status": "healthy", "latency_ms": status.latency_ms}
        return {"status": "unhealthy", "error": status.error}

    @staticmethod
    async def check_redis(redis) -> Dict[str, Any]:
        if not redis:
            return {"status": "disabled", "message": "Redis not configured"}

        try:
            start = datetime.now(timezone.utc)
            await redis.ping()
            latency_ms = (datetime.now(timezone.utc) - start).total_seconds() * 1000
            return {"status": "healthy", "latency_ms": round(latency_ms, 2)}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

    @staticmethod
    def check_openweather(client) -> Dict[str, Any]:
        # no live call: the key is the usual failure and costs nothing to check
        if client is None or not client.configured:
            return {"status": "unhealthy", "error": "OpenWeather API key not configured"}
        return {"status": "configured"}

    @staticmethod
    def check_scheduler(scheduler, runner) -> Dict[str, Any]:
        if scheduler is None or not scheduler.is_running:
            return {"status": "disabled"}
        next_run = scheduler.next_run_time()
        return {
            "status": "healthy",
            "ingestion_running": runner.running if runner else False,
            "next_run_time": next_run.isoformat() if next_run else None,
        }

    @staticmethod
    async def check_all_services(app, redis=None) -> Dict[str, Any]:
        """
        Check health of all services

        Args:
            app: FastAPI app instance
            redis: Redis client, if rate limiting is enabled

        Returns:
            Health check results with an overall status
        """
        state = app.state
        results = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {
                "mongodb": await ServiceHealth.check_database(getattr(state, "db", None)),
                "redis": await ServiceHealth.check_redis(redis),
                "openweather": ServiceHealth.check_openweather(getattr(state, "weather_client", None)),
                "scheduler": ServiceHealth.check_scheduler(
                    getattr(state, "scheduler", None), getattr(state, "ingestion_runner", None)
                ),
            },
        }

        services = results["services"]
        if services["mongodb"]["status"] != "healthy":
            results["status"] = "unhealthy"
        elif any(s.get("status") == "unhealthy" for s in services.values()):
            results["status"] = "degraded"
        else:
            results["status"] = "healthy"

        return results
