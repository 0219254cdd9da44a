from fastapi import HTTPException, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import redis.asyncio as redis
import structlog

from config import settings
from services.alert_service import AlertService
from services.ingestion import IngestionRunner
from services.reading_store import ReadingStore

logger = structlog.get_logger(__name__)

# --- Security Dependencies ---
security = HTTPBearer(auto_error=False)


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify API key for admin endpoints"""
    if not settings.api_key:
        return True  # No API key required in development

    if not credentials or credentials.credentials != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return True


# --- Service Dependencies ---

def _service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not connected",
        )
    return service


def get_reading_store(request: Request) -> ReadingStore:
    return _service(request, "reading_store")


def get_alert_service(request: Request) -> AlertService:
    return _service(request, "alert_service")


def get_ingestion_runner(request: Request) -> IngestionRunner:
    return _service(request, "ingestion_runner")


# --- Redis Setup ---
redis_client = None


async def get_redis():
    """Get Redis client, or None when Redis is unreachable"""
    global redis_client
    if redis_client is None:
        try:
            client = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
            await client.ping()
            redis_client = client
        except Exception as e:
            logger.warning("Redis connection failed, rate limiting disabled", error=str(e))
            redis_client = None
    return redis_client


# --- Rate Limiting ---
async def rate_limit(request: Request):
    """Rate limiting based on client IP"""
    if settings.debug:
        return True

    redis_conn = await get_redis()
    if redis_conn:
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{client_ip}"

        current_requests = await redis_conn.get(key)
        if current_requests is None:
            await redis_conn.setex(key, settings.rate_limit_window, 1)
        elif int(current_requests) >= settings.rate_limit_requests:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded"
            )
        else:
            await redis_conn.incr(key)
    return True
