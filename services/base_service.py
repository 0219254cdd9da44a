"""
Base Service Class for ClimateGuard
Provides common functionality for all database-backed services
"""

from typing import Dict, Any
import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase


class BaseService:
    """Base class for all services with common functionality"""

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize base service

        Args:
            db: MongoDB database instance
        """
        self.db = db
        self.logger = structlog.get_logger(self.__class__.__name__)

    def _log_operation(
        self,
        operation: str,
        details: Dict[str, Any],
        level: str = "info"
    ):
        """
        Log service operation with consistent format

        Args:
            operation: Name of the operation
            details: Operation details
            level: Log level (info, warning, error)
        """
        log_func = getattr(self.logger, level, self.logger.info)
        log_func(
            f"{self.__class__.__name__}.{operation}",
            **details
        )
