"""
Alert management service for ClimateGuard API
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from models.base import AlertSeverity, AlertType, SEVERITY_ORDER
from models.model import AlertModel
from services.base_service import BaseService
from services.db_indexes import ALERTS_COLLECTION
from services.exceptions import AlertNotFound
from services.reading_store import city_exact, serialize


def active_alert_query(now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    An alert is active iff isActive is true and validUntil is either
    null or in the future. Every active listing goes through this.
    """
    now = now or datetime.now(timezone.utc)
    return {
        "isActive": True,
        "$or": [
            {"validUntil": None},
            {"validUntil": {"$gt": now}},
        ],
    }


def severity_rank(severity: str) -> int:
    try:
        return AlertSeverity(severity).rank
    except ValueError:
        return -1


def _parse_id(alert_id: str) -> ObjectId:
    try:
        return ObjectId(alert_id)
    except (InvalidId, TypeError):
        raise AlertNotFound(alert_id)


class AlertService(BaseService):
    """Service for alert persistence and querying"""

    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db=db)
        self.collection = db[ALERTS_COLLECTION]

    async def create_alert(self, alert: AlertModel, now: Optional[datetime] = None) -> Optional[str]:
        """
        Insert an alert unless an overlapping one already covers it.

        An active alert for the same city and type whose severity is equal
        or higher suppresses the new one. Escalations always go through.

        Returns:
            The inserted id, or None when suppressed
        """
        severity = AlertSeverity(alert.severity)
        covering = [s.value for s in SEVERITY_ORDER if s.rank >= severity.rank]
        query = {
            **active_alert_query(now),
            "city": city_exact(alert.city),
            "type": AlertType(alert.type).value,
            "severity": {"$in": covering},
        }

        existing = await self.collection.find_one(query)
        if existing is not None:
            self._log_operation(
                "create_alert.suppressed",
                {"city": alert.city, "type": alert.type, "severity": alert.severity,
                 "existing_id": str(existing["_id"])},
            )
            return None

        result = await self.collection.insert_one(alert.to_document())
        self._log_operation(
            "create_alert",
            {"city": alert.city, "type": alert.type, "severity": alert.severity,
             "alert_id": str(result.inserted_id)},
        )
        return str(result.inserted_id)

    async def active_alerts(
        self,
        city: str,
        alert_type: Optional[AlertType] = None,
        severity: Optional[AlertSeverity] = None,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Active alerts for a city, most severe and newest first"""
        query = {**active_alert_query(now), "city": city_exact(city)}
        if alert_type:
            query["type"] = AlertType(alert_type).value
        if severity:
            query["severity"] = AlertSeverity(severity).value

        docs = await self.collection.find(query).sort("createdAt", DESCENDING).to_list(length=None)
        # stable sort keeps createdAt order within a severity
        docs.sort(key=lambda d: severity_rank(d.get("severity")), reverse=True)
        return [serialize(doc) for doc in docs]

    async def alert_history(
        self,
        city: str,
        alert_type: Optional[AlertType] = None,
        limit: int = 50,
        skip: int = 0,
    ) -> Dict[str, Any]:
        """All alerts for a city including expired and deactivated ones"""
        query: Dict[str, Any] = {"city": city_exact(city)}
        if alert_type:
            query["type"] = AlertType(alert_type).value

        cursor = self.collection.find(query).sort("createdAt", DESCENDING).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        total = await self.collection.count_documents(query)

        return {
            "alerts": [serialize(doc) for doc in docs],
            "pagination": {
                "total": total,
                "limit": limit,
                "skip": skip,
                "hasMore": skip + len(docs) < total,
            },
        }

    async def get_alert(self, alert_id: str) -> Dict[str, Any]:
        doc = await self.collection.find_one({"_id": _parse_id(alert_id)})
        if doc is None:
            raise AlertNotFound(alert_id)
        return serialize(doc)

    async def alert_summary(self, city: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Active alert counts per type with the highest severity and newest alert"""
        alerts = await self.active_alerts(city, now=now)

        by_type: Dict[str, Dict[str, Any]] = {}
        for alert in sorted(alerts, key=lambda a: a.get("createdAt") or datetime.min.replace(tzinfo=timezone.utc), reverse=True):
            entry = by_type.setdefault(alert["type"], {
                "type": alert["type"],
                "count": 0,
                "highestSeverity": alert["severity"],
                "latestAlert": {
                    "title": alert["title"],
                    "message": alert["message"],
                    "severity": alert["severity"],
                },
            })
            entry["count"] += 1
            if severity_rank(alert["severity"]) > severity_rank(entry["highestSeverity"]):
                entry["highestSeverity"] = alert["severity"]

        return {
            "city": city,
            "totalActiveAlerts": len(alerts),
            "byType": list(by_type.values()),
        }

    async def deactivate_alert(self, alert_id: str) -> None:
        result = await self.collection.update_one(
            {"_id": _parse_id(alert_id)},
            {"$set": {"isActive": False}},
        )
        if result.matched_count == 0:
            raise AlertNotFound(alert_id)
        self._log_operation("deactivate_alert", {"alert_id": alert_id})
