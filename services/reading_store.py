"""
Reading Store
Append-only persistence of per-domain environmental snapshots.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from models.base import ReadingDomain
from models.model import ReadingBase
from services.base_service import BaseService


def city_exact(city: str) -> Dict[str, Any]:
    """Case-insensitive whole-name match"""
    return {"$regex": f"^{re.escape(city.strip())}$", "$options": "i"}


def city_contains(city: str) -> Dict[str, Any]:
    """Case-insensitive substring match, used when no exact name matches"""
    return {"$regex": re.escape(city.strip()), "$options": "i"}


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


class ReadingStore(BaseService):
    """Readings are inserted, never updated; latest is found by recordedAt"""

    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db=db)

    def _collection(self, domain: ReadingDomain):
        return self.db[ReadingDomain(domain).collection]

    async def insert(self, domain: ReadingDomain, reading: ReadingBase) -> str:
        result = await self._collection(domain).insert_one(reading.to_document())
        self._log_operation("insert", {"domain": ReadingDomain(domain).value, "city": reading.city})
        return str(result.inserted_id)

    async def latest(self, domain: ReadingDomain, city: str) -> Optional[Dict[str, Any]]:
        """
        Most recent reading for a city.

        Exact case-insensitive name first, then a case-insensitive substring
        match so "delhi" still finds "New Delhi".
        """
        collection = self._collection(domain)
        for matcher in (city_exact, city_contains):
            doc = await collection.find_one({"city": matcher(city)}, sort=[("recordedAt", DESCENDING)])
            if doc is not None:
                return serialize(doc)
        return None

    async def history(
        self,
        domain: ReadingDomain,
        city: str,
        limit: int = 50,
        hours_back: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"city": city_exact(city)}
        if hours_back:
            query["recordedAt"] = {"$gte": datetime.now(timezone.utc) - timedelta(hours=hours_back)}

        cursor = self._collection(domain).find(query).sort("recordedAt", DESCENDING).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [serialize(doc) for doc in docs]
