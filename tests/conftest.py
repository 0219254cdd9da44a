import re
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId

from models.base import City
from utils.db import StoreStatus


# --- In-memory stand-in for the Motor collections the services use ---

def _compare(value, op, operand):
    if value is None:
        return False
    if op == "$gt":
        return value > operand
    if op == "$gte":
        return value >= operand
    if op == "$lt":
        return value < operand
    raise NotImplementedError(op)


def _match_field(value, condition):
    if isinstance(condition, dict):
        if "$regex" in condition:
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            return value is not None and re.search(condition["$regex"], value, flags) is not None
        if "$in" in condition:
            return value in condition["$in"]
        return all(_compare(value, op, operand) for op, operand in condition.items())
    return value == condition


def matches(doc, query):
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif not _match_field(doc.get(key), condition):
            return False
    return True


def _sorted(docs, sort):
    for field, direction in reversed(sort or []):
        docs = sorted(docs, key=lambda d: d.get(field), reverse=direction < 0)
    return docs


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, field, direction=1):
        self.docs = _sorted(self.docs, [(field, direction)])
        return self

    def skip(self, n):
        self.docs = self.docs[n:]
        return self

    def limit(self, n):
        self.docs = self.docs[:n]
        return self

    async def to_list(self, length=None):
        return [dict(d) for d in (self.docs if length is None else self.docs[:length])]


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.indexes = []

    async def create_index(self, keys, **kwargs):
        self.indexes.append(keys)
        return kwargs.get("name")

    async def insert_one(self, document):
        document = dict(document)
        document.setdefault("_id", ObjectId())
        self.docs.append(document)
        return MagicMock(inserted_id=document["_id"])

    async def find_one(self, query, sort=None):
        found = _sorted([d for d in self.docs if matches(d, query)], sort)
        return dict(found[0]) if found else None

    def find(self, query):
        return FakeCursor([d for d in self.docs if matches(d, query)])

    async def count_documents(self, query):
        return len([d for d in self.docs if matches(d, query)])

    async def update_one(self, query, update):
        for doc in self.docs:
            if matches(doc, query):
                doc.update(update.get("$set", {}))
                return MagicMock(matched_count=1)
        return MagicMock(matched_count=0)


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.command = AsyncMock(return_value={"ok": 1})

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def available_probe():
    return AsyncMock(return_value=StoreStatus(available=True, latency_ms=1.0))


@pytest.fixture
def three_cities():
    return [
        City(name="Delhi", state="Delhi", lat=28.6139, lng=77.2090),
        City(name="Mumbai", state="Maharashtra", lat=19.0760, lng=72.8777),
        City(name="Chennai", state="Tamil Nadu", lat=13.0827, lng=80.2707),
    ]


@pytest.fixture
def now():
    return datetime.now(timezone.utc)
