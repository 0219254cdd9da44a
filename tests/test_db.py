import pytest
from unittest.mock import patch, MagicMock, AsyncMock
from fastapi import FastAPI
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from config import settings
from models.base import ReadingDomain
from utils.db import StoreProbe, init_mongo, close_mongo, get_db, ensure_indexes, probe_store


class IndexRecorder:
    """Database double that hands out one mock collection per name"""

    def __init__(self, failing=None):
        self.collections = {}
        self.failing = failing

    def __getitem__(self, name):
        if name not in self.collections:
            collection = MagicMock()
            if name == self.failing:
                collection.create_index = AsyncMock(side_effect=Exception("not authorized"))
            else:
                collection.create_index = AsyncMock()
            self.collections[name] = collection
        return self.collections[name]


@pytest.mark.asyncio
class TestDatabaseUtils:
    @patch('utils.db.AsyncIOMotorClient')
    async def test_init_mongo(self, mock_client):
        """Test initializing MongoDB connection"""
        mock_instance = MagicMock()
        mock_instance.admin.command = AsyncMock()
        mock_client.return_value = mock_instance

        app = FastAPI()
        await init_mongo(app)

        mock_client.assert_called_once()
        assert mock_client.call_args.kwargs["tz_aware"] is True
        mock_instance.admin.command.assert_called_once_with("ping")
        assert app.state.mongo_client == mock_instance
        assert app.state.db == mock_instance[settings.mongodb_db]

    async def test_close_mongo(self):
        """Test closing MongoDB connection"""
        app = FastAPI()
        mock_client = MagicMock()
        app.state.mongo_client = mock_client
        app.state.db = MagicMock()

        await close_mongo(app)

        mock_client.close.assert_called_once()
        assert app.state.mongo_client is None
        assert app.state.db is None

    async def test_close_mongo_no_client(self):
        """Test closing MongoDB when no client exists"""
        await close_mongo(FastAPI())

    def test_get_db(self):
        app = FastAPI()
        mock_db = MagicMock()
        app.state.db = mock_db

        assert get_db(app) == mock_db

    def test_get_db_not_initialized(self):
        with pytest.raises(RuntimeError, match="MongoDB is not initialized"):
            get_db(FastAPI())

    async def test_ensure_indexes(self):
        """Every reading collection gets a city/recordedAt index, alerts get three"""
        db = IndexRecorder()

        await ensure_indexes(db)

        for domain in ReadingDomain:
            keys = db[domain.collection].create_index.call_args.args[0]
            assert keys == [("city", 1), ("recordedAt", -1)]
        assert db["alerts"].create_index.call_count == 3

    async def test_ensure_indexes_propagates_errors(self):
        db = IndexRecorder(failing="alerts")

        with pytest.raises(Exception, match="not authorized"):
            await ensure_indexes(db)


@pytest.mark.asyncio
class TestProbeStore:
    async def test_available(self, fake_db):
        status = await probe_store(fake_db)

        assert status.available is True
        assert status.latency_ms is not None
        fake_db.command.assert_awaited_once_with("ping")

    async def test_ping_failure(self, fake_db):
        fake_db.command.side_effect = Exception("No servers found yet")

        status = await probe_store(fake_db)

        assert status.available is False
        assert "No servers found" in status.error

    async def test_not_initialized(self):
        status = await probe_store(None)

        assert status.available is False
        assert status.error == "Database not initialized"


@pytest.mark.asyncio
class TestStoreProbe:
    async def test_creates_indexes_on_first_success_only(self, fake_db):
        probe = StoreProbe(fake_db)

        first = await probe()
        await probe()

        assert first.available is True
        assert probe.indexes_ready is True
        assert fake_db["alerts"].indexes == [
            [("city", 1), ("isActive", 1), ("validUntil", -1)],
            [("type", 1), ("severity", 1)],
            [("createdAt", -1)],
        ]

    async def test_waits_for_store_to_recover(self, fake_db):
        """Indexes are deferred while the store is down, then created once it answers"""
        fake_db.command.side_effect = ServerSelectionTimeoutError("No servers found yet")
        probe = StoreProbe(fake_db)

        status = await probe()

        assert status.available is False
        assert probe.indexes_ready is False
        assert fake_db["heatwave_data"].indexes == []

        fake_db.command.side_effect = None
        assert (await probe()).available is True
        assert fake_db["heatwave_data"].indexes == [[("city", 1), ("recordedAt", -1)]]

    async def test_index_failure_retried_next_time(self, fake_db):
        probe = StoreProbe(fake_db)
        fake_db["alerts"].create_index = AsyncMock(side_effect=OperationFailure("not authorized"))

        status = await probe()

        assert status.available is True
        assert probe.indexes_ready is False

        del fake_db["alerts"].create_index
        await probe()
        assert probe.indexes_ready is True
