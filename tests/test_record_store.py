"""
Tests for the Mongo-backed record store, with Motor mocked out.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import ServerSelectionTimeoutError

from crm.errors import BackendError, NotFoundError
from crm.models.record_store import MotorRecordStore, build_search_query


def make_store():
    collection = MagicMock()
    db = MagicMock()
    db.__getitem__.return_value = collection
    client = MagicMock()
    client.__getitem__.return_value = db
    return MotorRecordStore(client, db_name="test"), collection


def make_cursor(docs):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


class TestSearchQuery:

    def test_empty_term_matches_everything(self):
        assert build_search_query("", ["name"]) == {}

    def test_or_of_case_insensitive_regexes(self):
        query = build_search_query("smith", ["name", "member_id"])
        assert query == {"$or": [
            {"name": {"$regex": "smith", "$options": "i"}},
            {"member_id": {"$regex": "smith", "$options": "i"}},
        ]}

    def test_term_is_escaped(self):
        query = build_search_query("a.b(c)*", ["name"])
        assert query["$or"][0]["name"]["$regex"] == r"a\.b\(c\)\*"


class TestMotorRecordStore:

    @pytest.mark.asyncio
    async def test_select_window_and_count(self):
        store, collection = make_store()
        oid = ObjectId()
        collection.count_documents = AsyncMock(return_value=42)
        cursor = make_cursor([{"_id": oid, "name": "Ann", "created_at": "2024-01-01T00:00:00+00:00"}])
        collection.find.return_value = cursor

        rows, total = await store.select(
            "insurance_details", search_term="ann", search_columns=["name"], offset=20, limit=10
        )

        assert total == 42
        assert rows == [{"id": str(oid), "name": "Ann", "created_at": "2024-01-01T00:00:00+00:00"}]
        cursor.sort.assert_called_once_with([("created_at", DESCENDING), ("_id", DESCENDING)])
        cursor.skip.assert_called_once_with(20)
        cursor.limit.assert_called_once_with(10)
        collection.count_documents.assert_awaited_once_with(build_search_query("ann", ["name"]))

    @pytest.mark.asyncio
    async def test_driver_error_becomes_backend_error(self):
        store, collection = make_store()
        collection.count_documents = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        with pytest.raises(BackendError, match="no servers"):
            await store.select("insurance_details")

    @pytest.mark.asyncio
    async def test_invalid_id_is_not_found(self):
        store, _ = make_store()
        with pytest.raises(NotFoundError):
            await store.find_by_id("insurance_details", "not-an-object-id")

    @pytest.mark.asyncio
    async def test_insert_stamps_created_at_and_drops_client_ids(self):
        store, collection = make_store()
        collection.create_index = AsyncMock()

        async def fake_insert_many(docs):
            for doc in docs:
                doc["_id"] = ObjectId()
            return MagicMock(inserted_ids=[doc["_id"] for doc in docs])

        collection.insert_many = AsyncMock(side_effect=fake_insert_many)

        rows = await store.insert("insurance_details", [{"name": "Ann", "id": "forged", "created_at": "x"}])

        assert rows[0]["id"] != "forged"
        assert rows[0]["created_at"] != "x"
        assert rows[0]["name"] == "Ann"
        assert "_id" not in rows[0]

    @pytest.mark.asyncio
    async def test_empty_update_reads_back_without_writing(self):
        store, collection = make_store()
        oid = ObjectId()
        collection.update_one = AsyncMock()
        collection.find_one = AsyncMock(return_value={"_id": oid, "name": "Ann"})

        rows = await store.update("insurance_details", str(oid), {})

        collection.update_one.assert_not_called()
        assert rows == [{"id": str(oid), "name": "Ann"}]

    @pytest.mark.asyncio
    async def test_update_unmatched_returns_empty(self):
        store, collection = make_store()
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        rows = await store.update("insurance_details", str(ObjectId()), {"plan": "PPO"})

        assert rows == []

    @pytest.mark.asyncio
    async def test_delete_with_malformed_id_is_a_no_op(self):
        store, collection = make_store()
        collection.delete_one = AsyncMock()

        assert await store.delete("insurance_details", "not-an-object-id") == 0
        collection.delete_one.assert_not_called()
