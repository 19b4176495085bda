import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from bson import ObjectId
from bson.errors import InvalidId
from loguru import logger
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient

from crm.constants import SERVER_MANAGED_FIELDS
from crm.database import MONGO_DB_NAME
from crm.errors import BackendError, NotFoundError
from crm.utils import convert_objectid, mask_id


class RecordStore(ABC):
    """
    The hosted data store every record collection lives in.

    Rows come back as plain dicts carrying a string `id` and a `created_at`
    timestamp, both assigned by the store. Failures raise BackendError.
    """

    @abstractmethod
    async def select(
        self,
        collection: str,
        *,
        search_term: str = "",
        search_columns: Sequence[str] = (),
        order_by: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[dict], int]:
        """Return the requested window of matching rows and the exact match count."""

    @abstractmethod
    async def find_by_id(self, collection: str, record_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def insert(self, collection: str, rows: List[dict]) -> List[dict]:
        ...

    @abstractmethod
    async def update(self, collection: str, record_id: str, fields: dict) -> List[dict]:
        """Apply fields to one row; returns the updated rows (empty when nothing matched)."""

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> int:
        ...

    @abstractmethod
    async def delete_all(self, collection: str) -> int:
        ...

    async def ping(self) -> bool:
        return True


def build_search_query(search_term: str, search_columns: Sequence[str]) -> dict:
    """OR of case-insensitive substring matches, i.e. `col ILIKE %term%` per column."""
    if not search_term or not search_columns:
        return {}
    pattern = {"$regex": re.escape(search_term), "$options": "i"}
    return {"$or": [{column: pattern} for column in search_columns]}


def strip_server_fields(row: dict) -> dict:
    return {k: v for k, v in row.items() if k not in SERVER_MANAGED_FIELDS}


class MotorRecordStore(RecordStore):
    def __init__(self, db_client: "AsyncIOMotorClient", db_name: str = MONGO_DB_NAME):
        self.client = db_client
        self.db = db_client[db_name]
        self._indexed = set()

    async def _ensure_indexes(self, collection: str):
        if collection in self._indexed:
            return
        try:
            await self.db[collection].create_index([("created_at", DESCENDING)])
            self._indexed.add(collection)
        except PyMongoError as e:
            logger.warning(f"Index creation warning on {collection}: {e}")

    @staticmethod
    def _object_id(record_id: str) -> ObjectId:
        try:
            return ObjectId(record_id)
        except (InvalidId, TypeError):
            raise NotFoundError(f"Record {record_id} not found")

    async def select(
        self,
        collection: str,
        *,
        search_term: str = "",
        search_columns: Sequence[str] = (),
        order_by: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[dict], int]:
        query = build_search_query(search_term, search_columns)
        # Bulk inserts share one created_at; _id keeps the order total so pages never overlap
        direction = DESCENDING if descending else ASCENDING
        try:
            total = await self.db[collection].count_documents(query)
            cursor = (
                self.db[collection]
                .find(query)
                .sort([(order_by, direction), ("_id", direction)])
                .skip(offset)
            )
            if limit is not None:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error(f"Error querying {collection}: {e}")
            raise BackendError(str(e))
        return [convert_objectid(d) for d in docs], total

    async def find_by_id(self, collection: str, record_id: str) -> Optional[dict]:
        oid = self._object_id(record_id)
        try:
            doc = await self.db[collection].find_one({"_id": oid})
        except PyMongoError as e:
            logger.error(f"Error finding {collection} record {mask_id(record_id)}: {e}")
            raise BackendError(str(e))
        return convert_objectid(doc) if doc else None

    async def insert(self, collection: str, rows: List[dict]) -> List[dict]:
        if not rows:
            return []
        await self._ensure_indexes(collection)
        now = datetime.now(timezone.utc).isoformat()
        docs = [{**strip_server_fields(row), "created_at": now} for row in rows]
        try:
            result = await self.db[collection].insert_many(docs)
        except PyMongoError as e:
            logger.error(f"Error inserting {len(docs)} rows into {collection}: {e}")
            raise BackendError(str(e))
        logger.debug(f"Inserted {len(result.inserted_ids)} rows into {collection}")
        # insert_many stamps each doc with its _id
        return [convert_objectid(doc) for doc in docs]

    async def update(self, collection: str, record_id: str, fields: dict) -> List[dict]:
        oid = self._object_id(record_id)
        fields = strip_server_fields(fields)
        try:
            if fields:
                result = await self.db[collection].update_one({"_id": oid}, {"$set": fields})
                if result.matched_count == 0:
                    return []
            doc = await self.db[collection].find_one({"_id": oid})
        except PyMongoError as e:
            logger.error(f"Error updating {collection} record {mask_id(record_id)}: {e}")
            raise BackendError(str(e))
        return [convert_objectid(doc)] if doc else []

    async def delete(self, collection: str, record_id: str) -> int:
        # A malformed id names no row, so there is nothing to delete
        try:
            oid = self._object_id(record_id)
        except NotFoundError:
            return 0
        try:
            result = await self.db[collection].delete_one({"_id": oid})
        except PyMongoError as e:
            logger.error(f"Error deleting {collection} record {mask_id(record_id)}: {e}")
            raise BackendError(str(e))
        return result.deleted_count

    async def delete_all(self, collection: str) -> int:
        try:
            result = await self.db[collection].delete_many({})
        except PyMongoError as e:
            logger.error(f"Error deleting all rows in {collection}: {e}")
            raise BackendError(str(e))
        logger.warning(f"Deleted all {result.deleted_count} rows in {collection}")
        return result.deleted_count

    async def ping(self) -> bool:
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"Record store ping failed: {e}")
            return False
