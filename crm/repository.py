from dataclasses import dataclass, field
from typing import List

from loguru import logger

from crm.errors import NotFoundError, ValidationError
from crm.models.record_store import RecordStore
from crm.utils import mask_id
from crm.variants import RecordVariant


@dataclass
class ListResult:
    rows: List[dict] = field(default_factory=list)
    total_count: int = 0


class RecordRepository:
    """Read side of one record collection: paginated search and point lookups."""

    def __init__(self, store: RecordStore, variant: RecordVariant):
        self.store = store
        self.variant = variant

    async def list(self, page: int = 1, page_size: int = 10, search_term: str = "") -> ListResult:
        if page < 1:
            raise ValidationError("page must be >= 1")
        if page_size < 1:
            raise ValidationError("page_size must be > 0")

        search_term = search_term or ""
        rows, total_count = await self.store.select(
            self.variant.collection,
            search_term=search_term,
            search_columns=self.variant.search_columns if search_term else (),
            order_by=self.variant.order_by,
            descending=True,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        logger.debug(
            f"Listed {len(rows)}/{total_count} {self.variant.name} records "
            f"(page={page}, page_size={page_size}, filtered={bool(search_term)})"
        )
        return ListResult(rows=rows, total_count=total_count)

    async def get_by_id(self, record_id: str) -> dict:
        record = await self.store.find_by_id(self.variant.collection, record_id)
        if record is None:
            logger.info(f"{self.variant.name} record {mask_id(record_id)} not found")
            raise NotFoundError(f"Record {record_id} not found")
        return record

    async def fetch_all(self, limit: int) -> List[dict]:
        """Most recent `limit` records, unfiltered. Used for analytics snapshots."""
        result = await self.list(page=1, page_size=limit)
        return result.rows
