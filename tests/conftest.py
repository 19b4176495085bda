"""
Shared fixtures: an in-memory RecordStore standing in for MongoDB.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import pytest

from crm.errors import BackendError
from crm.models.record_store import RecordStore, strip_server_fields
from crm.mutations import MutationGateway
from crm.repository import RecordRepository
from crm.variants import INBOUND, INSURANCE


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with the same ordering (created_at, then id) and ILIKE search semantics as the Mongo store."""

    def __init__(self):
        self.collections = {}
        self.insert_calls = []
        self.fail_with: Optional[str] = None
        self._clock = itertools.count()
        self._ids = itertools.count(1)
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _rows(self, collection: str) -> List[dict]:
        return self.collections.setdefault(collection, [])

    def _check_failure(self):
        if self.fail_with:
            raise BackendError(self.fail_with)

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
        self._check_failure()
        rows = self._rows(collection)
        if search_term and search_columns:
            needle = search_term.lower()
            rows = [
                row for row in rows
                if any(needle in str(row.get(column) or "").lower() for column in search_columns)
            ]
        rows = sorted(rows, key=lambda row: (row.get(order_by) or "", row["id"]), reverse=descending)
        end = None if limit is None else offset + limit
        return [dict(row) for row in rows[offset:end]], len(rows)

    async def find_by_id(self, collection: str, record_id: str) -> Optional[dict]:
        self._check_failure()
        for row in self._rows(collection):
            if row["id"] == record_id:
                return dict(row)
        return None

    async def insert(self, collection: str, rows: List[dict]) -> List[dict]:
        self._check_failure()
        self.insert_calls.append((collection, [dict(row) for row in rows]))
        # One timestamp per call, like insert_many; ids increase like ObjectIds
        created_at = (self._epoch + timedelta(seconds=next(self._clock))).isoformat()
        inserted = []
        for row in rows:
            stored = {**strip_server_fields(row), "id": f"{next(self._ids):024x}", "created_at": created_at}
            self._rows(collection).append(stored)
            inserted.append(dict(stored))
        return inserted

    async def update(self, collection: str, record_id: str, fields: dict) -> List[dict]:
        self._check_failure()
        for row in self._rows(collection):
            if row["id"] == record_id:
                row.update(strip_server_fields(fields))
                return [dict(row)]
        return []

    async def delete(self, collection: str, record_id: str) -> int:
        self._check_failure()
        rows = self._rows(collection)
        before = len(rows)
        self.collections[collection] = [row for row in rows if row["id"] != record_id]
        return before - len(self.collections[collection])

    async def delete_all(self, collection: str) -> int:
        self._check_failure()
        deleted = len(self._rows(collection))
        self.collections[collection] = []
        return deleted


def insurance_payload(**overrides) -> dict:
    payload = {
        "name": "Jane Doe",
        "phone_number": "+15551234567",
        "member_id": "MEM123",
        "insurance_company": "Delta Dental",
    }
    payload.update(overrides)
    return payload


def inbound_payload(**overrides) -> dict:
    payload = {
        "name": "John Roe",
        "appointment_number": "APT-001",
        "appointment_date": "2024-05-01",
        "type": "New",
        "dob": "1980-03-15",
        "phone": "+15559876543",
        "address": "12 Main St",
        "insurance_policy": False,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def insurance_repo(store):
    return RecordRepository(store, INSURANCE)


@pytest.fixture
def insurance_gateway(store):
    return MutationGateway(store, INSURANCE)


@pytest.fixture
def inbound_repo(store):
    return RecordRepository(store, INBOUND)


@pytest.fixture
def inbound_gateway(store):
    return MutationGateway(store, INBOUND)


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient
    from crm.dependencies import get_store, limiter
    from crm.main import app

    app.dependency_overrides[get_store] = lambda: store
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
    app.dependency_overrides.clear()
