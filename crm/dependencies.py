"""Dependency injection providers for FastAPI"""
from fastapi import Depends, Request
from slowapi import Limiter

from crm.config import RATE_LIMIT_ENABLED
from crm.models.record_store import RecordStore
from crm.mutations import MutationGateway
from crm.repository import RecordRepository
from crm.variants import INBOUND, INSURANCE


# Store dependency. Set on app.state by the lifespan; tests override it.
def get_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_insurance_repository(store: RecordStore = Depends(get_store)) -> RecordRepository:
    return RecordRepository(store, INSURANCE)


def get_insurance_gateway(store: RecordStore = Depends(get_store)) -> MutationGateway:
    return MutationGateway(store, INSURANCE)


def get_inbound_repository(store: RecordStore = Depends(get_store)) -> RecordRepository:
    return RecordRepository(store, INBOUND)


def get_inbound_gateway(store: RecordStore = Depends(get_store)) -> MutationGateway:
    return MutationGateway(store, INBOUND)


# Rate limiting
def get_client_ip(request: Request) -> str:
    """Client IP for rate limiting, honouring the first X-Forwarded-For hop"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(key_func=get_client_ip, enabled=RATE_LIMIT_ENABLED)
