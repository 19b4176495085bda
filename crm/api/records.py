"""
CRUD endpoints shared by the insurance and inbound record tables.

Every mutation answers with the persisted rows so the client can simply
re-fetch its current page afterwards.
"""
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger

from crm.config import DEFAULT_PAGE_SIZE, DELETE_ALL_RATE_LIMIT, MAX_PAGE_SIZE
from crm.dependencies import limiter
from crm.filters import FilterState
from crm.mutations import MutationGateway
from crm.repository import RecordRepository
from crm.schemas import MutationResponse, RecordListResponse
from crm.variants import RecordVariant


def build_record_router(
    variant: RecordVariant,
    get_repository: Callable[..., RecordRepository],
    get_gateway: Callable[..., MutationGateway],
) -> APIRouter:
    router = APIRouter()
    create_model = variant.create_model
    update_model = variant.update_model

    @router.get("", response_model=RecordListResponse)
    async def list_records(
        page: int = Query(1, ge=1),
        page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
        search: str = Query(""),
        repository: RecordRepository = Depends(get_repository),
    ):
        filters = FilterState(page=page, page_size=page_size, search_term=search)
        result = await repository.list(filters.page, filters.page_size, filters.search_term)
        return RecordListResponse(
            records=result.rows,
            total_count=result.total_count,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=filters.total_pages(result.total_count),
        )

    @router.get("/{record_id}")
    async def get_record(
        record_id: str,
        repository: RecordRepository = Depends(get_repository),
    ):
        record = await repository.get_by_id(record_id)
        return {"status": "success", "record": record}

    @router.post("", response_model=MutationResponse, status_code=201)
    async def create_record(
        payload: create_model,
        gateway: MutationGateway = Depends(get_gateway),
    ):
        rows = await gateway.create(payload)
        return MutationResponse(status="success", message="Record added successfully", records=rows)

    @router.put("/{record_id}", response_model=MutationResponse)
    async def update_record(
        record_id: str,
        payload: update_model,
        gateway: MutationGateway = Depends(get_gateway),
    ):
        rows = await gateway.update(record_id, payload)
        return MutationResponse(status="success", message="Record updated successfully", records=rows)

    @router.delete("/{record_id}", response_model=MutationResponse)
    async def delete_record(
        record_id: str,
        gateway: MutationGateway = Depends(get_gateway),
    ):
        deleted = await gateway.delete(record_id)
        message = "Record deleted successfully" if deleted else "Record already deleted"
        return MutationResponse(status="success", message=message)

    @router.delete("", response_model=MutationResponse)
    @limiter.limit(DELETE_ALL_RATE_LIMIT)
    async def delete_all_records(
        request: Request,
        confirm: bool = Query(False),
        gateway: MutationGateway = Depends(get_gateway),
    ):
        if not confirm:
            raise HTTPException(status_code=400, detail="Deleting all records requires confirm=true")

        deleted = await gateway.delete_all()
        logger.warning(f"Delete-all confirmed on {variant.name} records")
        return MutationResponse(status="success", message=f"Deleted {deleted} records")

    return router
