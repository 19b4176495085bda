from fastapi import Depends, File, Request, UploadFile
from loguru import logger

from crm.api.records import build_record_router
from crm.config import IMPORT_RATE_LIMIT
from crm.csv_import import import_csv
from crm.dependencies import get_insurance_gateway, get_insurance_repository, limiter
from crm.mutations import MutationGateway
from crm.schemas import ImportResponse
from crm.variants import INSURANCE

router = build_record_router(INSURANCE, get_insurance_repository, get_insurance_gateway)


@router.post("/import", response_model=ImportResponse)
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_insurance_csv(
    request: Request,
    file: UploadFile = File(...),
    gateway: MutationGateway = Depends(get_insurance_gateway),
):
    content = await file.read()
    logger.info(f"CSV import received ({len(content)} bytes)")

    result = await import_csv(content, gateway)

    return ImportResponse(
        status="success",
        imported=result.imported,
        dropped=result.dropped,
        message=result.message,
    )
