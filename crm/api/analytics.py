from fastapi import APIRouter, Depends, Query
from loguru import logger

from crm.analytics import build_dashboard
from crm.config import ANALYTICS_MAX_RECORDS
from crm.constants import DEFAULT_TIME_RANGE, TimeRange
from crm.dependencies import get_insurance_repository
from crm.repository import RecordRepository
from crm.schemas import AnalyticsResponse

router = APIRouter()


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    time_range: TimeRange = Query(DEFAULT_TIME_RANGE),
    repository: RecordRepository = Depends(get_insurance_repository),
):
    """Dashboard aggregates over the most recent ANALYTICS_MAX_RECORDS insurance records."""
    records = await repository.fetch_all(ANALYTICS_MAX_RECORDS)
    logger.info(f"Building analytics over {len(records)} records (time_range={time_range.value})")
    return build_dashboard(records, time_range)
