"""
Aggregations behind the insurance analytics dashboard.

Everything here is a pure function over an in-memory snapshot of records
(bounded by ANALYTICS_MAX_RECORDS) and is recomputed from scratch whenever
the snapshot or the selected time range changes.
"""
from collections import Counter
from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from dateutil.relativedelta import relativedelta

from crm.constants import DEFAULT_CALLED_STATUS, TimeRange
from crm.utils import parse_amount, parse_iso_date

UNKNOWN = "Unknown"
TOP_COMPANIES = 8
MONTH_FORMAT = "%b %Y"
ACTIVE_ELIGIBILITY = "Active"


def categorical_distribution(
    records: Iterable[dict],
    field: str,
    default: str = UNKNOWN,
    top_n: Optional[int] = None,
) -> List[dict]:
    """Count records per value of `field`, most common first. Blank values count as `default`."""
    counts = Counter(record.get(field) or default for record in records)
    # Counter.most_common keeps first-seen order among ties
    ranked = counts.most_common(top_n)
    return [{"name": str(name), "value": value} for name, value in ranked]


def window_start(time_range: Union[TimeRange, str], now: datetime) -> datetime:
    return now - relativedelta(months=TimeRange(time_range).months)


def month_keys(time_range: Union[TimeRange, str], now: datetime) -> List[str]:
    """The calendar months shown for a window, oldest first, ending with the month of `now`."""
    months = TimeRange(time_range).months
    first = date(now.year, now.month, 1) - relativedelta(months=months - 1)
    return [(first + relativedelta(months=i)).strftime(MONTH_FORMAT) for i in range(months)]


def monthly_histogram(
    records: Iterable[dict],
    time_range: Union[TimeRange, str],
    now: Optional[datetime] = None,
) -> List[dict]:
    """
    Bucket appointments into calendar months for the selected window.

    `count` tracks `appointment_date`, `past_count` tracks `last_appointment`;
    a date is counted when it falls in [now - window, now] and its month is
    one of the window's buckets. Unparseable dates are skipped.
    """
    now = now or datetime.now()
    start = window_start(time_range, now)
    buckets = {key: {"month": key, "count": 0, "past_count": 0} for key in month_keys(time_range, now)}

    for record in records:
        for field, counter in (("appointment_date", "count"), ("last_appointment", "past_count")):
            when = parse_iso_date(record.get(field))
            if when is None or not (start <= when <= now):
                continue
            bucket = buckets.get(when.strftime(MONTH_FORMAT))
            if bucket is not None:
                bucket[counter] += 1

    return list(buckets.values())


def average_deductible(records: Iterable[dict]) -> float:
    """Mean over parseable deductibles; missing or unparseable values are left out, not zeroed."""
    amounts = [a for a in (parse_amount(r.get("deductible")) for r in records) if a is not None]
    if not amounts:
        return 0.0
    return sum(amounts) / len(amounts)


def summary_metrics(records: List[dict], today: Optional[date] = None) -> dict:
    today = today or date.today()
    today_start = datetime(today.year, today.month, today.day)

    scheduled = 0
    for record in records:
        when = parse_iso_date(record.get("appointment_date"))
        if when is not None and when >= today_start:
            scheduled += 1

    return {
        "total_records": len(records),
        "scheduled_appointments": scheduled,
        "active_insurance": sum(1 for r in records if r.get("eligibility_status") == ACTIVE_ELIGIBILITY),
        "average_deductible": average_deductible(records),
        "calls_needed": sum(
            1 for r in records
            if (r.get("called_status") or DEFAULT_CALLED_STATUS.value) == DEFAULT_CALLED_STATUS.value
        ),
    }


def build_dashboard(
    records: List[dict],
    time_range: Union[TimeRange, str],
    now: Optional[datetime] = None,
) -> dict:
    now = now or datetime.now()
    time_range = TimeRange(time_range)
    return {
        "time_range": time_range.value,
        "companies": categorical_distribution(records, "insurance_company", top_n=TOP_COMPANIES),
        "eligibility_status": categorical_distribution(records, "eligibility_status"),
        "call_status": categorical_distribution(records, "called_status", default=DEFAULT_CALLED_STATUS.value),
        "coverage_status": categorical_distribution(records, "coverage_status"),
        "appointments_by_month": monthly_histogram(records, time_range, now),
        "metrics": summary_metrics(records, now.date()),
    }
