from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from dateutil import parser as dateutil_parser
from loguru import logger

ISO_DATE_FORMAT = "%Y-%m-%d"

# Two far-apart defaults: a value that parses differently under each is missing a part
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def convert_objectid(doc: Union[Dict, List, Any]) -> Union[Dict, List, Any]:
    """Make a Mongo document JSON-safe and expose `_id` as the record's `id`."""
    if doc is None:
        return doc

    if isinstance(doc, ObjectId):
        return str(doc)

    if isinstance(doc, list):
        return [convert_objectid(item) for item in doc]

    if isinstance(doc, dict):
        result = {}
        for key, value in doc.items():
            if key == "_id":
                result["id"] = str(value)
            elif isinstance(value, (ObjectId, dict, list)):
                result[key] = convert_objectid(value)
            else:
                result[key] = value
        return result

    return doc


def normalize_date(value: Optional[str]) -> Optional[str]:
    """
    Reformat a date-like string to ISO format (YYYY-MM-DD).

    Examples:
        "1990-01-15" → "1990-01-15"
        "01/15/1990" → "1990-01-15"
        "Jan 15 1990" → "1990-01-15"

    Returns None if parsing fails or the value lacks a day, month or year
    ("Mar 2024", "June", "7").
    """
    if not value or not str(value).strip():
        return None

    value = str(value).strip()

    # If already ISO format, return as-is
    if len(value) == 10 and value[4] == '-' and value[7] == '-':
        try:
            datetime.strptime(value, ISO_DATE_FORMAT)
            return value
        except ValueError:
            pass

    try:
        first = dateutil_parser.parse(value, default=_DEFAULT_A)
        second = dateutil_parser.parse(value, default=_DEFAULT_B)
    except (ValueError, OverflowError, TypeError) as e:
        logger.debug(f"Could not parse date '{value}': {e}")
        return None

    if first.date() != second.date():
        logger.debug(f"Incomplete date '{value}' left as-is")
        return None
    return first.strftime(ISO_DATE_FORMAT)


def _naive_local(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.replace(tzinfo=None)


def parse_iso_date(value: Any) -> Optional[datetime]:
    """
    Strict ISO-8601 parse; anything else (including blanks) is None.

    Offsets are converted to local time, the same clock as `datetime.now()`.
    """
    if isinstance(value, datetime):
        return _naive_local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return _naive_local(dateutil_parser.isoparse(value.strip()))
    except (ValueError, OverflowError):
        return None


def parse_amount(value: Any) -> Optional[float]:
    """Numeric value of a monetary field, or None when missing/unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "").lstrip("$")
    if not text:
        return None
    try:
        amount = float(text)
    except ValueError:
        return None
    # NaN never compares equal to itself
    if amount != amount:
        return None
    return amount


def today_iso() -> str:
    return date.today().strftime(ISO_DATE_FORMAT)


def mask_id(record_id: Optional[str]) -> str:
    if not record_id:
        return "<none>"
    record_id = str(record_id)
    if len(record_id) <= 6:
        return "***"
    return f"***{record_id[-6:]}"
