"""
CSV bulk import for insurance records.

Upload -> header-keyed rows (normalized headers) -> drop rows missing a
mandatory identity field -> normalize dates/amounts and stamp the default
call status -> one bulk insert through the mutation gateway.
"""
import csv
import io
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from loguru import logger

from crm.constants import insurance_defaults
from crm.errors import EmptyResultError, ParseError
from crm.mutations import MutationGateway
from crm.schemas import InsuranceRecordCreate
from crm.utils import normalize_date, parse_amount, today_iso
from crm.validation import INSURANCE_REQUIRED_FIELDS, is_blank

RECOGNIZED_COLUMNS = frozenset(InsuranceRecordCreate.model_fields)

# Date columns that default to today when absent; everything else stays blank
DATE_DEFAULTS = {
    "dob": "today",
    "appointment_date": "today",
    "last_appointment": "",
}

AMOUNT_COLUMNS = ("annual_maximum", "deductible")

MAX_REPORTED_ERRORS = 5

NO_VALID_RECORDS_MESSAGE = (
    "No valid records to insert. Each record must have a name, phone number, and member ID."
)


@dataclass
class ImportResult:
    imported: int
    dropped: int
    records: List[dict] = field(default_factory=list)

    @property
    def message(self) -> str:
        message = f"Successfully imported {self.imported} records"
        if self.dropped:
            message += f" ({self.dropped} rows skipped: missing name, phone number, or member ID)"
        return message


def normalize_header(header: Optional[str]) -> str:
    """'Phone Number', ' phone_number ' and 'PHONE NUMBER' all become 'phone_number'."""
    h = ("" if header is None else str(header)).replace("\ufeff", "").strip().lower()
    return re.sub(r"\s+", "_", h)


def _decode(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Failed to parse CSV: file is not valid UTF-8 ({e.reason} at byte {e.start})")
    return content.lstrip("\ufeff")


def parse_csv(content: Union[bytes, str]) -> List[Dict[str, str]]:
    """
    Parse uploaded CSV text into header-keyed rows.

    Only recognized insurance columns are kept. Blank lines are skipped.
    Any malformed line fails the whole file with one aggregated ParseError.
    """
    text = _decode(content)
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)

    try:
        header_row = next(reader, None)
        if header_row is None or not any(cell.strip() for cell in header_row):
            raise ParseError("Failed to parse CSV: missing header row")
        headers = [normalize_header(h) for h in header_row]

        rows = []
        errors = []
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            if len(cells) > len(headers):
                errors.append(
                    f"line {reader.line_num}: expected {len(headers)} fields but found {len(cells)}"
                )
                continue
            row = {}
            for header, cell in zip(headers, cells):
                if header in RECOGNIZED_COLUMNS:
                    row[header] = cell.strip()
            rows.append(row)
    except csv.Error as e:
        raise ParseError(f"Failed to parse CSV: line {reader.line_num}: {e}")

    if errors:
        summary = "; ".join(errors[:MAX_REPORTED_ERRORS])
        if len(errors) > MAX_REPORTED_ERRORS:
            summary += f" (and {len(errors) - MAX_REPORTED_ERRORS} more)"
        raise ParseError(f"Failed to parse CSV: {summary}")

    return rows


def is_valid_row(row: Dict[str, str]) -> bool:
    return all(not is_blank(row.get(name)) for name in INSURANCE_REQUIRED_FIELDS)


def prepare_row(row: Dict[str, str], today: Optional[str] = None) -> dict:
    """Shape one validated CSV row into an insurance record payload."""
    today = today or today_iso()
    payload = {k: v for k, v in row.items() if not is_blank(v)}

    for column, default in DATE_DEFAULTS.items():
        value = payload.get(column)
        if value:
            payload[column] = normalize_date(value) or value
        else:
            payload[column] = today if default == "today" else default

    for column in AMOUNT_COLUMNS:
        if column not in payload:
            continue
        amount = parse_amount(payload[column])
        if amount is None:
            logger.warning(f"Dropping unparseable {column} value from CSV row")
            del payload[column]
        else:
            payload[column] = amount

    payload.update(insurance_defaults())
    return payload


async def import_csv(
    content: Union[bytes, str],
    gateway: MutationGateway,
    today: Optional[str] = None,
) -> ImportResult:
    rows = parse_csv(content)
    valid_rows = [row for row in rows if is_valid_row(row)]
    dropped = len(rows) - len(valid_rows)

    if dropped:
        logger.info(f"CSV import: skipping {dropped} of {len(rows)} rows missing required fields")

    if not valid_rows:
        raise EmptyResultError(NO_VALID_RECORDS_MESSAGE)

    payloads = [prepare_row(row, today) for row in valid_rows]
    inserted = await gateway.bulk_create(payloads)

    result = ImportResult(imported=len(payloads), dropped=dropped, records=inserted)
    logger.info(result.message)
    return result
