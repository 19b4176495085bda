"""
Record variants.

Both record tables share one architecture; everything that differs between
them (collection, searchable columns, mandatory fields, pydantic models and
defaults) lives on a RecordVariant.
"""
from dataclasses import dataclass
from typing import Callable, Tuple, Type

from pydantic import BaseModel

from crm.constants import (
    INBOUND_COLLECTION,
    INSURANCE_COLLECTION,
    inbound_defaults,
    insurance_defaults,
)
from crm.schemas import (
    InboundRecordCreate,
    InboundRecordUpdate,
    InsuranceRecordCreate,
    InsuranceRecordUpdate,
)
from crm.validation import INBOUND_REQUIRED_FIELDS, INSURANCE_REQUIRED_FIELDS


@dataclass(frozen=True)
class RecordVariant:
    name: str
    collection: str
    search_columns: Tuple[str, ...]
    required_fields: Tuple[str, ...]
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    defaults: Callable[[], dict]
    order_by: str = "created_at"


INSURANCE = RecordVariant(
    name="insurance",
    collection=INSURANCE_COLLECTION,
    search_columns=("name", "phone_number", "member_id", "insurance_company"),
    required_fields=tuple(INSURANCE_REQUIRED_FIELDS),
    create_model=InsuranceRecordCreate,
    update_model=InsuranceRecordUpdate,
    defaults=insurance_defaults,
)

INBOUND = RecordVariant(
    name="inbound",
    collection=INBOUND_COLLECTION,
    search_columns=(
        "name",
        "appointment_number",
        "dob",
        "phone",
        "address",
        "insurance_name",
        "member_id",
    ),
    required_fields=tuple(INBOUND_REQUIRED_FIELDS),
    create_model=InboundRecordCreate,
    update_model=InboundRecordUpdate,
    defaults=inbound_defaults,
)
