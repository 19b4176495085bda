from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from crm.constants import (
    AppointmentType,
    CalledStatus,
    CallTransferStatus,
    InboundCallStatus,
    TimeRange,
)
from crm.utils import parse_amount


class InsuranceFields(BaseModel):
    """Optional insurance columns shared by create, update and read models."""
    model_config = {"extra": "ignore", "use_enum_values": True}

    appointment_date: Optional[str] = None
    last_appointment: Optional[str] = None
    insurance_company: Optional[str] = None
    dob: Optional[str] = None
    subscriber: Optional[str] = None
    plan: Optional[str] = None
    eligibility_status: Optional[str] = None
    annual_maximum: Optional[float] = None
    deductible: Optional[float] = None
    coverage: Optional[str] = None
    coverage_status: Optional[str] = None
    waiting_period: Optional[str] = None
    frequency_limitations: Optional[str] = None
    frequency_limitations_status: Optional[str] = None
    downgrades_exclusions: Optional[str] = None
    pre_authorization: Optional[str] = None
    contact_inquiries: Optional[str] = None
    call_transcript: Optional[str] = None
    call_summary: Optional[str] = None
    call_duration: Optional[str] = None
    call_recording: Optional[str] = None

    @field_validator("annual_maximum", "deductible", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        """Blank is None; "1,500" and "$50" read as numbers, the same as a CSV import."""
        if isinstance(v, str):
            if not v.strip():
                return None
            amount = parse_amount(v)
            # Unparseable text falls through to the float check
            return v if amount is None else amount
        return v


class InsuranceRecordCreate(InsuranceFields):
    name: str
    phone_number: str
    member_id: str
    called_status: CalledStatus = CalledStatus.NOT_CALLED


class InsuranceRecordUpdate(InsuranceFields):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    member_id: Optional[str] = None
    called_status: Optional[CalledStatus] = None


class InboundFields(BaseModel):
    model_config = {"extra": "ignore", "use_enum_values": True}

    name: Optional[str] = None
    previous_appointment_date: Optional[str] = None
    # Only meaningful when insurance_policy is true; not enforced
    insurance_name: Optional[str] = None
    member_id: Optional[str] = None
    group_number: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None


class InboundRecordCreate(InboundFields):
    appointment_number: str
    appointment_date: str
    type: AppointmentType
    dob: str
    phone: str
    address: str
    insurance_policy: bool
    call_status: InboundCallStatus = InboundCallStatus.NOT_CALLED
    call_transfer_status: CallTransferStatus = CallTransferStatus.NOT_TRANSFERRED


class InboundRecordUpdate(InboundFields):
    appointment_number: Optional[str] = None
    appointment_date: Optional[str] = None
    type: Optional[AppointmentType] = None
    dob: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    insurance_policy: Optional[bool] = None
    call_status: Optional[InboundCallStatus] = None
    call_transfer_status: Optional[CallTransferStatus] = None


class RecordListResponse(BaseModel):
    records: List[dict]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class MutationResponse(BaseModel):
    status: str
    message: str
    records: List[dict] = Field(default_factory=list)


class ImportResponse(BaseModel):
    status: str
    imported: int
    dropped: int
    message: str


class NamedCount(BaseModel):
    name: str
    value: int


class MonthBucket(BaseModel):
    month: str
    count: int
    past_count: int


class SummaryMetrics(BaseModel):
    total_records: int
    scheduled_appointments: int
    active_insurance: int
    average_deductible: float
    calls_needed: int


class AnalyticsResponse(BaseModel):
    time_range: TimeRange
    companies: List[NamedCount]
    eligibility_status: List[NamedCount]
    call_status: List[NamedCount]
    coverage_status: List[NamedCount]
    appointments_by_month: List[MonthBucket]
    metrics: SummaryMetrics
