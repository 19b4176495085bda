from enum import Enum


class CalledStatus(str, Enum):
    NOT_CALLED = "not called"
    CALL_FAILED = "call failed"
    CALL_SUCCEEDED = "call succeeded"


class InboundCallStatus(str, Enum):
    NOT_CALLED = "not_called"
    COMPLETED = "completed"
    ATTEMPTED = "attempted"
    NOT_REACHABLE = "not_reachable"
    CANCELED = "canceled"


class CallTransferStatus(str, Enum):
    NOT_TRANSFERRED = "not_transferred"
    TRANSFERRED = "transferred"
    NOT_REQUIRED = "not_required"
    FAILED = "failed"


class AppointmentType(str, Enum):
    NEW = "New"
    RETURNING = "Returning"


class TimeRange(str, Enum):
    DAYS_30 = "30days"
    DAYS_90 = "90days"
    MONTHS_6 = "6months"
    YEAR_1 = "1year"

    @property
    def months(self) -> int:
        return TIME_RANGE_MONTHS[self]


TIME_RANGE_MONTHS = {
    TimeRange.DAYS_30: 1,
    TimeRange.DAYS_90: 3,
    TimeRange.MONTHS_6: 6,
    TimeRange.YEAR_1: 12,
}

DEFAULT_TIME_RANGE = TimeRange.DAYS_90

INSURANCE_COLLECTION = "insurance_details"
INBOUND_COLLECTION = "inbound"

DEFAULT_CALLED_STATUS = CalledStatus.NOT_CALLED
DEFAULT_INBOUND_CALL_STATUS = InboundCallStatus.NOT_CALLED
DEFAULT_CALL_TRANSFER_STATUS = CallTransferStatus.NOT_TRANSFERRED

# Fields owned by the store; clients never write them
SERVER_MANAGED_FIELDS = ("id", "_id", "created_at")


def insurance_defaults() -> dict:
    return {"called_status": DEFAULT_CALLED_STATUS.value}


def inbound_defaults() -> dict:
    return {
        "call_status": DEFAULT_INBOUND_CALL_STATUS.value,
        "call_transfer_status": DEFAULT_CALL_TRANSFER_STATUS.value,
    }
