"""Error taxonomy shared by the repository, mutation gateway and import pipeline."""
from typing import Optional

GENERIC_FAILURE_MESSAGE = "Operation failed"


class CRMError(Exception):
    """Base error carrying a human-readable message."""

    default_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: str = None):
        # Blank messages (e.g. an empty driver error) leave room for the caller's fallback
        self.has_message = bool(message and message.strip())
        self.message = message if self.has_message else self.default_message
        super().__init__(self.message)


class ValidationError(CRMError):
    """Missing/empty mandatory field or malformed payload. Raised before any store call."""

    default_message = "Invalid input"


class BackendError(CRMError):
    """Any failure reported by the data store."""


class NotFoundError(BackendError):
    default_message = "Record not found"


class ParseError(CRMError):
    """Malformed CSV upload."""

    default_message = "Failed to parse CSV"


class EmptyResultError(CRMError):
    """CSV import left with zero valid rows after filtering."""

    default_message = "No valid records to insert"


def error_message(exc: BaseException, fallback: Optional[str] = None) -> str:
    """
    Display string for an error: the message it carries when there is one,
    else `fallback`, else the error type's default.
    """
    if isinstance(exc, CRMError):
        if exc.has_message:
            return exc.message
        return fallback or exc.message
    text = str(exc).strip()
    return text or fallback or GENERIC_FAILURE_MESSAGE
