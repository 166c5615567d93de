"""
Custom Exceptions

This module defines custom exceptions for the visit counter service.

Every exception carries the HTTP status it maps to and a fixed public
message. The public message is the only text sent to API consumers;
the internal detail (str(exc) and original_error) goes to server logs.
"""


class VisitCounterException(Exception):
    """Base exception for the visit counter service."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message)


class CacheUnavailableError(VisitCounterException):
    """Raised when the counter cache is not connected or stops responding."""

    status_code = 503
    public_message = "Redis client not available"


class LedgerWriteFailedError(VisitCounterException):
    """Raised when a visit record cannot be persisted."""

    public_message = "Failed to process visit"

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(f"Ledger write failed: {message}", original_error)


class LedgerReadFailedError(VisitCounterException):
    """Raised when visit records cannot be read from the ledger."""

    public_message = "Failed to fetch history"

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(f"Ledger read failed: {message}", original_error)


class VisitRecordingError(VisitCounterException):
    """Raised when recording a visit fails for an unexpected reason."""

    public_message = "Failed to process visit"
