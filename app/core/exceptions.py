from fastapi import HTTPException
from app.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


class ValidationError(AppException):
    """Malformed input. Raised before anything is mutated."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(400, message, ErrorCode.VALIDATION_ERROR, details)


class NotFoundError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.NOT_FOUND):
        super().__init__(404, message, error_code)


class InvalidTransition(AppException):
    """A stage or conversion precondition is not met.

    `unmet` names the condition so the caller can tell a human what to fix;
    these are never retried automatically.
    """

    def __init__(self, message: str, unmet: str):
        super().__init__(
            409,
            message,
            ErrorCode.INVALID_TRANSITION,
            {"unmet": unmet},
        )
        self.unmet = unmet


class ConcurrencyConflict(AppException):
    def __init__(
        self,
        message: str = "Record modified by another process",
        error_code: ErrorCode = ErrorCode.CONCURRENCY_CONFLICT,
    ):
        super().__init__(409, message, error_code)


class AlreadyConverted(Exception):
    """Another caller converted the quotation first. Not an error for callers."""

    def __init__(self, quotation_id: int, so_id: int):
        super().__init__(f"Quotation {quotation_id} already converted to sales order {so_id}")
        self.quotation_id = quotation_id
        self.so_id = so_id
