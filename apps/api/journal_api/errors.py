"""Application exception types."""

from journal_api.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


class TransactionAborted(Exception):
    """A dual-store mutation could not commit and was rolled back."""

    def __init__(self, operation: str, message: str = "Transaction aborted") -> None:
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class InconsistentStateError(Exception):
    """Referential integrity between principals and entries was found broken."""

    def __init__(self, message: str, *, username: str | None = None, entry_ids: list[str] | None = None) -> None:
        self.username = username
        self.entry_ids = list(entry_ids or [])
        super().__init__(message)


__all__ = ["ApiError", "InconsistentStateError", "TransactionAborted"]
