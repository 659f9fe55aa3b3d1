"""Exception hierarchy raised by the example repository core."""

from __future__ import annotations

from typing import Optional, Sequence

from common.errors.error_codes import ErrorCode


class ExampleRepositoryError(Exception):
    """Base class for example repository failures."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, *, reason_code: Optional[str] = None) -> None:
        """Attach a deterministic reason code to the error."""
        super().__init__(message)
        self.reason_code = reason_code or self.code.value.lower()


class ExampleValidationError(ExampleRepositoryError):
    """Raised when caller input is rejected before any mutation."""

    code = ErrorCode.VALIDATION_ERROR


class ExampleNotFoundError(ExampleRepositoryError):
    """Raised when an update or delete targets ids the store does not hold."""

    code = ErrorCode.NOT_FOUND

    def __init__(
        self,
        message: str,
        *,
        missing_ids: Sequence[str] = (),
        reason_code: Optional[str] = None,
    ) -> None:
        """Record which ids could not be resolved, when known."""
        super().__init__(message, reason_code=reason_code)
        self.missing_ids = list(missing_ids)


class ExampleIntegrityError(ExampleRepositoryError):
    """Raised when the store persisted a different number of documents than requested."""

    code = ErrorCode.INTEGRITY_ERROR

    def __init__(self, message: str, *, requested: int, stored: int) -> None:
        """Keep both counts for logging."""
        super().__init__(message, reason_code="insert_count_mismatch")
        self.requested = requested
        self.stored = stored
