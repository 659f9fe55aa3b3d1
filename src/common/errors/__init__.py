"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, error_code_group, parse_error_code
from common.errors.exceptions import (
    ExampleIntegrityError,
    ExampleNotFoundError,
    ExampleRepositoryError,
    ExampleValidationError,
)

__all__ = [
    "ErrorCode",
    "ExampleIntegrityError",
    "ExampleNotFoundError",
    "ExampleRepositoryError",
    "ExampleValidationError",
    "error_code_group",
    "parse_error_code",
]
