"""Standardized error responses for registry operations.

Every public registry operation reports failure as a stable error code
returned alongside a success flag. Callers can switch on ``code`` (or on the
numeric ``wire_code`` when talking to a transport that wants integers) to
implement recovery logic.

Usage:
    from authreg.registry.errors import ErrorCode, RegistryError, OperationResult

    # Inside the engine, checks raise:
    raise RegistryError(ErrorCode.INVALID_HASH, "fingerprint must be 32 bytes")

    # ...and the operation boundary turns that into a result:
    result = engine.mint("acme", b"short", "Watch", "SN1")
    assert not result.success
    assert result.code is ErrorCode.INVALID_HASH
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - PERMISSION: Caller is not allowed to do this
    - VALIDATION: Caller provided bad input
    - CONFLICT: Request clashes with current token state
    - NOT_FOUND: Token id does not refer to a live token
    - CAPACITY: Supply cap exhausted
    - SETTLEMENT: Fee could not be collected
    """

    PERMISSION = "permission"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    CAPACITY = "capacity"
    SETTLEMENT = "settlement"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Permission errors
    UNAUTHORIZED = "unauthorized"
    OWNER_ONLY = "owner_only"

    # Validation errors
    INVALID_HASH = "invalid_hash"
    INVALID_DESCRIPTION = "invalid_description"
    INVALID_SERIAL = "invalid_serial"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_OPTIONAL = "invalid_optional"

    # Conflict errors
    DUPLICATE_ITEM = "duplicate_item"
    TRANSFER_LOCKED = "transfer_locked"
    ALREADY_LOCKED = "already_locked"
    NOT_LOCKED = "not_locked"

    # Not found
    NFT_NOT_FOUND = "nft_not_found"

    # Capacity errors
    MAX_SUPPLY_REACHED = "max_supply_reached"

    # Settlement errors
    INSUFFICIENT_FEE = "insufficient_fee"

    # Request errors (raised by the name-based interface, not the engine)
    UNKNOWN_METHOD = "unknown_method"
    MISSING_ARGUMENT = "missing_argument"

    @property
    def wire_code(self) -> int:
        """Stable numeric code used on the wire."""
        return WIRE_CODES[self]

    @property
    def category(self) -> ErrorCategory:
        return CODE_CATEGORIES[self]


WIRE_CODES: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHORIZED: 100,
    ErrorCode.DUPLICATE_ITEM: 101,
    ErrorCode.NFT_NOT_FOUND: 102,
    ErrorCode.INVALID_HASH: 103,
    ErrorCode.INVALID_DESCRIPTION: 104,
    ErrorCode.INVALID_SERIAL: 105,
    ErrorCode.TRANSFER_LOCKED: 106,
    ErrorCode.INSUFFICIENT_FEE: 107,
    ErrorCode.MAX_SUPPLY_REACHED: 108,
    ErrorCode.INVALID_AMOUNT: 109,
    ErrorCode.OWNER_ONLY: 110,
    ErrorCode.ALREADY_LOCKED: 111,
    ErrorCode.NOT_LOCKED: 112,
    ErrorCode.INVALID_OPTIONAL: 113,
    ErrorCode.UNKNOWN_METHOD: 120,
    ErrorCode.MISSING_ARGUMENT: 121,
}

CODE_CATEGORIES: dict[ErrorCode, ErrorCategory] = {
    ErrorCode.UNAUTHORIZED: ErrorCategory.PERMISSION,
    ErrorCode.OWNER_ONLY: ErrorCategory.PERMISSION,
    ErrorCode.INVALID_HASH: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_DESCRIPTION: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_SERIAL: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_AMOUNT: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_OPTIONAL: ErrorCategory.VALIDATION,
    ErrorCode.DUPLICATE_ITEM: ErrorCategory.CONFLICT,
    ErrorCode.TRANSFER_LOCKED: ErrorCategory.CONFLICT,
    ErrorCode.ALREADY_LOCKED: ErrorCategory.CONFLICT,
    ErrorCode.NOT_LOCKED: ErrorCategory.CONFLICT,
    ErrorCode.NFT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.MAX_SUPPLY_REACHED: ErrorCategory.CAPACITY,
    ErrorCode.INSUFFICIENT_FEE: ErrorCategory.SETTLEMENT,
    ErrorCode.UNKNOWN_METHOD: ErrorCategory.VALIDATION,
    ErrorCode.MISSING_ARGUMENT: ErrorCategory.VALIDATION,
}


@dataclass
class ErrorResponse:
    """Standardized error response.

    All error responses include:
    - success: Always False
    - error: Human-readable message
    - code: Machine-readable error code
    - wire_code: Numeric form of ``code``
    - category: Error category (permission, validation, ...)
    - retriable: Whether the same call may succeed later without changes
    - details: Optional additional context
    """

    success: bool = False
    error: str = ""
    code: str = ""
    wire_code: int = 0
    category: str = ""
    retriable: bool = False
    details: dict[str, object] | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "wire_code": self.wire_code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


def error_response(
    code: ErrorCode,
    message: str,
    retriable: bool | None = None,
    **details: object,
) -> ErrorResponse:
    """Build the error response for a code.

    Only settlement failures are retriable by default: topping up the
    payer's balance is enough to make the same call succeed.
    """
    if retriable is None:
        retriable = code.category is ErrorCategory.SETTLEMENT
    return ErrorResponse(
        error=message,
        code=code.value,
        wire_code=code.wire_code,
        category=code.category.value,
        retriable=retriable,
        details=details or None,
    )


class RegistryError(Exception):
    """Raised by registry checks; converted to a result at the operation boundary."""

    def __init__(self, code: ErrorCode, message: str, **details: object) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return error_response(self.code, self.message, **self.details)


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a registry operation: a value on success, an error otherwise."""

    success: bool
    value: T | None = None
    error: ErrorResponse | None = None

    @classmethod
    def ok(cls, value: T) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ErrorResponse) -> "OperationResult[T]":
        return cls(success=False, error=error)

    @property
    def code(self) -> ErrorCode | None:
        """The error code of a failed result, None on success."""
        if self.error is None:
            return None
        return ErrorCode(self.error.code)

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        return {"success": True, "value": self.value}
