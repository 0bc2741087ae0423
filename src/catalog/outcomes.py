"""Structured outcomes at the USDA transport boundary.

Every upstream exchange resolves to exactly one FetchOutcome. The catalog
client branches on OutcomeKind only, so fallback eligibility is decided in
one place and never leaks to callers:

    SUCCESS    → parse, cache, return
    NOT_FOUND  → definitive, return absent (no stale fallback)
    TRANSIENT  → stale cache entry, else empty/absent
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FetchErrorCode(Enum):
    """Failure codes for USDA API exchanges.

    Codes are string values for easy serialization and logging.
    """

    # Provider responses
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_API_KEY = "INVALID_API_KEY"
    NOT_FOUND = "NOT_FOUND"
    API_ERROR = "API_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

    # Network
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"

    # Local hourly quota refused the call
    QUOTA_EXHAUSTED = "QUOTA_EXHAUSTED"


class OutcomeKind(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"


class FoodDataError(Exception):
    """Exception for USDA API errors.

    Used internally by the transport; callers receive FetchOutcome instead.
    """

    def __init__(self, error_code: FetchErrorCode, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code.value}: {message}")


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one USDA API exchange.

    Attributes:
        kind: SUCCESS, NOT_FOUND or TRANSIENT
        payload: Decoded JSON body (None unless kind is SUCCESS)
        error_code: FetchErrorCode for non-success outcomes
        message: Human-readable detail for logs
    """

    kind: OutcomeKind
    payload: Any = None
    error_code: Optional[FetchErrorCode] = None
    message: str = ""

    @classmethod
    def success(cls, payload: Any) -> "FetchOutcome":
        return cls(kind=OutcomeKind.SUCCESS, payload=payload)

    @classmethod
    def not_found(cls, message: str = "") -> "FetchOutcome":
        return cls(
            kind=OutcomeKind.NOT_FOUND,
            error_code=FetchErrorCode.NOT_FOUND,
            message=message,
        )

    @classmethod
    def transient(cls, error_code: FetchErrorCode, message: str = "") -> "FetchOutcome":
        """Create a recoverable failure (stale-cache fallback applies).

        Args:
            error_code: Any code except NOT_FOUND
            message: Human-readable detail

        Returns:
            FetchOutcome with kind TRANSIENT
        """
        if error_code is FetchErrorCode.NOT_FOUND:
            raise ValueError("NOT_FOUND is definitive; use FetchOutcome.not_found()")
        return cls(kind=OutcomeKind.TRANSIENT, error_code=error_code, message=message)

    @classmethod
    def from_error(cls, error: FoodDataError) -> "FetchOutcome":
        if error.error_code is FetchErrorCode.NOT_FOUND:
            return cls.not_found(error.message)
        return cls.transient(error.error_code, error.message)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_not_found(self) -> bool:
        return self.kind is OutcomeKind.NOT_FOUND

    @property
    def is_transient(self) -> bool:
        return self.kind is OutcomeKind.TRANSIENT
