"""
Failure classification shared by lookups, searches, and the HTTP surface.

Expected failures (certificate not found, a timed-out search) travel as
status objects, never as exceptions, so UI code is not forced into
exception handling for routine outcomes. `KnownError` exists only where a
caller must stop: the HTTP boundary and inventory commits.

Response types:
- Success: Operation completed successfully
- KnownFailure: System knows why it failed
- UnknownFailure: System does not know why it failed
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"

    # Transient failures, safe to retry
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


TRANSIENT_FAILURES = frozenset(
    {FailureKind.TIMEOUT, FailureKind.NETWORK_ERROR, FailureKind.RATE_LIMITED}
)


def is_retryable(kind: FailureKind | None) -> bool:
    """True for failures a user should be offered a retry for."""
    return kind in TRANSIENT_FAILURES


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    retryable: bool = Field(
        default=False,
        description="True when the failure is transient and a retry may succeed",
    )


class ApiResponse(BaseModel, Generic[T]):
    """
    Response envelope for the intake HTTP surface.

    Every response is classified so the UI can tell a missing certificate
    apart from a network hiccup worth retrying.
    """

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def success(cls, data: T) -> "ApiResponse[T]":
        """Create a success response."""
        return cls(outcome=OutcomeType.SUCCESS, data=data)

    @classmethod
    def known_failure(cls, kind: FailureKind, message: str) -> "ApiResponse[Any]":
        """
        Create a known failure response.

        Use when the system knows exactly why the operation failed.
        Example: Certificate not found, lookup timed out.
        """
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(kind=kind, message=message, retryable=is_retryable(kind)),
        )

    @classmethod
    def unknown_failure(cls) -> "ApiResponse[Any]":
        """Create an unknown failure response."""
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="I failed and I don't know why. Try again.",
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(kind=self.kind, message=self.message)
