"""
Failure classification for the HTTP surface.

Known failures carry a kind, a user-appropriate message and optional
detail/suggestion. Per-row problems during bulk imports are not failures:
they are accumulated into the import report instead.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Resource failures
    NOT_FOUND = "not_found"
    EMPTY_RESULT = "empty_result"

    # Store not loaded yet
    NOT_READY = "not_ready"


class OutcomeType(str, Enum):
    KNOWN_FAILURE = "known_failure"


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
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel):
    """Response envelope for failed requests."""

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse":
        """
        Create a known failure response.

        Use when the system knows exactly why the operation failed.
        Example: Required CSV column missing, team not found.
        """
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
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
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class MissingColumnError(KnownError):
    """A required CSV column is missing. Aborts the whole import."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(
            kind=FailureKind.MISSING_REQUIRED,
            message=f'Missing column "{column}" in CSV.',
            suggestion="Export the file again from the app, or add the column header.",
        )


class EmptyCsvError(KnownError):
    def __init__(self) -> None:
        super().__init__(kind=FailureKind.EMPTY_RESULT, message="CSV file is empty.")


class NotReadyError(KnownError):
    """The reference store has not been loaded."""

    def __init__(self, what: str = "Databases") -> None:
        super().__init__(
            kind=FailureKind.NOT_READY,
            message=f"{what} are not ready yet. Please try again in a moment.",
            status_code=503,
        )


class TeamNotFoundError(KnownError):
    def __init__(self, team_id: int) -> None:
        self.team_id = team_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Team {team_id} not found",
            status_code=404,
        )


class BackupFormatError(KnownError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message="Failed to import database backup.",
            detail=detail,
        )


class CardNotFoundError(KnownError):
    def __init__(self, card_pk: int) -> None:
        self.card_pk = card_pk
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card {card_pk} not found",
            status_code=404,
        )
