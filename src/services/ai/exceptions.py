"""Domain exceptions for the conversational session extraction flow.

These exceptions provide a taxonomy for deterministic failure handling in the
extraction client and the conversation accumulator. Each carries a stable
`error_code` for log tagging and a `user_message` that is safe to show in the
chat; technical detail (`message`) is kept for diagnostics only.

The client returns these inside an `ExtractionFailure` instead of raising them,
so every caller branch is visible in the return type.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SessionExtractionError(Exception):
    """Base class for session extraction domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"

    @property
    def user_message(self) -> str:
        return "An unexpected error occurred"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One contract violation: dotted field path plus reason."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


class ExtractionValidationFailure(SessionExtractionError):
    """The model's structured response violated the result contract."""

    def __init__(
        self,
        issues: tuple[ValidationIssue, ...] | list[ValidationIssue] = (),
        message: str | None = None,
    ) -> None:
        self.issues = tuple(issues)
        detail = message or ", ".join(str(issue) for issue in self.issues)
        super().__init__(
            message=f"Invalid AI response format: {detail}",
            error_code="invalid_output",
        )

    @property
    def user_message(self) -> str:
        return (
            "I received an unexpected response format. "
            "This is a technical issue - please try again."
        )


class ExtractionServiceFailure(SessionExtractionError):
    """The extraction call itself failed (network, provider, timeout)."""

    def __init__(self, message: str = "AI request failed") -> None:
        super().__init__(message=message, error_code="service_error")

    @property
    def user_message(self) -> str:
        return f"Error: {self.message}"


class UnexpectedExtractionFailure(SessionExtractionError):
    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message=message, error_code="unexpected_error")


class EmptyUtteranceError(ValueError):
    """Raised before any network call when the utterance is blank."""

    def __init__(self) -> None:
        super().__init__("Utterance must not be empty or whitespace-only")
