"""Structured output contract for one AI extraction call.

Every numeric or enum field is either a value satisfying its constraint or
null: partial extraction is the normal case, not an error. Models forbid
unknown keys and use strict numeric types so that out-of-contract payloads
(``"5"`` for an integer, ``true`` for a count, severity ``6``) are rejected
instead of being coerced or clamped.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, Strict

from schemas.session import (
    Confidence,
    ErrorCategory,
    ErrorSubcategory,
    RecencyCategory,
    SessionType,
)


PositiveInt = Annotated[int, Strict(), Field(gt=0)]
NonNegativeInt = Annotated[int, Strict(), Field(ge=0)]
Score = Annotated[float, Strict(), Field(ge=0, le=10)]
Severity = Annotated[int, Strict(), Field(ge=1, le=5)]
Text = Annotated[str, Strict()]


class ExtractedSession(BaseModel):
    """Session-level fields mentioned in one utterance."""

    duration_minutes: PositiveInt | None = Field(
        default=None, description="Session length in minutes"
    )
    session_type: SessionType | None = Field(
        default=None, description="Kind of practice session"
    )
    performance_score: Score | None = Field(
        default=None, description="How the session went, 0-10"
    )
    session_goal: Text | None = Field(
        default=None, description="Stated goal, e.g. 'review'"
    )

    model_config = ConfigDict(extra="forbid")


class ExtractedPortion(BaseModel):
    """A Quran portion fragment; every field may be missing."""

    surah_name: Text | None = Field(
        default=None, description="Surah name in English transliteration"
    )
    ayah_start: PositiveInt | None = Field(default=None, description="First ayah")
    ayah_end: PositiveInt | None = Field(default=None, description="Last ayah")
    recency_category: RecencyCategory | None = None
    repetition_count: NonNegativeInt | None = None

    model_config = ConfigDict(extra="forbid")


class ExtractedMistake(BaseModel):
    """A recitation mistake tied to a portion by surah name.

    Portions have no stable id while the conversation is running, so the
    link is the surah name; ``"Unknown"`` marks an unattributed mistake.
    """

    portion_surah: Text | None = Field(
        default=None, description="Surah the mistake belongs to, or 'Unknown'"
    )
    error_category: ErrorCategory
    error_subcategory: ErrorSubcategory | None = None
    severity_level: Severity = Field(..., description="Severity 1 (minor)-5")
    ayah_number: PositiveInt | None = None
    additional_notes: Text | None = None

    model_config = ConfigDict(extra="forbid")


class ExtractionResult(BaseModel):
    """Combined session, portion and mistake extraction for chat turns."""

    session: ExtractedSession | None = None
    portions: list[ExtractedPortion] = Field(default_factory=list)
    mistakes: list[ExtractedMistake] = Field(default_factory=list)
    missing_fields: list[Text] = Field(default_factory=list)
    follow_up_question: Text | None = None
    confidence: Confidence

    model_config = ConfigDict(extra="forbid")

    def is_empty(self) -> bool:
        """True when nothing at all was extracted."""
        session_empty = self.session is None or not any(
            value is not None for value in self.session.model_dump().values()
        )
        return session_empty and not self.portions and not self.mistakes


class SessionExtractionResult(BaseModel):
    """Session-only extraction (no mistakes)."""

    session: ExtractedSession
    portions: list[ExtractedPortion] = Field(default_factory=list)
    missing_fields: list[Text] = Field(default_factory=list)
    follow_up_question: Text | None = None
    confidence: Confidence

    model_config = ConfigDict(extra="forbid")


class MistakeExtractionResult(BaseModel):
    """Mistake-only extraction."""

    mistakes: list[ExtractedMistake] = Field(default_factory=list)
    follow_up_question: Text | None = None
    confidence: Confidence

    model_config = ConfigDict(extra="forbid")


def output_json_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema handed to the model for structured generation."""
    return model.model_json_schema()
