"""Typed contract objects for the extraction client and the accumulator.

* ConversationContext - what has already been established in the chat and is
  repeated to the model so references like "same surah" resolve.
* ExtractionOutcome   - result of one extraction attempt: either
  ExtractionSuccess carrying the validated result, or ExtractionFailure
  carrying one of the classified domain errors. The client never raises for
  model or transport problems; callers branch on the variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from schemas.extraction import ExtractionResult
from services.ai.exceptions import SessionExtractionError


ResultT = TypeVar("ResultT")


@dataclass(frozen=True, slots=True)
class ConversationContext:
    """Surah and session type already established earlier in the chat."""

    surah: str | None = None
    session_type: str | None = None

    def is_empty(self) -> bool:
        return self.surah is None and self.session_type is None


@dataclass(frozen=True, slots=True)
class ExtractionSuccess(Generic[ResultT]):  # noqa: UP046 (retain legacy syntax for parser compatibility)
    result: ResultT
    success: bool = True


@dataclass(frozen=True, slots=True)
class ExtractionFailure:
    error: SessionExtractionError
    success: bool = False


ExtractionOutcome = ExtractionSuccess[ExtractionResult] | ExtractionFailure
