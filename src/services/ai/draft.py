"""Draft accumulation for the conversational session flow.

The draft is never stored: it is recomputed from the message log every time
it is read, so clearing or rewinding the log is all that is needed to undo a
turn.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from schemas.extraction import (
    ExtractedMistake,
    ExtractedPortion,
    ExtractedSession,
    ExtractionResult,
)
from schemas.session import UNKNOWN_SURAH
from services.ai.models import ConversationContext


SESSION_FIELDS: tuple[str, ...] = tuple(ExtractedSession.model_fields)


@dataclass(slots=True)
class AccumulatedDraft:
    """Everything extracted so far in one conversation."""

    session: ExtractedSession = field(default_factory=ExtractedSession)
    portions: list[ExtractedPortion] = field(default_factory=list)
    mistakes: list[ExtractedMistake] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            not self.portions
            and not self.mistakes
            and all(getattr(self.session, name) is None for name in SESSION_FIELDS)
        )


def merge_session(
    current: ExtractedSession, update: ExtractedSession | None
) -> ExtractedSession:
    """Overlay `update` on `current`; null values in `update` never overwrite."""
    if update is None:
        return current
    merged = {
        name: value
        for name in SESSION_FIELDS
        if (value := getattr(update, name)) is not None
    }
    if not merged:
        return current
    return current.model_copy(update=merged)


def fold_extractions(
    extractions: Iterable[ExtractionResult | None],
) -> AccumulatedDraft:
    """Fold extractions in log order into a single draft.

    Session fields: later non-null wins. Portions and mistakes are
    concatenated as-is; the same surah mentioned twice yields two portions.
    """
    draft = AccumulatedDraft()
    for extraction in extractions:
        if extraction is None:
            continue
        draft.session = merge_session(draft.session, extraction.session)
        draft.portions.extend(extraction.portions)
        draft.mistakes.extend(extraction.mistakes)
    return draft


def has_surah_name(name: str | None) -> bool:
    """False for a missing or blank name."""
    return bool(name and name.strip())


def is_known_mistake_surah(name: str | None) -> bool:
    return has_surah_name(name) and name != UNKNOWN_SURAH


def is_ready_to_save(draft: AccumulatedDraft) -> bool:
    """A draft can be reviewed once at least one surah is known."""
    if any(has_surah_name(portion.surah_name) for portion in draft.portions):
        return True
    return any(
        is_known_mistake_surah(mistake.portion_surah) for mistake in draft.mistakes
    )


def context_surah(draft: AccumulatedDraft) -> str | None:
    """Most recently mentioned surah among the draft's portions."""
    for portion in reversed(draft.portions):
        if has_surah_name(portion.surah_name):
            return portion.surah_name
    return None


def context_from_draft(draft: AccumulatedDraft) -> ConversationContext:
    session_type = draft.session.session_type
    return ConversationContext(
        surah=context_surah(draft),
        session_type=session_type.value if session_type is not None else None,
    )
