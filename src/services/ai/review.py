"""Turn an accumulated chat draft into a reviewable session form.

The form is what the human confirms before anything is persisted, so every
gap the conversation left open is filled with a sensible default here rather
than in the extractor. Persistence itself belongs to the caller-supplied
repository.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from core.error_handler import StructuredLogger
from core.exceptions import DraftNotReadyError
from schemas.extraction import ExtractedMistake, ExtractedPortion
from schemas.session import (
    MistakeFormData,
    PortionFormData,
    RecencyCategory,
    SessionFormData,
    SessionType,
)
from services.ai.draft import (
    AccumulatedDraft,
    has_surah_name,
    is_known_mistake_surah,
)
from services.ai.interfaces import SessionRepositoryProtocol


structured_logger = StructuredLogger(__name__)

DEFAULT_SESSION_TYPE = SessionType.READING_PRACTICE
DEFAULT_DURATION_MINUTES = 30
DEFAULT_PERFORMANCE_SCORE = 7.0
DEFAULT_RECENCY = RecencyCategory.RECENT
DEFAULT_REPETITIONS = 1
DEFAULT_MISTAKE_AYAH = 1


def _ayah_range(portion: ExtractedPortion) -> tuple[int | None, int | None]:
    start, end = portion.ayah_start, portion.ayah_end
    # "ayah 10 to 5" is read as the same span in order
    if start is not None and end is not None and end < start:
        return end, start
    return start, end


def _portion_form(portion: ExtractedPortion) -> PortionFormData:
    ayah_start, ayah_end = _ayah_range(portion)
    return PortionFormData(
        surah_name=portion.surah_name.strip(),
        ayah_start=ayah_start,
        ayah_end=ayah_end,
        repetition_count=(
            portion.repetition_count
            if portion.repetition_count is not None
            else DEFAULT_REPETITIONS
        ),
        recency_category=portion.recency_category or DEFAULT_RECENCY,
    )


def _known_mistake_surahs(mistakes: list[ExtractedMistake]) -> list[str]:
    seen: dict[str, None] = {}
    for mistake in mistakes:
        if is_known_mistake_surah(mistake.portion_surah):
            seen.setdefault(mistake.portion_surah.strip(), None)
    return list(seen)


def build_portion_forms(draft: AccumulatedDraft) -> list[PortionFormData]:
    """Named portions from the draft, or one per mistake surah if none."""
    portions = [
        _portion_form(p) for p in draft.portions if has_surah_name(p.surah_name)
    ]
    if portions:
        return portions
    return [
        PortionFormData(
            surah_name=surah,
            repetition_count=DEFAULT_REPETITIONS,
            recency_category=DEFAULT_RECENCY,
        )
        for surah in _known_mistake_surahs(draft.mistakes)
    ]


def _portion_for(surah: str | None, portions: list[PortionFormData]) -> UUID:
    if surah:
        wanted = surah.strip().casefold()
        for portion in portions:
            if portion.surah_name.casefold() == wanted:
                return portion.temp_id
    return portions[0].temp_id


def build_mistake_forms(
    mistakes: list[ExtractedMistake], portions: list[PortionFormData]
) -> list[MistakeFormData]:
    return [
        MistakeFormData(
            portion_temp_id=_portion_for(mistake.portion_surah, portions),
            error_category=mistake.error_category,
            error_subcategory=mistake.error_subcategory,
            severity_level=mistake.severity_level,
            ayah_number=mistake.ayah_number or DEFAULT_MISTAKE_AYAH,
            additional_notes=mistake.additional_notes,
        )
        for mistake in mistakes
    ]


def build_session_form(
    draft: AccumulatedDraft,
    *,
    session_date: datetime | None = None,
    session_type: SessionType | None = None,
    duration_minutes: int | None = None,
    performance_score: float | None = None,
    session_goal: str | None = None,
    additional_notes: str | None = None,
) -> SessionFormData:
    """Build the submission form for a draft, applying review overrides.

    Explicit keyword arguments win over the draft, the draft wins over the
    defaults.

    Raises:
        DraftNotReadyError: if the draft names no surah at all.
    """
    portions = build_portion_forms(draft)
    if not portions:
        raise DraftNotReadyError(
            "Draft has no identified surah; at least one portion is required"
        )

    session = draft.session
    form = SessionFormData(
        session_date=session_date or datetime.now(UTC),
        session_type=session_type or session.session_type or DEFAULT_SESSION_TYPE,
        duration_minutes=(
            duration_minutes or session.duration_minutes or DEFAULT_DURATION_MINUTES
        ),
        performance_score=next(
            score
            for score in (
                performance_score,
                session.performance_score,
                DEFAULT_PERFORMANCE_SCORE,
            )
            if score is not None
        ),
        session_goal=session_goal or session.session_goal,
        additional_notes=additional_notes,
        portions=portions,
        mistakes=build_mistake_forms(draft.mistakes, portions),
    )
    structured_logger.info(
        "Built session form",
        portions=len(form.portions),
        mistakes=len(form.mistakes),
        synthesized_portions=not any(
            has_surah_name(p.surah_name) for p in draft.portions
        ),
    )
    return form


async def commit_draft(
    draft: AccumulatedDraft,
    repository: SessionRepositoryProtocol,
    **overrides: Any,
) -> Any:
    """Build the form for `draft` and hand it to the repository."""
    form = build_session_form(draft, **overrides)
    return await repository.create_session(form)
