"""Assistant reply text for a successful extraction turn."""

from __future__ import annotations

from schemas.extraction import ExtractedPortion, ExtractionResult
from services.ai.draft import has_surah_name


NOTHING_EXTRACTED_MESSAGE = (
    "I couldn't extract any session information from that. Could you tell me "
    "more about your Quran practice session? For example, which surah did you "
    "work on?"
)


def describe_portion(portion: ExtractedPortion) -> str:
    if not has_surah_name(portion.surah_name):
        return "portion (surah not specified)"
    if portion.ayah_start is not None and portion.ayah_end is not None:
        return f"{portion.surah_name} (ayahs {portion.ayah_start}-{portion.ayah_end})"
    if portion.ayah_start is not None:
        return f"{portion.surah_name} (starting from ayah {portion.ayah_start})"
    return portion.surah_name


def build_assistant_response(extraction: ExtractionResult) -> str:
    """Summarize what was recorded, then ask the follow-up question if any.

    Falls back to a fixed re-prompt when the turn produced nothing and the
    model did not ask anything itself.
    """
    parts: list[str] = []

    session = extraction.session
    if session is not None:
        recorded: list[str] = []
        if session.session_type is not None:
            recorded.append(f"session type: {session.session_type.value}")
        if session.duration_minutes is not None:
            recorded.append(f"duration: {session.duration_minutes} minutes")
        if session.performance_score is not None:
            recorded.append(f"performance: {session.performance_score:g}/10")
        if recorded:
            parts.append(f"Got it! I've recorded: {', '.join(recorded)}.")

    if extraction.portions:
        covered = ", ".join(describe_portion(p) for p in extraction.portions)
        parts.append(f"Portions covered: {covered}.")

    if extraction.mistakes:
        count = len(extraction.mistakes)
        parts.append(f"I've noted {count} mistake{'s' if count > 1 else ''}.")

    if extraction.follow_up_question:
        parts.append(extraction.follow_up_question)
    elif not parts:
        parts.append(NOTHING_EXTRACTED_MESSAGE)

    return " ".join(parts)
