"""Quran practice session taxonomy and the reviewed submission form.

The enumerations mirror the hosted database schema and are closed: any value
outside them is rejected at the validation boundary instead of being coerced.
The `*FormData` models describe a session after a human has reviewed the AI
draft; they are what the external "create session" operation receives.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Final
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SessionType(str, Enum):
    """Kind of practice session."""

    READING_PRACTICE = "reading_practice"
    MEMORIZATION = "memorization"
    AUDIT = "audit"
    MISTAKE_SESSION = "mistake_session"
    PRACTICE_TEST = "practice_test"
    STUDY_SESSION = "study_session"


class RecencyCategory(str, Enum):
    """How recently the practiced portion was memorized."""

    NEW = "new"
    RECENT = "recent"
    REVIEWING = "reviewing"
    MAINTENANCE = "maintenance"


class ErrorCategory(str, Enum):
    """Top-level recitation mistake category."""

    PRONUNCIATION = "pronunciation"
    TAJWEED = "tajweed"
    MEMORIZATION = "memorization"
    TRANSLATION = "translation"
    FLUENCY = "fluency"
    WAQF = "waqf"
    OTHER = "other"


class ErrorSubcategory(str, Enum):
    """Fine-grained mistake kind, grouped by parent category."""

    # Pronunciation
    MAKHRAJ = "makhraj"
    SIFAT = "sifat"
    # Tajweed
    GHUNNA = "ghunna"
    QALQALAH = "qalqalah"
    MADD = "madd"
    IDGHAM = "idgham"
    IKHFA = "ikhfa"
    IQLAB = "iqlab"
    # Memorization
    WORD_ORDER = "word_order"
    VERSE_SKIP = "verse_skip"
    WORD_SUBSTITUTION = "word_substitution"
    MUTASHABIH = "mutashabih"
    FORGOTTEN_WORD = "forgotten_word"
    FORGOTTEN_VERSE_START = "forgotten_verse_start"
    FORGOTTEN_VERSE_END = "forgotten_verse_end"
    FORGOTTEN_VERSE_MIDDLE = "forgotten_verse_middle"
    FORGOTTEN_VERSE_ALL = "forgotten_verse_all"
    FORGOTTEN_VERSE_MIDDLE_END = "forgotten_verse_middle_end"
    FORGOTTEN_VERSE_START_MIDDLE = "forgotten_verse_start_middle"
    VERSE_SLIPPING = "verse_slipping"
    # Fluency
    HESITATION = "hesitation"
    REPETITION = "repetition"
    RHYTHM = "rhythm"
    # Waqf
    WRONG_STOP = "wrong_stop"
    MISSED_STOP = "missed_stop"
    DISENCOURAGED_STOP = "disencouraged_stop"
    DISENCOURAGED_CONTINUE = "disencouraged_continue"


class Confidence(str, Enum):
    """Extractor's own certainty; shown to the user, never used for gating."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SEVERITY_LEVELS: Final[tuple[int, ...]] = (1, 2, 3, 4, 5)

# Surah placeholder the extractor uses for mistakes it cannot attribute
UNKNOWN_SURAH: Final[str] = "Unknown"

SeverityLevel = Annotated[int, Field(ge=1, le=5, description="Severity 1-5")]


class PortionFormData(BaseModel):
    """One reviewed portion, identified by a temporary id until persisted."""

    temp_id: UUID = Field(default_factory=uuid4)
    database_id: UUID | None = None
    surah_name: Annotated[str, Field(min_length=1, description="Surah name")]
    ayah_start: int | None = Field(default=None, gt=0)
    ayah_end: int | None = Field(default=None, gt=0)
    repetition_count: int = Field(default=1, ge=0)
    recency_category: RecencyCategory = RecencyCategory.RECENT
    juz_number: int | None = Field(default=None, gt=0)
    pages_read: float | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_ayah_range(self) -> "PortionFormData":
        if (
            self.ayah_start is not None
            and self.ayah_end is not None
            and self.ayah_end < self.ayah_start
        ):
            raise ValueError("End ayah must be greater than or equal to start ayah")
        return self


class MistakeFormData(BaseModel):
    """One reviewed mistake, linked to a portion through its temporary id."""

    temp_id: UUID = Field(default_factory=uuid4)
    database_id: UUID | None = None
    portion_temp_id: UUID
    error_category: ErrorCategory
    error_subcategory: ErrorSubcategory | None = None
    severity_level: SeverityLevel
    ayah_number: int = Field(..., gt=0)
    additional_notes: str | None = None

    model_config = ConfigDict(extra="forbid")


class SessionFormData(BaseModel):
    """Complete, human-reviewed session ready for the persistence layer."""

    session_date: datetime
    session_type: SessionType
    duration_minutes: int = Field(..., gt=0, description="Duration in minutes")
    performance_score: float = Field(..., ge=0, le=10)
    session_goal: str | None = None
    additional_notes: str | None = None
    portions: list[PortionFormData] = Field(..., min_length=1)
    mistakes: list[MistakeFormData] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_mistake_links(self) -> "SessionFormData":
        portion_ids = {p.temp_id for p in self.portions}
        for mistake in self.mistakes:
            if mistake.portion_temp_id not in portion_ids:
                raise ValueError(
                    f"Mistake {mistake.temp_id} references unknown portion "
                    f"{mistake.portion_temp_id}"
                )
        return self
