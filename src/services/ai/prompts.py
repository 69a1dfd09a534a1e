"""Instruction prompts for Quran practice session extraction.

Three system prompts exist: session-only, mistake-only and the combined one
used by the conversational flow. The combined prompt reuses the rule sections
of the other two so the guidance stays in one place.
"""

from __future__ import annotations

from schemas.session import (
    UNKNOWN_SURAH,
    ErrorCategory,
    ErrorSubcategory,
    RecencyCategory,
    SessionType,
)
from services.ai.models import ConversationContext


def _values(enum_cls: type) -> str:
    return ", ".join(member.value for member in enum_cls)


SESSION_RULES = f"""## Session Types
Allowed values: {_values(SessionType)}

## Recency Categories
Allowed values: {_values(RecencyCategory)}

## Surah Name Normalization
Always normalize surah names to English transliteration format:
- الفاتحة → Al-Fatiha
- يس / Yasin → Yaseen
- البقرة → Al-Baqarah
- Use standard English transliteration (Al-X format for surahs starting with "the")

## Ayah Ranges
- Only fill ayah_start and ayah_end when the user states them
  ("ayah 1-10", "first ten verses", "from verse 5").
- If the user names a surah without a range, leave ayah_start and ayah_end
  as null. Never invent a full-surah range.
- If only a starting point is given, fill ayah_start and leave ayah_end null.

## Juz References
When the user mentions "Juz 30", "Juz Amma" or any juz without naming surahs,
do NOT populate portions. Add surah_name to missing_fields and ask which
surahs were covered.

## Session Type Mapping
- "practiced", "read", "reading" → reading_practice
- "memorized", "memorizing", "hifz", "new" → memorization
- "reviewed", "review", "revision" → reading_practice (with goal: "review")
- "audit", "test with teacher", "sabaq" → audit
- "mistakes", "error review" → mistake_session
- "quiz", "test" → practice_test
- "study", "tafsir", "meaning" → study_session

## Performance Score Inference (0-10 scale)
- "went well", "great", "excellent", "smooth" → 7-8
- "okay", "fine", "alright" → 5-6
- "struggled", "hard", "difficult", "many mistakes" → 3-4
- "terrible", "very bad", "couldn't remember" → 1-2
- If not mentioned, leave as null

## Recency Category Rules
- "new" or "just started" → new
- "recent" or "last few days" → recent
- "reviewing" or "going back to" → reviewing
- For memorization of new material → new
- If not clear, leave as null

## Missing Fields Logic
Only add to missing_fields if the field is:
1. Critical (surah_name is always critical)
2. Not inferrable from context
3. Needed for a complete session record

Fields that are okay to be null: duration_minutes, performance_score, repetition_count

## Follow-up Question Rules
- Only ask if critical info is missing (surah_name is critical)
- Keep questions concise and specific
- Don't ask about optional fields
- If juz mentioned without specifics, ask which surahs

## Multiple Portions
Users may mention multiple surahs. Create separate portion entries for each:
"I read Al-Fatiha and first page of Al-Baqarah" → 2 portions
"""

SESSION_EXAMPLES = """## Session Examples

Input: "I practiced Al-Fatiha for 20 minutes"
Output: session.duration_minutes=20, session.session_type="reading_practice",
portions=[{surah_name:"Al-Fatiha", ayah_start:null, ayah_end:null}], confidence="high"

Input: "Memorized surah yaseen ayah 1-10 today, went well"
Output: session.session_type="memorization", session.performance_score=8,
portions=[{surah_name:"Yaseen", ayah_start:1, ayah_end:10, recency_category:"new"}],
missing_fields=["duration_minutes"], follow_up_question="How long did you spend?", confidence="high"

Input: "Quick review of juz 30"
Output: session.session_type="reading_practice", session.session_goal="review",
portions=[], missing_fields=["surah_name"],
follow_up_question="Which surahs from Juz 30 did you cover? (An-Naba through An-Nas)", confidence="medium"
"""

MISTAKE_RULES = f"""## Error Categories
Allowed categories: {_values(ErrorCategory)}
Allowed subcategories: {_values(ErrorSubcategory)}

## Terminology Mapping
| User Says | Category | Subcategory |
|-----------|----------|-------------|
| tajweed, tajwid | tajweed | (null) |
| ghunna, gunna, nasal sound | tajweed | ghunna |
| madd, mad, elongation, stretch | tajweed | madd |
| idgham, idghaam, merging | tajweed | idgham |
| ikhfa, ikhfaa, hiding | tajweed | ikhfa |
| qalqala, qalqalah, echo | tajweed | qalqalah |
| iqlab | tajweed | iqlab |
| pronunciation, articulation | pronunciation | (null) |
| makhraj, makharij, point of articulation | pronunciation | makhraj |
| letter sound, wrong letter | pronunciation | sifat |
| forgot, blanked, couldn't remember | memorization | forgotten_word |
| skipped, missed verse | memorization | verse_skip |
| mixed up, confused verses, similar verse | memorization | mutashabih |
| wrong word order | memorization | word_order |
| said wrong word | memorization | word_substitution |
| hesitated, paused, slow, stumbled | fluency | hesitation |
| repeated myself, said twice | fluency | repetition |
| rhythm off, timing wrong | fluency | rhythm |
| wrong stop, bad pause, stopped wrong | waqf | wrong_stop |
| didn't stop, missed stop | waqf | missed_stop |
| shouldn't have stopped | waqf | disencouraged_stop |

## Severity Guidelines (1-5 scale, integers only)
| Level | Description | User Indicators |
|-------|-------------|-----------------|
| 1 | Minor | "small slip", "barely noticeable", "self-corrected quickly", "tiny" |
| 2 | Light | "slight error", "minor issue", "small mistake" |
| 3 | Moderate | "mistake", "error", "needed to fix", "messed up" |
| 4 | Significant | "major mistake", "big error", "serious", "bad" |
| 5 | Critical | "completely wrong", "fundamental error", "really bad", "terrible" |

Default to severity 3 if no indicators present.

## Surah Context
The conversation may already have established a surah (see "Context surah").
Use that surah name for portion_surah when the user does not name another one.
If no surah is known, use "{UNKNOWN_SURAH}" and ask in follow_up_question.

## Multiple Mistakes
"I hesitated on verse 5 and forgot the ghunna on verse 7" → 2 mistakes

## Ayah Numbers
- If user says "verse X" or "ayah X", extract that number
- If user says "verses 10-12", use null for ayah_number but note in additional_notes
- If no specific verse mentioned, leave ayah_number as null
"""

MISTAKE_EXAMPLES = f"""## Mistake Examples

Input: "I made a tajweed mistake on ayah 5, forgot the ghunna"
Context surah: Al-Fatiha
Output: mistakes=[{{portion_surah:"Al-Fatiha", error_category:"tajweed",
error_subcategory:"ghunna", severity_level:3, ayah_number:5,
additional_notes:"Forgot to apply ghunna rule"}}], confidence="high"

Input: "Kept hesitating on verse 10-12, and mixed up verse 15 with something similar"
Context surah: Al-Baqarah
Output: mistakes=[
  {{portion_surah:"Al-Baqarah", error_category:"fluency", error_subcategory:"hesitation",
   severity_level:2, ayah_number:null, additional_notes:"Hesitation on verses 10-12"}},
  {{portion_surah:"Al-Baqarah", error_category:"memorization", error_subcategory:"mutashabih",
   severity_level:3, ayah_number:15, additional_notes:"Confused with similar verse"}}
], confidence="high"

Input: "Made a small slip with the madd"
Context surah: {UNKNOWN_SURAH}
Output: mistakes=[{{portion_surah:"{UNKNOWN_SURAH}", error_category:"tajweed",
error_subcategory:"madd", severity_level:1, ayah_number:null,
additional_notes:"Small madd error"}}],
follow_up_question="Which surah were you reciting?", confidence="medium"
"""

CONFIDENCE_RULES = """## Confidence Levels
- high: All critical fields extracted, surah clearly identified
- medium: Surah identified but some ambiguity, or range unclear
- low: Unable to determine surah or major uncertainty
"""

SESSION_EXTRACTION_SYSTEM_PROMPT = f"""You are a Quran study session parser. \
Extract structured session information from natural language descriptions.

## Your Task
Parse the user's message to extract:
1. Session details (duration, type, performance, goal)
2. Quran portions practiced (surah, ayah range, recency, repetitions)
3. Identify any missing critical information

{SESSION_RULES}
{CONFIDENCE_RULES}
{SESSION_EXAMPLES}"""

MISTAKE_EXTRACTION_SYSTEM_PROMPT = f"""You are a Quran recitation mistake \
analyzer. Extract structured mistake information from natural language descriptions.

## Your Task
Parse the user's message to extract:
1. Mistakes made during recitation (category, subcategory, severity)
2. Link mistakes to the surah being discussed
3. Identify specific ayah numbers when mentioned

{MISTAKE_RULES}
{CONFIDENCE_RULES}
{MISTAKE_EXAMPLES}"""

COMBINED_EXTRACTION_SYSTEM_PROMPT = f"""You are a Quran study assistant. \
Extract structured information from conversational messages about Quran \
practice sessions.

## Your Task
Parse the user's message to extract ANY of these that are mentioned:
1. Session details (duration, type, performance, goal)
2. Quran portions practiced (surah, ayah range)
3. Mistakes made during recitation

Not all fields will be present in every message - only extract what's mentioned.
Use null for anything not mentioned. Never guess values the user did not give.

# Session Information
{SESSION_RULES}
# Mistake Information
{MISTAKE_RULES}
{CONFIDENCE_RULES}
## Combined Response Rules
- session: Include if user mentions duration, session type, or how it went. Set to null if no session info.
- portions: Include if user mentions specific surahs or ayahs practiced
- mistakes: Include if user describes any errors or problems
- missing_fields: List critical missing info (surah_name is critical)
- follow_up_question: Ask only for critical missing info
- confidence: Overall confidence in the extraction
- Phrases like "continue with that", "same surah" or "that one" refer to the
  context surah / session type given below the message, when present.

{SESSION_EXAMPLES}
{MISTAKE_EXAMPLES}"""


def context_lines(context: ConversationContext | None) -> list[str]:
    """Reminder lines for what the conversation has already established."""
    if context is None:
        return []
    lines: list[str] = []
    if context.surah:
        lines.append(f"Context surah: {context.surah}")
    if context.session_type:
        lines.append(f"Context session type: {context.session_type}")
    return lines


def build_user_prompt(
    utterance: str, context: ConversationContext | None = None
) -> str:
    """Compose the per-call prompt: context reminder, then the quoted message."""
    lines = context_lines(context)
    lines.append("Now parse the following message:")
    lines.append(f'"{utterance}"')
    return "\n".join(lines)


def build_mistake_user_prompt(utterance: str, context_surah: str | None) -> str:
    """Mistake-only prompts always state a surah, falling back to Unknown."""
    return "\n".join(
        [
            f"Context surah: {context_surah or UNKNOWN_SURAH}",
            "Now parse the following mistake description:",
            f'"{utterance}"',
        ]
    )
