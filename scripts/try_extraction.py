#!/usr/bin/env python3
"""Run sample utterances against the configured extraction model.

Manual smoke test only; it makes real model calls and needs provider
credentials in .env.dev (or the environment).

Usage:
  python scripts/try_extraction.py                # every section
  python scripts/try_extraction.py --only chat     # multi-turn conversation
"""

import argparse
import asyncio
import sys

from core.config import get_settings
from core.error_handler import setup_logging
from services.ai.conversation import SessionConversation
from services.ai.extraction_client import SessionExtractionClient
from services.ai.models import ExtractionFailure


SESSION_SAMPLES = [
    "I practiced Al-Fatiha for 20 minutes",
    "Memorized surah yaseen ayah 1-10 today, went well",
    "Quick review of juz 30",
]

MISTAKE_SAMPLES = [
    ("I made a tajweed mistake on ayah 5, forgot the ghunna", "Al-Fatiha"),
    (
        "Kept hesitating on verse 10-12, and mixed up verse 15 with something similar",
        "Al-Baqarah",
    ),
    ("Made a small slip with the madd", None),
]

COMBINED_SAMPLE = (
    "I practiced Al-Mulk for 30 minutes, went okay but I kept hesitating on "
    "verse 15 and made a ghunna mistake on verse 20"
)

CHAT_SAMPLE = [
    "Memorized surah yaseen ayah 1-10 today",
    "It went well, about 25 minutes",
    "I forgot the ghunna on verse 7",
]


def _banner(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def _show(outcome) -> bool:
    if isinstance(outcome, ExtractionFailure):
        print(f"Error [{outcome.error.error_code}]: {outcome.error.message}")
        return False
    print("Result:", outcome.result.model_dump_json(indent=2))
    return True


async def run_session(client: SessionExtractionClient) -> int:
    _banner("SESSION EXTRACTION")
    failed = 0
    for utterance in SESSION_SAMPLES:
        print(f'\nInput: "{utterance}"')
        print("-" * 60)
        failed += not _show(await client.extract_session(utterance))
    return failed


async def run_mistakes(client: SessionExtractionClient) -> int:
    _banner("MISTAKE EXTRACTION")
    failed = 0
    for utterance, surah in MISTAKE_SAMPLES:
        print(f'\nInput: "{utterance}"')
        print(f"Context surah: {surah or 'None'}")
        print("-" * 60)
        failed += not _show(await client.extract_mistakes(utterance, surah))
    return failed


async def run_combined(client: SessionExtractionClient) -> int:
    _banner("COMBINED EXTRACTION")
    print(f'\nInput: "{COMBINED_SAMPLE}"')
    print("-" * 60)
    return int(not _show(await client.extract(COMBINED_SAMPLE)))


async def run_chat(client: SessionExtractionClient) -> int:
    _banner("CONVERSATION")
    conversation = SessionConversation(client)
    failed = 0
    for utterance in CHAT_SAMPLE:
        print(f"\nUser: {utterance}")
        reply = await conversation.send_message(utterance)
        if reply is not None:
            print(f"Assistant: {reply.content}")
            failed += reply.error_code is not None

    draft = conversation.draft
    print("\nDraft session:", draft.session.model_dump_json())
    print("Portions:", [p.surah_name for p in draft.portions])
    print("Mistakes:", len(draft.mistakes))
    print("Ready to save:", conversation.is_ready_to_save)
    return failed


SECTIONS = {
    "session": run_session,
    "mistakes": run_mistakes,
    "combined": run_combined,
    "chat": run_chat,
}


async def main(sections: list[str]) -> int:
    client = SessionExtractionClient()
    failed = 0
    for name in sections:
        failed += await SECTIONS[name](client)
    _banner(f"DONE ({failed} failed)")
    return failed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--only",
        choices=sorted(SECTIONS),
        action="append",
        help="Run only this section (may be repeated)",
    )
    args = parser.parse_args()

    setup_logging()
    settings = get_settings()
    print(f"Provider: {settings.LLM_PROVIDER}, model: {settings.EXTRACTION_MODEL}")

    sys.exit(1 if asyncio.run(main(args.only or list(SECTIONS))) else 0)
