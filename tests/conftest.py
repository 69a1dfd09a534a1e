"""Shared test fixtures for pytest.

We force ENVIRONMENT=test before anything reads settings so no .env file is
loaded, and block real model requests for the whole session.
"""

import os
from collections.abc import Callable, Generator
from typing import Any

import pytest
from pydantic_ai import models


os.environ["ENVIRONMENT"] = "test"

from core.config import get_settings
from schemas.extraction import ExtractionResult
from services.ai.exceptions import SessionExtractionError
from services.ai.models import (
    ConversationContext,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSuccess,
)


models.ALLOW_MODEL_REQUESTS = False


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Settings are cached; tests that patch env vars need a clean cache."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def build_extraction(**fields: Any) -> ExtractionResult:
    """ExtractionResult with `confidence` defaulting to high."""
    fields.setdefault("confidence", "high")
    return ExtractionResult.model_validate(fields)


@pytest.fixture
def make_extraction() -> Callable[..., ExtractionResult]:
    return build_extraction


class FakeExtractor:
    """Scripted extractor that records every call it receives.

    Each entry in `script` is an ExtractionResult (success), a
    SessionExtractionError (failure) or an exception instance to raise.
    """

    def __init__(self, *script: Any) -> None:
        self.script = list(script)
        self.calls: list[tuple[str, ConversationContext | None]] = []

    async def extract(
        self, utterance: str, context: ConversationContext | None = None
    ) -> ExtractionOutcome:
        self.calls.append((utterance, context))
        item = self.script.pop(0)
        if isinstance(item, ExtractionResult):
            return ExtractionSuccess(item)
        if isinstance(item, SessionExtractionError):
            return ExtractionFailure(item)
        raise item


@pytest.fixture
def fake_extractor_factory() -> Callable[..., FakeExtractor]:
    return FakeExtractor
