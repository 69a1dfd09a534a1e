"""Service interfaces for the conversational extraction flow.

These protocols let the accumulator and the review surface receive their
collaborators by injection, so tests can swap in fakes without patching.
"""

from __future__ import annotations

from typing import Any, Protocol

from schemas.session import SessionFormData
from services.ai.models import ConversationContext, ExtractionOutcome


class SessionExtractorProtocol(Protocol):
    """Anything that turns an utterance plus context into an outcome."""

    async def extract(
        self, utterance: str, context: ConversationContext | None = None
    ) -> ExtractionOutcome:
        """Extract session data; failures are returned, not raised."""
        ...


class SessionRepositoryProtocol(Protocol):
    """External persistence operation for a reviewed session."""

    async def create_session(self, form: SessionFormData) -> Any:
        """Persist the session with its portions and mistakes.

        Returns whatever the persistence layer hands back (typically the
        stored session with server-assigned ids).
        """
        ...
