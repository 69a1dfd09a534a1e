"""Conversation accumulator for chat-based session logging.

A `SessionConversation` owns the message log of one chat. Each user turn is
sent to the extractor together with what the chat has established so far,
and exactly one assistant turn is appended for it, carrying either the
extraction or a user-facing error. The session draft is derived from the log
on demand and is never stored separately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from core.error_handler import StructuredLogger, correlation_scope
from schemas.extraction import ExtractionResult
from services.ai.acknowledgment import build_assistant_response
from services.ai.draft import (
    AccumulatedDraft,
    context_from_draft,
    fold_extractions,
    is_ready_to_save,
)
from services.ai.exceptions import UnexpectedExtractionFailure
from services.ai.extraction_client import SessionExtractionClient
from services.ai.interfaces import SessionExtractorProtocol
from services.ai.models import (
    ConversationContext,
    ExtractionFailure,
    ExtractionOutcome,
)


structured_logger = StructuredLogger(__name__)

Role = Literal["user", "assistant"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Message:
    """One chat turn. Assistant turns carry the extraction on success."""

    role: Role
    content: str
    extraction: ExtractionResult | None = None
    error_code: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)


class SessionConversation:
    """Message log plus the loading/error state of one logging chat.

    Only one request may be in flight; callers gate on `is_loading`. `clear()`
    during a request discards that request's outcome when it arrives.
    """

    def __init__(
        self,
        extractor: SessionExtractorProtocol | None = None,
        conversation_id: str | None = None,
    ) -> None:
        self._extractor = extractor
        self.conversation_id = conversation_id or str(uuid4())
        self._messages: list[Message] = []
        self._is_loading = False
        self._error: str | None = None
        # Bumped whenever the log is truncated so stale responses are dropped
        self._generation = 0

    # -- read side -----------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        """Technical detail of the last failed turn, for diagnostics."""
        return self._error

    def get_draft(self) -> AccumulatedDraft:
        return fold_extractions(
            message.extraction
            for message in self._messages
            if message.role == "assistant"
        )

    @property
    def draft(self) -> AccumulatedDraft:
        return self.get_draft()

    @property
    def is_ready_to_save(self) -> bool:
        return is_ready_to_save(self.get_draft())

    @property
    def context(self) -> ConversationContext:
        """Context the next extraction call will receive."""
        return context_from_draft(self.get_draft())

    @property
    def context_surah(self) -> str | None:
        return self.context.surah

    # -- write side ----------------------------------------------------------

    def _get_extractor(self) -> SessionExtractorProtocol:
        if self._extractor is None:
            self._extractor = SessionExtractionClient()
        return self._extractor

    def _append(self, message: Message) -> Message:
        if self._messages and message.timestamp < self._messages[-1].timestamp:
            message = Message(
                role=message.role,
                content=message.content,
                extraction=message.extraction,
                error_code=message.error_code,
                id=message.id,
                timestamp=self._messages[-1].timestamp,
            )
        self._messages.append(message)
        return message

    async def send_message(self, text: str) -> Message | None:
        """Send one user turn and append the assistant's reply.

        Blank input is ignored. Returns the appended assistant message, or
        None when nothing was sent or the reply was discarded by `clear()`.
        """
        content = (text or "").strip()
        if not content:
            return None

        with correlation_scope(self.conversation_id):
            self._error = None
            context = self.context
            self._append(Message(role="user", content=content))
            self._is_loading = True
            generation = self._generation

            structured_logger.info(
                "Sending chat turn",
                input_chars=len(content),
                message_count=len(self._messages),
                has_context=not context.is_empty(),
            )
            try:
                outcome = await self._call_extractor(content, context)
                if generation != self._generation:
                    structured_logger.info("Discarding reply for cleared chat")
                    return None
                return self._append(self._reply_for(outcome))
            finally:
                if generation == self._generation:
                    self._is_loading = False

    async def _call_extractor(
        self, content: str, context: ConversationContext
    ) -> ExtractionOutcome:
        try:
            return await self._get_extractor().extract(
                content, None if context.is_empty() else context
            )
        except Exception as exc:  # noqa: BLE001
            structured_logger.exception(
                "Extractor raised instead of returning a failure",
                exception_type=exc.__class__.__name__,
            )
            return ExtractionFailure(
                UnexpectedExtractionFailure(str(exc) or exc.__class__.__name__)
            )

    def _reply_for(self, outcome: ExtractionOutcome) -> Message:
        if isinstance(outcome, ExtractionFailure):
            error = outcome.error
            self._error = error.message
            structured_logger.warning(
                "Chat turn failed", error_code=error.error_code
            )
            return Message(
                role="assistant",
                content=error.user_message,
                error_code=error.error_code,
            )

        result = outcome.result
        structured_logger.info(
            "Chat turn extracted",
            portions=len(result.portions),
            mistakes=len(result.mistakes),
            confidence=result.confidence.value,
        )
        return Message(
            role="assistant",
            content=build_assistant_response(result),
            extraction=result,
        )

    def clear(self) -> None:
        """Drop the whole log and reset state; an in-flight reply is discarded."""
        self._generation += 1
        self._messages.clear()
        self._is_loading = False
        self._error = None

    def _trailing_exchange_start(self) -> int | None:
        """Index of the last user turn, if only its own reply follows it."""
        messages = self._messages
        if messages and messages[-1].role == "user":
            return len(messages) - 1
        if (
            len(messages) >= 2
            and messages[-1].role == "assistant"
            and messages[-2].role == "user"
        ):
            return len(messages) - 2
        return None

    async def retry(self) -> Message | None:
        """Re-send the last user message after removing the last exchange.

        Only the trailing user turn and its reply are removed; a retry issued
        while that turn is still in flight drops the pending reply.
        """
        cut = self._trailing_exchange_start()
        if cut is None:
            return None
        content = self._messages[cut].content

        with correlation_scope(self.conversation_id):
            structured_logger.info(
                "Retrying chat turn", removed=len(self._messages) - cut
            )
        self._generation += 1
        del self._messages[cut:]
        return await self.send_message(content)
