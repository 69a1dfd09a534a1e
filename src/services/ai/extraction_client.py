"""AI extraction client for Quran practice utterances."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from pydantic_ai import Agent, StructuredDict
from pydantic_ai.exceptions import AgentRunError, UnexpectedModelBehavior
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from core.error_handler import StructuredLogger
from schemas.extraction import (
    ExtractionResult,
    MistakeExtractionResult,
    SessionExtractionResult,
    output_json_schema,
)
from services.ai.exceptions import (
    EmptyUtteranceError,
    ExtractionServiceFailure,
    ExtractionValidationFailure,
    UnexpectedExtractionFailure,
)
from services.ai.model_factory import (
    get_extraction_model,
    get_extraction_model_settings,
)
from services.ai.models import (
    ConversationContext,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSuccess,
)
from services.ai.prompts import (
    COMBINED_EXTRACTION_SYSTEM_PROMPT,
    MISTAKE_EXTRACTION_SYSTEM_PROMPT,
    SESSION_EXTRACTION_SYSTEM_PROMPT,
    build_mistake_user_prompt,
    build_user_prompt,
)
from services.ai.validation import (
    validate_extraction,
    validate_mistake_extraction,
    validate_session_extraction,
)


structured_logger = StructuredLogger(__name__)

# (system prompt, output model, output tool name) per extraction kind
_AGENT_SPECS: dict[str, tuple[str, type[Any], str]] = {
    "combined": (
        COMBINED_EXTRACTION_SYSTEM_PROMPT,
        ExtractionResult,
        "session_extraction",
    ),
    "session": (
        SESSION_EXTRACTION_SYSTEM_PROMPT,
        SessionExtractionResult,
        "session_details",
    ),
    "mistakes": (
        MISTAKE_EXTRACTION_SYSTEM_PROMPT,
        MistakeExtractionResult,
        "recitation_mistakes",
    ),
}

# Errors raised by the transport or provider rather than by the model output
SERVICE_ERRORS: tuple[type[BaseException], ...] = (
    AgentRunError,
    httpx.HTTPError,
    TimeoutError,
    OSError,
)


def create_extraction_agent(
    model: Model | str,
    system_prompt: str,
    output_model: type[Any],
    name: str,
) -> Agent[None, dict[str, Any]]:
    """Create a pydantic-ai agent constrained to `output_model`'s JSON schema.

    The agent returns the raw structured payload; it is validated afterwards by
    `services.ai.validation` so contract violations are reported with field
    paths instead of being retried away inside the agent.
    """
    output_type = StructuredDict(
        output_json_schema(output_model),
        name=name,
        description=(output_model.__doc__ or name).strip(),
    )
    return Agent(model, system_prompt=system_prompt, output_type=output_type)


def _require_utterance(utterance: str) -> str:
    text = (utterance or "").strip()
    if not text:
        raise EmptyUtteranceError()
    return text


class SessionExtractionClient:
    """Turns one utterance (plus optional chat context) into a validated result.

    Stateless apart from the lazily created agents, so one instance may be
    shared by independent conversations. Model and transport failures are
    returned as `ExtractionFailure`, never raised.
    """

    def __init__(
        self,
        model: Model | str | None = None,
        model_settings: ModelSettings | None = None,
    ) -> None:
        # Lazy init avoids requiring provider credentials at construction time
        self._model = model
        self._model_settings = model_settings
        self._agents: dict[str, Agent[None, dict[str, Any]]] = {}

    def _get_agent(self, kind: str) -> Agent[None, dict[str, Any]]:
        agent = self._agents.get(kind)
        if agent is None:
            if self._model is None:
                self._model = get_extraction_model()
            system_prompt, output_model, name = _AGENT_SPECS[kind]
            agent = create_extraction_agent(
                self._model, system_prompt, output_model, name
            )
            self._agents[kind] = agent
        return agent

    def _settings(self) -> ModelSettings:
        if self._model_settings is None:
            self._model_settings = get_extraction_model_settings()
        return self._model_settings

    async def extract(
        self, utterance: str, context: ConversationContext | None = None
    ) -> ExtractionOutcome:
        """Extract session, portions and mistakes from a chat message.

        Raises:
            EmptyUtteranceError: if `utterance` is blank (no call is made).
        """
        text = _require_utterance(utterance)
        return await self._run(
            "combined", build_user_prompt(text, context), validate_extraction
        )

    async def extract_session(
        self, utterance: str
    ) -> ExtractionSuccess[SessionExtractionResult] | ExtractionFailure:
        """Extract only session details and portions."""
        text = _require_utterance(utterance)
        return await self._run(
            "session", build_user_prompt(text), validate_session_extraction
        )

    async def extract_mistakes(
        self, utterance: str, context_surah: str | None = None
    ) -> ExtractionSuccess[MistakeExtractionResult] | ExtractionFailure:
        """Extract only mistakes, attributing them to `context_surah`."""
        text = _require_utterance(utterance)
        return await self._run(
            "mistakes",
            build_mistake_user_prompt(text, context_surah),
            validate_mistake_extraction,
        )

    async def _run(
        self, kind: str, prompt: str, validator: Callable[[object], Any]
    ) -> ExtractionSuccess[Any] | ExtractionFailure:
        structured_logger.debug(
            "Running extraction", kind=kind, input_chars=len(prompt)
        )
        try:
            agent = self._get_agent(kind)
            run_result: Any = await agent.run(prompt, model_settings=self._settings())
            result = validator(run_result.output)
        except ExtractionValidationFailure as exc:
            structured_logger.warning(
                "Extraction output violated contract",
                kind=kind,
                error_code=exc.error_code,
                issues=[str(issue) for issue in exc.issues],
            )
            return ExtractionFailure(exc)
        except UnexpectedModelBehavior as exc:
            # The model ignored the output schema altogether
            structured_logger.warning(
                "Model returned out-of-contract output", kind=kind, error=str(exc)
            )
            return ExtractionFailure(ExtractionValidationFailure(message=str(exc)))
        except SERVICE_ERRORS as exc:
            structured_logger.error(
                "Extraction call failed",
                kind=kind,
                exception_type=exc.__class__.__name__,
                error=str(exc),
            )
            return ExtractionFailure(
                ExtractionServiceFailure(str(exc) or exc.__class__.__name__)
            )
        except Exception as exc:  # noqa: BLE001
            structured_logger.exception(
                "Unexpected extraction failure",
                kind=kind,
                exception_type=exc.__class__.__name__,
            )
            return ExtractionFailure(
                UnexpectedExtractionFailure(str(exc) or exc.__class__.__name__)
            )

        structured_logger.info(
            "Extraction succeeded",
            kind=kind,
            portions=len(getattr(result, "portions", ())),
            mistakes=len(getattr(result, "mistakes", ())),
            confidence=result.confidence.value,
        )
        return ExtractionSuccess(result)
