"""Tests for SessionExtractionClient failure classification and prompting."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic_ai import models
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.messages import ModelMessage, ModelResponse, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from schemas.extraction import ExtractionResult
from services.ai.exceptions import (
    EmptyUtteranceError,
    ExtractionServiceFailure,
    ExtractionValidationFailure,
    UnexpectedExtractionFailure,
)
from services.ai.extraction_client import SessionExtractionClient
from services.ai.models import (
    ConversationContext,
    ExtractionFailure,
    ExtractionSuccess,
)


# Block any real model requests in tests
models.ALLOW_MODEL_REQUESTS = False


FATIHA_PAYLOAD = {
    "session": {
        "duration_minutes": 20,
        "session_type": "reading_practice",
        "performance_score": None,
        "session_goal": None,
    },
    "portions": [{"surah_name": "Al-Fatiha"}],
    "mistakes": [],
    "missing_fields": [],
    "follow_up_question": None,
    "confidence": "high",
}


def _agent_returning(output=None, side_effect=None) -> MagicMock:
    agent = MagicMock()
    agent.run = AsyncMock(
        return_value=SimpleNamespace(output=output), side_effect=side_effect
    )
    return agent


@pytest.fixture
def patched_agent():
    """Patch agent creation; yields a setter for the agent to hand out."""
    holder: dict[str, MagicMock] = {}

    def _create(*_args, **_kwargs):
        return holder["agent"]

    with patch(
        "services.ai.extraction_client.create_extraction_agent", side_effect=_create
    ) as create:

        def _set(agent: MagicMock) -> MagicMock:
            holder["agent"] = agent
            return create

        yield _set


@pytest.mark.asyncio
@pytest.mark.parametrize("utterance", ["", "   ", "\n\t"])
async def test_blank_utterance_raises_before_any_call(patched_agent, utterance):
    agent = _agent_returning(FATIHA_PAYLOAD)
    create = patched_agent(agent)
    client = SessionExtractionClient(model="test")

    with pytest.raises(EmptyUtteranceError):
        await client.extract(utterance)

    create.assert_not_called()
    agent.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_success_returns_validated_result(patched_agent):
    agent = _agent_returning(FATIHA_PAYLOAD)
    patched_agent(agent)
    client = SessionExtractionClient(model="test")

    outcome = await client.extract("  I practiced Al-Fatiha for 20 minutes ")

    assert isinstance(outcome, ExtractionSuccess)
    assert isinstance(outcome.result, ExtractionResult)
    assert outcome.result.session.duration_minutes == 20
    prompt = agent.run.await_args.args[0]
    assert prompt.endswith('"I practiced Al-Fatiha for 20 minutes"')
    assert "Context surah" not in prompt


@pytest.mark.asyncio
async def test_context_is_added_to_prompt(patched_agent):
    agent = _agent_returning(FATIHA_PAYLOAD)
    patched_agent(agent)
    client = SessionExtractionClient(model="test")

    await client.extract(
        "continue with that", ConversationContext(surah="Yaseen")
    )

    prompt = agent.run.await_args.args[0]
    assert "Context surah: Yaseen" in prompt
    assert "Context session type" not in prompt


@pytest.mark.asyncio
async def test_agent_is_created_once_per_kind(patched_agent):
    agent = _agent_returning(FATIHA_PAYLOAD)
    create = patched_agent(agent)
    client = SessionExtractionClient(model="test")

    await client.extract("first")
    await client.extract("second")

    assert create.call_count == 1


@pytest.mark.asyncio
async def test_contract_violation_is_validation_failure(patched_agent):
    payload = {
        **FATIHA_PAYLOAD,
        "mistakes": [
            {
                "portion_surah": "Al-Fatiha",
                "error_category": "tajweed",
                "severity_level": 6,
            }
        ],
    }
    patched_agent(_agent_returning(payload))
    client = SessionExtractionClient(model="test")

    outcome = await client.extract("bad severity")

    assert isinstance(outcome, ExtractionFailure)
    assert isinstance(outcome.error, ExtractionValidationFailure)
    assert [i.path for i in outcome.error.issues] == ["mistakes.0.severity_level"]


@pytest.mark.asyncio
async def test_unexpected_model_behavior_is_validation_failure(patched_agent):
    patched_agent(
        _agent_returning(side_effect=UnexpectedModelBehavior("no output tool call"))
    )
    client = SessionExtractionClient(model="test")

    outcome = await client.extract("hello")

    assert isinstance(outcome.error, ExtractionValidationFailure)
    assert "no output tool call" in outcome.error.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        ModelHTTPError(status_code=503, model_name="gemini-2.5-flash", body=None),
        httpx.ConnectError("connection refused"),
        TimeoutError("timed out"),
    ],
)
async def test_transport_errors_are_service_failures(patched_agent, exc):
    patched_agent(_agent_returning(side_effect=exc))
    client = SessionExtractionClient(model="test")

    outcome = await client.extract("hello")

    assert isinstance(outcome, ExtractionFailure)
    assert isinstance(outcome.error, ExtractionServiceFailure)
    assert outcome.error.user_message.startswith("Error: ")


@pytest.mark.asyncio
async def test_other_errors_are_unexpected_failures(patched_agent):
    patched_agent(_agent_returning(side_effect=RuntimeError("boom")))
    client = SessionExtractionClient(model="test")

    outcome = await client.extract("hello")

    assert isinstance(outcome.error, UnexpectedExtractionFailure)
    assert outcome.error.message == "boom"
    assert outcome.error.user_message == "An unexpected error occurred"


@pytest.mark.asyncio
async def test_missing_provider_is_unexpected_failure():
    client = SessionExtractionClient()
    with patch(
        "services.ai.extraction_client.get_extraction_model",
        side_effect=ValueError("No valid LLM provider configured."),
    ):
        outcome = await client.extract("hello")

    assert isinstance(outcome.error, UnexpectedExtractionFailure)
    assert "No valid LLM provider" in outcome.error.message


@pytest.mark.asyncio
async def test_extract_mistakes_uses_context_surah(patched_agent):
    agent = _agent_returning(
        {
            "mistakes": [
                {
                    "portion_surah": "Al-Mulk",
                    "error_category": "tajweed",
                    "error_subcategory": "madd",
                    "severity_level": 1,
                }
            ],
            "confidence": "high",
        }
    )
    patched_agent(agent)
    client = SessionExtractionClient(model="test")

    outcome = await client.extract_mistakes("small slip with the madd", "Al-Mulk")

    assert isinstance(outcome, ExtractionSuccess)
    assert outcome.result.mistakes[0].severity_level == 1
    assert agent.run.await_args.args[0].startswith("Context surah: Al-Mulk")


@pytest.mark.asyncio
async def test_structured_output_through_function_model():
    """Round trip through a real agent with a scripted model."""

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        tool = info.output_tools[0]
        return ModelResponse(parts=[ToolCallPart(tool.name, FATIHA_PAYLOAD)])

    client = SessionExtractionClient(model=FunctionModel(respond))

    outcome = await client.extract("I practiced Al-Fatiha for 20 minutes")

    assert isinstance(outcome, ExtractionSuccess)
    assert outcome.result.portions[0].surah_name == "Al-Fatiha"
    assert outcome.result.portions[0].ayah_start is None
