"""Provider selection for the extraction model.

`LLM_PROVIDER=azure_openai` uses an Azure OpenAI deployment when its
endpoint and key are both present; otherwise Gemini is used. The model name
(`EXTRACTION_MODEL`) is a Gemini model id or an Azure deployment name
accordingly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from core.config import get_settings


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)

# Azure deployments that accept `reasoning_effort`
REASONING_MODELS = frozenset(
    {
        "gpt-5-mini",
        "gpt-5-nano",
        "o1-mini",
        "o1",
        "o3-mini",
    }
)


def _normalize_azure_endpoint(endpoint: str) -> str:
    # A trailing slash produces `//openai/...` request paths, which Azure 404s
    return endpoint.rstrip("/")


def _is_azure_provider() -> bool:
    return get_settings().LLM_PROVIDER == "azure_openai"


def _validate_azure_credentials() -> bool:
    settings = get_settings()
    if settings.AZURE_OPENAI_ENDPOINT and settings.AZURE_OPENAI_API_KEY:
        return True
    logger.warning(
        "LLM_PROVIDER=azure_openai but credentials missing, falling back to Gemini"
    )
    return False


def _validate_gemini_credentials() -> bool:
    if get_settings().GEMINI_API_KEY:
        return True
    logger.warning("Gemini API key not configured")
    return False


def _create_azure_model(
    model_name: str, http_client: AsyncClient | None = None
) -> Model:
    """Azure OpenAI chat model; reasoning deployments run at low effort."""
    from openai import AsyncAzureOpenAI

    settings = get_settings()
    client = AsyncAzureOpenAI(
        azure_endpoint=_normalize_azure_endpoint(settings.AZURE_OPENAI_ENDPOINT or ""),
        api_key=settings.AZURE_OPENAI_API_KEY,
        api_version=settings.AZURE_OPENAI_API_VERSION,
        http_client=http_client,
    )
    provider = OpenAIProvider(openai_client=client)

    if model_name not in REASONING_MODELS:
        return OpenAIChatModel(model_name, provider=provider)
    logger.info("Using low reasoning effort for %s", model_name)
    return OpenAIChatModel(
        model_name,
        provider=provider,
        settings={"openai_reasoning_effort": "low"},
    )


def _create_gemini_model(
    model_name: str, http_client: AsyncClient | None = None
) -> Model:
    provider = GoogleProvider(
        api_key=get_settings().GEMINI_API_KEY, http_client=http_client
    )
    return cast(Model, GoogleModel(model_name, provider=provider))


def get_extraction_model(http_client: AsyncClient | None = None) -> Model:
    """Model used for session extraction, for the configured provider.

    Args:
        http_client: Optional HTTP client (custom retries, test transports).

    Raises:
        ValueError: If neither Azure OpenAI nor Gemini has usable credentials.
    """
    model_name = get_settings().EXTRACTION_MODEL

    if _is_azure_provider() and _validate_azure_credentials():
        logger.info("Extraction model: Azure OpenAI deployment %s", model_name)
        return _create_azure_model(model_name, http_client)

    if not _validate_gemini_credentials():
        raise ValueError(
            "No valid LLM provider configured. Set AZURE_OPENAI_ENDPOINT and "
            "AZURE_OPENAI_API_KEY, or GEMINI_API_KEY."
        )

    logger.info("Extraction model: Gemini %s", model_name)
    return _create_gemini_model(model_name, http_client)


def get_extraction_model_settings() -> ModelSettings:
    """Per-request settings: transport timeout and deterministic sampling."""
    return ModelSettings(
        timeout=get_settings().EXTRACTION_TIMEOUT_SECONDS, temperature=0.0
    )
