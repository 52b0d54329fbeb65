"""Model factory for the summary agents.

Supports Gemini and Azure OpenAI based on configuration. Azure is used when
LLM_PROVIDER=azure_openai and its credentials are complete; otherwise the
factory falls back to Gemini.

Usage:
    from services.ai.model_factory import get_text_model, is_generation_configured

    if is_generation_configured():
        model = get_text_model()  # pydantic-ai Model
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.openai import OpenAIProvider

from core.config import get_settings
from services.ai.exceptions import NotConfigured


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)


def _normalize_azure_endpoint(endpoint: str) -> str:
    """Strip trailing slashes; Azure treats `//openai/...` as a different path."""
    return endpoint.rstrip("/")


def _is_azure_provider() -> bool:
    return get_settings().LLM_PROVIDER == "azure_openai"


def _has_azure_credentials() -> bool:
    settings = get_settings()
    return bool(
        settings.AZURE_OPENAI_ENDPOINT
        and settings.AZURE_OPENAI_API_KEY
        and settings.AZURE_OPENAI_API_VERSION
    )


def _has_gemini_credentials() -> bool:
    key = get_settings().GEMINI_API_KEY
    return bool(key and key.strip())


def is_generation_configured() -> bool:
    """True when at least one provider has a usable credential."""
    if _is_azure_provider() and _has_azure_credentials():
        return True
    return _has_gemini_credentials()


def _create_azure_model(
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    settings = get_settings()

    from openai import AsyncAzureOpenAI

    azure_client = AsyncAzureOpenAI(
        azure_endpoint=_normalize_azure_endpoint(settings.AZURE_OPENAI_ENDPOINT or ""),
        api_key=settings.AZURE_OPENAI_API_KEY,
        api_version=settings.AZURE_OPENAI_API_VERSION,
        http_client=http_client,
    )
    provider = OpenAIProvider(openai_client=azure_client)
    return OpenAIModel(model_name, provider=provider)


def _create_gemini_model(
    model_name: str,
    http_client: AsyncClient | None = None,
) -> Model:
    settings = get_settings()
    provider = GoogleProvider(
        api_key=settings.GEMINI_API_KEY,
        http_client=http_client,
    )
    return cast(Model, GoogleModel(model_name, provider=provider))


def get_text_model(http_client: AsyncClient | None = None) -> Model:
    """Get the text model used by every summary agent.

    Args:
        http_client: Optional HTTP client for custom transport settings.

    Returns:
        A pydantic-ai Model configured for the selected provider.

    Raises:
        NotConfigured: If no provider has usable credentials.
    """
    settings = get_settings()

    if _is_azure_provider():
        if _has_azure_credentials():
            logger.info(f"Using Azure OpenAI text model: {settings.TEXT_MODEL}")
            return _create_azure_model(settings.TEXT_MODEL, http_client)
        logger.warning(
            "LLM_PROVIDER=azure_openai but credentials missing, falling back to Gemini"
        )

    if not _has_gemini_credentials():
        raise NotConfigured(
            "No valid LLM provider configured. Set Azure OpenAI credentials "
            "(AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY + "
            "AZURE_OPENAI_API_VERSION) or GEMINI_API_KEY."
        )

    logger.info(f"Using Gemini text model: {settings.TEXT_MODEL}")
    return _create_gemini_model(settings.TEXT_MODEL, http_client)
