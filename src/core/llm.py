"""Chat model selection across the supported providers."""

from enum import Enum
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq
from langchain_openai import ChatOpenAI

from src.config import settings
from src.core.costs import CostTracker, CostTrackingHandler
from src.core.exceptions import ConfigurationError
from src.core.logging import get_logger

logger = get_logger("llm")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class AIProvider(str, Enum):
    """Supported model providers."""

    GROQ = "GROQ"
    GEMINI = "GEMINI"
    OPENROUTER = "OPENROUTER"


# Settings attribute holding each provider's credential
PROVIDER_CREDENTIALS = {
    AIProvider.GROQ: "groq_api_key",
    AIProvider.GEMINI: "google_gemini_api_key",
    AIProvider.OPENROUTER: "openrouter_api_key",
}


def resolve_provider(provider: Optional[str]) -> AIProvider:
    """Map a configured provider name onto AIProvider, or fail."""
    if not provider:
        raise ConfigurationError("AI_PROVIDER is not configured")
    try:
        return AIProvider(provider.strip().upper())
    except ValueError:
        raise ConfigurationError(
            f"Unsupported AI provider: {provider}",
            details={"supported": [p.value for p in AIProvider]},
        ) from None


def get_chat_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    cost_tracker: Optional[CostTracker] = None,
    temperature: Optional[float] = None,
) -> BaseChatModel:
    """Get a chat model for the configured provider, bound to cost tracking.

    Raises ConfigurationError when the provider is unknown, the model is not
    set, or the provider's credential is missing. Nothing falls back to another
    provider.
    """
    ai_provider = resolve_provider(provider or settings.ai_provider)
    model_name = model or settings.ai_provider_model
    if not model_name:
        raise ConfigurationError("AI_PROVIDER_MODEL is not configured")

    api_key = getattr(settings, PROVIDER_CREDENTIALS[ai_provider])
    if not api_key:
        raise ConfigurationError(f"API KEY for provider: {ai_provider.value} is not provided!")

    temperature = settings.llm_temperature if temperature is None else temperature
    callbacks = []
    if cost_tracker is not None:
        callbacks.append(CostTrackingHandler(cost_tracker, default_model=model_name))

    logger.info(f"[LLM] Using {ai_provider.value}: {model_name}")

    if ai_provider is AIProvider.GROQ:
        return ChatGroq(
            model=model_name,
            api_key=api_key,
            temperature=temperature,
            max_retries=settings.llm_max_retries,
            callbacks=callbacks,
        )

    if ai_provider is AIProvider.GEMINI:
        return ChatGoogleGenerativeAI(
            model=model_name,
            google_api_key=api_key,
            temperature=temperature,
            max_retries=settings.llm_max_retries,
            callbacks=callbacks,
        )

    return ChatOpenAI(
        model=model_name,
        api_key=api_key,
        base_url=OPENROUTER_BASE_URL,
        temperature=temperature,
        max_retries=settings.llm_max_retries,
        callbacks=callbacks,
    )
