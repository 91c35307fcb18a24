from advisorboard.services.llm.anthropic_provider import AnthropicProvider
from advisorboard.services.llm.base import BaseLLMProvider
from advisorboard.services.llm.gemini_provider import GeminiProvider
from advisorboard.services.llm.integration import (
    LLMIntegrationLayer,
    build_default_providers,
    get_llm_integration_layer,
)
from advisorboard.services.llm.local_provider import LocalProvider
from advisorboard.services.llm.openai_provider import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "BaseLLMProvider",
    "GeminiProvider",
    "LLMIntegrationLayer",
    "LocalProvider",
    "OpenAIProvider",
    "build_default_providers",
    "get_llm_integration_layer",
]
