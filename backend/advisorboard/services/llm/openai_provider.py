"""
OpenAI chat completions adapter.

POST {base_url}/chat/completions with a bearer token; content is read from
choices[0].message.content and usage from prompt/completion/total tokens.
"""
from typing import Any

from advisorboard.core.config import ProviderName
from advisorboard.models.llm import LLMConfig, NormalizedResponse
from advisorboard.services.llm.base import BaseLLMProvider, VendorRequest


class OpenAIProvider(BaseLLMProvider):
    name = ProviderName.OPENAI.value
    default_model = "gpt-3.5-turbo"
    default_base_url = "https://api.openai.com/v1"

    def build_request(self, prompt: str, config: LLMConfig) -> VendorRequest:
        payload = {
            "model": config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        headers = {"Authorization": f"Bearer {config.api_key}"}
        return "/chat/completions", headers, {}, payload

    def parse_response(self, data: Any, config: LLMConfig) -> NormalizedResponse:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices, list):
            raise self._invalid("Invalid response structure from OpenAI API")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not content or not isinstance(content, str):
            raise self._invalid("Invalid response structure from OpenAI API")

        usage = data.get("usage")
        return NormalizedResponse(
            content=content,
            usage=self._usage(
                usage.get("prompt_tokens"),
                usage.get("completion_tokens"),
                usage.get("total_tokens"),
            ) if isinstance(usage, dict) else None,
            model=data.get("model") or config.model,
            provider=self.name,
        )
