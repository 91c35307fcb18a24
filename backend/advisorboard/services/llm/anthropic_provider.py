"""
Anthropic messages adapter.

POST {base_url}/v1/messages with x-api-key and a pinned anthropic-version.
Temperature is limited to [0, 1]. Total tokens are input + output.
"""
from typing import Any

from advisorboard.core.config import ProviderName
from advisorboard.models.llm import LLMConfig, NormalizedResponse
from advisorboard.services.llm.base import BaseLLMProvider, VendorRequest

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseLLMProvider):
    name = ProviderName.ANTHROPIC.value
    default_model = "claude-3-sonnet-20240229"
    default_base_url = "https://api.anthropic.com"
    temperature_range = (0.0, 1.0)

    def build_request(self, prompt: str, config: LLMConfig) -> VendorRequest:
        payload = {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": config.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }
        return "/v1/messages", headers, {}, payload

    def parse_response(self, data: Any, config: LLMConfig) -> NormalizedResponse:
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise self._invalid("Invalid response structure from Anthropic API")

        text = next(
            (
                block.get("text")
                for block in blocks
                if isinstance(block, dict) and block.get("type") == "text"
            ),
            None,
        )
        if not text or not isinstance(text, str):
            raise self._invalid("No text content found in Anthropic response")

        usage = data.get("usage")
        return NormalizedResponse(
            content=text,
            usage=self._usage(
                usage.get("input_tokens"),
                usage.get("output_tokens"),
            ) if isinstance(usage, dict) else None,
            model=data.get("model") or config.model,
            provider=self.name,
        )
