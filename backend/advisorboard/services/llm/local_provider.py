"""
Local model adapter (Ollama-compatible HTTP API).

POST {base_url}/api/generate with stream disabled. No API key is needed,
so the provider is always available; reachability is checked with
test_connection (GET /api/tags).
"""
from typing import Any, Optional

import httpx

from advisorboard.core.config import ProviderName
from advisorboard.core.logging import get_logger
from advisorboard.models.llm import LLMConfig, NormalizedResponse
from advisorboard.services.llm.base import BaseLLMProvider, VendorRequest

logger = get_logger(__name__)


class LocalProvider(BaseLLMProvider):
    name = ProviderName.LOCAL.value
    default_model = "llama2"
    default_base_url = "http://localhost:11434"
    requires_api_key = False

    def build_request(self, prompt: str, config: LLMConfig) -> VendorRequest:
        payload = {
            "model": config.model,
            "prompt": prompt,
            "options": {
                "temperature": config.temperature,
                "num_predict": config.max_tokens,
            },
            "stream": False,
        }
        return "/api/generate", {}, {}, payload

    def parse_response(self, data: Any, config: LLMConfig) -> NormalizedResponse:
        content = data.get("response") if isinstance(data, dict) else None
        if not content or not isinstance(content, str):
            raise self._invalid("Invalid response structure from local model API")

        prompt_tokens = data.get("prompt_eval_count")
        completion_tokens = data.get("eval_count")
        usage = None
        if prompt_tokens or completion_tokens:
            usage = self._usage(prompt_tokens, completion_tokens)

        return NormalizedResponse(
            content=content,
            usage=usage,
            model=config.model,
            provider=self.name,
        )

    async def test_connection(self, api_key: Optional[str] = None) -> bool:
        try:
            response = await self._get(f"{self.base_url}/api/tags", timeout_seconds=5.0)
        except httpx.HTTPError as exc:
            logger.info(
                "llm_connection_test_failed",
                provider=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False
        return response.is_success
