"""
Google Gemini generateContent adapter.

POST {base_url}/models/{model}:generateContent?key=... ; the text is the
concatenation of candidates[0].content.parts[].text.
"""
from typing import Any

from advisorboard.core.config import ProviderName
from advisorboard.models.llm import LLMConfig, NormalizedResponse
from advisorboard.services.llm.base import BaseLLMProvider, VendorRequest


class GeminiProvider(BaseLLMProvider):
    name = ProviderName.GEMINI.value
    default_model = "gemini-1.5-flash"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    def build_request(self, prompt: str, config: LLMConfig) -> VendorRequest:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": config.temperature,
                "maxOutputTokens": config.max_tokens,
                "topP": 0.8,
                "topK": 10,
            },
        }
        # Key goes in the query string; never log the full URL.
        params = {"key": config.api_key or ""}
        return f"/models/{config.model}:generateContent", {}, params, payload

    def parse_response(self, data: Any, config: LLMConfig) -> NormalizedResponse:
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates or not isinstance(candidates, list):
            raise self._invalid("Invalid response structure from Gemini API")

        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not parts or not isinstance(parts, list):
            raise self._invalid("No content found in Gemini response")

        text = "".join(
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        if not text:
            raise self._invalid("No text content found in Gemini response")

        usage = data.get("usageMetadata")
        return NormalizedResponse(
            content=text,
            usage=self._usage(
                usage.get("promptTokenCount"),
                usage.get("candidatesTokenCount"),
                usage.get("totalTokenCount"),
            ) if isinstance(usage, dict) else None,
            model=config.model,
            provider=self.name,
        )
