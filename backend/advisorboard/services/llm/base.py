"""
Base class for LLM provider adapters.

An adapter turns a prompt plus LLMConfig into one vendor HTTP call (httpx,
no vendor SDKs) and normalizes the reply. Shared behaviour lives here:

- validation before any network call (ConfigurationError, non-retryable)
- per-attempt timeout via asyncio.wait_for; expiry cancels the request
- HTTP status and transport failures mapped onto the error taxonomy
- execute_with_retry: exponential backoff for retryable errors only,
  at most max_retries + 1 attempts, last error re-raised unchanged
"""
import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

import httpx

from advisorboard.core.config import ProviderSettings, RetryPolicy, retry_policy_errors
from advisorboard.core.errors import (
    ConfigurationError,
    InvalidResponseError,
    NetworkError,
    ProviderError,
    ResponseTimeoutError,
    ServiceUnavailableError,
    error_from_status,
)
from advisorboard.core.logging import get_logger
from advisorboard.core.metrics import (
    record_llm_error,
    record_llm_request,
    record_llm_retry,
    record_llm_tokens,
)
from advisorboard.models.llm import (
    Err,
    LLMConfig,
    LLMOverrides,
    NormalizedResponse,
    Ok,
    ProviderResult,
    TokenUsage,
)

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TIMEOUT_SECONDS = 30.0

# (path, headers, query params, json payload)
VendorRequest = Tuple[str, Dict[str, str], Dict[str, str], Dict[str, Any]]


class BaseLLMProvider(ABC):
    """Abstract LLM provider adapter."""

    name: str = "base"
    default_model: str = ""
    default_base_url: str = ""
    requires_api_key: bool = True
    temperature_range: Tuple[float, float] = (0.0, 2.0)

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            settings: Credentials and defaults for this provider
            retry_policy: Backoff policy for this adapter's attempts
            transport: Optional httpx transport (tests inject MockTransport)
            sleep: Non-blocking sleep used between retries
        """
        self.retry_policy = retry_policy or RetryPolicy()
        errors = retry_policy_errors(self.retry_policy)
        if errors:
            raise ConfigurationError("; ".join(errors), provider=self.name)
        self.apply_settings(settings)
        self._transport = transport
        self._sleep = sleep

    def apply_settings(self, settings: Optional[ProviderSettings]) -> None:
        """Replace credentials and defaults; later calls use the new values."""
        self.settings = settings or ProviderSettings()
        self.base_url = (self.settings.base_url or self.default_base_url).rstrip("/")

    # ------------------------------------------------------------------
    # Vendor-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def build_request(self, prompt: str, config: LLMConfig) -> VendorRequest:
        """Return (path, headers, params, payload) for one vendor call."""

    @abstractmethod
    def parse_response(self, data: Any, config: LLMConfig) -> NormalizedResponse:
        """Normalize a 2xx body; raise InvalidResponseError on shape mismatch."""

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def is_available(self) -> bool:
        """A provider is available when it has the credentials it needs."""
        if not self.requires_api_key:
            return True
        return bool(self.settings.api_key)

    def get_default_config(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "model": self.settings.model or self.default_model,
            "temperature": (
                self.settings.temperature
                if self.settings.temperature is not None
                else DEFAULT_TEMPERATURE
            ),
            "max_tokens": self.settings.max_tokens or DEFAULT_MAX_TOKENS,
            "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        }

    def build_config(
        self,
        overrides: Optional[LLMOverrides] = None,
        timeout_seconds: Optional[float] = None,
    ) -> LLMConfig:
        """Defaults, then settings, then per-call overrides."""
        values = self.get_default_config()
        values["api_key"] = self.settings.api_key
        values["base_url"] = self.base_url
        if timeout_seconds is not None:
            values["timeout_seconds"] = timeout_seconds
        if overrides is not None:
            for key, value in overrides.model_dump(exclude_none=True).items():
                if key != "provider":
                    values[key] = value
        return LLMConfig(**values)

    def validation_errors(self, config: LLMConfig) -> List[str]:
        errors: List[str] = []
        if config.provider != self.name:
            errors.append(f"config is for provider '{config.provider}', not '{self.name}'")
        if self.requires_api_key and not (config.api_key and config.api_key.strip()):
            errors.append("API key is required")
        if not config.model:
            errors.append("model is required")
        low, high = self.temperature_range
        if not low <= config.temperature <= high:
            errors.append(f"temperature must be within [{low}, {high}]")
        if config.max_tokens < 1:
            errors.append("max_tokens must be >= 1")
        if config.timeout_seconds <= 0:
            errors.append("timeout_seconds must be > 0")
        return errors

    def validate_config(self, config: LLMConfig) -> bool:
        return not self.validation_errors(config)

    async def call_api(
        self,
        prompt: str,
        config: LLMConfig,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> NormalizedResponse:
        """
        Generate a response, retrying transient failures.

        Raises:
            ConfigurationError: config rejected before any network call
            ProviderError: last error after retries are exhausted
        """
        errors = self.validation_errors(config)
        if errors:
            raise ConfigurationError(
                f"Invalid {self.name} configuration: {'; '.join(errors)}",
                provider=self.name,
            )
        return await self.execute_with_retry(
            lambda: self._attempt(prompt, config),
            retry_policy=retry_policy,
        )

    async def call(
        self,
        prompt: str,
        config: LLMConfig,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> ProviderResult:
        """call_api with the outcome returned as Ok/Err instead of raised."""
        start = time.perf_counter()
        try:
            response = await self.call_api(prompt, config, retry_policy=retry_policy)
        except ProviderError as exc:
            record_llm_request(self.name, False, time.perf_counter() - start)
            record_llm_error(self.name, exc.kind.value)
            logger.warning(
                "llm_provider_call_failed",
                provider=self.name,
                model=config.model,
                kind=exc.kind.value,
                retryable=exc.retryable,
                error=exc.message,
                error_type=type(exc).__name__,
            )
            return Err(exc)

        record_llm_request(self.name, True, time.perf_counter() - start)
        if response.usage is not None:
            record_llm_tokens(
                self.name,
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
            )
        return Ok(response)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_policy: Optional[RetryPolicy] = None,
    ) -> T:
        """
        Run `operation` with exponential backoff.

        Non-retryable ProviderErrors are re-raised after one attempt. Any
        other exception type is not retried.
        """
        policy = retry_policy or self.retry_policy
        last_error: Optional[ProviderError] = None

        for attempt in range(policy.max_retries + 1):
            try:
                return await operation()
            except ProviderError as exc:
                last_error = exc
                if not exc.retryable:
                    raise
                if attempt == policy.max_retries:
                    break
                delay = policy.delay_for_attempt(attempt)
                record_llm_retry(self.name)
                logger.info(
                    "llm_retry_scheduled",
                    provider=self.name,
                    attempt=attempt + 1,
                    max_retries=policy.max_retries,
                    delay_seconds=delay,
                    kind=exc.kind.value,
                )
                await self._sleep(delay)

        raise last_error

    async def test_connection(self, api_key: Optional[str] = None) -> bool:
        """Send a tiny prompt and report whether it succeeded."""
        config = self.build_config(LLMOverrides(max_tokens=5, api_key=api_key))
        try:
            await self.call_api("Test", config)
            return True
        except ProviderError as exc:
            logger.info(
                "llm_connection_test_failed",
                provider=self.name,
                kind=exc.kind.value,
                error=exc.message,
            )
            return False

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _post(
        self,
        url: str,
        headers: Dict[str, str],
        params: Dict[str, str],
        json_payload: Dict[str, Any],
        timeout_seconds: float,
    ) -> httpx.Response:
        """Low-level POST helper."""
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
            return await client.post(url, headers=headers, params=params or None, json=json_payload)

    async def _get(self, url: str, timeout_seconds: float) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
            return await client.get(url)

    async def _attempt(self, prompt: str, config: LLMConfig) -> NormalizedResponse:
        try:
            return await self._send(prompt, config)
        except ProviderError:
            raise
        except Exception as exc:
            logger.error(
                "llm_unexpected_error",
                provider=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise ServiceUnavailableError(str(exc) or type(exc).__name__, provider=self.name) from exc

    async def _send(self, prompt: str, config: LLMConfig) -> NormalizedResponse:
        path, headers, params, payload = self.build_request(prompt, config)
        base_url = (config.base_url or self.base_url).rstrip("/")
        headers = {"Content-Type": "application/json", **headers}

        try:
            response = await asyncio.wait_for(
                self._post(f"{base_url}{path}", headers, params, payload, config.timeout_seconds),
                timeout=config.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ResponseTimeoutError(
                f"Request timeout after {config.timeout_seconds}s",
                provider=self.name,
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"Network connection failed: {type(exc).__name__}",
                provider=self.name,
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError(str(exc) or "Unknown API error", provider=self.name) from exc

        if not response.is_success:
            raise error_from_status(response.status_code, self.name, self._error_detail(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                f"Response from {self.name} is not valid JSON",
                provider=self.name,
            ) from exc

        if not data:
            raise InvalidResponseError("Empty response received from API", provider=self.name)

        return self.parse_response(data, config)

    @staticmethod
    def _error_detail(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                return error.get("message")
            if isinstance(error, str):
                return error
        return None

    def _invalid(self, message: str) -> InvalidResponseError:
        return InvalidResponseError(message, provider=self.name)

    @staticmethod
    def _usage(prompt_tokens: Any, completion_tokens: Any, total_tokens: Any = None) -> TokenUsage:
        prompt = int(prompt_tokens or 0)
        completion = int(completion_tokens or 0)
        total = int(total_tokens) if total_tokens is not None else prompt + completion
        return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)
