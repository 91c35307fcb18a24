"""
LLM integration layer: one facade over all provider adapters.

Responsibilities:
- Registry of adapters (built-in providers plus custom ones registered at startup)
- Active provider selection and failover in a fixed, typed order:
  first provider, then `provider_order`, then custom providers
- Shared response cache (successes only, TTL plus size bound)
- Per-provider circuit breakers
- Validated partial configuration updates

Failures flow as Ok/Err values; only misuse (unknown provider names,
invalid configuration) raises.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from advisorboard.core.cache import ResponseCache, make_cache_key
from advisorboard.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from advisorboard.core.config import (
    BUILTIN_PROVIDERS,
    EnvironmentConfig,
    ProviderName,
    load_config_from_env,
    merge_config,
    validate_config,
)
from advisorboard.core.errors import ConfigurationError, ProviderError, ServiceUnavailableError
from advisorboard.core.logging import get_logger
from advisorboard.core.metrics import record_llm_failover
from advisorboard.models.llm import Err, LLMOverrides, NormalizedResponse, Ok, ProviderResult
from advisorboard.services.llm.anthropic_provider import AnthropicProvider
from advisorboard.services.llm.base import BaseLLMProvider
from advisorboard.services.llm.gemini_provider import GeminiProvider
from advisorboard.services.llm.local_provider import LocalProvider
from advisorboard.services.llm.openai_provider import OpenAIProvider

logger = get_logger(__name__)

PROVIDER_CLASSES = {
    ProviderName.OPENAI.value: OpenAIProvider,
    ProviderName.ANTHROPIC.value: AnthropicProvider,
    ProviderName.GEMINI.value: GeminiProvider,
    ProviderName.LOCAL.value: LocalProvider,
}


def build_default_providers(
    config: EnvironmentConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> List[BaseLLMProvider]:
    """Instantiate every built-in adapter with its settings from `config`."""
    return [
        PROVIDER_CLASSES[name](
            settings=config.providers.get(name),
            retry_policy=config.retry_policy,
            transport=transport,
            sleep=sleep,
        )
        for name in BUILTIN_PROVIDERS
    ]


class LLMIntegrationLayer:
    """Multi-provider facade with failover, caching and circuit breaking."""

    def __init__(
        self,
        config: Optional[EnvironmentConfig] = None,
        providers: Optional[Iterable[BaseLLMProvider]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: Environment configuration (defaults to EnvironmentConfig())
            providers: Adapters to register; the built-in set when omitted
            transport: httpx transport passed to built-in adapters
            sleep: Backoff sleep passed to built-in adapters
            clock: Monotonic clock for the cache and circuit breakers

        Raises:
            ConfigurationError: if the configuration does not validate
        """
        self._config = (config or EnvironmentConfig()).model_copy(deep=True)
        self._clock = clock
        self._providers: Dict[str, BaseLLMProvider] = {}
        self._custom_providers: List[str] = []
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._owned_providers: List[str] = []

        if providers is None:
            for provider in build_default_providers(self._config, transport=transport, sleep=sleep):
                self.register_provider(provider)
                self._owned_providers.append(provider.name)
        else:
            for provider in providers:
                self.register_provider(provider)

        self._check_config(self._config)
        self._active_provider = self._config.default_provider
        self._cache: ResponseCache[NormalizedResponse] = ResponseCache(
            ttl_seconds=self._config.cache_ttl_seconds,
            max_entries=self._config.cache_max_entries,
            cache_type="llm",
            clock=clock,
        )

        logger.info(
            "llm_integration_initialized",
            providers=list(self._providers.keys()),
            active_provider=self._active_provider,
            caching=self._config.enable_caching,
        )

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_provider(self, provider: BaseLLMProvider) -> None:
        """Add or replace an adapter. Non built-in names join the failover tail."""
        replaced = provider.name in self._providers
        self._providers[provider.name] = provider
        self._breakers.pop(provider.name, None)
        if provider.name in self._owned_providers:
            self._owned_providers.remove(provider.name)
        if provider.name not in BUILTIN_PROVIDERS and provider.name not in self._custom_providers:
            self._custom_providers.append(provider.name)
        logger.info("llm_provider_registered", provider=provider.name, replaced=replaced)

    def get_provider(self, name: str) -> BaseLLMProvider:
        provider = self._providers.get(name)
        if provider is None:
            raise ConfigurationError(f"Provider '{name}' is not registered", provider=name)
        return provider

    def set_active_provider(self, name: str) -> None:
        if name not in self._providers:
            raise ConfigurationError(f"Provider '{name}' is not registered", provider=name)
        previous = self._active_provider
        self._active_provider = name
        logger.info("llm_active_provider_changed", previous=previous, provider=name)

    def get_active_provider(self) -> str:
        return self._active_provider

    def get_available_providers(self) -> List[str]:
        """Names of all registered providers."""
        return list(self._providers.keys())

    def failover_order(self, first: Optional[str] = None) -> List[str]:
        """Providers in the order they are attempted; unregistered names are skipped."""
        order: List[str] = []
        candidates = [first or self._active_provider, *self._config.provider_order, *self._custom_providers]
        for name in candidates:
            if name in self._providers and name not in order:
                order.append(name)
        return order

    def _breaker_for(self, name: str) -> Optional[CircuitBreaker]:
        if not self._config.circuit_breaker_enabled:
            return None
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(name=f"llm_{name}", clock=self._clock)
            self._breakers[name] = breaker
        return breaker

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _cache_key(self, prompt: str, first: str, overrides: LLMOverrides) -> str:
        return make_cache_key(
            "llm",
            prompt,
            first,
            overrides.model,
            overrides.temperature,
            overrides.max_tokens,
        )

    @staticmethod
    def _overrides_for(name: str, first: str, overrides: LLMOverrides) -> LLMOverrides:
        # Model and key overrides target the first provider only.
        if name == first:
            return overrides
        return overrides.model_copy(update={"model": None, "api_key": None})

    async def generate(
        self,
        prompt: str,
        overrides: Optional[LLMOverrides] = None,
    ) -> ProviderResult:
        """
        Generate a response with caching and provider failover.

        Args:
            prompt: Fully built prompt text
            overrides: Optional per-call provider/model/parameter overrides

        Returns:
            Ok(NormalizedResponse) from the first provider that succeeds, or
            Err(last ProviderError) when every provider failed

        Raises:
            ConfigurationError: if overrides name an unregistered provider
        """
        overrides = overrides or LLMOverrides()
        first = overrides.provider or self._active_provider
        if first not in self._providers:
            raise ConfigurationError(f"Provider '{first}' is not registered", provider=first)

        cache_key = self._cache_key(prompt, first, overrides)
        if self._config.enable_caching:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("llm_cache_hit", provider=cached.provider)
                return Ok(cached)

        timeout_seconds = overrides.timeout_seconds or self._config.response_timeout_seconds
        last_error: Optional[ProviderError] = None
        failed: List[str] = []

        for name in self.failover_order(first):
            provider = self._providers[name]
            if not provider.is_available():
                logger.debug("llm_provider_skipped", provider=name, reason="unavailable")
                continue

            config = provider.build_config(
                self._overrides_for(name, first, overrides),
                timeout_seconds=timeout_seconds,
            )
            errors = provider.validation_errors(config)
            if errors:
                last_error = ConfigurationError(
                    f"Invalid {name} configuration: {'; '.join(errors)}",
                    provider=name,
                )
                failed.append(name)
                logger.warning("llm_provider_skipped", provider=name, reason="invalid_config", errors=errors)
                continue

            breaker = self._breaker_for(name)
            if breaker is not None and not breaker.allow_request():
                last_error = CircuitBreakerOpenError(name, breaker.state)
                failed.append(name)
                logger.warning("llm_circuit_open", provider=name)
                continue

            try:
                result = await provider.call(prompt, config)
            except asyncio.CancelledError:
                # Cancelled by a caller timeout: counts as a failure and frees a half-open probe.
                if breaker is not None:
                    breaker.record_failure()
                logger.warning("llm_provider_call_cancelled", provider=name)
                raise

            if isinstance(result, Ok):
                if breaker is not None:
                    breaker.record_success()
                if self._config.enable_caching:
                    self._cache.set(cache_key, result.value)
                if failed:
                    logger.info("llm_failover_succeeded", provider=name, failed_providers=failed)
                return result

            if breaker is not None:
                breaker.record_failure()
            last_error = result.error
            failed.append(name)
            record_llm_failover(name)
            logger.warning(
                "llm_failover",
                provider=name,
                kind=result.error.kind.value,
                error=result.error.message,
            )

        if last_error is None:
            last_error = ServiceUnavailableError(
                "All LLM providers are unavailable",
                provider="none",
                retryable=False,
            )
        logger.error(
            "llm_all_providers_failed",
            failed_providers=failed,
            kind=last_error.kind.value,
            error=last_error.message,
        )
        return Err(last_error)

    async def generate_response(
        self,
        prompt: str,
        overrides: Optional[LLMOverrides] = None,
    ) -> NormalizedResponse:
        """Like generate(), but raises the last ProviderError on total failure."""
        result = await self.generate(prompt, overrides)
        return result.unwrap()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def test_provider(self, name: str, api_key: Optional[str] = None) -> bool:
        provider = self._providers.get(name)
        if provider is None:
            return False
        return await provider.test_connection(api_key)

    async def get_provider_status(self) -> Dict[str, bool]:
        """Availability plus a live connectivity probe per provider."""
        status: Dict[str, bool] = {}
        for name, provider in self._providers.items():
            status[name] = provider.is_available() and await self.test_provider(name)
        return status

    def circuit_breaker_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {name: breaker.get_metrics() for name, breaker in self._breakers.items()}

    # ------------------------------------------------------------------
    # Cache and configuration
    # ------------------------------------------------------------------

    def clear_cache(self) -> int:
        return self._cache.clear()

    def cache_stats(self) -> Dict[str, Any]:
        return self._cache.stats()

    def get_config(self) -> EnvironmentConfig:
        return self._config.model_copy(deep=True)

    def _check_config(self, config: EnvironmentConfig) -> None:
        result = validate_config(config, self._providers.keys())
        for warning in result.warnings:
            logger.warning("llm_config_warning", warning=warning)
        if not result.valid:
            raise ConfigurationError(
                f"Invalid LLM configuration: {'; '.join(result.errors)}",
                provider="config",
            )

    def update_config(self, updates: Union[EnvironmentConfig, Mapping[str, Any]]) -> EnvironmentConfig:
        """
        Merge a partial update over the current configuration.

        Nothing is applied when the merged configuration fails validation.

        Raises:
            ConfigurationError: if the merged configuration is invalid
        """
        if isinstance(updates, EnvironmentConfig):
            updates = updates.model_dump()
        new_config = merge_config(self._config, updates)
        self._check_config(new_config)

        self._config = new_config
        if "default_provider" in updates:
            self._active_provider = new_config.default_provider
        self._cache.ttl_seconds = new_config.cache_ttl_seconds
        self._cache.max_entries = new_config.cache_max_entries
        for name in self._owned_providers:
            provider = self._providers[name]
            provider.retry_policy = new_config.retry_policy
            settings = new_config.providers.get(name)
            if settings != provider.settings:
                provider.apply_settings(settings)
                logger.info("llm_provider_settings_updated", provider=name)
        if not new_config.circuit_breaker_enabled:
            self._breakers.clear()

        logger.info("llm_config_updated", keys=sorted(updates.keys()))
        return self.get_config()


_integration_layer: Optional[LLMIntegrationLayer] = None


def get_llm_integration_layer() -> LLMIntegrationLayer:
    """
    Get global integration layer instance, configured from the environment.
    """
    global _integration_layer
    if _integration_layer is None:
        _integration_layer = LLMIntegrationLayer(load_config_from_env())
    return _integration_layer


def reset_llm_integration_layer() -> None:
    global _integration_layer
    _integration_layer = None
