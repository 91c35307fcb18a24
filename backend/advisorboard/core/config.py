"""
Configuration for the LLM integration layer and the response orchestrator.

Environment configuration (all optional):
- OPENAI_API_KEY, OPENAI_MODEL, OPENAI_BASE_URL, OPENAI_TEMPERATURE, OPENAI_MAX_TOKENS
- ANTHROPIC_API_KEY, ANTHROPIC_MODEL, ANTHROPIC_BASE_URL, ANTHROPIC_TEMPERATURE, ANTHROPIC_MAX_TOKENS
- GEMINI_API_KEY (or GOOGLE_API_KEY), GEMINI_MODEL, GEMINI_BASE_URL, GEMINI_TEMPERATURE, GEMINI_MAX_TOKENS
- LOCAL_LLM_BASE_URL, LOCAL_LLM_MODEL, LOCAL_TEMPERATURE, LOCAL_MAX_TOKENS
- LLM_DEFAULT_PROVIDER: default provider (first configured provider when unset)
- LLM_PROVIDER_ORDER: comma separated failover order (default: openai,anthropic,gemini,local)
- LLM_ENABLE_CACHING, LLM_CACHE_TTL_SECONDS, LLM_CACHE_MAX_ENTRIES
- LLM_MAX_CONCURRENT_REQUESTS, LLM_RESPONSE_TIMEOUT_SECONDS
- LLM_MAX_RETRIES, LLM_BASE_DELAY_SECONDS, LLM_MAX_DELAY_SECONDS, LLM_BACKOFF_MULTIPLIER
- LLM_FALLBACK_TO_STATIC, LLM_CIRCUIT_BREAKER_ENABLED

Validation is a pure function returning a ConfigValidationResult; callers
decide whether to raise.
"""
import os
from copy import deepcopy
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from advisorboard.core.logging import get_logger

logger = get_logger(__name__)


class ProviderName(str, Enum):
    """Built-in LLM providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    LOCAL = "local"


BUILTIN_PROVIDERS: List[str] = [p.value for p in ProviderName]

# Providers that can be called without an API key.
KEYLESS_PROVIDERS = {ProviderName.LOCAL.value}


class ProviderSettings(BaseModel):
    """Credentials and generation defaults for one provider."""

    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def __repr__(self) -> str:
        # Keep keys out of reprs and logs.
        key = "***" if self.api_key else None
        return (
            f"ProviderSettings(api_key={key!r}, model={self.model!r}, "
            f"base_url={self.base_url!r}, temperature={self.temperature!r}, "
            f"max_tokens={self.max_tokens!r})"
        )


class RetryPolicy(BaseModel):
    """Exponential backoff policy for adapter retries (durations in seconds)."""

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    backoff_multiplier: float = 2.0

    def delay_for_attempt(self, attempt: int) -> float:
        """
        Backoff before retry number `attempt + 1`.

        Args:
            attempt: Zero-based index of the attempt that just failed
        """
        return min(
            self.base_delay_seconds * (self.backoff_multiplier ** attempt),
            self.max_delay_seconds,
        )


class EnvironmentConfig(BaseModel):
    """Full configuration surface consumed by the integration layer."""

    providers: Dict[str, ProviderSettings] = Field(default_factory=dict)
    default_provider: str = ProviderName.OPENAI.value
    provider_order: List[str] = Field(default_factory=lambda: list(BUILTIN_PROVIDERS))
    enable_caching: bool = True
    cache_ttl_seconds: float = 600.0
    cache_max_entries: int = 100
    max_concurrent_requests: int = 10
    response_timeout_seconds: float = 30.0
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    fallback_to_static: bool = True
    circuit_breaker_enabled: bool = True


class OrchestratorConfig(BaseModel):
    """Settings owned by the response orchestrator."""

    max_concurrent_requests: int = 10
    response_timeout_seconds: float = 30.0
    enable_caching: bool = True
    fallback_to_static: bool = True
    cache_ttl_seconds: float = 600.0
    cache_max_entries: int = 100

    @classmethod
    def from_environment(cls, config: EnvironmentConfig) -> "OrchestratorConfig":
        return cls(
            max_concurrent_requests=config.max_concurrent_requests,
            response_timeout_seconds=config.response_timeout_seconds,
            enable_caching=config.enable_caching,
            fallback_to_static=config.fallback_to_static,
            cache_ttl_seconds=config.cache_ttl_seconds,
            cache_max_entries=config.cache_max_entries,
        )


class ConfigValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def retry_policy_errors(policy: RetryPolicy) -> List[str]:
    errors: List[str] = []
    if policy.max_retries < 0:
        errors.append("retry_policy.max_retries must be >= 0")
    if policy.base_delay_seconds < 0:
        errors.append("retry_policy.base_delay_seconds must be >= 0")
    if policy.max_delay_seconds < policy.base_delay_seconds:
        errors.append("retry_policy.max_delay_seconds must be >= base_delay_seconds")
    if policy.backoff_multiplier <= 1:
        errors.append("retry_policy.backoff_multiplier must be > 1")
    return errors


def orchestrator_config_errors(config: OrchestratorConfig) -> List[str]:
    errors: List[str] = []
    if config.max_concurrent_requests < 1:
        errors.append("max_concurrent_requests must be >= 1")
    if config.response_timeout_seconds <= 0:
        errors.append("response_timeout_seconds must be > 0")
    if config.cache_ttl_seconds <= 0:
        errors.append("cache_ttl_seconds must be > 0")
    if config.cache_max_entries < 1:
        errors.append("cache_max_entries must be >= 1")
    return errors


def validate_config(
    config: EnvironmentConfig,
    registered: Optional[Iterable[str]] = None,
) -> ConfigValidationResult:
    """
    Validate a configuration without side effects.

    Args:
        config: Configuration to check
        registered: Provider names that are actually registered; defaults
            to the built-in providers

    Returns:
        ConfigValidationResult with errors (blocking) and warnings
    """
    known = set(registered) if registered is not None else set(BUILTIN_PROVIDERS)
    errors: List[str] = []
    warnings: List[str] = []

    if config.default_provider not in known:
        errors.append(f"default_provider '{config.default_provider}' is not registered")

    seen = set()
    for name in config.provider_order:
        if name in seen:
            errors.append(f"provider_order lists '{name}' more than once")
        seen.add(name)
        if name not in known:
            warnings.append(f"provider_order entry '{name}' is not registered and will be skipped")

    if config.cache_ttl_seconds <= 0:
        errors.append("cache_ttl_seconds must be > 0")
    if config.cache_max_entries < 1:
        errors.append("cache_max_entries must be >= 1")
    if config.max_concurrent_requests < 1:
        errors.append("max_concurrent_requests must be >= 1")
    if config.response_timeout_seconds <= 0:
        errors.append("response_timeout_seconds must be > 0")

    errors.extend(retry_policy_errors(config.retry_policy))

    for name, settings in config.providers.items():
        if settings.temperature is not None and not 0 <= settings.temperature <= 2:
            errors.append(f"providers.{name}.temperature must be within [0, 2]")
        if settings.max_tokens is not None and settings.max_tokens < 1:
            errors.append(f"providers.{name}.max_tokens must be >= 1")

    credentialed = [
        name for name, settings in config.providers.items()
        if settings.api_key or name in KEYLESS_PROVIDERS
    ]
    if not credentialed:
        warnings.append("no LLM provider has credentials; responses will use static fallback")
    elif config.default_provider not in credentialed:
        warnings.append(f"default_provider '{config.default_provider}' has no credentials")

    return ConfigValidationResult(valid=not errors, errors=errors, warnings=warnings)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_config(config: EnvironmentConfig, updates: Mapping[str, Any]) -> EnvironmentConfig:
    """Apply a partial update (nested dicts merge) and return a new config."""
    merged = deep_merge(config.model_dump(), dict(updates))
    return EnvironmentConfig.model_validate(merged)


# ============================================================================
# ENVIRONMENT LOADING
# ============================================================================

def _env_str(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    value = _env_str(env, key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("config_invalid_number", key=key, value=value, default=default)
        return default


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    return int(_env_float(env, key, default))


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = _env_str(env, key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def _load_provider(
    env: Mapping[str, str],
    prefix: str,
    api_key: Optional[str],
    default_model: str,
) -> ProviderSettings:
    return ProviderSettings(
        api_key=api_key,
        model=_env_str(env, f"{prefix}_MODEL") or default_model,
        base_url=_env_str(env, f"{prefix}_BASE_URL"),
        temperature=_env_float(env, f"{prefix}_TEMPERATURE", 0.7),
        max_tokens=_env_int(env, f"{prefix}_MAX_TOKENS", 2048),
    )


def load_providers_from_env(env: Mapping[str, str]) -> Dict[str, ProviderSettings]:
    """A provider is configured only when its credentials (or local endpoint) are present."""
    providers: Dict[str, ProviderSettings] = {}

    openai_key = _env_str(env, "OPENAI_API_KEY")
    if openai_key:
        providers[ProviderName.OPENAI.value] = _load_provider(env, "OPENAI", openai_key, "gpt-3.5-turbo")

    anthropic_key = _env_str(env, "ANTHROPIC_API_KEY")
    if anthropic_key:
        providers[ProviderName.ANTHROPIC.value] = _load_provider(
            env, "ANTHROPIC", anthropic_key, "claude-3-sonnet-20240229"
        )

    gemini_key = _env_str(env, "GEMINI_API_KEY") or _env_str(env, "GOOGLE_API_KEY")
    if gemini_key:
        providers[ProviderName.GEMINI.value] = _load_provider(env, "GEMINI", gemini_key, "gemini-1.5-flash")

    local_base_url = _env_str(env, "LOCAL_LLM_BASE_URL")
    local_model = _env_str(env, "LOCAL_LLM_MODEL")
    if local_base_url or local_model:
        providers[ProviderName.LOCAL.value] = ProviderSettings(
            model=local_model or "llama2",
            base_url=local_base_url or "http://localhost:11434",
            temperature=_env_float(env, "LOCAL_TEMPERATURE", 0.7),
            max_tokens=_env_int(env, "LOCAL_MAX_TOKENS", 2048),
        )

    return providers


def _first_configured_provider(providers: Mapping[str, ProviderSettings]) -> str:
    for name in BUILTIN_PROVIDERS:
        if name in providers:
            return name
    return ProviderName.OPENAI.value


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> EnvironmentConfig:
    """
    Build an EnvironmentConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        EnvironmentConfig (not validated; see validate_config)
    """
    env = os.environ if environ is None else environ
    providers = load_providers_from_env(env)

    order_raw = _env_str(env, "LLM_PROVIDER_ORDER")
    provider_order = (
        [name.strip() for name in order_raw.split(",") if name.strip()]
        if order_raw
        else list(BUILTIN_PROVIDERS)
    )

    config = EnvironmentConfig(
        providers=providers,
        default_provider=_env_str(env, "LLM_DEFAULT_PROVIDER") or _first_configured_provider(providers),
        provider_order=provider_order,
        enable_caching=_env_bool(env, "LLM_ENABLE_CACHING", True),
        cache_ttl_seconds=_env_float(env, "LLM_CACHE_TTL_SECONDS", 600.0),
        cache_max_entries=_env_int(env, "LLM_CACHE_MAX_ENTRIES", 100),
        max_concurrent_requests=_env_int(env, "LLM_MAX_CONCURRENT_REQUESTS", 10),
        response_timeout_seconds=_env_float(env, "LLM_RESPONSE_TIMEOUT_SECONDS", 30.0),
        retry_policy=RetryPolicy(
            max_retries=_env_int(env, "LLM_MAX_RETRIES", 3),
            base_delay_seconds=_env_float(env, "LLM_BASE_DELAY_SECONDS", 1.0),
            max_delay_seconds=_env_float(env, "LLM_MAX_DELAY_SECONDS", 10.0),
            backoff_multiplier=_env_float(env, "LLM_BACKOFF_MULTIPLIER", 2.0),
        ),
        fallback_to_static=_env_bool(env, "LLM_FALLBACK_TO_STATIC", True),
        circuit_breaker_enabled=_env_bool(env, "LLM_CIRCUIT_BREAKER_ENABLED", True),
    )

    logger.info(
        "config_loaded",
        providers=sorted(providers.keys()),
        default_provider=config.default_provider,
        provider_order=config.provider_order,
        enable_caching=config.enable_caching,
    )
    return config
