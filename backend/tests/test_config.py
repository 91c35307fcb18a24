"""
Unit tests for configuration loading, validation and merging.
"""
import pytest

from advisorboard.core.config import (
    EnvironmentConfig,
    OrchestratorConfig,
    ProviderSettings,
    RetryPolicy,
    load_config_from_env,
    merge_config,
    orchestrator_config_errors,
    validate_config,
)


class TestLoadConfigFromEnv:

    def test_empty_environment_uses_defaults(self):
        config = load_config_from_env({})

        assert config.providers == {}
        assert config.default_provider == "openai"
        assert config.provider_order == ["openai", "anthropic", "gemini", "local"]
        assert config.enable_caching is True
        assert config.cache_ttl_seconds == 600
        assert config.max_concurrent_requests == 10
        assert config.response_timeout_seconds == 30
        assert config.retry_policy == RetryPolicy()

    def test_providers_need_credentials(self):
        config = load_config_from_env({
            "ANTHROPIC_API_KEY": "ak",
            "GOOGLE_API_KEY": "gk",
            "OPENAI_MODEL": "gpt-4o",
        })

        assert sorted(config.providers) == ["anthropic", "gemini"]
        assert config.providers["gemini"].api_key == "gk"
        assert config.providers["anthropic"].model == "claude-3-sonnet-20240229"
        # First configured provider becomes the default.
        assert config.default_provider == "anthropic"

    def test_local_provider_from_base_url(self):
        config = load_config_from_env({"LOCAL_LLM_BASE_URL": "http://gpu-box:11434"})
        local = config.providers["local"]
        assert local.api_key is None
        assert local.model == "llama2"
        assert local.base_url == "http://gpu-box:11434"

    def test_orchestration_settings(self):
        config = load_config_from_env({
            "OPENAI_API_KEY": "sk",
            "OPENAI_TEMPERATURE": "0.2",
            "LLM_DEFAULT_PROVIDER": "gemini",
            "LLM_PROVIDER_ORDER": "gemini, openai",
            "LLM_ENABLE_CACHING": "false",
            "LLM_MAX_CONCURRENT_REQUESTS": "3",
            "LLM_RESPONSE_TIMEOUT_SECONDS": "12.5",
            "LLM_MAX_RETRIES": "1",
            "LLM_BASE_DELAY_SECONDS": "0.5",
            "LLM_FALLBACK_TO_STATIC": "no",
        })

        assert config.providers["openai"].temperature == 0.2
        assert config.default_provider == "gemini"
        assert config.provider_order == ["gemini", "openai"]
        assert config.enable_caching is False
        assert config.max_concurrent_requests == 3
        assert config.response_timeout_seconds == 12.5
        assert config.retry_policy.max_retries == 1
        assert config.retry_policy.base_delay_seconds == 0.5
        assert config.fallback_to_static is False

    def test_invalid_number_falls_back_to_default(self):
        config = load_config_from_env({"LLM_CACHE_TTL_SECONDS": "ten minutes"})
        assert config.cache_ttl_seconds == 600

    def test_api_key_not_in_repr(self):
        settings = ProviderSettings(api_key="sk-secret", model="gpt-4o")
        assert "sk-secret" not in repr(settings)


class TestValidateConfig:

    def test_default_config_is_valid_with_warning(self):
        result = validate_config(EnvironmentConfig())
        assert result.valid
        assert result.errors == []
        assert any("credentials" in warning for warning in result.warnings)

    def test_credentialed_default_has_no_warnings(self):
        config = EnvironmentConfig(providers={"openai": ProviderSettings(api_key="sk")})
        result = validate_config(config)
        assert result.valid
        assert result.warnings == []

    def test_collects_every_error(self):
        config = EnvironmentConfig(
            default_provider="mystery",
            provider_order=["openai", "openai"],
            cache_ttl_seconds=0,
            cache_max_entries=0,
            max_concurrent_requests=0,
            response_timeout_seconds=-1,
            retry_policy=RetryPolicy(max_retries=-1, backoff_multiplier=1.0),
            providers={"openai": ProviderSettings(api_key="sk", temperature=3.0, max_tokens=0)},
        )
        result = validate_config(config)

        assert not result.valid
        joined = " | ".join(result.errors)
        for fragment in (
            "default_provider",
            "more than once",
            "cache_ttl_seconds",
            "cache_max_entries",
            "max_concurrent_requests",
            "response_timeout_seconds",
            "max_retries",
            "backoff_multiplier",
            "temperature",
            "max_tokens",
        ):
            assert fragment in joined

    def test_unregistered_order_entry_is_a_warning(self):
        config = EnvironmentConfig(provider_order=["openai", "custom"])
        result = validate_config(config)
        assert result.valid
        assert any("custom" in warning for warning in result.warnings)

    def test_registered_names_extend_the_known_set(self):
        config = EnvironmentConfig(default_provider="custom", provider_order=["custom"])
        assert not validate_config(config).valid
        assert validate_config(config, registered=["custom"]).valid

    def test_validation_does_not_raise_or_mutate(self):
        config = EnvironmentConfig(max_concurrent_requests=0)
        before = config.model_dump()
        validate_config(config)
        assert config.model_dump() == before


class TestMergeConfig:

    def test_nested_merge_keeps_siblings(self):
        config = EnvironmentConfig(
            providers={"openai": ProviderSettings(api_key="sk", model="gpt-4o")},
        )
        merged = merge_config(config, {
            "providers": {"openai": {"model": "gpt-4o-mini"}},
            "retry_policy": {"max_retries": 1},
        })

        assert merged.providers["openai"].api_key == "sk"
        assert merged.providers["openai"].model == "gpt-4o-mini"
        assert merged.retry_policy.max_retries == 1
        assert merged.retry_policy.base_delay_seconds == 1.0
        # Original untouched
        assert config.providers["openai"].model == "gpt-4o"


class TestRetryPolicy:

    def test_delays(self):
        policy = RetryPolicy()
        assert [policy.delay_for_attempt(i) for i in range(5)] == [1.0, 2.0, 4.0, 8.0, 10.0]


class TestOrchestratorConfig:

    def test_from_environment(self):
        env = EnvironmentConfig(max_concurrent_requests=4, fallback_to_static=False, cache_ttl_seconds=30)
        config = OrchestratorConfig.from_environment(env)
        assert config.max_concurrent_requests == 4
        assert config.fallback_to_static is False
        assert config.cache_ttl_seconds == 30

    @pytest.mark.parametrize(
        "values",
        [
            {"max_concurrent_requests": 0},
            {"response_timeout_seconds": 0},
            {"cache_ttl_seconds": -1},
            {"cache_max_entries": 0},
        ],
    )
    def test_errors(self, values):
        assert orchestrator_config_errors(OrchestratorConfig(**values))
