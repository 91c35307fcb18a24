"""
Unit tests for Prometheus metrics collection.

Tests verify:
- RED metrics for the HTTP surface are recorded
- Provider, cache and orchestration counters move with their helpers
- The exposition endpoint returns Prometheus text format
"""
import pytest
from prometheus_client import REGISTRY

from advisorboard.core.metrics import (
    get_metrics,
    get_metrics_content_type,
    normalize_endpoint,
    record_advisor_fallback,
    record_advisor_response,
    record_cache_eviction,
    record_cache_hit,
    record_cache_miss,
    record_http_request,
    record_llm_error,
    record_llm_failover,
    record_llm_request,
    record_llm_retry,
    record_llm_tokens,
    record_orchestration_duration,
)


def sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestHTTPMetrics:

    def test_record_http_request(self):
        labels = {"method": "POST", "endpoint": "/consultations", "status": "200"}
        before = sample("http_requests_total", labels)
        before_count = sample("http_request_duration_seconds_count", {"method": "POST", "endpoint": "/consultations"})

        record_http_request("POST", "/consultations?debug=1", 200, 0.12)

        assert sample("http_requests_total", labels) == before + 1
        assert sample(
            "http_request_duration_seconds_count", {"method": "POST", "endpoint": "/consultations"}
        ) == before_count + 1

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/consultations?debug=1", "/consultations"),
            ("/health/llm", "/health/llm"),
            ("/", "/"),
        ],
    )
    def test_normalize_endpoint(self, path, expected):
        assert normalize_endpoint(path) == expected


class TestLLMMetrics:

    def test_request_outcomes(self):
        success = {"provider": "metrics-test", "outcome": "success"}
        failure = {"provider": "metrics-test", "outcome": "failure"}
        before_success = sample("llm_requests_total", success)
        before_failure = sample("llm_requests_total", failure)

        record_llm_request("metrics-test", True, 0.5)
        record_llm_request("metrics-test", False, 1.5)

        assert sample("llm_requests_total", success) == before_success + 1
        assert sample("llm_requests_total", failure) == before_failure + 1

    def test_errors_retries_and_failovers(self):
        before_error = sample("llm_errors_total", {"provider": "metrics-test", "kind": "rate_limited"})
        before_retry = sample("llm_retries_total", {"provider": "metrics-test"})
        before_failover = sample("llm_failovers_total", {"provider": "metrics-test"})

        record_llm_error("metrics-test", "rate_limited")
        record_llm_retry("metrics-test")
        record_llm_retry("metrics-test")
        record_llm_failover("metrics-test")

        assert sample("llm_errors_total", {"provider": "metrics-test", "kind": "rate_limited"}) == before_error + 1
        assert sample("llm_retries_total", {"provider": "metrics-test"}) == before_retry + 2
        assert sample("llm_failovers_total", {"provider": "metrics-test"}) == before_failover + 1

    def test_tokens_skip_missing_usage(self):
        prompt = {"provider": "metrics-tokens", "direction": "prompt"}
        completion = {"provider": "metrics-tokens", "direction": "completion"}
        before_prompt = sample("llm_tokens_total", prompt)
        before_completion = sample("llm_tokens_total", completion)

        record_llm_tokens("metrics-tokens", 12, None)

        assert sample("llm_tokens_total", prompt) == before_prompt + 12
        assert sample("llm_tokens_total", completion) == before_completion


class TestCacheMetrics:

    def test_hits_misses_and_evictions(self):
        before_hit = sample("cache_hits_total", {"cache_type": "metrics-test"})
        before_miss = sample("cache_misses_total", {"cache_type": "metrics-test"})
        before_eviction = sample("cache_evictions_total", {"cache_type": "metrics-test", "reason": "expired"})

        record_cache_hit("metrics-test")
        record_cache_miss("metrics-test")
        record_cache_eviction("metrics-test", "expired", count=3)
        record_cache_eviction("metrics-test", "expired", count=0)

        assert sample("cache_hits_total", {"cache_type": "metrics-test"}) == before_hit + 1
        assert sample("cache_misses_total", {"cache_type": "metrics-test"}) == before_miss + 1
        assert sample(
            "cache_evictions_total", {"cache_type": "metrics-test", "reason": "expired"}
        ) == before_eviction + 3


class TestOrchestrationMetrics:

    def test_responses_and_fallbacks(self):
        before_static = sample("advisor_responses_total", {"response_type": "static"})
        before_fallback = sample("advisor_fallbacks_total", {"error_kind": "network_error"})
        before_duration = sample("orchestration_duration_seconds_count")

        record_advisor_response("static")
        record_advisor_fallback("network_error")
        record_orchestration_duration(0.8)

        assert sample("advisor_responses_total", {"response_type": "static"}) == before_static + 1
        assert sample("advisor_fallbacks_total", {"error_kind": "network_error"}) == before_fallback + 1
        assert sample("orchestration_duration_seconds_count") == before_duration + 1


def test_exposition_format():
    record_advisor_response("llm")

    body = get_metrics().decode("utf-8")

    assert "# TYPE advisor_responses_total counter" in body
    assert 'advisor_responses_total{response_type="llm"}' in body
    assert get_metrics_content_type().startswith("text/plain")
