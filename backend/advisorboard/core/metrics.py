"""
Prometheus metrics collection module.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration (HTTP surface and vendor calls)
- LLM Metrics: provider requests, errors, retries, failovers, token usage
- Orchestration Metrics: advisor responses by type, static fallbacks, batch duration
- Cache Metrics: hits, misses, evictions per cache

All metrics follow Prometheus naming conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for duration
"""
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

from advisorboard.core.logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# RED METRICS - HTTP surface
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=registry,
)

# ============================================================================
# LLM PROVIDER METRICS
# ============================================================================

llm_requests_total = Counter(
    "llm_requests_total",
    "Total number of provider calls (after adapter retries)",
    ["provider", "outcome"],  # outcome: success | failure
    registry=registry,
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "Provider call latency in seconds, retries included",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
    registry=registry,
)

llm_errors_total = Counter(
    "llm_errors_total",
    "Total number of provider errors by kind",
    ["provider", "kind"],
    registry=registry,
)

llm_retries_total = Counter(
    "llm_retries_total",
    "Total number of adapter retry attempts",
    ["provider"],
    registry=registry,
)

llm_failovers_total = Counter(
    "llm_failovers_total",
    "Total number of times a provider failed and the next one was tried",
    ["provider"],
    registry=registry,
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total number of tokens reported by providers",
    ["provider", "direction"],  # direction: prompt | completion
    registry=registry,
)

# ============================================================================
# CACHE METRICS
# ============================================================================

cache_hits_total = Counter(
    "cache_hits_total",
    "Total number of cache hits",
    ["cache_type"],  # "llm" (integration layer) or "advisor" (orchestrator)
    registry=registry,
)

cache_misses_total = Counter(
    "cache_misses_total",
    "Total number of cache misses",
    ["cache_type"],
    registry=registry,
)

cache_evictions_total = Counter(
    "cache_evictions_total",
    "Total number of cache entries removed by size or TTL",
    ["cache_type", "reason"],  # reason: size | expired
    registry=registry,
)

# ============================================================================
# ORCHESTRATION METRICS
# ============================================================================

advisor_responses_total = Counter(
    "advisor_responses_total",
    "Total number of advisor responses produced",
    ["response_type"],  # llm | static
    registry=registry,
)

advisor_fallbacks_total = Counter(
    "advisor_fallbacks_total",
    "Total number of advisor pipelines that fell back to static content",
    ["error_kind"],
    registry=registry,
)

orchestration_duration_seconds = Histogram(
    "orchestration_duration_seconds",
    "Wall-clock time to produce all advisor responses for one question",
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path for metrics (drops query string).

    Examples:
        /consultations?debug=1 -> /consultations
        /health/llm -> /health/llm
    """
    if "?" in path:
        path = path.split("?")[0]
    return path


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    normalized_endpoint = normalize_endpoint(endpoint)
    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()
    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def record_llm_request(provider: str, success: bool, duration_seconds: float) -> None:
    """
    Record one provider call (all adapter attempts together).

    Args:
        provider: Provider name
        success: Whether the call produced a normalized response
        duration_seconds: Wall-clock duration including backoff sleeps
    """
    outcome = "success" if success else "failure"
    llm_requests_total.labels(provider=provider, outcome=outcome).inc()
    llm_request_duration_seconds.labels(provider=provider).observe(duration_seconds)


def record_llm_error(provider: str, kind: str) -> None:
    llm_errors_total.labels(provider=provider, kind=kind).inc()


def record_llm_retry(provider: str) -> None:
    llm_retries_total.labels(provider=provider).inc()


def record_llm_failover(provider: str) -> None:
    """Record that `provider` was exhausted and the failover chain moved on."""
    llm_failovers_total.labels(provider=provider).inc()


def record_llm_tokens(
    provider: str,
    prompt_tokens: Optional[int],
    completion_tokens: Optional[int],
) -> None:
    if prompt_tokens:
        llm_tokens_total.labels(provider=provider, direction="prompt").inc(prompt_tokens)
    if completion_tokens:
        llm_tokens_total.labels(provider=provider, direction="completion").inc(completion_tokens)


def record_cache_hit(cache_type: str) -> None:
    cache_hits_total.labels(cache_type=cache_type).inc()


def record_cache_miss(cache_type: str) -> None:
    cache_misses_total.labels(cache_type=cache_type).inc()


def record_cache_eviction(cache_type: str, reason: str, count: int = 1) -> None:
    if count > 0:
        cache_evictions_total.labels(cache_type=cache_type, reason=reason).inc(count)


def record_advisor_response(response_type: str) -> None:
    advisor_responses_total.labels(response_type=response_type).inc()


def record_advisor_fallback(error_kind: str) -> None:
    advisor_fallbacks_total.labels(error_kind=error_kind).inc()


def record_orchestration_duration(duration_seconds: float) -> None:
    orchestration_duration_seconds.observe(duration_seconds)


def get_metrics() -> bytes:
    """
    Get Prometheus metrics in text format.
    """
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
