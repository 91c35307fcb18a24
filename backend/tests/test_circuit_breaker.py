"""
Unit tests for the provider circuit breaker.
"""
import asyncio

import pytest

from advisorboard.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState
from advisorboard.core.errors import ErrorKind


def make_breaker(clock, **kwargs):
    kwargs.setdefault("failure_threshold", 0.5)
    kwargs.setdefault("time_window_seconds", 60)
    kwargs.setdefault("open_duration_seconds", 30)
    kwargs.setdefault("min_requests_for_threshold", 5)
    return CircuitBreaker("test", clock=clock, **kwargs)


def test_circuit_breaker_closed_state(fake_clock):
    """Closed breaker admits calls."""
    cb = make_breaker(fake_clock)
    assert cb.state == CircuitState.CLOSED
    assert cb.allow_request()


def test_circuit_breaker_needs_minimum_requests(fake_clock):
    """Failures below the minimum sample never open the circuit."""
    cb = make_breaker(fake_clock)
    for _ in range(4):
        cb.record_failure()
    assert cb.state == CircuitState.CLOSED


def test_circuit_breaker_opens_on_error_rate(fake_clock):
    """Error rate at or above the threshold opens the circuit."""
    cb = make_breaker(fake_clock)
    for _ in range(2):
        cb.record_success()
    for _ in range(3):
        cb.record_failure()

    assert cb.state == CircuitState.OPEN
    assert not cb.allow_request()


def test_circuit_breaker_stays_closed_below_threshold(fake_clock):
    cb = make_breaker(fake_clock)
    for _ in range(4):
        cb.record_success()
    cb.record_failure()
    assert cb.state == CircuitState.CLOSED


def test_circuit_breaker_window_expires_old_results(fake_clock):
    """Results older than the window do not count."""
    cb = make_breaker(fake_clock)
    for _ in range(4):
        cb.record_failure()
    fake_clock.advance(61)
    cb.record_failure()
    assert cb.state == CircuitState.CLOSED
    assert cb.get_metrics()["recent_requests"] == 1


def test_circuit_breaker_half_open_single_probe(fake_clock):
    """After the open period exactly one probe is admitted."""
    cb = make_breaker(fake_clock)
    for _ in range(5):
        cb.record_failure()
    assert cb.state == CircuitState.OPEN

    fake_clock.advance(30)
    assert cb.state == CircuitState.HALF_OPEN
    assert cb.allow_request()
    assert not cb.allow_request()


def test_circuit_breaker_probe_success_closes(fake_clock):
    cb = make_breaker(fake_clock)
    for _ in range(5):
        cb.record_failure()
    fake_clock.advance(30)
    assert cb.allow_request()

    cb.record_success()
    assert cb.state == CircuitState.CLOSED
    assert cb.allow_request()


def test_circuit_breaker_probe_failure_reopens(fake_clock):
    cb = make_breaker(fake_clock)
    for _ in range(5):
        cb.record_failure()
    fake_clock.advance(30)
    assert cb.allow_request()

    cb.record_failure()
    assert cb.state == CircuitState.OPEN
    fake_clock.advance(29)
    assert cb.state == CircuitState.OPEN


@pytest.mark.asyncio
async def test_circuit_breaker_async(fake_clock):
    """call_async records outcomes and rejects while open."""
    cb = make_breaker(fake_clock)

    async def ok():
        return "async success"

    async def boom():
        raise RuntimeError("down")

    assert await cb.call_async(ok) == "async success"
    for _ in range(4):
        with pytest.raises(RuntimeError):
            await cb.call_async(boom)

    with pytest.raises(CircuitBreakerOpenError) as exc_info:
        await cb.call_async(ok)
    assert exc_info.value.kind == ErrorKind.SERVICE_UNAVAILABLE
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_circuit_breaker_cancelled_probe_reopens(fake_clock):
    """A probe cancelled by its caller reopens the circuit instead of blocking it."""
    cb = make_breaker(fake_clock)
    for _ in range(5):
        cb.record_failure()
    fake_clock.advance(30)

    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(cb.call_async(slow), timeout=0.01)
    assert cb.state == CircuitState.OPEN

    fake_clock.advance(30)
    assert cb.allow_request()


def test_circuit_breaker_metrics(fake_clock):
    """Metrics expose state and error rate."""
    cb = make_breaker(fake_clock)
    cb.record_success()
    cb.record_failure()

    metrics = cb.get_metrics()
    assert metrics["name"] == "test"
    assert metrics["state"] == "closed"
    assert metrics["recent_requests"] == 2
    assert metrics["recent_failures"] == 1
    assert metrics["error_rate"] == pytest.approx(0.5)


def test_circuit_breaker_reset(fake_clock):
    cb = make_breaker(fake_clock)
    for _ in range(5):
        cb.record_failure()
    cb.reset()
    assert cb.state == CircuitState.CLOSED
