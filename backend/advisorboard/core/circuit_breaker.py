"""
Circuit breaker for LLM vendor endpoints.

One breaker per provider:
- Failure threshold: 50% error rate over a 60 second window (min 5 calls)
- Open duration: 30 seconds
- Half-open: a single probe call decides between closing and reopening

A breaker wraps a whole provider call (adapter retries included), so it
never changes how many attempts an adapter makes once admitted.
"""
import asyncio
import time
from collections import deque
from enum import Enum
from threading import Lock
from typing import Any, Callable, Deque, Dict, Optional, Tuple

from advisorboard.core.errors import ServiceUnavailableError
from advisorboard.core.logging import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, bypass provider
    HALF_OPEN = "half_open"  # Probing recovery


class CircuitBreakerOpenError(ServiceUnavailableError):
    """Raised when the breaker rejects a call without touching the network."""

    def __init__(self, name: str, state: CircuitState):
        super().__init__(
            f"Circuit breaker for {name} is {state.value}; provider skipped",
            provider=name,
            retryable=True,
        )
        self.state = state


class CircuitBreaker:
    """
    Sliding-window circuit breaker.

    Callers either use `call_async` around a coroutine that raises on
    failure, or drive the breaker by hand with `allow_request` followed by
    `record_success` / `record_failure` when failures are returned as values.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: float = 0.5,
        time_window_seconds: float = 60.0,
        open_duration_seconds: float = 30.0,
        min_requests_for_threshold: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.time_window_seconds = time_window_seconds
        self.open_duration_seconds = open_duration_seconds
        self.min_requests_for_threshold = min_requests_for_threshold
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._lock = Lock()
        self._request_history: Deque[Tuple[float, bool]] = deque()
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._update_state()
            return self._state

    def _update_state(self) -> None:
        now = self._clock()

        cutoff_time = now - self.time_window_seconds
        while self._request_history and self._request_history[0][0] < cutoff_time:
            self._request_history.popleft()

        if self._state == CircuitState.OPEN:
            if self._opened_at is not None and (now - self._opened_at) >= self.open_duration_seconds:
                self._state = CircuitState.HALF_OPEN
                self._probe_in_flight = False
                logger.info(
                    "circuit_breaker_half_open",
                    circuit_breaker=self.name,
                    state="half_open",
                )

        elif self._state == CircuitState.CLOSED:
            total = len(self._request_history)
            if total >= self.min_requests_for_threshold:
                failures = sum(1 for _, success in self._request_history if not success)
                error_rate = failures / total
                if error_rate >= self.failure_threshold:
                    self._open(now)
                    logger.warning(
                        "circuit_breaker_opened",
                        circuit_breaker=self.name,
                        error_rate=error_rate,
                        failures=failures,
                        total=total,
                    )

    def _open(self, now: float) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = now
        self._probe_in_flight = False
        self._request_history.clear()

    def allow_request(self) -> bool:
        """
        Decide whether a call may go through.

        In half-open state only one probe is admitted until its outcome
        is recorded.
        """
        with self._lock:
            self._update_state()
            if self._state == CircuitState.CLOSED:
                return True
            if self._state == CircuitState.HALF_OPEN and not self._probe_in_flight:
                self._probe_in_flight = True
                return True
            return False

    def record_success(self) -> None:
        self._record_result(True)

    def record_failure(self) -> None:
        self._record_result(False)

    def _record_result(self, success: bool) -> None:
        now = self._clock()
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                if success:
                    self._state = CircuitState.CLOSED
                    self._opened_at = None
                    self._probe_in_flight = False
                    self._request_history.clear()
                    logger.info("circuit_breaker_closed", circuit_breaker=self.name)
                else:
                    self._open(now)
                    logger.warning("circuit_breaker_reopened", circuit_breaker=self.name)
            elif self._state == CircuitState.CLOSED:
                self._request_history.append((now, success))
                self._update_state()

    async def call_async(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute an async function with circuit breaker protection.

        Raises:
            CircuitBreakerOpenError: if the breaker rejects the call
        """
        if not self.allow_request():
            raise CircuitBreakerOpenError(self.name, self.state)

        try:
            result = await func(*args, **kwargs)
        except (Exception, asyncio.CancelledError):
            self.record_failure()
            raise
        self.record_success()
        return result

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._opened_at = None
            self._probe_in_flight = False
            self._request_history.clear()

    def get_metrics(self) -> Dict[str, Any]:
        """Get circuit breaker metrics for monitoring."""
        with self._lock:
            self._update_state()
            failures = sum(1 for _, success in self._request_history if not success)
            total = len(self._request_history)
            return {
                "name": self.name,
                "state": self._state.value,
                "recent_requests": total,
                "recent_failures": failures,
                "error_rate": failures / total if total else 0.0,
                "opened_at": self._opened_at,
            }
