"""
In-memory provider stubs and builders shared by the test suites.

No test performs real network I/O: vendor HTTP goes through
httpx.MockTransport and orchestration tests use StubProvider.
"""
import asyncio
from typing import List, Optional, Sequence, Union

from advisorboard.core.config import EnvironmentConfig, OrchestratorConfig, RetryPolicy
from advisorboard.core.errors import ProviderError
from advisorboard.models.advisor import Advisor
from advisorboard.models.llm import LLMConfig, NormalizedResponse
from advisorboard.services.llm.base import BaseLLMProvider
from advisorboard.services.llm.integration import LLMIntegrationLayer
from advisorboard.services.orchestration.orchestrator import ResponseOrchestrator

FAST_RETRY = RetryPolicy(max_retries=2, base_delay_seconds=0.0, max_delay_seconds=0.0)

Outcome = Union[str, ProviderError]


class StubProvider(BaseLLMProvider):
    """
    Provider whose vendor call is replaced by a script of outcomes.

    Each attempt consumes the next outcome; the last one repeats. A string
    outcome is returned as content, a ProviderError is raised. Retries and
    validation still run through BaseLLMProvider.
    """

    default_model = "stub-model"
    requires_api_key = False

    def __init__(self, name: str = "stub", outcomes: Sequence[Outcome] = ("stub answer",), delay: float = 0.0, **kwargs):
        self.name = name
        kwargs.setdefault("retry_policy", FAST_RETRY)
        super().__init__(**kwargs)
        self.outcomes: List[Outcome] = list(outcomes)
        self.delay = delay
        self.prompts: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def attempts(self) -> int:
        return len(self.prompts)

    def build_request(self, prompt, config):
        raise NotImplementedError

    def parse_response(self, data, config):
        raise NotImplementedError

    async def _send(self, prompt: str, config: LLMConfig) -> NormalizedResponse:
        self.prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
            if isinstance(outcome, ProviderError):
                raise outcome
            return NormalizedResponse(content=outcome, model=config.model, provider=self.name)
        finally:
            self.in_flight -= 1


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_integration(
    *providers: BaseLLMProvider,
    enable_caching: bool = True,
    circuit_breaker_enabled: bool = True,
    clock=None,
) -> LLMIntegrationLayer:
    names = [provider.name for provider in providers]
    config = EnvironmentConfig(
        default_provider=names[0],
        provider_order=names,
        enable_caching=enable_caching,
        circuit_breaker_enabled=circuit_breaker_enabled,
        retry_policy=FAST_RETRY,
    )
    kwargs = {"clock": clock} if clock is not None else {}
    return LLMIntegrationLayer(config, providers=providers, **kwargs)


def make_orchestrator(
    integration: LLMIntegrationLayer,
    static_generator=None,
    prompt_builder=None,
    analyzer=None,
    **config_values,
) -> ResponseOrchestrator:
    return ResponseOrchestrator(
        integration=integration,
        config=OrchestratorConfig(**config_values),
        static_generator=static_generator,
        prompt_builder=prompt_builder,
        analyzer=analyzer,
    )


def make_advisor(
    advisor_id: str = "cb-regulatory",
    domain: str = "cliniboard",
    name: Optional[str] = None,
) -> Advisor:
    return Advisor(
        id=advisor_id,
        name=name or f"Advisor {advisor_id}",
        expertise="clinical development and regulatory affairs",
        background="Twenty years designing oncology trials.",
        domain=domain,
        specialties=["Phase III design", "FDA interactions"],
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

