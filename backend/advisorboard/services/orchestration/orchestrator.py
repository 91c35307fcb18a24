"""
Response orchestrator: one question, many advisors.

Each advisor runs through a small pipeline:

    PENDING -> CACHE_CHECK -> CACHE_HIT -> DONE
                           -> LLM_ATTEMPT -> SUCCESS -> DONE
                                          -> FAILURE -> STATIC_FALLBACK -> DONE

Every pipeline ends in DONE with an AdvisorResponse. Provider failures are
absorbed here (static fallback or apology response); only misuse detected
before any pipeline starts is raised to the caller.
"""
import asyncio
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from advisorboard.core.cache import ResponseCache, advisor_cache_key
from advisorboard.core.config import OrchestratorConfig, orchestrator_config_errors
from advisorboard.core.errors import (
    ConfigurationError,
    ErrorKind,
    InvalidRequestError,
    ProviderError,
    ResponseTimeoutError,
    ServiceUnavailableError,
)
from advisorboard.core.logging import get_logger
from advisorboard.core.metrics import (
    record_advisor_fallback,
    record_advisor_response,
    record_orchestration_duration,
)
from advisorboard.models.advisor import (
    Advisor,
    AdvisorResponse,
    ErrorInfo,
    GenerationResult,
    PersonaSnapshot,
    ResponseMetadata,
)
from advisorboard.models.analysis import QuestionAnalysis
from advisorboard.models.llm import Err, LLMOverrides, NormalizedResponse
from advisorboard.services.analysis.question_analysis import (
    QuestionAnalysisEngine,
    get_question_analysis_engine,
)
from advisorboard.services.llm.integration import LLMIntegrationLayer, get_llm_integration_layer
from advisorboard.services.orchestration.prompts import PersonaPromptBuilder, get_domain_frameworks
from advisorboard.services.orchestration.static_responses import (
    StaticResponse,
    StaticResponseGenerator,
)

logger = get_logger(__name__)

LLM_CONFIDENCE = 0.9
APOLOGY_CONFIDENCE = 0.1
APOLOGY_MESSAGE = (
    "I apologize, but I'm currently unable to provide a detailed response. "
    "Please try again later or contact support if the issue persists."
)


class PipelineState(str, Enum):
    PENDING = "pending"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    LLM_ATTEMPT = "llm_attempt"
    SUCCESS = "success"
    FAILURE = "failure"
    STATIC_FALLBACK = "static_fallback"
    DONE = "done"


class StaticGenerator(Protocol):
    async def generate(
        self,
        advisor: Advisor,
        question: str,
        domain: str,
        analysis: Optional[QuestionAnalysis] = None,
    ) -> StaticResponse:
        ...


class PipelineOutcome:
    """Terminal state of one advisor pipeline."""

    def __init__(self, advisor_id: str):
        self.advisor_id = advisor_id
        self.states: List[PipelineState] = [PipelineState.PENDING]
        self.response: Optional[AdvisorResponse] = None
        self.cache_hit = False
        self.fell_back = False

    def advance(self, state: PipelineState) -> None:
        self.states.append(state)

    @property
    def state(self) -> PipelineState:
        return self.states[-1]


def _persona(advisor: Advisor) -> PersonaSnapshot:
    return PersonaSnapshot(
        name=advisor.name,
        expertise=advisor.expertise,
        background=advisor.background,
        specialization=list(advisor.specialties),
    )


def _elapsed_ms(started: float, now: float) -> float:
    return round((now - started) * 1000, 3)


class ResponseOrchestrator:
    """
    Fans a question out to advisors in bounded batches and aggregates the
    responses in advisor input order.
    """

    def __init__(
        self,
        integration: Optional[LLMIntegrationLayer] = None,
        config: Optional[OrchestratorConfig] = None,
        static_generator: Optional[StaticGenerator] = None,
        prompt_builder: Optional[PersonaPromptBuilder] = None,
        analyzer: Optional[QuestionAnalysisEngine] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._integration = integration or get_llm_integration_layer()
        self._config = (config or OrchestratorConfig.from_environment(self._integration.get_config())).model_copy()
        errors = orchestrator_config_errors(self._config)
        if errors:
            raise ConfigurationError(f"Invalid orchestrator configuration: {'; '.join(errors)}", provider="config")

        self._static_generator = static_generator or StaticResponseGenerator()
        self._prompt_builder = prompt_builder or PersonaPromptBuilder()
        self._analyzer = analyzer or get_question_analysis_engine()
        self._clock = clock
        self._cache: ResponseCache[AdvisorResponse] = ResponseCache(
            ttl_seconds=self._config.cache_ttl_seconds,
            max_entries=self._config.cache_max_entries,
            cache_type="advisor",
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_advisor_responses(
        self,
        question: str,
        advisors: Sequence[Advisor],
        domain: str,
        overrides: Optional[LLMOverrides] = None,
    ) -> GenerationResult:
        """
        Generate one response per advisor.

        Args:
            question: Raw user question
            advisors: Advisors to consult (read only)
            domain: Board domain the consultation belongs to
            overrides: Optional LLM overrides applied to every pipeline

        Returns:
            GenerationResult with responses in advisor input order

        Raises:
            InvalidRequestError: if no advisors are supplied
            ConfigurationError: if overrides name an unregistered provider
        """
        if not advisors:
            raise InvalidRequestError("At least one advisor is required")
        if overrides is not None and overrides.provider is not None:
            self._integration.get_provider(overrides.provider)

        started = self._clock()
        analysis = self._analyzer.analyze(question)
        batch_size = self._config.max_concurrent_requests
        batches = [advisors[i:i + batch_size] for i in range(0, len(advisors), batch_size)]

        logger.info(
            "advisor_consultation_started",
            advisors=len(advisors),
            batches=len(batches),
            domain=str(domain),
            question_type=analysis.type,
            question_domain=analysis.domain,
        )

        outcomes: List[PipelineOutcome] = []
        for batch in batches:
            results = await asyncio.gather(
                *(self._run_pipeline(advisor, question, domain, analysis, overrides) for advisor in batch),
                return_exceptions=True,
            )
            for advisor, result in zip(batch, results):
                outcomes.append(self._settle(advisor, result, analysis))

        responses = [outcome.response for outcome in outcomes]
        error_count = sum(1 for outcome in outcomes if outcome.fell_back)
        cache_hit_count = sum(1 for outcome in outcomes if outcome.cache_hit)
        duration = self._clock() - started
        total_ms = round(duration * 1000, 3)
        record_orchestration_duration(duration)

        logger.info(
            "advisor_consultation_completed",
            advisors=len(advisors),
            success_count=len(responses) - error_count,
            error_count=error_count,
            cache_hit_count=cache_hit_count,
            duration_ms=total_ms,
        )

        return GenerationResult(
            responses=responses,
            total_processing_time_ms=total_ms,
            success_count=len(responses) - error_count,
            error_count=error_count,
            cache_hit_count=cache_hit_count,
            question_analysis=analysis,
            batch_count=len(batches),
        )

    def clear_cache(self) -> int:
        cleared = self._cache.clear()
        logger.info("advisor_cache_cleared", entries=cleared)
        return cleared

    def get_cache_stats(self) -> Dict[str, Any]:
        return self._cache.stats()

    def get_config(self) -> OrchestratorConfig:
        return self._config.model_copy()

    def update_config(self, updates: Union[OrchestratorConfig, Mapping[str, Any]]) -> OrchestratorConfig:
        """
        Apply a partial configuration update.

        Raises:
            ConfigurationError: on unknown keys or invalid values; nothing is applied
        """
        if isinstance(updates, OrchestratorConfig):
            updates = updates.model_dump()
        unknown = sorted(set(updates) - set(OrchestratorConfig.model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown orchestrator settings: {', '.join(unknown)}", provider="config")

        new_config = OrchestratorConfig.model_validate({**self._config.model_dump(), **updates})
        errors = orchestrator_config_errors(new_config)
        if errors:
            raise ConfigurationError(f"Invalid orchestrator configuration: {'; '.join(errors)}", provider="config")

        self._config = new_config
        self._cache.ttl_seconds = new_config.cache_ttl_seconds
        self._cache.max_entries = new_config.cache_max_entries
        logger.info("orchestrator_config_updated", keys=sorted(updates.keys()))
        return self.get_config()

    async def health_check(self) -> Dict[str, Any]:
        """Provider connectivity plus the local collaborators."""
        providers = await self._integration.get_provider_status()
        llm_available = any(providers.values())
        if llm_available:
            status = "healthy"
        elif self._config.fallback_to_static:
            status = "degraded"
        else:
            status = "unhealthy"

        return {
            "status": status,
            "active_provider": self._integration.get_active_provider(),
            "providers": providers,
            "static_generator": self._static_generator is not None,
            "question_analyzer": self._analyzer is not None,
            "prompt_builder": self._prompt_builder is not None,
            "cache": self.get_cache_stats(),
        }

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run_pipeline(
        self,
        advisor: Advisor,
        question: str,
        domain: str,
        analysis: QuestionAnalysis,
        overrides: Optional[LLMOverrides],
    ) -> PipelineOutcome:
        outcome = PipelineOutcome(advisor.id)
        started = self._clock()
        cache_key = advisor_cache_key(advisor.id, question)

        outcome.advance(PipelineState.CACHE_CHECK)
        if self._config.enable_caching:
            cached = self._cache.get(cache_key)
            if cached is not None:
                outcome.advance(PipelineState.CACHE_HIT)
                outcome.cache_hit = True
                return self._finish(outcome, cached)

        outcome.advance(PipelineState.LLM_ATTEMPT)
        prompt = self._prompt_builder.build(advisor, question, analysis)
        try:
            llm_response = await self._call_llm(prompt, overrides)
        except ProviderError as exc:
            outcome.advance(PipelineState.FAILURE)
            logger.warning(
                "advisor_pipeline_llm_failed",
                advisor_id=advisor.id,
                kind=exc.kind.value,
                provider=exc.provider,
                error=exc.message,
            )
            response = await self._fallback(advisor, question, domain, analysis, exc, started)
            outcome.advance(PipelineState.STATIC_FALLBACK)
            outcome.fell_back = True
            return self._finish(outcome, response)

        outcome.advance(PipelineState.SUCCESS)
        response = AdvisorResponse(
            advisor_id=advisor.id,
            content=llm_response.content,
            persona=_persona(advisor),
            metadata=ResponseMetadata(
                response_type="llm",
                provider=llm_response.provider,
                processing_time_ms=_elapsed_ms(started, self._clock()),
                confidence=LLM_CONFIDENCE,
                question_analysis=analysis,
                frameworks=get_domain_frameworks(advisor.domain),
            ),
        )
        if self._config.enable_caching:
            self._cache.set(cache_key, response)
        return self._finish(outcome, response)

    async def _call_llm(self, prompt: str, overrides: Optional[LLMOverrides]) -> NormalizedResponse:
        """Integration-layer call raced against the per-pipeline timeout."""
        timeout = self._config.response_timeout_seconds
        try:
            result = await asyncio.wait_for(self._integration.generate(prompt, overrides), timeout=timeout)
        except asyncio.TimeoutError:
            raise ResponseTimeoutError(
                f"No advisor response within {timeout}s",
                provider=self._integration.get_active_provider(),
            )
        except ProviderError:
            raise
        except Exception as exc:
            logger.error(
                "advisor_pipeline_unexpected_error",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ServiceUnavailableError(f"Unexpected error: {exc}", provider="orchestrator") from exc

        if isinstance(result, Err):
            raise result.error
        return result.value

    async def _fallback(
        self,
        advisor: Advisor,
        question: str,
        domain: str,
        analysis: QuestionAnalysis,
        error: ProviderError,
        started: float,
    ) -> AdvisorResponse:
        error_info = ErrorInfo(kind=error.kind.value, message=error.message, fallback_used=True)
        record_advisor_fallback(error.kind.value)

        if not self._config.fallback_to_static:
            return self._apology(advisor, analysis, error_info, started)

        try:
            static = await self._static_generator.generate(advisor, question, domain, analysis)
        except Exception as exc:
            # The LLM error stays the reported cause.
            logger.error(
                "advisor_static_fallback_failed",
                advisor_id=advisor.id,
                error=str(exc),
                error_type=type(exc).__name__,
                original_kind=error.kind.value,
                original_error=error.message,
            )
            return self._apology(advisor, analysis, error_info, started)

        if not static.content.strip():
            logger.error("advisor_static_fallback_empty", advisor_id=advisor.id, original_kind=error.kind.value)
            return self._apology(advisor, analysis, error_info, started)

        logger.info("advisor_pipeline_fallback", advisor_id=advisor.id, kind=error.kind.value)
        return AdvisorResponse(
            advisor_id=advisor.id,
            content=static.content,
            persona=_persona(advisor),
            metadata=ResponseMetadata(
                response_type="static",
                processing_time_ms=_elapsed_ms(started, self._clock()),
                confidence=static.confidence,
                question_analysis=analysis,
                frameworks=static.frameworks,
                error_info=error_info,
            ),
        )

    def _apology(
        self,
        advisor: Advisor,
        analysis: QuestionAnalysis,
        error_info: ErrorInfo,
        started: float,
    ) -> AdvisorResponse:
        return AdvisorResponse(
            advisor_id=advisor.id,
            content=APOLOGY_MESSAGE,
            persona=_persona(advisor),
            metadata=ResponseMetadata(
                response_type="static",
                processing_time_ms=_elapsed_ms(started, self._clock()),
                confidence=APOLOGY_CONFIDENCE,
                question_analysis=analysis,
                error_info=error_info,
            ),
        )

    @staticmethod
    def _finish(outcome: PipelineOutcome, response: AdvisorResponse) -> PipelineOutcome:
        outcome.response = response
        outcome.advance(PipelineState.DONE)
        record_advisor_response(response.metadata.response_type)
        return outcome

    def _settle(
        self,
        advisor: Advisor,
        result: Union[PipelineOutcome, BaseException],
        analysis: QuestionAnalysis,
    ) -> PipelineOutcome:
        """Turn a crashed pipeline into an apology outcome."""
        if isinstance(result, PipelineOutcome):
            return result
        if not isinstance(result, Exception):
            raise result

        logger.error(
            "advisor_pipeline_crashed",
            advisor_id=advisor.id,
            error=str(result),
            error_type=type(result).__name__,
        )
        outcome = PipelineOutcome(advisor.id)
        outcome.fell_back = True
        outcome.advance(PipelineState.FAILURE)
        error_info = ErrorInfo(kind=ErrorKind.SERVICE_UNAVAILABLE.value, message=str(result) or type(result).__name__)
        record_advisor_fallback(error_info.kind)
        return self._finish(outcome, self._apology(advisor, analysis, error_info, self._clock()))


_response_orchestrator: Optional[ResponseOrchestrator] = None


def get_response_orchestrator() -> ResponseOrchestrator:
    """Global singleton accessor, built on the shared integration layer."""
    global _response_orchestrator
    if _response_orchestrator is None:
        _response_orchestrator = ResponseOrchestrator()
    return _response_orchestrator


def reset_response_orchestrator() -> None:
    global _response_orchestrator
    _response_orchestrator = None
