from advisorboard.models.advisor import (
    Advisor,
    AdvisorResponse,
    DomainId,
    ErrorInfo,
    GenerationResult,
    PersonaSnapshot,
    ResponseMetadata,
)
from advisorboard.models.analysis import MULTI_DOMAIN, QuestionAnalysis, QuestionContext
from advisorboard.models.llm import (
    Err,
    GenerationRequest,
    LLMConfig,
    LLMOverrides,
    NormalizedResponse,
    Ok,
    ProviderResult,
    TokenUsage,
)

__all__ = [
    "Advisor",
    "AdvisorResponse",
    "DomainId",
    "Err",
    "ErrorInfo",
    "GenerationRequest",
    "GenerationResult",
    "LLMConfig",
    "LLMOverrides",
    "MULTI_DOMAIN",
    "NormalizedResponse",
    "Ok",
    "PersonaSnapshot",
    "ProviderResult",
    "QuestionAnalysis",
    "QuestionContext",
    "ResponseMetadata",
    "TokenUsage",
]
