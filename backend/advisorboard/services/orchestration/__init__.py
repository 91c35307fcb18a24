from advisorboard.services.orchestration.orchestrator import (
    PipelineState,
    ResponseOrchestrator,
    get_response_orchestrator,
    reset_response_orchestrator,
)
from advisorboard.services.orchestration.prompts import PersonaPromptBuilder, get_domain_frameworks
from advisorboard.services.orchestration.static_responses import StaticResponse, StaticResponseGenerator

__all__ = [
    "PersonaPromptBuilder",
    "PipelineState",
    "ResponseOrchestrator",
    "StaticResponse",
    "StaticResponseGenerator",
    "get_domain_frameworks",
    "get_response_orchestrator",
    "reset_response_orchestrator",
]
