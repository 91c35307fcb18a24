"""
Consultation endpoint.

POST /consultations
"""
import time
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from advisorboard.core.errors import ConfigurationError, InvalidRequestError
from advisorboard.core.logging import get_logger
from advisorboard.models.advisor import Advisor, GenerationResult
from advisorboard.models.llm import LLMOverrides
from advisorboard.services.orchestration.orchestrator import get_response_orchestrator

logger = get_logger(__name__)

router = APIRouter()


class ConsultationRequest(BaseModel):
    """Question addressed to a board of advisors."""
    question: str
    advisors: List[Advisor] = Field(default_factory=list)
    domain: str
    overrides: Optional[LLMOverrides] = None


@router.post("", response_model=GenerationResult)
async def create_consultation(request: ConsultationRequest):
    """
    Ask every advisor the question and return one response per advisor.

    Provider outages never fail the request; affected advisors answer with
    static content and carry `error_info` in their metadata.
    """
    start_time = time.time()
    orchestrator = get_response_orchestrator()

    try:
        result = await orchestrator.generate_advisor_responses(
            question=request.question,
            advisors=request.advisors,
            domain=request.domain,
            overrides=request.overrides,
        )
    except (InvalidRequestError, ConfigurationError) as exc:
        logger.warning(
            "consultation_rejected",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise HTTPException(status_code=400, detail=str(exc))

    logger.info(
        "consultation_completed",
        domain=request.domain,
        advisors=len(request.advisors),
        success_count=result.success_count,
        error_count=result.error_count,
        latency_ms=int((time.time() - start_time) * 1000),
    )
    return result
