"""
Pydantic models for advisors and the responses produced for them.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from advisorboard.models.analysis import QuestionAnalysis


class DomainId(str, Enum):
    PRODUCTBOARD = "productboard"
    CLINIBOARD = "cliniboard"
    EDUBOARD = "eduboard"
    REMEDIBOARD = "remediboard"


class Advisor(BaseModel):
    """Advisor persona supplied by the caller; never mutated here."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    expertise: str
    background: str
    domain: str
    specialties: List[str] = Field(default_factory=list)


class PersonaSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    expertise: str
    background: str
    tone: str = "professional"
    specialization: List[str] = Field(default_factory=list)


class ErrorInfo(BaseModel):
    """The LLM failure that caused a static response."""

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str
    fallback_used: bool = True


class ResponseMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_type: Literal["llm", "static"]
    provider: Optional[str] = None
    processing_time_ms: float = 0.0
    confidence: float = Field(..., ge=0.0, le=1.0)
    question_analysis: Optional[QuestionAnalysis] = None
    frameworks: List[str] = Field(default_factory=list)
    error_info: Optional[ErrorInfo] = None


class AdvisorResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    advisor_id: str
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    persona: PersonaSnapshot
    metadata: ResponseMetadata


class GenerationResult(BaseModel):
    """
    Aggregate output of one consultation.

    `responses` preserves advisor input order; success_count + error_count
    equals the number of responses.
    """

    responses: List[AdvisorResponse]
    total_processing_time_ms: float
    success_count: int
    error_count: int
    cache_hit_count: int
    question_analysis: QuestionAnalysis
    batch_count: int = 0
