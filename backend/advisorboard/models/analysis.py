"""
Pydantic models for question classification output.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

QuestionType = Literal[
    "ideation",
    "strategy",
    "technical",
    "general",
    "clinical",
    "educational",
    "remedial",
]
Sentiment = Literal["positive", "neutral", "negative"]
Level = Literal["low", "medium", "high"]

MULTI_DOMAIN = "multi-domain"


class QuestionContext(BaseModel):
    """Optional enrichment derived from the question and session history."""

    model_config = ConfigDict(frozen=True)

    previous_questions: List[str] = Field(default_factory=list)
    session_id: Optional[str] = None
    user_intent: Optional[str] = None
    related_topics: List[str] = Field(default_factory=list)
    follow_up_indicators: List[str] = Field(default_factory=list)


class QuestionAnalysis(BaseModel):
    """
    Structured classification of one question.

    Schema:
    {
      "type": "ideation | strategy | technical | general | clinical | educational | remedial",
      "domain": "productboard | cliniboard | eduboard | remediboard | multi-domain",
      "keywords": ["..."],          # ranked, at most 10
      "confidence": 0.0-1.0,
      "sentiment": "positive | neutral | negative",
      "complexity": "low | medium | high",
      "urgency": "low | medium | high"
    }
    """

    model_config = ConfigDict(frozen=True)

    type: QuestionType
    domain: str
    keywords: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    sentiment: Sentiment = "neutral"
    complexity: Level = "medium"
    urgency: Level = "low"
    context: Optional[QuestionContext] = None
