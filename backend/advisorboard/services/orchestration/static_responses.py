"""
Static response generator used when no LLM provider can answer.

Best-effort, deterministic content templated from the advisor persona,
the question type and domain frameworks. The orchestrator treats it as an
opaque collaborator: anything with an async `generate(advisor, question,
domain)` returning a StaticResponse can be plugged in.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from advisorboard.models.advisor import Advisor
from advisorboard.models.analysis import QuestionAnalysis
from advisorboard.services.analysis.question_analysis import analyze_question
from advisorboard.services.orchestration.prompts import get_domain_frameworks

STATIC_CONFIDENCE = 0.2

OPENINGS = {
    "ideation": "When exploring a new idea like this, I start by testing whether the underlying problem is real and worth solving.",
    "strategy": "Strategically, the most important step is to be explicit about the outcome you want and the trade-offs you accept to reach it.",
    "technical": "On the technical side, I would begin with the constraints: scale, reliability requirements and the integration points you cannot change.",
    "clinical": "From a clinical development standpoint, patient safety and regulatory expectations frame every other decision.",
    "educational": "From a learning design perspective, I would work backwards from the outcomes learners should demonstrate.",
    "remedial": "From an integrative perspective, I would look at the whole person and the lifestyle factors around the concern.",
    "general": "Here is how I would think about this based on my experience.",
}

NEXT_STEPS = (
    "Clarify the single most important outcome and how you will measure it.",
    "Identify the riskiest assumption and design a small test for it.",
    "Agree on a short review cycle so the plan adapts to what you learn.",
)


class StaticResponse(BaseModel):
    content: str
    frameworks: List[str] = Field(default_factory=list)
    confidence: float = STATIC_CONFIDENCE
    question_type: str = "general"


class StaticResponseGenerator:
    """Default static content generator."""

    async def generate(
        self,
        advisor: Advisor,
        question: str,
        domain: str,
        analysis: Optional[QuestionAnalysis] = None,
    ) -> StaticResponse:
        analysis = analysis or analyze_question(question)
        frameworks = get_domain_frameworks(advisor.domain) or get_domain_frameworks(domain)
        opening = OPENINGS.get(analysis.type, OPENINGS["general"])

        lines = [
            f"As {advisor.name}, drawing on my background in {advisor.expertise}: {opening}",
        ]
        if question.strip():
            lines.append(f'Regarding "{question.strip()}", these are the points I would focus on:')
        else:
            lines.append("These are the points I would focus on:")
        lines.extend(f"{index}. {step}" for index, step in enumerate(NEXT_STEPS, start=1))
        if frameworks:
            lines.append(f"Frameworks worth applying here: {', '.join(frameworks)}.")
        if advisor.specialties:
            lines.append(f"My perspective is shaped by work in {', '.join(advisor.specialties)}.")

        return StaticResponse(
            content="\n".join(lines),
            frameworks=frameworks,
            question_type=analysis.type,
        )
