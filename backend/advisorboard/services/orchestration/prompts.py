"""
Persona prompt construction.

Prompts are plain text built from the advisor's identity, the frameworks
of the advisor's domain and the raw question. The question classification
only shapes the closing instruction.
"""
from typing import List, Optional

from advisorboard.models.advisor import Advisor
from advisorboard.models.analysis import QuestionAnalysis
from advisorboard.services.analysis.keywords import DOMAIN_FRAMEWORKS

BLANK_QUESTION_PLACEHOLDER = "Please provide general guidance."

TYPE_INSTRUCTIONS = {
    "ideation": "Focus on generating and evaluating concrete ideas.",
    "strategy": "Focus on strategic options, trade-offs and sequencing.",
    "technical": "Focus on implementation approach, architecture and risks.",
    "clinical": "Focus on clinical, regulatory and patient-safety considerations.",
    "educational": "Focus on learning outcomes, pedagogy and assessment.",
    "remedial": "Focus on holistic, evidence-aware wellness guidance.",
    "general": "Focus on practical, actionable guidance.",
}


def get_domain_frameworks(domain: str) -> List[str]:
    """Frameworks associated with an advisor domain (empty for unknown domains)."""
    return list(DOMAIN_FRAMEWORKS.get(domain, ()))


class PersonaPromptBuilder:
    """Builds the LLM prompt for one advisor."""

    def build(
        self,
        advisor: Advisor,
        question: str,
        analysis: Optional[QuestionAnalysis] = None,
    ) -> str:
        """
        Build a persona prompt.

        Args:
            advisor: Advisor persona
            question: Raw user question
            analysis: Shared question analysis, if available

        Returns:
            Prompt text
        """
        safe_question = (question or "").strip() or BLANK_QUESTION_PLACEHOLDER
        expertise_areas = advisor.specialties or [advisor.expertise]
        frameworks = get_domain_frameworks(advisor.domain)

        sections = [
            f"You are {advisor.name}, an advisor with expertise in {advisor.expertise}.",
            f"ROLE CONTEXT: {advisor.background}",
            f"EXPERTISE AREAS: {', '.join(expertise_areas)}",
        ]
        if frameworks:
            sections.append(f"FRAMEWORKS TO REFERENCE: {', '.join(frameworks)}")
        sections.append(f'USER QUESTION: "{safe_question}"')

        closing = (
            "Please provide a detailed, expert-level response that reflects your "
            "background and expertise. Use specific examples and reference relevant "
            "frameworks where they help."
        )
        if analysis is not None:
            closing = f"{TYPE_INSTRUCTIONS.get(analysis.type, TYPE_INSTRUCTIONS['general'])} {closing}"
        sections.append(closing)

        return "\n\n".join(sections)
