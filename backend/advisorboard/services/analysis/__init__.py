from advisorboard.services.analysis.question_analysis import (
    QuestionAnalysisEngine,
    analyze_question,
    get_question_analysis_engine,
    normalize_text,
)

__all__ = [
    "QuestionAnalysisEngine",
    "analyze_question",
    "get_question_analysis_engine",
    "normalize_text",
]
