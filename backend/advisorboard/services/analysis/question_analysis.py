"""
Question analysis engine.

Rule-based, deterministic classification of a user question into type,
domain, ranked keywords, confidence, sentiment, complexity and urgency.
No I/O and no state: the same text always produces the same analysis.

Matching rules:
- Text is lowercased, punctuation becomes whitespace, whitespace collapses.
- A single-word table entry matches any token that starts with it
  ("trials" matches "trial"); multi-word entries match as whole phrases.
- Punctuation density ("?" and "!") and all-caps words are read from the
  raw question, before normalization.
"""
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from advisorboard.models.analysis import MULTI_DOMAIN, QuestionAnalysis, QuestionContext
from advisorboard.services.analysis.keywords import (
    COMPLEXITY_HIGH_INDICATORS,
    COMPLEXITY_LOW_INDICATORS,
    DOMAIN_BONUS_PHRASES,
    DOMAIN_KEYWORD_WEIGHT,
    DOMAIN_KEYWORDS,
    FOLLOW_UP_INDICATORS,
    GENERAL_WORD_WEIGHT,
    KEYWORD_HIT_SCORE,
    MAX_KEYWORDS,
    NEGATIVE_WORDS,
    PHRASE_BONUS_SCORE,
    POSITIVE_WORDS,
    QUESTION_TYPE_BONUS_PHRASES,
    QUESTION_TYPE_KEYWORDS,
    STOP_WORDS,
    TYPE_KEYWORD_WEIGHT,
    URGENCY_INDICATORS,
)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_ALL_CAPS_WORD = re.compile(r"\b[A-Z]{4,}\b")

MAX_RELATED_TOPICS = 5
REPEATED_WORD_THRESHOLD = 10


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    lowered = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


class _Text:
    """Normalized view of a question shared by all scoring steps."""

    def __init__(self, raw: str):
        self.raw = raw
        self.normalized = normalize_text(raw)
        self.tokens: List[str] = self.normalized.split() if self.normalized else []
        self._padded = f" {self.normalized} "

    def matching_tokens(self, term: str) -> List[str]:
        return [token for token in self.tokens if token.startswith(term)]

    def contains(self, term: str) -> bool:
        term = normalize_text(term)
        if not term:
            return False
        if " " in term:
            return f" {term} " in self._padded
        return any(token.startswith(term) for token in self.tokens)

    def count_matches(self, terms: Iterable[str]) -> int:
        return sum(1 for term in terms if self.contains(term))


class QuestionAnalysisEngine:
    """
    Pure question classifier.

    Scoring:
    - Keywords: domain table hits (weight 2.0), question-type table hits
      (1.5), other non-stop words longer than 3 letters (1.0); ranked by
      weight, ties in discovery order, top 10.
    - Domain: +2 per ranked keyword in the domain's table, +3 when a domain
      phrase appears. No positive score, a tie, or more than one positive
      domain gives "multi-domain".
    - Type: same scheme over the type table; ties or all-zero give "general".
    - Confidence: 0.3 + min(0.08 * keywords, 0.25) + 0.25 (single domain)
      + 0.2 (specific type), capped at 1.0.
    """

    def analyze(self, question: str, context: Optional[QuestionContext] = None) -> QuestionAnalysis:
        """
        Analyze a user question.

        Args:
            question: Raw question text
            context: Optional session context to enrich

        Returns:
            QuestionAnalysis (identical for identical input)
        """
        text = _Text(question or "")
        keywords = self.extract_keywords(text)
        domain = self.identify_domain(keywords, text)
        question_type = self.categorize_question(keywords, text)

        return QuestionAnalysis(
            type=question_type,
            domain=domain,
            keywords=keywords,
            confidence=self.calculate_confidence(keywords, domain, question_type),
            sentiment=self.analyze_sentiment(text),
            complexity=self.analyze_complexity(text),
            urgency=self.analyze_urgency(text),
            context=self.enhance_context(text, context),
        )

    # ------------------------------------------------------------------
    # Keywords, domain, type
    # ------------------------------------------------------------------

    def extract_keywords(self, text: _Text) -> List[str]:
        if not text.tokens:
            return []

        ranked: List[Tuple[str, float]] = []
        seen: Set[str] = set()
        consumed: Set[str] = set()

        for table, weight in (
            (DOMAIN_KEYWORDS, DOMAIN_KEYWORD_WEIGHT),
            (QUESTION_TYPE_KEYWORDS, TYPE_KEYWORD_WEIGHT),
        ):
            for words in table.values():
                for keyword in words:
                    if keyword in STOP_WORDS:
                        continue
                    hits = text.matching_tokens(keyword)
                    if not hits:
                        continue
                    consumed.update(hits)
                    if keyword not in seen:
                        seen.add(keyword)
                        ranked.append((keyword, weight))

        for token in text.tokens:
            if len(token) > 3 and token not in STOP_WORDS and token not in consumed and token not in seen:
                seen.add(token)
                ranked.append((token, GENERAL_WORD_WEIGHT))

        # sorted() is stable, so equal weights keep discovery order.
        ranked = sorted(ranked, key=lambda item: item[1], reverse=True)
        return [keyword for keyword, _ in ranked[:MAX_KEYWORDS]]

    @staticmethod
    def _score(
        keywords: Sequence[str],
        text: _Text,
        table: Dict[str, Tuple[str, ...]],
        bonus_phrases: Dict[str, Tuple[str, ...]],
    ) -> Dict[str, int]:
        scores = {name: 0 for name in table}
        for keyword in keywords:
            for name, words in table.items():
                if keyword in words:
                    scores[name] += KEYWORD_HIT_SCORE
        for name, phrases in bonus_phrases.items():
            if any(text.contains(phrase) for phrase in phrases):
                scores[name] += PHRASE_BONUS_SCORE
        return scores

    def identify_domain(self, keywords: Sequence[str], text: _Text) -> str:
        scores = self._score(keywords, text, DOMAIN_KEYWORDS, DOMAIN_BONUS_PHRASES)
        max_score = max(scores.values())
        top = [name for name, score in scores.items() if score == max_score and score > 0]
        positive = [name for name, score in scores.items() if score > 0]
        if len(top) != 1 or len(positive) > 1:
            return MULTI_DOMAIN
        return top[0]

    def categorize_question(self, keywords: Sequence[str], text: _Text) -> str:
        if not text.tokens:
            return "general"
        scores = self._score(keywords, text, QUESTION_TYPE_KEYWORDS, QUESTION_TYPE_BONUS_PHRASES)
        max_score = max(scores.values())
        top = [name for name, score in scores.items() if score == max_score]
        if max_score == 0 or len(top) > 1:
            return "general"
        return top[0]

    @staticmethod
    def calculate_confidence(keywords: Sequence[str], domain: str, question_type: str) -> float:
        confidence = 0.3
        confidence += min(len(keywords) * 0.08, 0.25)
        if domain != MULTI_DOMAIN:
            confidence += 0.25
        if question_type != "general":
            confidence += 0.2
        return round(min(confidence, 1.0), 4)

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    @staticmethod
    def analyze_sentiment(text: _Text) -> str:
        positive = text.count_matches(POSITIVE_WORDS)
        negative = text.count_matches(NEGATIVE_WORDS)
        if positive > negative:
            return "positive"
        if negative > positive:
            return "negative"
        return "neutral"

    @staticmethod
    def analyze_complexity(text: _Text) -> str:
        score = 2 * text.count_matches(COMPLEXITY_HIGH_INDICATORS)
        score -= text.count_matches(COMPLEXITY_LOW_INDICATORS)

        length = len(text.normalized)
        if length > 300:
            score += 2
        elif length > 150:
            score += 1
        if length < 30:
            score -= 1

        if text.raw.count("?") > 1:
            score += 1

        if any(count > REPEATED_WORD_THRESHOLD for count in Counter(text.tokens).values()):
            score += 1

        if score >= 2:
            return "high"
        if score <= -1:
            return "low"
        return "medium"

    @staticmethod
    def analyze_urgency(text: _Text) -> str:
        score = 2 * text.count_matches(URGENCY_INDICATORS)
        score += text.raw.count("!")
        score += len(_ALL_CAPS_WORD.findall(text.raw))
        if score >= 2:
            return "high"
        if score >= 1:
            return "medium"
        return "low"

    @staticmethod
    def enhance_context(text: _Text, context: Optional[QuestionContext]) -> QuestionContext:
        follow_ups = [indicator for indicator in FOLLOW_UP_INDICATORS if text.contains(indicator)]

        topics: List[str] = []
        for token in text.tokens:
            if len(token) > 4 and token not in STOP_WORDS and token not in FOLLOW_UP_INDICATORS and token not in topics:
                topics.append(token)
            if len(topics) == MAX_RELATED_TOPICS:
                break

        base = context or QuestionContext()
        return base.model_copy(update={"follow_up_indicators": follow_ups, "related_topics": topics})


_engine = QuestionAnalysisEngine()


def get_question_analysis_engine() -> QuestionAnalysisEngine:
    return _engine


def analyze_question(question: str, context: Optional[QuestionContext] = None) -> QuestionAnalysis:
    """Module-level convenience wrapper around the shared engine."""
    return _engine.analyze(question, context)
