"""
Golden tests for the question analysis engine.

The keyword tables are fixtures of classifier behaviour: a change to them
should show up here.
"""
import pytest

from advisorboard.models.analysis import MULTI_DOMAIN, QuestionContext
from advisorboard.services.analysis.question_analysis import (
    QuestionAnalysisEngine,
    analyze_question,
    normalize_text,
)

FDA_QUESTION = "What are the key FDA regulatory considerations for Phase III oncology trials?"


class TestGoldenQuestions:

    def test_clinical_regulatory_question(self):
        analysis = analyze_question(FDA_QUESTION)

        assert analysis.keywords == ["trial", "regulatory", "fda", "considerations", "phase", "oncology"]
        assert analysis.domain == "cliniboard"
        assert analysis.type == "clinical"
        assert analysis.confidence == 1.0
        assert analysis.sentiment == "neutral"
        assert analysis.complexity == "medium"
        assert analysis.urgency == "low"

    def test_technical_product_question(self):
        analysis = analyze_question("How to implement a scalable API architecture for our product?")

        assert analysis.keywords == ["product", "architecture", "api", "implement", "scalable"]
        assert analysis.domain == "productboard"
        assert analysis.type == "technical"
        assert analysis.confidence == 1.0

    def test_cross_domain_question_is_multi_domain(self):
        analysis = analyze_question(
            "What learning strategy should our product team use for patient education?"
        )

        assert analysis.keywords == ["product", "patient", "education", "learning", "strategy", "team"]
        assert analysis.domain == MULTI_DOMAIN
        assert analysis.type == "strategy"
        assert analysis.confidence == pytest.approx(0.75)

    def test_empty_question(self):
        analysis = analyze_question("")

        assert analysis.keywords == []
        assert analysis.domain == MULTI_DOMAIN
        assert analysis.type == "general"
        assert analysis.confidence == pytest.approx(0.3)
        assert analysis.sentiment == "neutral"
        assert analysis.complexity == "low"
        assert analysis.urgency == "low"


class TestDeterminism:

    @pytest.mark.parametrize(
        "question",
        [
            FDA_QUESTION,
            "",
            "URGENT!!! Our launch is failing, what now?",
            "word " * 200,
            "¿Qué tal? 🙂 naturopathic remedies",
        ],
    )
    def test_same_input_same_output(self, question):
        engine = QuestionAnalysisEngine()
        first = engine.analyze(question)
        second = engine.analyze(question)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()
        assert 0.0 <= first.confidence <= 1.0
        assert len(first.keywords) <= 10


class TestHeuristics:

    def test_urgency_from_words_and_punctuation(self):
        assert analyze_question("We need this ASAP, the deadline is tomorrow").urgency == "high"
        assert analyze_question("Can you look at this!").urgency == "medium"
        assert analyze_question("Thoughts on pricing tiers?").urgency == "low"

    def test_all_caps_words_raise_urgency(self):
        assert analyze_question("PLEASE HELP with pricing").urgency == "high"

    def test_sentiment(self):
        assert analyze_question("I love this great product idea").sentiment == "positive"
        assert analyze_question("I am worried about this terrible problem").sentiment == "negative"
        assert analyze_question("Describe the roadmap").sentiment == "neutral"

    def test_complexity(self):
        assert analyze_question("A simple overview please").complexity == "low"
        long_question = (
            "We need a comprehensive and detailed plan that covers regulatory, clinical, commercial "
            "and operational aspects of our program across three regions, including timelines, "
            "budgets, staffing, vendor selection and risk mitigation for every workstream involved?"
        )
        assert analyze_question(long_question).complexity == "high"

    def test_keywords_are_capped(self):
        question = " ".join(
            ["product", "feature", "roadmap", "user", "market", "launch", "prototype",
             "customer", "feedback", "analytics", "metrics", "growth"]
        )
        assert len(analyze_question(question).keywords) == 10

    def test_domain_tie_is_multi_domain(self):
        analysis = analyze_question("clinical education")
        assert analysis.domain == MULTI_DOMAIN


class TestContext:

    def test_follow_up_indicators_and_topics(self):
        analysis = analyze_question("Building on that, what about pricing strategy for enterprise customers?")

        assert "building on" in analysis.context.follow_up_indicators
        assert "what about" in analysis.context.follow_up_indicators
        assert analysis.context.related_topics == ["building", "about", "pricing", "strategy", "enterprise"]

    def test_caller_context_is_preserved(self):
        context = QuestionContext(session_id="s-1", previous_questions=["First?"])
        analysis = analyze_question("Also, the roadmap?", context)

        assert analysis.context.session_id == "s-1"
        assert analysis.context.previous_questions == ["First?"]
        assert analysis.context.follow_up_indicators == ["also"]


def test_normalize_text():
    assert normalize_text("  What's   the PLAN?! ") == "what s the plan"
