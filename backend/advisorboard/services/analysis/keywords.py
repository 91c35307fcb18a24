"""
Keyword tables for question classification.

Pure data. Order matters: keywords are ranked by weight, and ties keep
table order (domain table first, then question-type table, then free words
in text order), so reordering an entry changes classifier output.
"""
from typing import Dict, Tuple

DOMAIN_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "productboard": (
        "product", "feature", "roadmap", "user", "market", "launch", "mvp", "prototype",
        "customer", "feedback", "analytics", "metrics", "kpi", "growth", "monetization",
        "pricing", "competition", "positioning", "brand", "marketing", "sales",
    ),
    "cliniboard": (
        "clinical", "trial", "patient", "treatment", "therapy", "drug", "medication",
        "diagnosis", "symptom", "disease", "medical", "healthcare", "regulatory",
        "fda", "approval", "safety", "efficacy", "protocol", "research", "study",
    ),
    "eduboard": (
        "education", "learning", "curriculum", "student", "teacher", "course",
        "assessment", "pedagogy", "instruction", "classroom", "online", "elearning",
        "training", "skill", "knowledge", "academic", "university", "school",
    ),
    "remediboard": (
        "natural", "holistic", "alternative", "herbal", "supplement", "wellness",
        "nutrition", "lifestyle", "prevention", "traditional", "chinese", "medicine",
        "acupuncture", "naturopathic", "homeopathic", "organic", "detox", "healing",
    ),
}

QUESTION_TYPE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "ideation": (
        "idea", "concept", "innovation", "create", "develop", "design", "build",
        "new", "novel", "unique", "brainstorm", "ideate", "invent",
    ),
    "strategy": (
        "strategy", "plan", "approach", "framework", "methodology", "roadmap",
        "direction", "goal", "objective", "vision", "mission", "competitive",
    ),
    "technical": (
        "technical", "implementation", "architecture", "system", "technology",
        "code", "software", "hardware", "integration", "api", "database",
    ),
    "clinical": (
        "clinical", "medical", "patient", "treatment", "diagnosis", "therapeutic",
        "protocol", "trial", "study", "research", "safety", "efficacy",
    ),
    "educational": (
        "educational", "learning", "teaching", "curriculum", "instruction",
        "assessment", "pedagogy", "academic", "training", "skill",
    ),
    "remedial": (
        "remedial", "alternative", "natural", "holistic", "wellness", "prevention",
        "lifestyle", "nutrition", "supplement", "traditional",
    ),
    "general": (
        "help", "advice", "guidance", "recommendation", "suggestion", "opinion",
        "thoughts", "perspective", "insight", "experience",
    ),
}

# Phrases that add a fixed bonus on top of keyword hits.
DOMAIN_BONUS_PHRASES: Dict[str, Tuple[str, ...]] = {
    "productboard": ("product", "business"),
    "cliniboard": ("medical", "clinical"),
    "eduboard": ("education", "learning"),
    "remediboard": ("natural", "alternative"),
}

QUESTION_TYPE_BONUS_PHRASES: Dict[str, Tuple[str, ...]] = {
    "technical": ("how to", "implement"),
    "strategy": ("strategy", "approach"),
    "ideation": ("idea", "create"),
}

DOMAIN_KEYWORD_WEIGHT = 2.0
TYPE_KEYWORD_WEIGHT = 1.5
GENERAL_WORD_WEIGHT = 1.0
KEYWORD_HIT_SCORE = 2
PHRASE_BONUS_SCORE = 3
MAX_KEYWORDS = 10

URGENCY_INDICATORS: Tuple[str, ...] = (
    "urgent", "asap", "immediately", "quickly", "fast", "emergency", "critical",
    "deadline", "time-sensitive", "rush", "priority", "now",
)

COMPLEXITY_HIGH_INDICATORS: Tuple[str, ...] = (
    "complex", "complicated", "sophisticated", "advanced", "comprehensive",
    "detailed", "in-depth", "thorough", "extensive", "multi-faceted",
)

COMPLEXITY_LOW_INDICATORS: Tuple[str, ...] = (
    "simple", "basic", "easy", "straightforward", "quick", "brief",
    "overview", "summary", "introduction", "beginner",
)

POSITIVE_WORDS: Tuple[str, ...] = (
    "good", "great", "excellent", "amazing", "wonderful", "fantastic",
    "love", "like", "enjoy", "excited", "optimistic", "confident",
)

NEGATIVE_WORDS: Tuple[str, ...] = (
    "bad", "terrible", "awful", "hate", "dislike", "worried", "concerned",
    "frustrated", "disappointed", "problem", "issue", "challenge",
)

FOLLOW_UP_INDICATORS: Tuple[str, ...] = (
    "also", "additionally", "furthermore", "moreover", "building on",
    "following up", "related to", "in addition", "another question",
    "what about", "how about", "can you also",
)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "this", "that", "these", "those",
    "what", "where", "when", "why", "how", "who", "which", "whom",
})

# Domain-specific frameworks attached to advisor responses.
DOMAIN_FRAMEWORKS: Dict[str, Tuple[str, ...]] = {
    "productboard": ("Jobs-to-be-Done", "North Star Framework", "OKRs"),
    "cliniboard": ("ICH Guidelines", "FDA Guidance", "Clinical Development Plan"),
    "eduboard": ("Bloom's Taxonomy", "Backward Design", "Learning Analytics"),
    "remediboard": ("Integrative Medicine", "Holistic Assessment", "Natural Healing"),
}
