"""
Text Severity Analyzer - rates the severity of an issue from its title and
description.

The language model rates severity (1-10), suggests an urgency boost (0-15),
classifies the category and judges civic relevance. When the model is not
configured, fails, or returns an unusable reply, a deterministic keyword
engine produces the same fields. Every result carries its source ("groq" or
"fallback") so stored scores can be audited.
"""

from civicpulse.core.exceptions import AIResponseParseError, UpstreamDegradation
from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.utils.ai_json import extract_json_payload, text_field
from typing import Optional
import logging

logger = logging.getLogger(__name__)

CATEGORIES = ("Road", "Water", "Electricity", "Waste", "Other")

IRRELEVANT_TEXT_MESSAGE = (
    "The description does not appear to be related to civic infrastructure issues. "
    "Please describe problems with roads, water supply, electricity, waste management, "
    "or other public infrastructure."
)

SYSTEM_PROMPT = "You are an AI assistant that analyzes civic infrastructure issues. Always respond with valid JSON only."

# Fallback keyword tables. Matching is substring-based on lower-cased text.
CATEGORY_KEYWORDS = [
    ("Waste", ("garbage", "trash", "waste")),
    ("Road", ("road", "pothole", "street")),
    ("Water", ("water", "pipe", "leak")),
    ("Electricity", ("light", "electricity", "power")),
]
HIGH_SEVERITY_KEYWORDS = ("broken", "damaged", "dangerous", "hazard", "emergency", "urgent", "critical", "severe")
MEDIUM_SEVERITY_KEYWORDS = ("leaking", "cracked", "blocked", "stuck", "malfunctioning")
HIGH_IMPACT_LOCATIONS = ("hospital", "school", "station", "main road", "highway", "market")
SAFETY_KEYWORDS = ("unsafe", "danger", "risk", "accident", "injury")

LOCATION_BOOST = 10
SAFETY_BOOST = 5
MAX_URGENCY_BOOST = 15


class TextAnalysis:
    """Common shape of text analysis results."""

    source = "unknown"

    def __init__(
        self,
        text_severity: int = 5,
        urgency_boost: int = 0,
        category: str = "Other",
        explanation: str = "",
        is_relevant: bool = True,
        error: Optional[str] = None,
    ):
        self.text_severity = text_severity
        self.urgency_boost = urgency_boost
        self.category = category
        self.explanation = explanation
        self.is_relevant = is_relevant
        self.error = error


class AITextResult(TextAnalysis):
    """Severity derived from the language model."""
    source = "groq"


class HeuristicTextResult(TextAnalysis):
    """Severity derived from the keyword rule engine."""
    source = "fallback"


def normalize_category(category: Optional[str]) -> Optional[str]:
    """Map free-form category text onto the fixed set, or None if empty."""
    if not category or not str(category).strip():
        return None
    wanted = str(category).strip().lower()
    for known in CATEGORIES:
        if known.lower() == wanted:
            return known
    return "Other"


def _clamp_int(value, low: int, high: int, default: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return int(round(min(high, max(low, number))))


def fallback_text_analysis(text: str, user_category: Optional[str] = None) -> HeuristicTextResult:
    """
    Deterministic keyword analysis.

    Severity starts at 5. Any high-severity keyword sets it to 8 + min(count, 2);
    otherwise any medium keyword sets it to 6 + min(count, 2). Each distinct
    high-impact location adds 10 to the boost; each distinct safety keyword adds
    5 to the boost and 1 to severity. Severity is clamped to [1, 10] and the
    boost to [0, 15].
    """
    lower_text = (text or "").lower()

    category = normalize_category(user_category)
    if category is None:
        category = "Other"
        for candidate, keywords in CATEGORY_KEYWORDS:
            if any(keyword in lower_text for keyword in keywords):
                category = candidate
                break

    severity = 5
    urgency_boost = 0
    explanation = "Standard priority"

    high_count = sum(1 for keyword in HIGH_SEVERITY_KEYWORDS if keyword in lower_text)
    medium_count = sum(1 for keyword in MEDIUM_SEVERITY_KEYWORDS if keyword in lower_text)

    if high_count > 0:
        severity = 8 + min(high_count, 2)
        explanation = "High severity issue"
    elif medium_count > 0:
        severity = 6 + min(medium_count, 2)
        explanation = "Moderate severity issue"

    for location in HIGH_IMPACT_LOCATIONS:
        if location in lower_text:
            urgency_boost += LOCATION_BOOST

    for keyword in SAFETY_KEYWORDS:
        if keyword in lower_text:
            urgency_boost += SAFETY_BOOST
            severity = min(10, severity + 1)

    severity = min(10, max(1, severity))
    urgency_boost = min(MAX_URGENCY_BOOST, max(0, urgency_boost))

    logger.info(f"Fallback text analysis: severity={severity}, boost={urgency_boost}, category={category}")

    return HeuristicTextResult(
        text_severity=severity,
        urgency_boost=urgency_boost,
        category=category,
        explanation=explanation,
    )


def build_text_prompt(text: str, user_category: Optional[str] = None) -> str:
    category_line = f"User selected category: {user_category}\n" if user_category else ""
    return f"""Analyze this civic issue report and provide a JSON response with the following fields:
- severity: number from 1-10 (1=minor, 10=critical) based on description urgency
- urgencyBoost: number from 0-15 (additional priority points)
- category: one of ["Road", "Water", "Electricity", "Waste", "Other"]
- explanation: brief reason for the severity rating
- isRelevant: boolean (true if this describes a civic infrastructure issue; false if it's random/irrelevant text)

Civic issues include: potholes, broken roads, water leaks, garbage, streetlights, drainage, public property damage, etc.
NOT civic issues: random text, jokes, personal messages, unrelated content, gibberish, etc.

Issue: "{text}"
{category_line}
Respond ONLY with valid JSON, no other text."""


def parse_text_reply(reply: str, user_category: Optional[str] = None) -> AITextResult:
    """
    Turn a language-model reply into an AITextResult.

    Raises:
        AIResponseParseError: the reply holds no JSON object
    """
    result = extract_json_payload(reply)

    if result.get("isRelevant") is False:
        logger.info("Description is not relevant to civic issues")
        return AITextResult(
            text_severity=0,
            urgency_boost=0,
            category=normalize_category(user_category) or "Other",
            explanation=text_field(result.get("explanation")),
            is_relevant=False,
            error=IRRELEVANT_TEXT_MESSAGE,
        )

    severity = _clamp_int(result.get("severity") or 5, 1, 10, 5)
    urgency_boost = _clamp_int(result.get("urgencyBoost") or 0, 0, MAX_URGENCY_BOOST, 0)
    category = normalize_category(user_category) or normalize_category(result.get("category")) or "Other"

    logger.info(f"Text AI analysis: severity={severity}, boost={urgency_boost}, category={category}")

    return AITextResult(
        text_severity=severity,
        urgency_boost=urgency_boost,
        category=category,
        explanation=text_field(result.get("explanation")) or "AI-based priority scoring",
    )


def resolve_severity(
    ai_client: Optional[AIClient],
    text: str,
    user_category: Optional[str] = None,
) -> TextAnalysis:
    """
    Try the language model, fall back to the keyword engine.

    This is the only place where AI failures are absorbed for text analysis.
    """
    if ai_client is None or not ai_client.is_enabled():
        logger.warning("Language AI not configured - using fallback rule-based analysis")
        return fallback_text_analysis(text, user_category)

    try:
        reply = ai_client.infer_text(build_text_prompt(text, user_category), system_prompt=SYSTEM_PROMPT)
        return parse_text_reply(reply, user_category)
    except (UpstreamDegradation, AIResponseParseError) as e:
        logger.warning(f"Language AI failed, falling back to rule-based analysis: {e}")
        return fallback_text_analysis(text, user_category)


class TextSeverityAnalyzer:
    """Language-model severity analysis with a keyword fallback."""

    def __init__(self, ai_client: Optional[AIClient]):
        self.ai_client = ai_client

    def analyze(self, text: str, user_category: Optional[str] = None) -> TextAnalysis:
        return resolve_severity(self.ai_client, text, user_category)
