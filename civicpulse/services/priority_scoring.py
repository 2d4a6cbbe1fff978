"""
Priority Scoring Service - system-derived priority calculation.

DESIGN PRINCIPLES:
- Priority is SYSTEM-DERIVED, NOT user-editable
- Priority score: 0-100 (higher = more urgent)
- Every component of the score is stored for auditability
"""

from civicpulse.utils.firestore_helpers import where_filter
from typing import Dict
import logging

logger = logging.getLogger(__name__)


class PriorityResult:
    """Final priority score, its label and the components that produced it."""

    def __init__(self, final_score: int, label: str, breakdown: Dict[str, int]):
        self.final_score = final_score
        self.label = label
        self.breakdown = breakdown

    def to_dict(self) -> Dict:
        return {
            "priority_score": self.final_score,
            "priority": self.label,
            "score_breakdown": dict(self.breakdown),
        }


class PriorityScoringService:
    """
    Calculates the priority score (0-100) of a new issue.

    Factors:
    1. Combined severity (1-10, rescaled to 10-100)
    2. Location impact (sensitive places mentioned in the description)
    3. Report frequency (open issues platform-wide)
    4. Time pending (constant placeholder)
    5. AI urgency boost (added on top, result capped at 100)
    """

    # Configuration: weights in percent of the base score
    SEVERITY_WEIGHT = 50
    LOCATION_WEIGHT = 30
    FREQUENCY_WEIGHT = 10
    TIME_WEIGHT = 10

    # Configuration: location impact, first matching rule wins
    LOCATION_IMPACT_RULES = [
        (("hospital", "school"), 90),
        (("station", "main road"), 75),
        (("market",), 65),
    ]
    DEFAULT_LOCATION_IMPACT = 40

    # Configuration: frequency thresholds (open issue count -> score)
    FREQUENCY_THRESHOLDS = [
        (7, 100),
        (4, 75),
        (2, 50),
    ]
    DEFAULT_FREQUENCY_SCORE = 20

    # Reserved for time-decay modelling
    TIME_PENDING_SCORE = 10

    # Configuration: label thresholds
    HIGH_THRESHOLD = 70
    MEDIUM_THRESHOLD = 45

    MAX_SCORE = 100

    def __init__(self, db=None):
        self.db = db

    @classmethod
    def get_location_impact(cls, text: str = "") -> int:
        lower = (text or "").lower()
        for keywords, impact in cls.LOCATION_IMPACT_RULES:
            if any(keyword in lower for keyword in keywords):
                return impact
        return cls.DEFAULT_LOCATION_IMPACT

    @classmethod
    def get_frequency_score(cls, open_issue_count: int) -> int:
        for threshold, score in cls.FREQUENCY_THRESHOLDS:
            if open_issue_count >= threshold:
                return score
        return cls.DEFAULT_FREQUENCY_SCORE

    @classmethod
    def get_time_score(cls) -> int:
        return cls.TIME_PENDING_SCORE

    @classmethod
    def get_priority_label(cls, score: int) -> str:
        if score >= cls.HIGH_THRESHOLD:
            return "High"
        if score >= cls.MEDIUM_THRESHOLD:
            return "Medium"
        return "Low"

    @classmethod
    def calculate_base_score(cls, severity: int, frequency: int, location_impact: int, time_pending: int) -> int:
        """
        Weighted sum rounded half-up. Integer arithmetic keeps .5 ties exact.
        """
        weighted = (
            severity * cls.SEVERITY_WEIGHT
            + location_impact * cls.LOCATION_WEIGHT
            + frequency * cls.FREQUENCY_WEIGHT
            + time_pending * cls.TIME_WEIGHT
        )
        return int((weighted + 50) // 100)

    def score(self, combined_severity: int, open_issue_count: int, text: str, ai_boost: int = 0) -> PriorityResult:
        """
        Calculate the final priority of a submission.

        Args:
            combined_severity: Fused severity (1-10)
            open_issue_count: Non-resolved issues platform-wide
            text: Description used for location impact
            ai_boost: Urgency boost from text analysis (0-15)

        Returns:
            PriorityResult with final_score in [0, 100]
        """
        severity_score = int(combined_severity) * 10
        location_impact = self.get_location_impact(text)
        frequency_score = self.get_frequency_score(open_issue_count)
        time_score = self.get_time_score()
        boost = max(0, int(ai_boost or 0))

        base_score = self.calculate_base_score(
            severity=severity_score,
            frequency=frequency_score,
            location_impact=location_impact,
            time_pending=time_score,
        )
        final_score = max(0, min(self.MAX_SCORE, base_score + boost))
        label = self.get_priority_label(final_score)

        logger.info(
            f"Priority score {final_score} ({label}): severity={severity_score}, "
            f"location={location_impact}, frequency={frequency_score}, time={time_score}, boost={boost}"
        )

        return PriorityResult(
            final_score=final_score,
            label=label,
            breakdown={
                "severity": severity_score,
                "frequency": frequency_score,
                "location_impact": location_impact,
                "time_pending": time_score,
                "ai_adjustment": boost,
            },
        )

    def count_open_issues(self) -> int:
        """Count of all non-Resolved issues, platform-wide."""
        query = where_filter(self.db.collection("issues"), "status", "!=", "Resolved")
        return len(list(query.stream()))
