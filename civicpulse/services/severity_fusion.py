"""
Severity Fusion - blends image and text severity into one 1-10 figure.

Text carries most of the weight because the vision model frequently degrades
to its neutral fallback (severity 5).
"""

import math
from typing import Optional

DEFAULT_TEXT_WEIGHT = 0.8
DEFAULT_IMAGE_WEIGHT = 0.2
NEUTRAL_SEVERITY = 5
MIN_SEVERITY = 1
MAX_SEVERITY = 10


def round_half_up(value: float) -> int:
    """Round .5 upwards (Python's round() rounds half to even)."""
    return int(math.floor(value + 0.5))


def fuse(
    image_severity: Optional[float],
    text_severity: Optional[float],
    text_weight: float = DEFAULT_TEXT_WEIGHT,
    image_weight: float = DEFAULT_IMAGE_WEIGHT,
) -> int:
    """
    Combined severity = round(text * text_weight + image * image_weight),
    clamped to [1, 10]. Missing or zero inputs count as neutral (5).
    """
    image_value = image_severity or NEUTRAL_SEVERITY
    text_value = text_severity or NEUTRAL_SEVERITY
    combined = round_half_up(text_value * text_weight + image_value * image_weight)
    return min(MAX_SEVERITY, max(MIN_SEVERITY, combined))
