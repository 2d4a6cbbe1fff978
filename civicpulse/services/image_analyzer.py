"""
Image Severity Analyzer - rates the civic severity of an issue photo.

The vision model judges relevance, severity (1-10) and its own confidence.
If the model is unavailable or its reply is unusable, a neutral result is
returned instead: the pipeline never fails because vision analysis failed.
"""

from civicpulse.core.exceptions import AIResponseParseError, UpstreamDegradation
from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.utils.ai_json import extract_json_payload, text_field
from typing import List, Optional
from urllib.parse import urlparse
import base64
import io
import logging

import requests
from PIL import Image

logger = logging.getLogger(__name__)

# Encodings the vision model does not accept reliably
NON_STANDARD_EXTENSIONS = (".avif", ".webp")

IRRELEVANT_IMAGE_MESSAGE = (
    "The uploaded image does not appear to be related to civic infrastructure issues. "
    "Please upload an image of roads, water supply, electricity, waste management, "
    "or other public infrastructure problems."
)

IMAGE_PROMPT = """Analyze this civic infrastructure issue image and provide a JSON response with:
- severity: number from 1-10 (1=minor cosmetic issue, 10=critical safety hazard)
- confidence: number from 0-1 (how confident you are in the assessment)
- detectedObjects: array of 1-3 main objects/issues visible
- description: brief description of what you see
- isRelevant: boolean (true if this is a civic infrastructure issue like roads, water, electricity, waste, public facilities; false if it's random/unrelated content)

Civic issues include: potholes, broken roads, water leaks, garbage, streetlights, drainage, public property damage, etc.
NOT civic issues: personal photos, memes, random objects, food, animals, selfies, etc.

Respond ONLY with valid JSON, no other text."""


class ImageAnalysis:
    """Result of image severity analysis."""

    def __init__(
        self,
        is_relevant: bool = True,
        severity: int = 5,
        confidence: float = 0.5,
        detected_objects: Optional[List[str]] = None,
        description: Optional[str] = None,
        source: str = "fallback",
        error: Optional[str] = None,
    ):
        self.is_relevant = is_relevant
        self.severity = severity
        self.confidence = confidence
        self.detected_objects = detected_objects or []
        self.description = description
        self.source = source
        self.error = error

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


def fallback_image_analysis() -> ImageAnalysis:
    """Neutral result used whenever the vision model cannot be consulted."""
    return ImageAnalysis(
        is_relevant=True,
        severity=5,
        confidence=0.5,
        detected_objects=["unknown"],
        source="fallback",
    )


def _clamp(value, low, high, default):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return min(high, max(low, number))


class ImageSeverityAnalyzer:
    """
    Vision-model severity analysis with a neutral fallback.
    """

    def __init__(self, ai_client: Optional[AIClient], session: Optional[requests.Session] = None):
        self.ai_client = ai_client
        self.session = session or requests.Session()

    def analyze(self, image_url: str) -> ImageAnalysis:
        """
        Analyze the image at image_url.

        Never raises: transport, quota, parse and configuration failures all
        produce the neutral fallback.
        """
        if self.ai_client is None or not self.ai_client.is_enabled():
            logger.warning("Vision AI not configured - using fallback image analysis")
            return fallback_image_analysis()

        try:
            submitted_url = self.normalize_image_url(image_url)
            reply = self.ai_client.infer_vision(submitted_url, IMAGE_PROMPT)
            return self.parse_reply(reply)
        except (UpstreamDegradation, AIResponseParseError) as e:
            logger.warning(f"Vision analysis failed, using fallback: {e}")
            return fallback_image_analysis()

    def parse_reply(self, reply: str) -> ImageAnalysis:
        analysis = extract_json_payload(reply)

        if analysis.get("isRelevant") is False:
            logger.info("Image is not relevant to civic issues")
            return ImageAnalysis(
                is_relevant=False,
                severity=0,
                confidence=_clamp(analysis.get("confidence"), 0.0, 1.0, 0.7),
                source="groq",
                error=IRRELEVANT_IMAGE_MESSAGE,
            )

        severity = int(round(_clamp(analysis.get("severity") or 5, 1, 10, 5)))
        confidence = _clamp(analysis.get("confidence") or 0.7, 0.0, 1.0, 0.7)
        detected_objects = analysis.get("detectedObjects")
        if not isinstance(detected_objects, list) or not detected_objects:
            detected_objects = ["infrastructure issue"]

        logger.info(f"Vision analysis: severity={severity}/10, confidence={round(confidence * 100)}%")

        return ImageAnalysis(
            is_relevant=True,
            severity=severity,
            confidence=confidence,
            detected_objects=[str(obj) for obj in detected_objects[:3]],
            description=text_field(analysis.get("description")) or None,
            source="groq",
        )

    def normalize_image_url(self, image_url: str) -> str:
        """
        Re-encode AVIF/WEBP images as PNG data URLs; other URLs pass through.

        Raises:
            UpstreamDegradation: the image could not be fetched or decoded
        """
        path = urlparse(image_url).path.lower()
        if not path.endswith(NON_STANDARD_EXTENSIONS):
            return image_url

        logger.info("Converting image format to PNG for vision compatibility")
        timeout = self.ai_client.get_timeout_seconds() if self.ai_client else 10.0
        try:
            response = self.session.get(image_url, timeout=timeout)
            response.raise_for_status()
            with Image.open(io.BytesIO(response.content)) as img:
                converted = img.convert("RGBA" if "A" in img.getbands() else "RGB")
                buffer = io.BytesIO()
                converted.save(buffer, format="PNG")
        except requests.RequestException as e:
            raise UpstreamDegradation(f"Could not fetch image for conversion: {e}") from e
        except OSError as e:
            raise UpstreamDegradation(f"Could not decode image for conversion: {e}") from e

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"
