"""
Issue intake - the end-to-end submission pipeline.

Flow:
0. Required fields, image and coordinates      -> 400
1. Validate content (spam filter)              -> RejectedSpam
2. Abuse checks (cooldown, daily cap, location) -> RejectedRateLimited / RejectedDuplicateLocation
3. Upload the photo                             -> RejectedUploadFailure
4. Image and text analysis, in parallel         -> RejectedIrrelevantImage / RejectedIrrelevantText
5. Fuse severities, score priority
6. Persist

Rejections are terminal and nothing is written to the issues collection.
A photo uploaded in step 3 stays in storage even if step 4 rejects.
AI failures never reject: the analyzers fall back internally.
"""

from civicpulse.core.exceptions import ConflictError, RateLimitError, UploadError, ValidationError
from civicpulse.models.issue import AIAnalysisSummary
from civicpulse.services.abuse_guard import AbuseGuardService
from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.services.content_validator import validate_issue_content
from civicpulse.services.image_analyzer import ImageSeverityAnalyzer
from civicpulse.services.priority_scoring import PriorityScoringService
from civicpulse.services.severity_fusion import DEFAULT_IMAGE_WEIGHT, DEFAULT_TEXT_WEIGHT, fuse
from civicpulse.services.text_analyzer import TextSeverityAnalyzer
from civicpulse.utils.firestore_helpers import snapshot_to_dict
from datetime import datetime, timezone
from enum import Enum
from typing import BinaryIO, Dict, Optional, Tuple, Union
import asyncio
import logging
import math

logger = logging.getLogger(__name__)


def parse_coordinates(latitude: Union[str, float], longitude: Union[str, float]) -> Tuple[float, float]:
    """Form fields arrive as text; anything that is not a finite lat/lng pair is a 400."""
    try:
        lat, lng = float(latitude), float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("Latitude and longitude must be valid numbers")
    if not (math.isfinite(lat) and math.isfinite(lng)) or not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError("Latitude and longitude must be valid numbers")
    return lat, lng


class IntakeState(str, Enum):
    RECEIVED = "Received"
    CONTENT_VALIDATED = "ContentValidated"
    ABUSE_CHECKED = "AbuseChecked"
    IMAGE_UPLOADED = "ImageUploaded"
    IMAGE_ANALYZED = "ImageAnalyzed"
    TEXT_ANALYZED = "TextAnalyzed"
    FUSED = "Fused"
    SCORED = "Scored"
    PERSISTED = "Persisted"
    REJECTED_SPAM = "RejectedSpam"
    REJECTED_RATE_LIMITED = "RejectedRateLimited"
    REJECTED_DUPLICATE_LOCATION = "RejectedDuplicateLocation"
    REJECTED_IRRELEVANT_IMAGE = "RejectedIrrelevantImage"
    REJECTED_IRRELEVANT_TEXT = "RejectedIrrelevantText"
    REJECTED_UPLOAD_FAILURE = "RejectedUploadFailure"


class IssueIntakeService:
    """
    Sequences validation, abuse checks, AI analysis, scoring and persistence.
    """

    def __init__(
        self,
        db,
        image_store,
        ai_client: Optional[AIClient] = None,
        text_weight: float = DEFAULT_TEXT_WEIGHT,
        image_weight: float = DEFAULT_IMAGE_WEIGHT,
    ):
        self.db = db
        self.image_store = image_store
        self.abuse_guard = AbuseGuardService(db)
        self.image_analyzer = ImageSeverityAnalyzer(ai_client)
        self.text_analyzer = TextSeverityAnalyzer(ai_client)
        self.priority_service = PriorityScoringService(db)
        self.text_weight = text_weight
        self.image_weight = image_weight

    def _transition(self, state: IntakeState, reporter_id: str, detail: str = "") -> None:
        if state.value.startswith("Rejected"):
            logger.warning(f"[intake] {reporter_id} -> {state.value} {detail}".rstrip())
        else:
            logger.info(f"[intake] {reporter_id} -> {state.value} {detail}".rstrip())

    async def submit(
        self,
        reporter: Dict,
        title: str,
        description: str,
        latitude: Union[str, float, None],
        longitude: Union[str, float, None],
        image: Optional[BinaryIO],
        image_filename: Optional[str] = None,
        image_content_type: Optional[str] = None,
        user_category: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict:
        """
        Run the submission pipeline.

        Returns:
            {"issue": <stored issue dict>, "ai_analysis": <summary dict>}

        Raises:
            ValidationError: missing fields, spam, irrelevant content
            RateLimitError: cooldown or daily cap
            ConflictError: location saturated
            UploadError: image store failure
        """
        reporter_id = reporter["id"]
        now = now or datetime.now(timezone.utc)
        self._transition(IntakeState.RECEIVED, reporter_id)

        if not reporter.get("city"):
            raise ValidationError("Please update your profile with a city before reporting issues")
        if not title or not description or latitude in (None, "") or longitude in (None, ""):
            raise ValidationError("All required fields must be provided")
        if image is None:
            raise ValidationError("Image is required")
        latitude, longitude = parse_coordinates(latitude, longitude)

        validation = validate_issue_content(title, description)
        if not validation.is_valid:
            self._transition(IntakeState.REJECTED_SPAM, reporter_id, validation.error)
            raise ValidationError(validation.error)
        self._transition(IntakeState.CONTENT_VALIDATED, reporter_id)

        try:
            self.abuse_guard.enforce(reporter_id, latitude, longitude, now)
        except RateLimitError as e:
            self._transition(IntakeState.REJECTED_RATE_LIMITED, reporter_id, e.message)
            raise
        except ConflictError as e:
            self._transition(IntakeState.REJECTED_DUPLICATE_LOCATION, reporter_id, e.message)
            raise
        self._transition(IntakeState.ABUSE_CHECKED, reporter_id)

        try:
            uploaded = await asyncio.to_thread(self.image_store.upload, image, image_filename, image_content_type)
        except UploadError:
            self._transition(IntakeState.REJECTED_UPLOAD_FAILURE, reporter_id)
            raise
        image_url = uploaded["secure_url"]
        self._transition(IntakeState.IMAGE_UPLOADED, reporter_id, image_url)

        image_analysis, text_analysis = await asyncio.gather(
            asyncio.to_thread(self.image_analyzer.analyze, image_url),
            asyncio.to_thread(self.text_analyzer.analyze, f"{title}. {description}", user_category),
        )

        if image_analysis.is_relevant is False:
            self._transition(IntakeState.REJECTED_IRRELEVANT_IMAGE, reporter_id)
            raise ValidationError(
                image_analysis.error or "The uploaded image is not related to civic infrastructure issues"
            )
        self._transition(
            IntakeState.IMAGE_ANALYZED, reporter_id, f"severity={image_analysis.severity} ({image_analysis.source})"
        )

        if text_analysis.is_relevant is False:
            self._transition(IntakeState.REJECTED_IRRELEVANT_TEXT, reporter_id)
            raise ValidationError(
                text_analysis.error or "The description is not related to civic infrastructure issues"
            )
        self._transition(
            IntakeState.TEXT_ANALYZED, reporter_id, f"severity={text_analysis.text_severity} ({text_analysis.source})"
        )

        combined_severity = fuse(
            image_analysis.severity,
            text_analysis.text_severity,
            text_weight=self.text_weight,
            image_weight=self.image_weight,
        )
        self._transition(IntakeState.FUSED, reporter_id, f"combined={combined_severity}")

        open_issue_count = self.priority_service.count_open_issues()
        priority = self.priority_service.score(
            combined_severity=combined_severity,
            open_issue_count=open_issue_count,
            text=description,
            ai_boost=text_analysis.urgency_boost,
        )
        self._transition(IntakeState.SCORED, reporter_id, f"score={priority.final_score} ({priority.label})")

        # Built before the write: a summary that fails validation leaves nothing stored
        summary = AIAnalysisSummary(
            image_severity=image_analysis.severity,
            text_severity=text_analysis.text_severity,
            combined_severity=combined_severity,
            category=text_analysis.category,
            confidence=image_analysis.confidence,
            explanation=text_analysis.explanation,
            source=text_analysis.source,
        )

        issue = self._persist(
            reporter=reporter,
            title=title.strip(),
            description=description.strip(),
            latitude=latitude,
            longitude=longitude,
            image_url=image_url,
            category=text_analysis.category,
            severity_score={
                "image_severity": image_analysis.severity,
                "text_severity": text_analysis.text_severity,
                "combined_severity": combined_severity,
            },
            priority=priority.to_dict(),
            analysis_source=text_analysis.source,
            image_confidence=image_analysis.confidence,
            now=now,
        )
        self._transition(IntakeState.PERSISTED, reporter_id, issue["id"])

        return {"issue": issue, "ai_analysis": summary.model_dump(mode="json")}

    def _persist(
        self,
        reporter: Dict,
        title: str,
        description: str,
        latitude: float,
        longitude: float,
        image_url: str,
        category: str,
        severity_score: Dict,
        priority: Dict,
        analysis_source: str,
        image_confidence: float,
        now: datetime,
    ) -> Dict:
        doc_ref = self.db.collection("issues").document()
        issue_dict = {
            "title": title,
            "description": description,
            "image_url": image_url,
            "category": category,
            "city": reporter["city"],
            "latitude": latitude,
            "longitude": longitude,
            "severity_score": severity_score,
            "priority_score": priority["priority_score"],
            "priority": priority["priority"],
            "score_breakdown": priority["score_breakdown"],
            "analysis_source": analysis_source,
            "image_confidence": image_confidence,
            "status": "Pending",
            "reported_by": reporter["id"],
            "reported_as_fake": False,
            "reported_as_fake_by": None,
            "reported_as_fake_at": None,
            "created_at": now,
            "updated_at": now,
        }

        try:
            doc_ref.set(issue_dict)
        except Exception as e:
            logger.error(f"Failed to save issue to Firestore: {e}", exc_info=True)
            raise

        logger.info(f"Issue saved to Firestore: {doc_ref.id}")
        return snapshot_to_dict(doc_ref.get())
