"""
Pydantic models for civic issue reports.
These models shape issue responses and admin requests.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum


class IssueCategory(str, Enum):
    ROAD = "Road"
    WATER = "Water"
    ELECTRICITY = "Electricity"
    WASTE = "Waste"
    OTHER = "Other"


class IssueStatus(str, Enum):
    """
    Issue lifecycle, mutated by city admins only.
    """
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


class PriorityLabel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class SeverityScore(BaseModel):
    """Severity estimates from each source and their fused value (1-10)."""
    image_severity: int = Field(..., ge=0, le=10)
    text_severity: int = Field(..., ge=0, le=10)
    combined_severity: int = Field(..., ge=1, le=10)


class ScoreBreakdown(BaseModel):
    """Components of the priority score, kept for auditability."""
    severity: int
    frequency: int
    location_impact: int
    time_pending: int
    ai_adjustment: int


class IssueResponse(BaseModel):
    """
    Model for issue responses (what API returns).
    Includes system-generated fields like ID, scores and timestamps.
    """
    id: str = Field(..., description="Firestore document ID")
    title: str
    description: str
    category: IssueCategory = IssueCategory.OTHER
    image_url: str
    latitude: float
    longitude: float
    city: Optional[str] = Field(None, description="Reporter's city at creation time (required for new issues)")
    severity_score: Optional[SeverityScore] = None
    priority_score: int = Field(..., ge=0, le=100, description="System-derived priority score (0-100)")
    priority: PriorityLabel = PriorityLabel.LOW
    score_breakdown: Optional[ScoreBreakdown] = None
    analysis_source: Optional[str] = Field(None, description="groq or fallback")
    image_confidence: Optional[float] = Field(None, ge=0, le=1)
    status: IssueStatus = IssueStatus.PENDING
    reported_by: str
    reported_as_fake: bool = False
    reported_as_fake_by: Optional[str] = None
    reported_as_fake_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "abc123",
                "title": "Broken water pipe near school",
                "description": "Water pipe burst near the primary school gate, road is flooded",
                "category": "Water",
                "image_url": "https://storage.googleapis.com/civicpulse/issues/abc.jpg",
                "latitude": 18.5204,
                "longitude": 73.8567,
                "city": "Pune",
                "severity_score": {"image_severity": 6, "text_severity": 8, "combined_severity": 8},
                "priority_score": 78,
                "priority": "High",
                "score_breakdown": {
                    "severity": 80,
                    "frequency": 50,
                    "location_impact": 90,
                    "time_pending": 10,
                    "ai_adjustment": 10
                },
                "analysis_source": "groq",
                "status": "Pending",
                "reported_by": "user123",
                "reported_as_fake": False,
                "created_at": "2024-01-15T10:30:00Z"
            }
        }


class AIAnalysisSummary(BaseModel):
    image_severity: int
    text_severity: int
    combined_severity: int
    category: IssueCategory
    confidence: float
    explanation: str = ""
    source: str


class IssueCreateResponse(BaseModel):
    issue: IssueResponse
    ai_analysis: AIAnalysisSummary
    message: str = "Issue created successfully with AI analysis"


class StatusUpdateRequest(BaseModel):
    """
    Request to change issue status.
    Validated in the service so that unknown values return 400.
    """
    status: str = Field(..., description="Pending, In Progress or Resolved")


class ReporterTrustStatus(BaseModel):
    """Reporter state after a fake-report penalty."""
    id: str
    name: Optional[str] = None
    email: str
    trust_score: int = Field(..., ge=0, le=100)
    deleted: bool = False
    email_banned: bool = False


class FakeReportResponse(BaseModel):
    issue: IssueResponse
    user: ReporterTrustStatus
    message: str


class HomeStats(BaseModel):
    reported: int
    resolved: int
    active_zones: int


def issue_from_dict(data: Dict) -> IssueResponse:
    """Build an IssueResponse from a Firestore document dict (with "id")."""
    return IssueResponse(**{key: value for key, value in data.items() if key in IssueResponse.model_fields})


def issues_from_dicts(items: List[Dict]) -> List[IssueResponse]:
    return [issue_from_dict(item) for item in items]
