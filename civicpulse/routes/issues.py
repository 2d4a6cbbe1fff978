"""
Issue endpoints - citizen submission, public listing and city-admin workflow.

Admins act only within their own city; super admins see every city.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from civicpulse.models.issue import (
    FakeReportResponse,
    HomeStats,
    IssueCreateResponse,
    IssueResponse,
    StatusUpdateRequest,
    issue_from_dict,
    issues_from_dicts,
)
from civicpulse.services.issue_intake import IssueIntakeService
from civicpulse.services.issue_service import IssueService
from civicpulse.services.trust_service import TrustService
from civicpulse.services.user_service import UserService
from civicpulse.utils.auth import (
    get_current_user,
    get_intake_service,
    get_issue_service,
    get_notifier,
    get_optional_user,
    get_trust_service,
    get_user_service,
    require_admin,
)
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issue", tags=["Issues"])


@router.post("", response_model=IssueCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_issue(
    title: str = Form(""),
    description: str = Form(""),
    lat: Optional[str] = Form(None),
    lng: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: Dict = Depends(get_current_user),
    intake: IssueIntakeService = Depends(get_intake_service),
):
    """
    Submit a new issue with a photo.

    Runs content validation, abuse checks, upload, AI analysis and priority
    scoring. Nothing is stored when any check rejects the submission.
    """
    result = await intake.submit(
        reporter=user,
        title=title,
        description=description,
        latitude=lat,
        longitude=lng,
        image=image.file if image is not None else None,
        image_filename=image.filename if image is not None else None,
        image_content_type=image.content_type if image is not None else None,
        user_category=category,
    )
    return IssueCreateResponse(issue=issue_from_dict(result["issue"]), ai_analysis=result["ai_analysis"])


@router.get("", response_model=List[IssueResponse])
async def list_issues(
    user: Optional[Dict] = Depends(get_optional_user),
    issue_service: IssueService = Depends(get_issue_service),
):
    """All issues visible to the caller, highest priority first."""
    return issues_from_dicts(issue_service.list_issues(user))


@router.get("/stats/home", response_model=HomeStats)
async def home_stats(
    user: Optional[Dict] = Depends(get_optional_user),
    issue_service: IssueService = Depends(get_issue_service),
):
    return issue_service.home_stats(user)


@router.get("/admin/priority", response_model=List[IssueResponse])
async def admin_priority_queue(
    admin: Dict = Depends(require_admin),
    issue_service: IssueService = Depends(get_issue_service),
):
    """Open issues of the admin's city in triage order."""
    return issues_from_dicts(issue_service.list_by_priority(admin))


@router.get("/admin/stats")
async def admin_stats(
    admin: Dict = Depends(require_admin),
    issue_service: IssueService = Depends(get_issue_service),
):
    return issue_service.admin_stats(admin)


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(issue_id: str, issue_service: IssueService = Depends(get_issue_service)):
    return issue_from_dict(issue_service.get_issue(issue_id))


@router.put("/{issue_id}/status", response_model=IssueResponse)
async def update_issue_status(
    issue_id: str,
    request: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    admin: Dict = Depends(require_admin),
    issue_service: IssueService = Depends(get_issue_service),
    user_service: UserService = Depends(get_user_service),
    notifier=Depends(get_notifier),
):
    """
    Move an issue through Pending, In Progress and Resolved.
    The reporter is emailed after the response is sent.
    """
    issue = issue_service.update_status(issue_id, request.status, admin)

    reporter = user_service.get_user_by_id(issue.get("reported_by"))
    if reporter and reporter.get("email"):
        background_tasks.add_task(notifier.notify_status_change, reporter["email"], issue["title"], request.status)

    return issue_from_dict(issue)


@router.put("/{issue_id}/reportAsFake", response_model=FakeReportResponse)
async def report_issue_as_fake(
    issue_id: str,
    background_tasks: BackgroundTasks,
    admin: Dict = Depends(require_admin),
    trust_service: TrustService = Depends(get_trust_service),
    notifier=Depends(get_notifier),
):
    """
    Flag an issue as fake and deduct 25 trust points from its reporter.
    At 0 trust the reporter's email is banned and the account deleted.
    """
    result = trust_service.report_issue_as_fake(issue_id, admin)

    user_status = result["user"]
    if user_status["deleted"]:
        background_tasks.add_task(notifier.notify_account_banned, user_status["email"])

    return FakeReportResponse(
        issue=issue_from_dict(result["issue"]),
        user=user_status,
        message=result["message"],
    )
