"""
Profile endpoints for the signed-in user.
"""

from fastapi import APIRouter, Depends
from civicpulse.models.issue import IssueResponse, issues_from_dicts
from civicpulse.models.user import UserProfileUpdate, UserResponse
from civicpulse.services.issue_service import IssueService
from civicpulse.services.user_service import UserService, public_user
from civicpulse.utils.auth import get_current_user, get_issue_service, get_user_service
from typing import Dict, List

router = APIRouter(prefix="/user", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: Dict = Depends(get_current_user)):
    return UserResponse(**public_user(user))


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request: UserProfileUpdate,
    user: Dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """
    Update name and/or city. A city is needed before reporting issues.
    """
    updated = user_service.update_profile(user["id"], name=request.name, city=request.city)
    return UserResponse(**public_user(updated))


@router.get("/issues", response_model=List[IssueResponse])
async def my_issues(
    user: Dict = Depends(get_current_user),
    issue_service: IssueService = Depends(get_issue_service),
):
    """Issues the caller reported, newest first."""
    return issues_from_dicts(issue_service.list_by_reporter(user["id"]))
