"""
Request dependencies: caller identity and the services stored on app.state.

The caller is identified by the bearer token issued at /auth/login
(`Authorization: Bearer <token>`).
"""

from fastapi import Depends, Header, HTTPException, Request, status
from civicpulse.services.issue_intake import IssueIntakeService
from civicpulse.services.issue_service import IssueService
from civicpulse.services.trust_service import TrustService
from civicpulse.services.user_service import UserService
from civicpulse.utils.security import InvalidTokenError, decode_access_token
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "super_admin")
INVALID_TOKEN_DETAIL = "Invalid or expired token"


def get_db(request: Request):
    return request.app.state.db


def get_user_service(db=Depends(get_db)) -> UserService:
    return UserService(db)


def get_issue_service(db=Depends(get_db)) -> IssueService:
    return IssueService(db)


def get_trust_service(db=Depends(get_db)) -> TrustService:
    return TrustService(db)


def get_intake_service(request: Request) -> IssueIntakeService:
    return request.app.state.intake_service


def get_notifier(request: Request):
    return request.app.state.notifier


def get_optional_user(
    authorization: Optional[str] = Header(None),
    user_service: UserService = Depends(get_user_service),
) -> Optional[Dict]:
    """
    Caller identified by the bearer token, or None without an Authorization header.

    A header that is present but unusable is a 401: wrong scheme, bad signature,
    expired token, or a user that has since been deleted.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN_DETAIL)
    try:
        claims = decode_access_token(token.strip())
    except InvalidTokenError as e:
        logger.info(f"Rejected access token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN_DETAIL)

    user = user_service.get_user_by_id(claims["sub"])
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN_DETAIL)
    return user


def get_current_user(user: Optional[Dict] = Depends(get_optional_user)) -> Dict:
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def require_admin(user: Dict = Depends(get_current_user)) -> Dict:
    if user.get("role") not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
