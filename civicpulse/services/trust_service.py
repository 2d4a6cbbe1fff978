"""
Trust Service - fake-report penalties.

DESIGN PRINCIPLES:
- Marking an issue as fake is a one-time, admin-only transition
- Each confirmed fake report costs the reporter 25 trust points (floor 0)
- At 0 trust the reporter's email is banned permanently and the account deleted
- There is no automated un-ban path
"""

from civicpulse.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from civicpulse.services.issue_service import IssueService
from civicpulse.services.user_service import UserService
from datetime import datetime, timezone
from typing import Dict
import logging

logger = logging.getLogger(__name__)


class TrustService:
    """
    Applies fake-report penalties to reporters.
    """

    FAKE_REPORT_PENALTY = 25
    MIN_TRUST_SCORE = 0
    BAN_REASON = "Multiple fake reports (Trust score reached 0)"

    def __init__(self, db, issue_service: IssueService = None, user_service: UserService = None):
        self.db = db
        self.issue_service = issue_service or IssueService(db)
        self.user_service = user_service or UserService(db)

    def apply_penalty(self, user: Dict, admin_id: str) -> Dict:
        """
        Deduct trust from a reporter, banning and deleting at zero.

        Returns:
            Dict with the reporter's new trust state
        """
        new_score = max(self.MIN_TRUST_SCORE, int(user.get("trust_score", 100)) - self.FAKE_REPORT_PENALTY)
        status = {
            "id": user["id"],
            "name": user.get("name"),
            "email": user.get("email"),
            "trust_score": new_score,
            "deleted": False,
            "email_banned": False,
        }

        if new_score == self.MIN_TRUST_SCORE:
            self.user_service.ban_email(user, banned_by=admin_id, reason=self.BAN_REASON)
            self.user_service.delete_user(user["id"])
            status["deleted"] = True
            status["email_banned"] = True
            logger.warning(f"Reporter {user['id']} reached 0 trust: email banned and account deleted")
        else:
            self.user_service.update_user(user["id"], {"trust_score": new_score})
            logger.info(f"Reporter {user['id']} trust score reduced to {new_score}")

        return status

    def report_issue_as_fake(self, issue_id: str, admin: Dict) -> Dict:
        """
        Flag an issue as fake and penalize its reporter.

        Raises:
            ForbiddenError: caller is not a city admin
            NotFoundError: issue missing or outside the admin's city, or its reporter no longer exists
            ValidationError: issue already flagged
        """
        if admin.get("role") != "admin":
            raise ForbiddenError("Only admins can report issues as fake")

        issue = self.issue_service.get_scoped_issue(issue_id, admin)

        if issue.get("reported_as_fake"):
            raise ValidationError("This issue has already been reported as fake")

        # A missing reporter leaves the issue unflagged
        reporter = self.user_service.get_user_by_id(issue.get("reported_by"))
        if not reporter:
            logger.warning(f"Reporter of issue {issue_id} no longer exists, fake report refused")
            raise NotFoundError("User who reported this issue not found")

        now = datetime.now(timezone.utc)
        issue = self.issue_service.update_issue(issue_id, {
            "reported_as_fake": True,
            "reported_as_fake_by": admin["id"],
            "reported_as_fake_at": now,
        })
        logger.info(f"Issue {issue_id} reported as fake by admin {admin['id']}")

        user_status = self.apply_penalty(reporter, admin["id"])

        if user_status["deleted"]:
            message = (
                f"Issue reported as fake. User's trust score reduced to 0. "
                f"User has been permanently banned and deleted from the system. "
                f"Email {user_status['email']} is now blacklisted."
            )
        else:
            message = f"Issue reported as fake. User's trust score reduced to {user_status['trust_score']}"

        return {"issue": issue, "user": user_status, "message": message}
