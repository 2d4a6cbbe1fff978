"""
Issue service - city-scoped reads and admin workflow actions on issues.

Admins only see and act on issues of their own city; super admins and
anonymous visitors see all cities.
"""

from civicpulse.config.firebase import get_db
from civicpulse.core.exceptions import NotFoundError, ValidationError
from civicpulse.models.issue import IssueStatus
from civicpulse.utils.firestore_helpers import snapshot_to_dict, to_datetime, where_filter
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging
import math

logger = logging.getLogger(__name__)

VALID_STATUSES = [status.value for status in IssueStatus]


def city_scope(user: Optional[Dict]) -> Optional[str]:
    """
    City an actor is restricted to, or None for unrestricted access.
    """
    if not user or user.get("role") == "super_admin":
        return None
    return user.get("city") or ""


def _priority_sort_key(issue: Dict):
    created_at = to_datetime(issue.get("created_at"))
    return (-(issue.get("priority_score") or 0), -(created_at.timestamp() if created_at else 0))


def _newest_first_key(issue: Dict):
    created_at = to_datetime(issue.get("created_at"))
    return -(created_at.timestamp() if created_at else 0)


class IssueService:
    """
    Firestore operations on the issues collection.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def _scoped_query(self, user: Optional[Dict]):
        query = self.db.collection("issues")
        city = city_scope(user)
        if city is not None:
            query = where_filter(query, "city", "==", city)
        return query

    def _stream(self, query) -> List[Dict]:
        return [snapshot_to_dict(doc) for doc in query.stream()]

    def get_issue(self, issue_id: str) -> Dict:
        issue = snapshot_to_dict(self.db.collection("issues").document(issue_id).get())
        if not issue:
            raise NotFoundError("Issue not found")
        return issue

    def get_scoped_issue(self, issue_id: str, user: Dict) -> Dict:
        """
        Fetch an issue the actor may act on.

        Raises:
            NotFoundError: missing, or outside the actor's city
        """
        issue = snapshot_to_dict(self.db.collection("issues").document(issue_id).get())
        city = city_scope(user)
        if not issue or (city is not None and issue.get("city") != city):
            raise NotFoundError("Issue not found or not in your city")
        return issue

    def update_issue(self, issue_id: str, update_data: Dict) -> Dict:
        doc_ref = self.db.collection("issues").document(issue_id)
        doc_ref.update(dict(update_data, updated_at=datetime.now(timezone.utc)))
        return snapshot_to_dict(doc_ref.get())

    def list_issues(self, user: Optional[Dict] = None) -> List[Dict]:
        """All visible issues, highest priority first, newest first on ties."""
        return sorted(self._stream(self._scoped_query(user)), key=_priority_sort_key)

    def list_by_reporter(self, user_id: str) -> List[Dict]:
        """Issues submitted by one user, newest first. Not city-scoped."""
        query = where_filter(self.db.collection("issues"), "reported_by", "==", user_id)
        return sorted(self._stream(query), key=_newest_first_key)

    def list_by_priority(self, admin: Dict) -> List[Dict]:
        """Open (non-Resolved) issues of the admin's city in triage order."""
        issues = [issue for issue in self._stream(self._scoped_query(admin)) if issue.get("status") != IssueStatus.RESOLVED.value]
        return sorted(issues, key=_priority_sort_key)

    def update_status(self, issue_id: str, status: str, admin: Dict) -> Dict:
        """
        Change the workflow status of an issue.

        Raises:
            ValidationError: unknown status value
            NotFoundError: missing, or outside the admin's city
        """
        if status not in VALID_STATUSES:
            raise ValidationError("Invalid status value")

        self.get_scoped_issue(issue_id, admin)
        issue = self.update_issue(issue_id, {"status": status})
        logger.info(f"Admin {admin.get('id')} updated issue {issue_id} status to {status}")
        return issue

    def admin_stats(self, admin: Dict) -> List[Dict]:
        """Issue counts per status within the admin's scope."""
        counts: Dict[str, int] = {}
        for issue in self._stream(self._scoped_query(admin)):
            status = issue.get("status", IssueStatus.PENDING.value)
            counts[status] = counts.get(status, 0) + 1
        return [{"status": status, "count": count} for status, count in counts.items()]

    def home_stats(self, user: Optional[Dict] = None) -> Dict:
        issues = self._stream(self._scoped_query(user))
        resolved = sum(1 for issue in issues if issue.get("status") == IssueStatus.RESOLVED.value)
        pending = len(issues) - resolved
        return {
            "reported": len(issues),
            "resolved": resolved,
            "active_zones": max(1, math.ceil(pending / 3)),
        }
