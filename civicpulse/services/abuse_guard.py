"""
Abuse Guard - submission throttling and duplicate-location suppression.

DESIGN PRINCIPLES:
- One report per reporter every 15 minutes
- At most 5 reports per reporter per server-local calendar day
- Reject new reports where 8 or more already exist nearby
- Checks read counts without locking; near-simultaneous submissions can
  both pass a threshold (accepted consistency gap)
"""

from civicpulse.core.exceptions import ConflictError, RateLimitError
from civicpulse.utils.firestore_helpers import to_datetime, where_filter
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging
import math

logger = logging.getLogger(__name__)


class AbuseGuardService:
    """
    Enforces per-reporter submission limits and location-level saturation.
    """

    # Configuration constants
    COOLDOWN_MINUTES = 15
    MAX_ISSUES_PER_DAY = 5
    DUPLICATE_RADIUS_METERS = 50
    METERS_TO_DEGREES = 0.00045  # Offset approximation, not geodesic
    MAX_ISSUES_PER_LOCATION = 8

    def __init__(self, db):
        self.db = db

    def _reporter_issue_times(self, user_id: str) -> List[datetime]:
        query = where_filter(self.db.collection("issues"), "reported_by", "==", user_id)
        times = []
        for doc in query.stream():
            created_at = to_datetime((doc.to_dict() or {}).get("created_at"))
            if created_at is not None:
                times.append(created_at)
        return times

    def check_rate_limit(self, user_id: str, now: Optional[datetime] = None) -> Dict:
        """
        Check the cooldown since the reporter's most recent issue.

        Returns:
            Dict with is_rate_limited flag, retry_after_minutes and message
        """
        now = now or datetime.now(timezone.utc)
        times = self._reporter_issue_times(user_id)
        if not times:
            return {"is_rate_limited": False, "retry_after_minutes": 0}

        last_created = max(times)
        elapsed_minutes = (now - last_created).total_seconds() / 60

        if elapsed_minutes < self.COOLDOWN_MINUTES:
            remaining = math.ceil(self.COOLDOWN_MINUTES - elapsed_minutes)
            logger.warning(f"Rate limit hit for user {user_id}: {elapsed_minutes:.1f} minutes since last issue")
            return {
                "is_rate_limited": True,
                "retry_after_minutes": remaining,
                "message": f"Please wait {remaining} minutes before reporting another issue",
            }

        return {"is_rate_limited": False, "retry_after_minutes": 0}

    def check_daily_cap(self, user_id: str, now: Optional[datetime] = None) -> Dict:
        """
        Count the reporter's issues since server-local midnight.

        Returns:
            Dict with is_limited flag, count and limit
        """
        now = now or datetime.now(timezone.utc)
        local_now = now.astimezone()
        midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)

        today_count = sum(1 for created_at in self._reporter_issue_times(user_id) if created_at >= midnight)

        if today_count >= self.MAX_ISSUES_PER_DAY:
            logger.warning(f"Daily cap reached for user {user_id} ({today_count} issues today)")
            return {
                "is_limited": True,
                "count": today_count,
                "limit": self.MAX_ISSUES_PER_DAY,
                "message": "Daily issue limit reached",
            }

        return {"is_limited": False, "count": today_count, "limit": self.MAX_ISSUES_PER_DAY}

    def check_duplicate_location(self, latitude: float, longitude: float) -> Dict:
        """
        Count existing issues inside the bounding box around the coordinates.

        The box is +/- (radius * METERS_TO_DEGREES) degrees on each axis.

        Returns:
            Dict with is_duplicate flag and nearby_count
        """
        degree_range = self.DUPLICATE_RADIUS_METERS * self.METERS_TO_DEGREES

        query = where_filter(self.db.collection("issues"), "latitude", ">=", latitude - degree_range)
        query = where_filter(query, "latitude", "<=", latitude + degree_range)

        nearby_count = 0
        for doc in query.stream():
            issue_lng = (doc.to_dict() or {}).get("longitude")
            if issue_lng is None:
                continue
            if longitude - degree_range <= issue_lng <= longitude + degree_range:
                nearby_count += 1

        if nearby_count >= self.MAX_ISSUES_PER_LOCATION:
            logger.warning(f"Location saturated at ({latitude}, {longitude}): {nearby_count} nearby issues")
            return {
                "is_duplicate": True,
                "nearby_count": nearby_count,
                "message": "Multiple issues already reported at this location. Please support existing reports.",
            }

        return {"is_duplicate": False, "nearby_count": nearby_count}

    def enforce(self, user_id: str, latitude: float, longitude: float, now: Optional[datetime] = None) -> None:
        """
        Run cooldown, daily cap and location checks in that order.

        Raises:
            RateLimitError: cooldown or daily cap violated
            ConflictError: location already saturated
        """
        rate_limit = self.check_rate_limit(user_id, now)
        if rate_limit["is_rate_limited"]:
            raise RateLimitError(rate_limit["message"], retry_after_minutes=rate_limit["retry_after_minutes"])

        daily_cap = self.check_daily_cap(user_id, now)
        if daily_cap["is_limited"]:
            raise RateLimitError(daily_cap["message"])

        duplicate = self.check_duplicate_location(latitude, longitude)
        if duplicate["is_duplicate"]:
            raise ConflictError(duplicate["message"])
