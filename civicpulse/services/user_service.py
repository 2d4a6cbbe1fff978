"""
User Service - registration, login and the banned-email list in Firestore.
"""

from civicpulse.config.firebase import get_db
from civicpulse.core.exceptions import BannedEmailError, ConflictError, NotFoundError, ValidationError
from civicpulse.utils.firestore_helpers import snapshot_to_dict, to_datetime, where_filter
from civicpulse.utils.security import hash_password, normalize_email, verify_password
from datetime import datetime, timezone
from typing import Optional, Dict
import logging

logger = logging.getLogger(__name__)

DEFAULT_TRUST_SCORE = 100

BANNED_REGISTRATION_MESSAGE = (
    "This email address has been permanently banned from the platform due to multiple fake reports. "
    "You cannot create a new account with this email."
)
BANNED_LOGIN_MESSAGE = (
    "This email address has been permanently banned from the platform due to multiple fake reports. "
    "You cannot access your account."
)


class UserService:
    """
    Service for user management in Firestore.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def get_user_by_id(self, user_id: str) -> Optional[Dict]:
        if not user_id:
            return None
        doc = self.db.collection("users").document(user_id).get()
        return self._convert_timestamps(snapshot_to_dict(doc))

    def get_user_by_email(self, email: str) -> Optional[Dict]:
        normalized_email = normalize_email(email)
        query = where_filter(self.db.collection("users"), "email", "==", normalized_email).limit(1)
        docs = list(query.stream())
        if not docs:
            return None
        return self._convert_timestamps(snapshot_to_dict(docs[0]))

    def is_email_banned(self, email: str) -> bool:
        normalized_email = normalize_email(email)
        if not normalized_email:
            return False
        return self.db.collection("banned_emails").document(normalized_email).get().exists

    def ban_email(self, user: Dict, banned_by: Optional[str], reason: str) -> None:
        """Append the user's email to the permanent ban list."""
        normalized_email = normalize_email(user.get("email"))
        self.db.collection("banned_emails").document(normalized_email).set({
            "email": normalized_email,
            "user_id": user.get("id"),
            "user_name": user.get("name"),
            "reason": reason,
            "banned_by": banned_by,
            "banned_at": datetime.now(timezone.utc),
        })
        logger.warning(f"Email banned: {normalized_email} ({reason})")

    def register(self, name: str, email: str, password: str, city: Optional[str] = None, role: str = "user") -> Dict:
        """
        Create a new user.

        Raises:
            BannedEmailError: email is on the ban list
            ConflictError: email already registered
        """
        normalized_email = normalize_email(email)
        if not normalized_email:
            raise ValidationError("Email is required")

        if self.is_email_banned(normalized_email):
            logger.warning(f"Registration blocked for banned email {normalized_email}")
            raise BannedEmailError(BANNED_REGISTRATION_MESSAGE)

        if self.get_user_by_email(normalized_email):
            raise ConflictError("User with this email already exists")

        now = datetime.now(timezone.utc)
        user_ref = self.db.collection("users").document()
        user_ref.set({
            "name": name.strip(),
            "email": normalized_email,
            "password_hash": hash_password(password),
            "role": role,
            "city": city.strip() if city and city.strip() else None,
            "trust_score": DEFAULT_TRUST_SCORE,
            "created_at": now,
            "updated_at": now,
        })

        logger.info(f"User created: {user_ref.id}")
        return self.get_user_by_id(user_ref.id)

    def authenticate(self, email: str, password: str) -> Dict:
        """
        Check credentials. The ban list is consulted before the password.

        Raises:
            BannedEmailError: email is on the ban list
            ValidationError: unknown email or wrong password
        """
        if self.is_email_banned(email):
            logger.warning(f"Login blocked for banned email {normalize_email(email)}")
            raise BannedEmailError(BANNED_LOGIN_MESSAGE)

        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.get("password_hash")):
            raise ValidationError("Invalid email or password")

        return user

    def update_user(self, user_id: str, update_data: Dict) -> Dict:
        update_data = dict(update_data, updated_at=datetime.now(timezone.utc))
        self.db.collection("users").document(user_id).update(update_data)
        return self.get_user_by_id(user_id)

    def update_profile(self, user_id: str, name: Optional[str] = None, city: Optional[str] = None) -> Dict:
        """
        Change a user's own name and/or city. Omitted fields are kept.

        Raises:
            ValidationError: blank city
            NotFoundError: user no longer exists
        """
        if not self.get_user_by_id(user_id):
            raise NotFoundError("User not found")

        update_data = {}
        if name and name.strip():
            update_data["name"] = name.strip()
        if city is not None:
            if not city.strip():
                raise ValidationError("Invalid city selection")
            update_data["city"] = city.strip()

        if not update_data:
            return self.get_user_by_id(user_id)
        logger.info(f"Profile updated for {user_id}: {sorted(update_data)}")
        return self.update_user(user_id, update_data)

    def delete_user(self, user_id: str) -> None:
        self.db.collection("users").document(user_id).delete()
        logger.warning(f"User deleted: {user_id}")

    def _convert_timestamps(self, user_data: Optional[Dict]) -> Optional[Dict]:
        """Firestore timestamps to timezone-aware datetimes."""
        if not user_data:
            return None
        for field in ("created_at", "updated_at"):
            if user_data.get(field) is not None:
                user_data[field] = to_datetime(user_data[field])
        return user_data


def public_user(user: Dict) -> Dict:
    """User dict without credentials."""
    return {key: value for key, value in user.items() if key != "password_hash"}
