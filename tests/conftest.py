"""
Pytest configuration and fixtures
"""
import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from civicpulse.config.mock_firestore import MockFirestoreClient
from civicpulse.core.exceptions import UpstreamDegradation
from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.services.image_store import InMemoryImageStore
from civicpulse.utils.security import create_access_token, hash_password


class FakeAIClient(AIClient):
    """Returns canned replies; a reply that is an exception instance is raised."""

    def __init__(self, text_reply=None, vision_reply=None):
        self.text_reply = text_reply
        self.vision_reply = vision_reply
        self.text_calls = []
        self.vision_calls = []

    def is_enabled(self):
        return True

    def get_model_info(self):
        return {"text_model": "fake-text", "vision_model": "fake-vision"}

    def get_timeout_seconds(self):
        return 1.0

    def _reply(self, reply):
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise UpstreamDegradation("no reply configured")
        return reply

    def infer_text(self, prompt, system_prompt=None, max_tokens=200):
        self.text_calls.append(prompt)
        return self._reply(self.text_reply)

    def infer_vision(self, image_url, prompt, max_tokens=300):
        self.vision_calls.append(image_url)
        return self._reply(self.vision_reply)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify_status_change(self, to_address, issue_title, status):
        self.sent.append(("status", to_address, issue_title, status))

    def notify_account_banned(self, to_address):
        self.sent.append(("banned", to_address))


@pytest.fixture
def db():
    """Fresh in-memory Firestore per test."""
    return MockFirestoreClient()


@pytest.fixture
def fake_ai():
    return FakeAIClient(
        text_reply='```json\n{"severity": 8, "urgencyBoost": 10, "category": "Water", '
                   '"explanation": "Burst pipe flooding the road", "isRelevant": true}\n```',
        vision_reply='{"severity": 6, "confidence": 0.9, "detectedObjects": ["pipe", "water"], '
                     '"description": "Leaking pipe", "isRelevant": true}',
    )


@pytest.fixture
def image_store():
    return InMemoryImageStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


def add_user(db, user_id, role="user", city="Pune", trust_score=100, email=None, password="secret123"):
    db.collection("users").document(user_id).set({
        "name": user_id.title(),
        "email": email or f"{user_id}@example.com",
        "password_hash": hash_password(password),
        "role": role,
        "city": city,
        "trust_score": trust_score,
        "created_at": datetime.now(timezone.utc),
        "updated_at": datetime.now(timezone.utc),
    })
    return {"id": user_id, **db.collection("users").document(user_id).get().to_dict()}


def add_issue(db, issue_id=None, reported_by="citizen", city="Pune", latitude=18.52, longitude=73.85,
              created_at=None, status="Pending", priority_score=50, **extra):
    now = created_at or datetime.now(timezone.utc)
    doc_ref = db.collection("issues").document(issue_id)
    doc_ref.set({
        "title": "Broken pipe on main street",
        "description": "Water pipe is leaking onto the road near the bus stop",
        "category": "Water",
        "image_url": "https://storage.local/issues/seed.jpg",
        "latitude": latitude,
        "longitude": longitude,
        "city": city,
        "severity_score": {"image_severity": 5, "text_severity": 6, "combined_severity": 6},
        "priority_score": priority_score,
        "priority": "Medium",
        "status": status,
        "reported_by": reported_by,
        "reported_as_fake": False,
        "created_at": now,
        "updated_at": now,
        **extra,
    })
    return doc_ref.id


def auth_headers(user_id, **claims):
    """Authorization header carrying a freshly signed access token."""
    return {"Authorization": f"Bearer {create_access_token({'id': user_id, **claims})}"}


@pytest.fixture
def citizen(db):
    return add_user(db, "citizen")


@pytest.fixture
def admin(db):
    return add_user(db, "admin", role="admin")


@pytest.fixture
def client(db, fake_ai, image_store, notifier):
    """TestClient with in-memory collaborators; startup is not run."""
    from fastapi.testclient import TestClient
    from civicpulse.main import app, configure_state

    configure_state(app, db=db, image_store=image_store, ai_client=fake_ai, notifier=notifier)
    yield TestClient(app)
    app.dependency_overrides.clear()
