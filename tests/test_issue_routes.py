"""
Tests for the REST surface: submission, triage and authentication
"""
import io
from datetime import datetime, timedelta, timezone

from jose import jwt

from civicpulse.utils.security import create_access_token
from conftest import add_issue, add_user, auth_headers


def submit(client, user_id="citizen", image=True, headers=None, **overrides):
    data = {
        "title": "Burst water pipe near school",
        "description": "The main water pipe burst near the school gate and the road is flooded",
        "lat": "18.5204",
        "lng": "73.8567",
    }
    data.update(overrides)
    files = {"image": ("pipe.jpg", io.BytesIO(b"\xff\xd8\xff fake jpeg"), "image/jpeg")} if image else None
    return client.post("/issue", data=data, files=files, headers=headers or auth_headers(user_id))


class TestSubmitIssue:

    def test_created_with_ai_analysis(self, client, citizen, db, image_store):
        response = submit(client)

        assert response.status_code == 201
        body = response.json()
        issue = body["issue"]
        assert issue["status"] == "Pending"
        assert issue["city"] == "Pune"
        assert issue["reported_by"] == "citizen"
        assert issue["category"] == "Water"
        assert issue["severity_score"] == {"image_severity": 6, "text_severity": 8, "combined_severity": 8}
        assert 0 <= issue["priority_score"] <= 100
        assert issue["image_url"].startswith("https://storage.local/issues/")
        assert body["ai_analysis"]["source"] == "groq"
        assert len(list(db.collection("issues").stream())) == 1
        assert len(image_store.objects) == 1

    def test_requires_authentication(self, client):
        response = client.post("/issue", data={"title": "Pothole", "description": "Deep pothole", "lat": "1", "lng": "1"})
        assert response.status_code == 401

    def test_spam_rejected_before_upload(self, client, citizen, db, image_store, fake_ai):
        response = submit(client, title="aaaaaaaa")

        assert response.status_code == 400
        assert "spam" in response.json()["detail"]
        assert image_store.objects == {}
        assert fake_ai.text_calls == []
        assert list(db.collection("issues").stream()) == []

    def test_missing_image(self, client, citizen):
        response = submit(client, image=False)
        assert response.status_code == 400
        assert response.json()["detail"] == "Image is required"

    def test_reporter_without_city(self, client, db):
        add_user(db, "nocity", city=None)
        response = submit(client, user_id="nocity")
        assert response.status_code == 400

    def test_cooldown(self, client, citizen, db, fake_ai):
        add_issue(db, reported_by="citizen", created_at=datetime.now(timezone.utc) - timedelta(minutes=5),
                  latitude=10.0, longitude=10.0)

        response = submit(client)

        assert response.status_code == 429
        assert response.json()["retry_after_minutes"] in (10, 11)
        assert fake_ai.vision_calls == []

    def test_saturated_location(self, client, citizen, db):
        for i in range(8):
            add_issue(db, reported_by=f"user{i}", latitude=18.5204, longitude=73.8567)

        response = submit(client)

        assert response.status_code == 409
        assert len(list(db.collection("issues").stream())) == 8

    def test_irrelevant_image_rejected(self, client, citizen, db, fake_ai):
        fake_ai.vision_reply = '{"isRelevant": false, "confidence": 0.9}'

        response = submit(client)

        assert response.status_code == 400
        assert "image" in response.json()["detail"]
        assert list(db.collection("issues").stream()) == []

    def test_non_numeric_coordinates(self, client, citizen, db, image_store):
        response = submit(client, lat="abc")

        assert response.status_code == 400
        assert response.json()["detail"] == "Latitude and longitude must be valid numbers"
        assert image_store.objects == {}
        assert list(db.collection("issues").stream()) == []

    def test_blank_coordinates(self, client, citizen):
        response = submit(client, lng="")
        assert response.status_code == 400
        assert response.json()["detail"] == "All required fields must be provided"

    def test_non_string_explanation_is_stored_as_text(self, client, citizen, db, fake_ai):
        fake_ai.text_reply = '{"severity": 7, "urgencyBoost": 0, "category": "Water", "explanation": 42, "isRelevant": true}'
        fake_ai.vision_reply = '{"severity": 6, "confidence": 0.8, "description": {"text": "pipe"}, "isRelevant": true}'

        response = submit(client)

        assert response.status_code == 201
        assert response.json()["ai_analysis"]["explanation"] == "42"
        assert len(list(db.collection("issues").stream())) == 1

    def test_ai_outage_still_creates_issue(self, client, citizen, fake_ai):
        fake_ai.text_reply = None
        fake_ai.vision_reply = None

        response = submit(client)

        assert response.status_code == 201
        assert response.json()["ai_analysis"]["source"] == "fallback"
        assert response.json()["issue"]["severity_score"]["image_severity"] == 5


class TestReadIssues:

    def test_list_sorted_by_priority(self, client, db):
        add_issue(db, "low", priority_score=20)
        add_issue(db, "high", priority_score=90)

        response = client.get("/issue")

        assert response.status_code == 200
        assert [issue["id"] for issue in response.json()] == ["high", "low"]

    def test_get_missing_issue(self, client):
        response = client.get("/issue/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"] == "Issue not found"

    def test_home_stats(self, client, db):
        add_issue(db, status="Resolved")
        add_issue(db, status="Pending")
        assert client.get("/issue/stats/home").json() == {"reported": 2, "resolved": 1, "active_zones": 1}


class TestAdminActions:

    def test_status_update_notifies_reporter(self, client, admin, citizen, db, notifier):
        issue_id = add_issue(db, reported_by="citizen")

        response = client.put(f"/issue/{issue_id}/status", json={"status": "In Progress"},
                              headers=auth_headers("admin"))

        assert response.status_code == 200
        assert response.json()["status"] == "In Progress"
        assert notifier.sent == [("status", "citizen@example.com", "Broken pipe on main street", "In Progress")]

    def test_invalid_status(self, client, admin, db):
        issue_id = add_issue(db)
        response = client.put(f"/issue/{issue_id}/status", json={"status": "Closed"}, headers=auth_headers("admin"))
        assert response.status_code == 400

    def test_status_out_of_city(self, client, admin, db):
        issue_id = add_issue(db, city="Mumbai")
        response = client.put(f"/issue/{issue_id}/status", json={"status": "Resolved"}, headers=auth_headers("admin"))
        assert response.status_code == 404

    def test_citizen_cannot_update_status(self, client, citizen, db):
        issue_id = add_issue(db)
        response = client.put(f"/issue/{issue_id}/status", json={"status": "Resolved"}, headers=auth_headers("citizen"))
        assert response.status_code == 403

    def test_report_as_fake_bans_at_zero(self, client, admin, db, notifier):
        add_user(db, "spammer", trust_score=25)
        issue_id = add_issue(db, reported_by="spammer")

        response = client.put(f"/issue/{issue_id}/reportAsFake", headers=auth_headers("admin"))

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["deleted"] is True
        assert body["issue"]["reported_as_fake"] is True
        assert notifier.sent == [("banned", "spammer@example.com")]

        again = client.put(f"/issue/{issue_id}/reportAsFake", headers=auth_headers("admin"))
        assert again.status_code == 400

    def test_report_as_fake_missing_reporter(self, client, admin, db):
        issue_id = add_issue(db, reported_by="ghost")

        response = client.put(f"/issue/{issue_id}/reportAsFake", headers=auth_headers("admin"))

        assert response.status_code == 404
        assert response.json()["detail"] == "User who reported this issue not found"
        assert client.get(f"/issue/{issue_id}").json()["reported_as_fake"] is False

    def test_super_admin_cannot_report_fake(self, client, db):
        add_user(db, "root", role="super_admin")
        issue_id = add_issue(db)
        response = client.put(f"/issue/{issue_id}/reportAsFake", headers=auth_headers("root"))
        assert response.status_code == 403

    def test_priority_queue_scoped_to_city(self, client, admin, db):
        add_issue(db, "pune-open", city="Pune", priority_score=60)
        add_issue(db, "pune-done", city="Pune", status="Resolved")
        add_issue(db, "mumbai-open", city="Mumbai", priority_score=99)

        response = client.get("/issue/admin/priority", headers=auth_headers("admin"))

        assert [issue["id"] for issue in response.json()] == ["pune-open"]


class TestAuth:

    def test_register_and_login(self, client):
        response = client.post("/auth/register", json={
            "name": "Asha", "email": "asha@example.com", "password": "secret123", "city": "Pune",
        })
        assert response.status_code == 201
        assert "password_hash" not in response.json()["user"]

        login = client.post("/auth/login", json={"email": "ASHA@example.com", "password": "secret123"})
        assert login.status_code == 200
        assert login.json()["user"]["city"] == "Pune"

    def test_login_token_authorizes_requests(self, client, admin, db):
        issue_id = add_issue(db)
        login = client.post("/auth/login", json={"email": "admin@example.com", "password": "secret123"})
        token = login.json()["access_token"]
        assert login.json()["token_type"] == "bearer"

        response = client.put(f"/issue/{issue_id}/status", json={"status": "Resolved"},
                              headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200

    def test_invalid_email_rejected(self, client):
        response = client.post("/auth/register", json={
            "name": "Bad", "email": "not-an-email", "password": "secret123",
        })
        assert response.status_code == 422

    def test_duplicate_email(self, client, citizen):
        response = client.post("/auth/register", json={
            "name": "Copy", "email": "citizen@example.com", "password": "secret123",
        })
        assert response.status_code == 409

    def test_banned_email_cannot_register(self, client, db):
        db.collection("banned_emails").document("gone@example.com").set({"email": "gone@example.com"})
        response = client.post("/auth/register", json={
            "name": "Gone", "email": "gone@example.com", "password": "secret123",
        })
        assert response.status_code == 403


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/db").status_code == 200


class TestAccessTokens:
    """Admin actions require a valid signed token, not just a user id."""

    def test_missing_token(self, client, admin, db):
        issue_id = add_issue(db)
        response = client.put(f"/issue/{issue_id}/reportAsFake")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_forged_token(self, client, admin, db):
        add_user(db, "reporter")
        issue_id = add_issue(db, reported_by="reporter")
        forged = jwt.encode({"sub": "admin"}, "not-the-server-secret", algorithm="HS256")

        response = client.put(f"/issue/{issue_id}/reportAsFake", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"
        assert db.collection("users").document("reporter").get().to_dict()["trust_score"] == 100

    def test_raw_user_id_is_not_a_token(self, client, admin, db):
        issue_id = add_issue(db)
        response = client.put(f"/issue/{issue_id}/reportAsFake", headers={"Authorization": "Bearer admin"})
        assert response.status_code == 401

    def test_wrong_scheme(self, client, admin, db):
        token = create_access_token({"id": "admin"})
        response = client.get("/issue/admin/priority", headers={"Authorization": f"Basic {token}"})
        assert response.status_code == 401

    def test_expired_token(self, client, admin):
        token = create_access_token({"id": "admin"}, expires_minutes=-5)
        response = client.get("/issue/admin/priority", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_of_deleted_user(self, client):
        response = submit(client, user_id="nobody")
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"
