from datetime import timedelta

from messmate.config import settings
from messmate.models import User, utcnow
from tests.conftest import PASSWORD


def _login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


class TestRegister:
    def test_creates_student_account(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "name": "Asha",
                "email": "Asha@Example.com",
                "password": "hunter22",
                "student_id": "S100",
                "role": "admin",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["email"] == "asha@example.com"
        assert data["user"]["role"] == "student"
        assert data["user"]["wallet_balance"] == 0.0
        assert "password_hash" not in data["user"]

    def test_duplicate_email_is_case_insensitive(self, client, student):
        response = client.post(
            "/api/auth/register",
            json={"name": "Copy", "email": "STUDENT@example.com", "password": "hunter22"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "DUPLICATE_ENTRY"

    def test_short_password_rejected(self, client):
        response = client.post(
            "/api/auth/register", json={"name": "Short", "email": "s@example.com", "password": "abc"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert "password" in body["details"]["field_errors"]


class TestLogin:
    def test_success_returns_token_and_records_login(self, client, db_session, student):
        response = _login(client, "student@example.com")

        assert response.status_code == 200
        token = response.json()["data"]["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["data"]["id"] == student.id
        db_session.expire_all()
        assert db_session.get(User, student.id).last_login is not None

    def test_wrong_password(self, client, student):
        response = _login(client, "student@example.com", "wrong-password")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Invalid credentials",
            "error": "AUTHENTICATION_FAILED",
        }

    def test_unknown_email(self, client):
        assert _login(client, "nobody@example.com").status_code == 401

    def test_lockout_after_repeated_failures(self, client, db_session, student):
        for _ in range(settings.MAX_LOGIN_ATTEMPTS):
            _login(client, "student@example.com", "wrong-password")

        response = _login(client, "student@example.com")

        assert response.status_code == 401
        assert response.json()["error"] == "ACCOUNT_LOCKED"

    def test_expired_lock_allows_login(self, client, db_session, student):
        student.login_attempts = settings.MAX_LOGIN_ATTEMPTS
        student.lock_until = utcnow() - timedelta(minutes=1)
        db_session.commit()

        response = _login(client, "student@example.com")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, student.id).login_attempts == 0

    def test_inactive_account(self, client, db_session, student):
        student.is_active = False
        db_session.commit()

        response = _login(client, "student@example.com")

        assert response.status_code == 401
        assert response.json()["error"] == "ACCOUNT_INACTIVE"


class TestTokens:
    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["error"] == "TOKEN_INVALID"

    def test_deactivated_user_token_rejected(self, client, db_session, student, student_headers):
        student.is_active = False
        db_session.commit()

        response = client.get("/api/auth/me", headers=student_headers)

        assert response.status_code == 401

    def test_update_password(self, client, student_headers):
        wrong = client.put(
            "/api/auth/update-password",
            json={"current_password": "nope", "new_password": "newsecret"},
            headers=student_headers,
        )
        assert wrong.status_code == 401

        response = client.put(
            "/api/auth/update-password",
            json={"current_password": PASSWORD, "new_password": "newsecret"},
            headers=student_headers,
        )
        assert response.status_code == 200
        assert _login(client, "student@example.com", "newsecret").status_code == 200

    def test_logout(self, client, student_headers):
        response = client.post("/api/auth/logout", headers=student_headers)
        assert response.json()["success"] is True
