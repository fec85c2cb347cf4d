"""
Integration tests for registration, login and /auth/me.
"""
from datetime import timedelta

from jose import jwt

from isoqms.config import get_settings
from isoqms.core.security import create_access_token

settings = get_settings()


class TestRegister:

    def test_register_creates_user_without_tenants(self, client):
        response = client.post("/api/v1/auth/register", json={
            "email": "Maria@Example.com",
            "password": "s3cure-password",
            "name": "Maria Silva",
        })

        assert response.status_code == 201
        user = response.json()["data"]
        assert user["email"] == "maria@example.com"
        assert user["name"] == "Maria Silva"
        assert "hashed_password" not in user

    def test_duplicate_email_conflicts(self, client, admin_user):
        response = client.post("/api/v1/auth/register", json={
            "email": admin_user.email.upper(),
            "password": "s3cure-password",
            "name": "Copycat",
        })

        assert response.status_code == 409
        assert "error" in response.json()

    def test_short_password_is_rejected(self, client):
        response = client.post("/api/v1/auth/register", json={
            "email": "short@example.com",
            "password": "123",
            "name": "Short",
        })

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request data"
        assert "password" in body["details"]


class TestLogin:

    def test_login_returns_token_for_user(self, client, admin_user, password):
        response = client.post("/api/v1/auth/login", json={"email": admin_user.email, "password": password})

        assert response.status_code == 200
        token = response.json()["data"]["access_token"]
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == admin_user.id

    def test_wrong_password_and_unknown_email_look_the_same(self, client, admin_user):
        wrong = client.post("/api/v1/auth/login", json={"email": admin_user.email, "password": "nope"})
        unknown = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "nope"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()

    def test_inactive_user_cannot_login(self, client, db, admin_user, password):
        admin_user.is_active = False
        db.commit()

        response = client.post("/api/v1/auth/login", json={"email": admin_user.email, "password": password})
        assert response.status_code == 401


class TestMe:

    def test_me(self, client, admin_user, admin_headers):
        response = client.get("/api/v1/auth/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == admin_user.id

    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_expired_token(self, client, admin_user):
        token = create_access_token(admin_user.id, expires_delta=timedelta(seconds=-1))
        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_signed_with_other_key(self, client, admin_user):
        token = jwt.encode({"sub": admin_user.id}, "wrong-secret", algorithm=settings.ALGORITHM)
        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
