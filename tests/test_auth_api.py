"""API tests for registration, login and password recovery."""

from urllib.parse import parse_qs, urlparse

from conftest import auth_headers, collect_keys, login, register_and_login
from domus.core.config import settings
from domus.models.user import User
from domus.services import auth_service
from domus.utils.auth import TokenCodec, create_recovery_token


class TestRegister:
    def test_register_returns_user_without_password(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "alice@x.com", "password": "p4ssword!"})
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "alice@x.com"
        assert body["roles"] == ["user"]
        assert not {"password", "password_hash"} & collect_keys(body)

    def test_duplicate_email_conflicts(self, client):
        payload = {"email": "alice@x.com", "password": "p4ssword!"}
        assert client.post("/api/v1/auth/register", json=payload).status_code == 201
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 409
        assert response.json()["statusCode"] == 409

    def test_invalid_payload_is_400_with_errors(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "nope", "password": "short"})
        assert response.status_code == 400
        body = response.json()
        assert body["statusCode"] == 400
        assert len(body["errors"]) == 2

    def test_password_is_stored_hashed(self, client, db):
        client.post("/api/v1/auth/register", json={"email": "alice@x.com", "password": "p4ssword!"})
        user = db.query(User).filter(User.email == "alice@x.com").one()
        assert user.password_hash != "p4ssword!"


class TestLogin:
    def test_token_subject_is_the_user_id(self, client):
        user_id, _ = register_and_login(client, "bob@x.com")
        body = login(client, "bob@x.com", "s3cret-pass")
        claims = TokenCodec(settings.SECRET_KEY).verify(body["access_token"])
        assert claims["sub"] == user_id == body["user"]["id"]
        assert claims["roles"] == ["user"]
        assert body["token_type"] == "bearer"

    def test_wrong_password_is_401(self, client):
        register_and_login(client, "bob@x.com")
        response = client.post("/api/v1/auth/login", json={"email": "bob@x.com", "password": "wrong-pass"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_unknown_email_matches_wrong_password(self, client, monkeypatch):
        """Unknown emails still hash-verify and get the same answer."""
        calls = []
        original = auth_service.verify_password

        def spy(password, hashed):
            calls.append(hashed)
            return original(password, hashed)

        monkeypatch.setattr(auth_service, "verify_password", spy)
        register_and_login(client, "bob@x.com")
        calls.clear()

        unknown = client.post("/api/v1/auth/login", json={"email": "ghost@x.com", "password": "wrong-pass"})
        wrong = client.post("/api/v1/auth/login", json={"email": "bob@x.com", "password": "wrong-pass"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()
        assert calls[0] is None and calls[1] is not None

    def test_deactivated_user_cannot_login(self, client):
        _, headers = register_and_login(client, "bob@x.com")
        assert client.put("/api/v1/users/me/deactivate", headers=headers).status_code == 204
        response = client.post("/api/v1/auth/login", json={"email": "bob@x.com", "password": "s3cret-pass"})
        assert response.status_code == 401

    def test_register_reactivates_deleted_account(self, client):
        old_id, headers = register_and_login(client, "bob@x.com")
        client.put("/api/v1/users/me/deactivate", headers=headers)
        new_id, _ = register_and_login(client, "bob@x.com", "a-new-password")
        assert new_id == old_id

    def test_reactivated_account_gets_the_default_role(self, client, admin_headers):
        """A deleted admin's email registered again comes back as a plain user."""
        user_id, _ = register_and_login(client, "bob@x.com")
        promoted = client.put(f"/api/v1/users/{user_id}", json={"role": "admin"}, headers=admin_headers)
        assert promoted.json()["roles"] == ["admin"]
        assert client.delete(f"/api/v1/users/{user_id}", headers=admin_headers).status_code == 204

        response = client.post("/api/v1/auth/register", json={"email": "bob@x.com", "password": "a-new-password"})
        assert response.status_code == 201
        assert response.json()["roles"] == ["user"]
        body = login(client, "bob@x.com", "a-new-password")
        assert body["user"]["roles"] == ["user"]


class TestPasswordRecovery:
    def _token_from(self, mailer):
        _, url = mailer.sent[-1]
        parsed = urlparse(url)
        assert parsed.path == "/recovery-password"
        return parse_qs(parsed.query)["token"][0]

    def test_forgot_then_reset(self, client, mailer):
        register_and_login(client, "carol@x.com")
        response = client.post("/api/v1/auth/forgot-password", json={"email": "carol@x.com"})
        assert response.status_code == 200
        assert mailer.sent[0][0] == "carol@x.com"
        assert mailer.sent[0][1].startswith("http://frontend.test/recovery-password?token=")

        token = self._token_from(mailer)
        response = client.post("/api/v1/auth/reset-password", json={"token": token, "password": "brand-new-pass"})
        assert response.status_code == 200
        login(client, "carol@x.com", "brand-new-pass")

    def test_unknown_email_is_silent_by_default(self, client, mailer):
        response = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@x.com"})
        assert response.status_code == 200
        assert mailer.sent == []

    def test_unknown_email_can_be_disclosed(self, client, mailer, monkeypatch):
        monkeypatch.setattr(settings, "FORGOT_PASSWORD_REVEALS_UNKNOWN_EMAIL", True)
        response = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@x.com"})
        assert response.status_code == 404

    def test_session_token_cannot_reset_password(self, client):
        register_and_login(client, "carol@x.com")
        token = login(client, "carol@x.com", "s3cret-pass")["access_token"]
        response = client.post("/api/v1/auth/reset-password", json={"token": token, "password": "brand-new-pass"})
        assert response.status_code == 401

    def test_reset_for_missing_user_is_404(self, client):
        token = create_recovery_token("00000000-0000-0000-0000-000000000000", "ghost@x.com")
        response = client.post("/api/v1/auth/reset-password", json={"token": token, "password": "brand-new-pass"})
        assert response.status_code == 404

    def test_recovery_token_cannot_authenticate(self, client, mailer):
        register_and_login(client, "carol@x.com")
        client.post("/api/v1/auth/forgot-password", json={"email": "carol@x.com"})
        token = self._token_from(mailer)
        response = client.get("/api/v1/users/me", headers=auth_headers(token))
        assert response.status_code == 401
