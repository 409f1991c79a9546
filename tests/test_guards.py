"""Tests for the token / role / ownership guard chain."""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from conftest import auth_headers, login, register_and_login
from domus.api import access, deps
from domus.api.access import RouteAccess, route_access
from domus.core.config import settings
from domus.core.exceptions import Forbidden, UnsupportedResourceType
from domus.utils.auth import Principal, TokenCodec


def _principal(subject_id, *roles):
    now = datetime.now(timezone.utc)
    return Principal(subject_id=str(subject_id), email="p@x.com", roles=frozenset(roles), issued_at=now, expires_at=now)


def _request(**path_params):
    return SimpleNamespace(path_params=path_params)


class TestTokenStage:
    """Requests are rejected before any ownership check runs."""

    def test_missing_header(self, client):
        response = client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert response.json() == {"statusCode": 401, "message": "Not authenticated"}

    def test_wrong_scheme(self, client):
        response = client.get("/api/v1/users/me", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/v1/users/me", headers=auth_headers("abc.def.ghi"))
        assert response.status_code == 401

    def test_foreign_signature(self, client):
        token = TokenCodec("some-other-secret-that-is-long-enough").issue_session(uuid.uuid4(), "x@x.com", ["admin"])
        response = client.get("/api/v1/users/", headers=auth_headers(token))
        assert response.status_code == 401

    def test_deactivated_account_token_is_rejected(self, client, admin_headers):
        user_id, _ = register_and_login(client, "u@x.com")
        client.put(f"/api/v1/users/{user_id}", json={"role": "agent"}, headers=admin_headers)
        agent_token = login(client, "u@x.com", "s3cret-pass")["access_token"]

        assert client.delete(f"/api/v1/users/{user_id}", headers=admin_headers).status_code == 204
        response = client.post("/api/v1/properties/", json={"name": "x"}, headers=auth_headers(agent_token))
        assert response.status_code == 401
        assert client.get("/api/v1/users/me", headers=auth_headers(agent_token)).status_code == 401

    def test_token_for_unknown_subject_is_rejected(self, client):
        token = TokenCodec(settings.SECRET_KEY).issue_session(uuid.uuid4(), "ghost@x.com", ["admin"])
        assert client.get("/api/v1/users/", headers=auth_headers(token)).status_code == 401

    def test_ownership_never_runs_unauthenticated(self, client, monkeypatch):
        calls = []
        monkeypatch.setitem(access.OWNERSHIP_RESOLVERS, "user", lambda db, rid: calls.append(rid))
        response = client.get(f"/api/v1/users/{uuid.uuid4()}")
        assert response.status_code == 401
        assert calls == []


class TestRoleStage:
    def test_user_cannot_list_users(self, client):
        _, headers = register_and_login(client, "u@x.com")
        assert client.get("/api/v1/users/", headers=headers).status_code == 403

    def test_admin_can_list_users(self, client, admin_headers):
        response = client.get("/api/v1/users/", headers=admin_headers)
        assert response.status_code == 200
        assert [u["email"] for u in response.json()] == ["admin@domus.com"]

    def test_any_listed_role_is_enough(self):
        route = RouteAccess(required_roles=frozenset({"admin", "agent"}))
        deps.check_roles(_principal(1, "agent"), route)
        with pytest.raises(Forbidden):
            deps.check_roles(_principal(1, "client"), route)


class TestOwnershipStage:
    def test_owner_can_read_self(self, client):
        user_id, headers = register_and_login(client, "a@x.com")
        response = client.get(f"/api/v1/users/{user_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == user_id

    def test_other_user_is_forbidden(self, client):
        a_id, _ = register_and_login(client, "a@x.com")
        _, headers_b = register_and_login(client, "b@x.com")
        assert client.get(f"/api/v1/users/{a_id}", headers=headers_b).status_code == 403

    def test_admin_bypasses_ownership(self, client, admin_headers):
        user_id, _ = register_and_login(client, "a@x.com")
        assert client.get(f"/api/v1/users/{user_id}", headers=admin_headers).status_code == 200

    def test_missing_profile_falls_through_to_404(self, client):
        _, headers = register_and_login(client, "a@x.com")
        response = client.get(f"/api/v1/user-profile/{uuid.uuid4()}", headers=headers)
        assert response.status_code == 404

    def test_unknown_resource_type_is_fatal(self):
        route = RouteAccess(resource_type="planet")
        with pytest.raises(UnsupportedResourceType) as exc:
            deps.check_ownership(None, _request(id="1"), _principal(1, "user"), route)
        assert exc.value.status_code == 500

    def test_admin_skips_resolver(self):
        route = RouteAccess(resource_type="planet")
        deps.check_ownership(None, _request(id="1"), _principal(1, "admin"), route)

    def test_missing_path_param_is_forbidden(self):
        route = RouteAccess(resource_type="user", id_param="user_id")
        with pytest.raises(Forbidden):
            deps.check_ownership(None, _request(), _principal(1, "user"), route)

    def test_user_resolver_is_the_id_itself(self):
        uid = uuid.uuid4()
        route = RouteAccess(resource_type="user")
        deps.check_ownership(None, _request(id=str(uid).upper()), _principal(uid, "user"), route)
        with pytest.raises(Forbidden):
            deps.check_ownership(None, _request(id=str(uuid.uuid4())), _principal(uid, "user"), route)


class TestAccessTable:
    def test_unknown_route_fails_fast(self):
        with pytest.raises(RuntimeError):
            route_access("nope.missing")

    def test_guard_resolves_route_at_definition(self):
        with pytest.raises(RuntimeError):
            deps.guard("nope.missing")

    def test_every_resource_type_has_a_resolver(self):
        for name, route in access.ROUTE_ACCESS.items():
            if route.resource_type is not None:
                assert route.resource_type in access.OWNERSHIP_RESOLVERS, name
