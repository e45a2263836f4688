"""Tests for registration, login and bearer token resolution."""
import pytest
from fastapi.testclient import TestClient

from sitebuilder.core.dependencies import get_auth_service
from sitebuilder.main import app
from sitebuilder.modules.auth.service import AuthService, TokenCache
from tests.conftest import OWNER
from tests.fakes import FakeAuth, FakeSupabase

API = "/api/v1"


@pytest.fixture
def auth():
    auth = FakeAuth()
    auth.add_user("owner@example.com", "secret-pass", "owner-token", OWNER)
    auth.add_user("root@example.com", "secret-pass", "admin-token", "9000000000", {"type": "super_user"})
    return auth


@pytest.fixture
def cache():
    return TokenCache(ttl_seconds=60, max_size=2)


@pytest.fixture
def auth_client(auth, cache):
    db = FakeSupabase()
    db.auth = auth
    app.dependency_overrides[get_auth_service] = lambda: AuthService(db, cache)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_register_stores_mobile_number(auth_client, auth):
    resp = auth_client.post(f"{API}/auth/register", json={
        "email": "new@example.com", "password": "long-enough", "mobile_number": "9111111111",
    })
    assert resp.status_code == 201
    _, user = auth.accounts["new@example.com"]
    assert user.user_metadata == {"mobile_number": "9111111111"}


def test_register_duplicate(auth_client):
    resp = auth_client.post(f"{API}/auth/register", json={
        "email": "owner@example.com", "password": "long-enough", "mobile_number": OWNER,
    })
    assert resp.status_code == 400
    assert resp.json() == {"error": "User already exists"}


def test_register_rejects_bad_mobile_number(auth_client):
    resp = auth_client.post(f"{API}/auth/register", json={
        "email": "x@example.com", "password": "long-enough", "mobile_number": "12345",
    })
    assert resp.status_code == 422


def test_login_then_me(auth_client):
    resp = auth_client.post(f"{API}/auth/login", json={"email": "owner@example.com", "password": "secret-pass"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = auth_client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}).json()

    assert (me["identity"], me["role"]) == (OWNER, "user")
    assert "file-manager" in me["resources"]


def test_login_wrong_password(auth_client):
    resp = auth_client.post(f"{API}/auth/login", json={"email": "owner@example.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid email or password"}


def test_missing_and_unknown_tokens(auth_client):
    assert auth_client.get(f"{API}/auth/me").status_code == 401
    resp = auth_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer forged"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid or expired token"}


def test_super_user_is_admin(auth_client):
    me = auth_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer admin-token"}).json()
    assert me["role"] == "admin"


def test_token_lookups_are_cached(auth_client, auth):
    headers = {"Authorization": "Bearer owner-token"}
    for _ in range(3):
        assert auth_client.get(f"{API}/auth/me", headers=headers).status_code == 200
    assert auth.get_user_calls == 1


class TestTokenCache:
    def test_expired_entries_are_dropped(self, auth):
        service = AuthService(FakeSupabase(), TokenCache(ttl_seconds=0))
        service.supabase.auth = auth
        service.resolve_token("owner-token")
        service.resolve_token("owner-token")
        assert auth.get_user_calls == 2

    def test_full_cache_still_resolves(self, auth, cache):
        auth.add_user("c@example.com", "pw", "third-token", "9222222222")
        service = AuthService(FakeSupabase(), cache)
        service.supabase.auth = auth

        for token in ("owner-token", "admin-token", "third-token"):
            service.resolve_token(token)

        assert cache.get("third-token") is None
        assert service.resolve_token("third-token").identity == "9222222222"
