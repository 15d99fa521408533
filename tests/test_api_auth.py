"""Login, principal echo, preferences and health endpoints."""

from types import SimpleNamespace

import pytest

from servit.api.v1.auth import get_identity_client
from servit.main import app
from servit.utils.security import decode_access_token

API = "/api/v1"


class FakeIdentity:
    """Stands in for the Supabase client; every password is accepted."""

    def __init__(self):
        self.calls = []
        self.auth = SimpleNamespace(sign_in_with_password=self._sign_in)

    def _sign_in(self, credentials):
        self.calls.append(credentials["email"])
        return SimpleNamespace(user=SimpleNamespace(email=credentials["email"]))


@pytest.fixture
def identity(client):
    fake = FakeIdentity()
    app.dependency_overrides[get_identity_client] = lambda: fake
    return fake


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "running"


def test_login_issues_token_with_claims(client, identity):
    resp = client.post(f"{API}/auth/login", json={"email": "Server@servit.test", "password": "pw"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["server_code"] == "S01"
    assert identity.calls == ["Server@servit.test"]

    claims = decode_access_token(body["access_token"])
    assert claims["sub"] == "u-server"
    assert claims["role"] == "SERVER"
    assert claims["organization_id"] == "org-1"
    assert claims["location_id"] == "loc-1"

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}).json()
    assert me["user_id"] == "u-server"
    assert me["role"] == "SERVER"


def test_login_without_user_row(client, identity):
    resp = client.post(f"{API}/auth/login", json={"email": "stranger@servit.test", "password": "pw"})
    assert resp.status_code == 401


def test_login_inactive_user(client, identity, tenants):
    from servit.models import User

    tenants.get(User, "u-chef").is_active = False
    tenants.commit()

    resp = client.post(f"{API}/auth/login", json={"email": "chef@servit.test", "password": "pw"})
    assert resp.status_code == 401


def test_preferences_round_trip(client, culinary_headers, server_headers):
    resp = client.get(f"{API}/preferences/", headers=culinary_headers)
    assert resp.json()["print_quantity"] == 1

    resp = client.put(
        f"{API}/preferences/",
        json={"role_view": "CULINARY", "print_quantity": 4},
        headers=culinary_headers,
    )
    assert resp.status_code == 200

    client.post(f"{API}/preferences/favorites/margherita", headers=culinary_headers)
    client.post(f"{API}/preferences/recent", json={"id": "dough", "name": "Pizza Dough"}, headers=culinary_headers)

    prefs = client.get(f"{API}/preferences/", headers=culinary_headers).json()
    assert prefs["role_view"] == "CULINARY"
    assert prefs["print_quantity"] == 4
    assert prefs["favorites"] == ["margherita"]
    assert prefs["recent"][0]["id"] == "dough"

    assert client.get(f"{API}/preferences/", headers=server_headers).json()["favorites"] == []

    client.post(f"{API}/preferences/favorites/margherita", headers=culinary_headers)
    assert client.get(f"{API}/preferences/", headers=culinary_headers).json()["favorites"] == []


def test_invalid_preferences(client, culinary_headers):
    resp = client.put(f"{API}/preferences/", json={"print_quantity": 0}, headers=culinary_headers)
    assert resp.status_code == 422
