from datetime import timedelta
import re
import logging
import pytest

from bizdesk.core import auth
from conftest import bearer, make_token

AUTH_LOGGER = "bizdesk.core.auth"

def auth_records(caplog):
    return [r for r in caplog.records if r.name == AUTH_LOGGER]

@pytest.fixture
def verifier_must_not_run(monkeypatch):
    def explode(*args, **kwargs):
        raise AssertionError("verifier called")
    monkeypatch.setattr(auth, "verify_token", explode)

@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "abc123"},
    {"Authorization": "bearer abc123"},
    {"Authorization": "Basic dXNlcjpwYXNz"},
    {"Authorization": "Bearer"},
])
def test_missing_or_malformed_header(client, caplog, verifier_must_not_run, headers):
    caplog.set_level(logging.DEBUG)
    response = client.get("/api/tenders", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "token missing or malformed"}
    records = auth_records(caplog)
    assert [r.levelno for r in records] == [logging.WARNING]
    assert "GET /api/tenders" in records[0].getMessage()

def test_expired_token(client, caplog, admin_user):
    caplog.set_level(logging.DEBUG)
    token = make_token(admin_user, "admin", expires_delta=timedelta(seconds=-10))

    response = client.get("/api/tenders", headers=bearer(token))

    assert response.status_code == 401
    assert response.json() == {"error": "token expired"}
    records = auth_records(caplog)
    assert [r.levelno for r in records] == [logging.ERROR]
    assert token not in caplog.text

def test_token_signed_with_other_secret(client, caplog, admin_user):
    caplog.set_level(logging.DEBUG)
    token = make_token(admin_user, "admin", secret="somebody-else")

    response = client.get("/api/tenders", headers=bearer(token))

    assert response.status_code == 401
    assert response.json() == {"error": "invalid token"}
    assert [r.levelno for r in auth_records(caplog)] == [logging.ERROR]

def test_garbage_token(client):
    response = client.get("/api/loans", headers=bearer("definitely.not.valid"))
    assert response.status_code == 401
    assert response.json() == {"error": "invalid token"}
    assert response.headers["WWW-Authenticate"] == "Bearer"

def test_valid_token_admits_request(client, caplog, admin_headers):
    caplog.set_level(logging.DEBUG)
    response = client.get("/api/tenders", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == []
    records = auth_records(caplog)
    assert [r.levelno for r in records] == [logging.DEBUG]
    assert "role=admin" in records[0].getMessage()

PUBLIC_PATHS = {"/api", "/api/", "/api/health"}

def test_every_protected_route_requires_token(client, app):
    # Included routers are not flattened into app.routes, the schema lists every endpoint
    checked = 0
    for path, operations in app.openapi()["paths"].items():
        if not path.startswith("/api") or path in PUBLIC_PATHS or path.startswith("/api/auth"):
            continue
        url = re.sub(r"\{[^}]+\}", "1", path)
        for method in operations:
            response = client.request(method.upper(), url)
            assert response.status_code == 401, f"{method.upper()} {path}"
            checked += 1
    assert checked >= 40

def test_auth_prefix_is_public(client):
    response = client.post("/api/auth/login", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "username and password are required"}

def test_identity_attached_to_request(client, regular_user, user_headers):
    response = client.get("/api/users/profile", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["id"] == regular_user.id
    assert response.json()["username"] == "worker"
