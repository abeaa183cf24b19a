import pytest

from bizdesk.core.auth import PermissionCache, require_permission

def test_unknown_action_rejected():
    with pytest.raises(ValueError):
        require_permission("tenders", "approve")

def test_permission_cache():
    cache = PermissionCache()
    assert cache.get(2, "view", "finance") is None
    cache.set(2, "view", "finance", True)
    cache.set(2, "edit", "finance", False)
    assert cache.get(2, "view", "finance") is True
    assert cache.get(2, "edit", "finance") is False
    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0

def test_admin_route_rejects_regular_user(client, user_headers):
    response = client.get("/api/roles", headers=user_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "admin role required"}

def test_admin_route_allows_admin(client, admin_headers):
    response = client.get("/api/roles", headers=admin_headers)
    assert response.status_code == 200
    assert [role["name"] for role in response.json()] == ["admin", "user"]

def test_user_without_permission_row_is_denied(client, user_headers):
    response = client.get("/api/tenders", headers=user_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "no permission to view tenders"}

def test_permission_flags_are_checked_per_action(client, grant, user_headers):
    grant("tenders", view=True)

    assert client.get("/api/tenders", headers=user_headers).status_code == 200
    response = client.post(
        "/api/tenders", headers=user_headers, json={"stage": "В работе ИП"}
    )
    assert response.status_code == 403
    assert response.json() == {"error": "no permission to create tenders"}

def test_decisions_are_cached(app, client, grant, roles, user_headers):
    grant("finance", view=True)
    client.get("/api/loans", headers=user_headers)
    assert app.state.permission_cache.get(roles["user"].id, "view", "finance") is True

def test_permission_change_clears_cache(app, client, grant, roles, admin_headers, user_headers):
    grant("notes", view=True)
    assert client.get("/api/header-notes", headers=user_headers).status_code == 200
    assert len(app.state.permission_cache) == 1

    response = client.put(
        f"/api/permissions/{roles['user'].id}/notes",
        headers=admin_headers,
        json={"can_view": False},
    )
    assert response.status_code == 200
    assert response.json()["can_view"] is False
    assert len(app.state.permission_cache) == 0
    assert client.get("/api/header-notes", headers=user_headers).status_code == 403

def test_permission_upsert_creates_missing_row(client, roles, admin_headers, user_headers):
    response = client.put(
        f"/api/permissions/{roles['user'].id}/finance",
        headers=admin_headers,
        json={"can_view": True, "can_create": True},
    )
    assert response.status_code == 200
    assert response.json()["page"] == "finance"

    listed = client.get(f"/api/permissions?role_id={roles['user'].id}", headers=admin_headers)
    assert [p["page"] for p in listed.json()] == ["finance"]
    assert client.get("/api/loans", headers=user_headers).status_code == 200

def test_permission_for_unknown_role(client, admin_headers):
    response = client.post(
        "/api/permissions", headers=admin_headers, json={"role_id": 99, "page": "finance"}
    )
    assert response.status_code == 400

def test_db_status_is_admin_only(client, admin_headers, user_headers):
    assert client.get("/api/db-status", headers=user_headers).status_code == 403
    response = client.get("/api/db-status", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["connected"] is True

def test_role_in_use_cannot_be_deleted(client, roles, regular_user, admin_headers):
    response = client.delete(f"/api/roles/{roles['user'].id}", headers=admin_headers)
    assert response.status_code == 400

def test_role_names_are_lowercased(client, admin_headers):
    response = client.post("/api/roles", headers=admin_headers, json={"name": "Manager"})
    assert response.status_code == 201
    assert response.json()["name"] == "manager"
