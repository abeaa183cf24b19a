from conftest import bearer, make_token

def test_list_users_needs_permission(client, grant, user_headers, admin_user, regular_user):
    assert client.get("/api/users", headers=user_headers).status_code == 403
    grant("users", view=True)
    response = client.get("/api/users", headers=user_headers)
    assert response.status_code == 200
    assert sorted(u["username"] for u in response.json()) == ["boss", "worker"]
    assert all("password_hash" not in u for u in response.json())

def test_admin_reads_any_profile(client, admin_headers, regular_user):
    response = client.get(f"/api/users/{regular_user.id}/profile", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "user"

def test_admin_profile_of_missing_user(client, admin_headers):
    response = client.get("/api/users/404/profile", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "User 404 not found"}

def test_change_role(client, admin_headers, regular_user, roles):
    response = client.put(
        f"/api/users/{regular_user.id}/role", headers=admin_headers, json={"role": "admin"}
    )
    assert response.status_code == 200
    assert response.json()["role_id"] == roles["admin"].id

def test_toggle_active(client, admin_headers, regular_user):
    first = client.put(f"/api/users/{regular_user.id}/toggle-active", headers=admin_headers)
    second = client.put(f"/api/users/{regular_user.id}/toggle-active", headers=admin_headers)
    assert first.json()["is_active"] is False
    assert second.json()["is_active"] is True

def test_admin_cannot_delete_self(client, admin_headers, admin_user):
    response = client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400

def test_delete_user(client, admin_headers, regular_user):
    response = client.delete(f"/api/users/{regular_user.id}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/users/{regular_user.id}/profile", headers=admin_headers).status_code == 404

def test_update_user_password(client, grant, user_headers, regular_user):
    grant("users", edit=True)
    response = client.put(
        f"/api/users/{regular_user.id}",
        headers=user_headers,
        json={"password": "new-secret", "telegram": "@worker"},
    )
    assert response.status_code == 200
    assert response.json()["telegram"] == "@worker"
    login = client.post("/api/auth/login", json={"username": "worker", "password": "new-secret"})
    assert login.status_code == 200

def test_visibility_settings_admin_crud(client, admin_headers, user_headers, regular_user):
    created = client.post(
        "/api/visibility_settings",
        headers=admin_headers,
        json={"user_id": regular_user.id, "stage": "Подал ИП", "visible": True},
    )
    assert created.status_code == 201
    setting_id = created.json()["id"]

    updated = client.put(
        f"/api/visibility_settings/{setting_id}", headers=admin_headers, json={"visible": False}
    )
    assert updated.json()["visible"] is False
    assert client.get("/api/visibility_settings", headers=user_headers).status_code == 403

def test_token_for_deleted_role_claims(client, regular_user):
    # A token claiming a role that has no permissions still authenticates but is denied
    token = make_token(regular_user, "ghost-role")
    response = client.get("/api/tenders", headers=bearer(token))
    assert response.status_code == 403
