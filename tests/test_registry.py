from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.testclient import TestClient
import logging
import pytest

from bizdesk.main import create_app
from bizdesk.routing.handlers import HANDLERS
from bizdesk.routing.registry import (
    DEFAULT_ROUTE_TABLE, HANDLER_ALIASES, RouteTable, mount_routes
)

async def allow_all():
    return None

async def deny_all():
    raise HTTPException(status_code=401, detail="token missing or malformed")

def ping_router() -> APIRouter:
    router = APIRouter()

    @router.get("/ping")
    async def ping():
        return {"pong": True}

    return router

def broken_factory() -> APIRouter:
    raise ImportError("No module named 'bizdesk.api.nowhere'")

def test_default_table_declaration_order():
    assert DEFAULT_ROUTE_TABLE.names[:4] == ["auth", "users", "roles", "permissions"]
    assert len(DEFAULT_ROUTE_TABLE) == 18
    assert DEFAULT_ROUTE_TABLE.get("accounts").prefix == "/accounts"
    assert DEFAULT_ROUTE_TABLE.get("dolgtable").prefix == "/dolg_table"

def test_only_auth_is_public():
    public = [entry.name for entry in DEFAULT_ROUTE_TABLE if entry.is_public]
    assert public == ["auth"]

def test_accounts_aliases_dolgtable():
    assert HANDLER_ALIASES["accounts"] == "dolgtable"
    assert DEFAULT_ROUTE_TABLE.get("accounts").handler_name == "dolgtable"
    assert "accounts" not in HANDLERS

def test_every_table_entry_has_a_handler():
    for entry in DEFAULT_ROUTE_TABLE:
        assert entry.handler_name in HANDLERS, entry.name

@pytest.mark.parametrize("entries, message", [
    ([("a", "/x"), ("b", "/x")], "Duplicate route prefix"),
    ([("a", "/x"), ("a", "/y")], "Duplicate route name"),
    ([("a", "x")], "must start with '/'"),
    ([("a", "/")], "must start with '/'"),
])
def test_route_table_rejects_bad_entries(entries, message):
    with pytest.raises(ValueError, match=message):
        RouteTable(entries)

def test_route_table_is_read_only():
    table = RouteTable({"auth": "/auth"})
    with pytest.raises(AttributeError):
        table.get("auth").prefix = "/other"

def test_missing_and_raising_handlers_do_not_abort(caplog):
    caplog.set_level(logging.DEBUG)
    table = RouteTable({"auth": "/auth", "ghost": "/ghost", "broken": "/broken", "ping": "/ping-area"})
    handlers = {"auth": ping_router, "broken": broken_factory, "ping": ping_router}
    router = APIRouter()

    report = mount_routes(router, table, handlers, allow_all)

    assert report.mounted_names == ["auth", "ping"]
    assert report.failed_names == ["ghost", "broken"]
    assert "bizdesk.api.nowhere" in report.failed[1].detail

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert any("ghost" in r.getMessage() for r in warnings)
    assert any("broken" in r.getMessage() for r in warnings)
    summary = [r for r in caplog.records if r.levelno == logging.INFO and "Mounted 2 of 4" in r.getMessage()]
    assert summary

    app = FastAPI()
    app.include_router(router)
    client = TestClient(app)
    assert client.get("/ping-area/ping").json() == {"pong": True}

def test_non_router_handler_aborts_startup():
    table = RouteTable({"users": "/users"})
    with pytest.raises(TypeError):
        mount_routes(APIRouter(), table, {"users": lambda: object()}, allow_all)

def test_public_entry_skips_auth_dependency():
    table = RouteTable({"auth": "/auth", "users": "/users"})
    handlers = {"auth": ping_router, "users": ping_router}
    router = APIRouter()
    mount_routes(router, table, handlers, deny_all)

    app = FastAPI()
    app.include_router(router)
    client = TestClient(app)
    assert client.get("/auth/ping").status_code == 200
    assert client.get("/users/ping").status_code == 401

def test_app_starts_with_broken_resource(settings):
    handlers = dict(HANDLERS)
    handlers["loans"] = broken_factory
    app = create_app(settings=settings, handlers=handlers)

    assert "loans" in app.state.mount_report.failed_names
    client = TestClient(app)
    response = client.get("/api/loans")
    assert response.status_code == 404
    assert response.json()["error"] == "route not found"
    assert client.get("/api/").status_code == 200

def test_custom_route_table(settings):
    table = RouteTable({"auth": "/auth", "ledger": "/ledger"})
    app = create_app(settings=settings, route_table=table, handlers={**HANDLERS, "ledger": ping_router})
    assert app.state.mount_report.mounted_names == ["auth", "ledger"]
    assert TestClient(app).get("/api/ledger/ping").status_code == 401

def test_accounts_and_dolg_table_serve_same_rows(client, admin_headers):
    created = client.post(
        "/api/dolg_table",
        headers=admin_headers,
        json={"name": "Supplier", "amount": 1500, "due_date": "2026-12-01T00:00:00"},
    )
    assert created.status_code == 201

    via_accounts = client.get("/api/accounts", headers=admin_headers)
    via_dolg = client.get("/api/dolg_table", headers=admin_headers)
    assert via_accounts.status_code == 200
    assert via_accounts.json() == via_dolg.json()
    assert via_accounts.json()[0]["name"] == "Supplier"
