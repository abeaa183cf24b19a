from datetime import timedelta
from fastapi.testclient import TestClient
import pytest

from bizdesk.config.settings import Settings
from bizdesk.core.security import Identity, create_access_token, hash_password
from bizdesk.main import create_app
from bizdesk.models.models import Permission, Role, User

TEST_SECRET = "test-secret-key"

class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the rate limiter makes."""

    def __init__(self):
        self.values = {}
        self.expiry = {}

    async def get(self, key):
        value = self.values.get(key)
        return None if value is None else str(value)

    async def setex(self, key, seconds, value):
        self.values[key] = int(value)
        self.expiry[key] = seconds

    async def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    async def close(self):
        pass

@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        JWT_SECRET=TEST_SECRET,
        DATABASE_URL="sqlite://",
        REDIS_URL=None,
        LOG_LEVEL="DEBUG",
    )

@pytest.fixture
def app(settings):
    return create_app(settings=settings)

@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client

@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()

@pytest.fixture
def roles(db):
    # Seeded by create_app
    return {role.name: role for role in db.query(Role).all()}

def _add_user(db, username, role, password="secret123", is_active=True):
    user = User(
        username=username,
        password_hash=hash_password(password),
        role_id=role.id,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

@pytest.fixture
def admin_user(db, roles):
    return _add_user(db, "boss", roles["admin"])

@pytest.fixture
def regular_user(db, roles):
    return _add_user(db, "worker", roles["user"])

@pytest.fixture
def other_user(db, roles):
    return _add_user(db, "neighbour", roles["user"])

def make_token(user, role_name, expires_delta=None, secret=TEST_SECRET):
    identity = Identity(id=user.id, role=role_name, username=user.username, role_id=user.role_id)
    return create_access_token(identity, secret, expires_delta=expires_delta or timedelta(hours=1))

def bearer(token):
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin_headers(admin_user):
    return bearer(make_token(admin_user, "admin"))

@pytest.fixture
def user_headers(regular_user):
    return bearer(make_token(regular_user, "user"))

@pytest.fixture
def other_headers(other_user):
    return bearer(make_token(other_user, "user"))

@pytest.fixture
def grant(app, db, roles):
    """Give the "user" role flags on a page: grant("finance", view=True, create=True)."""
    def _grant(page, **flags):
        permission = Permission(
            role_id=roles["user"].id,
            page=page,
            **{f"can_{action}": allowed for action, allowed in flags.items()},
        )
        db.add(permission)
        db.commit()
        # Decisions cached by earlier requests would hide the new row
        app.state.permission_cache.clear()
        return permission
    return _grant

@pytest.fixture
def anyio_backend():
    return "asyncio"
