# bizdesk/db/database.py

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()

def create_db_engine(database_url: str):
    """Create an engine for the configured database URL."""
    if database_url.startswith("sqlite"):
        # In-memory SQLite has to share one connection between threads
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False}
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=5,
        max_overflow=10
    )

def create_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(engine):
    # Import models so their tables are registered on Base.metadata
    from ..models import models  # noqa: F401
    Base.metadata.create_all(bind=engine)

DEFAULT_ROLES = (
    ("admin", "Administrator"),
    ("user", "Regular user"),
)

def seed_defaults(session_factory, admin_username=None, admin_password=None, admin_telegram=None):
    """
    Create the built-in roles and, when credentials are given, the first
    admin account. Existing rows are left untouched, so it runs on every start.
    """
    from ..core.security import hash_password
    from ..models.models import Role, User

    db = session_factory()
    try:
        roles = {}
        for name, description in DEFAULT_ROLES:
            role = db.query(Role).filter(Role.name == name).first()
            if role is None:
                role = Role(name=name, description=description)
                db.add(role)
                db.flush()
                logger.info(f"Created default role {name}")
            roles[name] = role

        if admin_username and admin_password:
            if db.query(User).filter(User.username == admin_username).first() is None:
                db.add(User(
                    username=admin_username,
                    password_hash=hash_password(admin_password),
                    telegram=admin_telegram,
                    role_id=roles["admin"].id,
                    is_active=True,
                ))
                logger.info(f"Created default admin {admin_username}")

        db.commit()
    finally:
        db.close()

def get_database_status(engine) -> dict:
    """Connectivity check used by the health and db-status endpoints."""
    status = {
        "connected": False,
        "dialect": engine.dialect.name,
        "database": engine.url.database,
        "host": engine.url.host,
        "tables": sorted(Base.metadata.tables.keys()),
    }
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        status["connected"] = True
    except Exception as e:
        logger.error(f"Database status check failed: {str(e)}")
        status["error"] = "database unreachable"
    return status

def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
