# bizdesk/core/auth.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from threading import Lock
from typing import Dict, Optional, Tuple
import logging

from .errors import AuthenticationError, PermissionDeniedError
from .security import Identity, Ok, VerificationError, verify_token
from ..db.database import get_db
from ..models.models import Permission

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

MISSING_CREDENTIAL_MESSAGE = "token missing or malformed"
EXPIRED_TOKEN_MESSAGE = "token expired"
INVALID_TOKEN_MESSAGE = "invalid token"

PERMISSION_ACTIONS = ("view", "edit", "create", "delete")

async def authenticate(request: Request) -> Identity:
    """
    Bearer token authentication for every non-public router.

    On success the identity is stored on request.state.user. Every
    rejection is a 401 with {"error": ...}; exactly one log event is
    emitted per call and the token itself is never logged.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        logger.warning(
            f"Rejected request without bearer token: {request.method} {request.url.path}"
        )
        raise AuthenticationError(MISSING_CREDENTIAL_MESSAGE)

    token = auth_header[len(BEARER_PREFIX):]
    settings = request.app.state.settings
    result = verify_token(token, settings.JWT_SECRET, settings.JWT_ALGORITHM)

    if isinstance(result, Ok):
        request.state.user = result.identity
        logger.debug(
            f"Authenticated user {result.identity.id} (role={result.identity.role}) "
            f"for {request.method} {request.url.path}"
        )
        return result.identity

    logger.error(
        f"Token verification failed ({result.error.value}): {request.method} {request.url.path}"
    )
    if result.error == VerificationError.EXPIRED_TOKEN:
        raise AuthenticationError(EXPIRED_TOKEN_MESSAGE)
    raise AuthenticationError(INVALID_TOKEN_MESSAGE)

def get_current_user(request: Request) -> Identity:
    """Identity attached by authenticate(); 401 if the router was mounted without it."""
    user: Optional[Identity] = getattr(request.state, "user", None)
    if user is None:
        logger.warning(f"No authenticated user on {request.method} {request.url.path}")
        raise AuthenticationError("authentication required")
    return user

async def require_admin(request: Request) -> Identity:
    user = get_current_user(request)
    if user.role != "admin":
        logger.warning(
            f"User {user.id} (role={user.role}) denied admin route {request.method} {request.url.path}"
        )
        raise PermissionDeniedError("admin role required")
    logger.debug(f"Admin check passed for user {user.id}")
    return user

class PermissionCache:
    """Process-local cache of permission decisions keyed by (role_id, action, page)."""

    def __init__(self):
        self._entries: Dict[Tuple[Optional[int], str, str], bool] = {}
        self._lock = Lock()

    def get(self, role_id: Optional[int], action: str, page: str) -> Optional[bool]:
        with self._lock:
            return self._entries.get((role_id, action, page))

    def set(self, role_id: Optional[int], action: str, page: str, allowed: bool) -> None:
        with self._lock:
            self._entries[(role_id, action, page)] = allowed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

def require_permission(page: str, action: str):
    """
    Dependency factory checking that the caller's role may perform
    `action` on `page`. Admins always pass.
    """
    if action not in PERMISSION_ACTIONS:
        raise ValueError(f"Unknown permission action: {action}")

    def check_permission(request: Request, db: Session = Depends(get_db)) -> Identity:
        user = get_current_user(request)
        if user.role == "admin":
            return user

        cache: PermissionCache = request.app.state.permission_cache
        allowed = cache.get(user.role_id, action, page)
        if allowed is None:
            permission = db.query(Permission).filter(
                Permission.role_id == user.role_id,
                Permission.page == page
            ).first()
            allowed = bool(permission is not None and getattr(permission, f"can_{action}"))
            cache.set(user.role_id, action, page, allowed)

        if not allowed:
            logger.warning(
                f"User {user.id} (role={user.role}) has no permission to {action} {page}"
            )
            raise PermissionDeniedError(f"no permission to {action} {page}")
        return user

    return check_permission
