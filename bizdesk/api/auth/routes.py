# bizdesk/api/auth/routes.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
import logging

from ...core.auth import authenticate, require_admin
from ...core.errors import AuthenticationError, BadRequestError
from ...core.security import Identity, create_access_token, verify_password
from ...db.database import get_db
from ...models.models import User
from ..users.service import create_user
from .schemas import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Exchange username and password for a bearer token."""
    if not payload.username or not payload.password:
        raise BadRequestError("username and password are required")

    user = db.query(User).filter(User.username == payload.username).first()
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning(f"Failed login attempt for {payload.username}")
        raise AuthenticationError("invalid username or password")
    if not user.is_active:
        logger.warning(f"Login attempt for inactive user {user.id}")
        raise AuthenticationError("account is disabled")

    identity = Identity(
        id=user.id,
        role=user.role.name.lower(),
        username=user.username,
        role_id=user.role_id,
    )
    settings = request.app.state.settings
    token = create_access_token(
        identity,
        settings.JWT_SECRET,
        settings.JWT_ALGORITHM,
        expires_delta=timedelta(hours=settings.JWT_EXPIRATION_HOURS),
    )

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    logger.info(f"User {user.id} logged in")

    return {
        "token": token,
        "user": {
            "id": user.id,
            "username": user.username,
            "telegram": user.telegram,
            "role": identity.role,
            "role_id": user.role_id,
        },
    }

@router.post("/logout")
async def logout(user: Identity = Depends(authenticate)):
    # Tokens are stateless; the client drops its copy
    logger.info(f"User {user.id} logged out")
    return {"message": "logged out"}

@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(authenticate)],
)
def register(
    payload: RegisterRequest,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = create_user(db, payload.username, payload.password, payload.telegram, payload.role)
    logger.info(f"Admin {admin.id} registered user {user.id}")
    return {"message": "user registered", "userId": user.id}
