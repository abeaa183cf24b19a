# bizdesk/api/users/routes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ..crud import build_crud_router, commit_or_400
from ...core.auth import get_current_user, require_admin, require_permission
from ...core.errors import BadRequestError, ResourceNotFoundError
from ...core.security import Identity, hash_password
from ...db.database import get_db
from ...models.models import User, VisibilitySetting
from .schemas import (
    UserCreate, UserUpdate, RoleChange, UserResponse,
    VisibilitySettingCreate, VisibilitySettingUpdate, VisibilitySettingResponse
)
from .service import create_user, find_role

logger = logging.getLogger(__name__)

router = APIRouter()

def _user_out(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "telegram": user.telegram,
        "role_id": user.role_id,
        "role": user.role.name if user.role else None,
        "is_active": user.is_active,
        "last_login": user.last_login,
        "created_at": user.created_at,
    }

def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user

@router.get("", response_model=List[UserResponse])
def list_users(
    user: Identity = Depends(require_permission("users", "view")),
    db: Session = Depends(get_db)
):
    return [_user_out(u) for u in db.query(User).order_by(User.id).all()]

@router.get("/profile", response_model=UserResponse)
def get_own_profile(
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _user_out(_get_user(db, user.id))

@router.get("/{user_id}/profile", response_model=UserResponse)
def get_user_profile(
    user_id: int,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return _user_out(_get_user(db, user_id))

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def add_user(
    payload: UserCreate,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = create_user(db, payload.username, payload.password, payload.telegram, payload.role)
    return _user_out(user)

@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    current: Identity = Depends(require_permission("users", "edit")),
    db: Session = Depends(get_db)
):
    user = _get_user(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    username = changes.get("username")
    if username and username != user.username:
        if db.query(User).filter(User.username == username).first():
            raise BadRequestError(f"User {username} already exists")
        user.username = username
    if "telegram" in changes:
        user.telegram = changes["telegram"]
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])

    commit_or_400(db, "User")
    db.refresh(user)
    logger.info(f"User {user_id} updated by user {current.id}")
    return _user_out(user)

@router.put("/{user_id}/role", response_model=UserResponse)
def change_role(
    user_id: int,
    payload: RoleChange,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = _get_user(db, user_id)
    role = find_role(db, payload.role)
    user.role_id = role.id
    commit_or_400(db, "User")
    db.refresh(user)
    logger.info(f"User {user_id} moved to role {role.name} by admin {admin.id}")
    return _user_out(user)

@router.put("/{user_id}/toggle-active", response_model=UserResponse)
def toggle_active(
    user_id: int,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if user_id == admin.id:
        raise BadRequestError("You cannot deactivate your own account")
    user = _get_user(db, user_id)
    user.is_active = not user.is_active
    commit_or_400(db, "User")
    db.refresh(user)
    logger.info(f"User {user_id} {'activated' if user.is_active else 'deactivated'} by admin {admin.id}")
    return _user_out(user)

@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if user_id == admin.id:
        raise BadRequestError("You cannot delete your own account")
    user = _get_user(db, user_id)
    db.query(VisibilitySetting).filter(VisibilitySetting.user_id == user_id).delete()
    db.delete(user)
    commit_or_400(db, "User")
    logger.info(f"User {user_id} deleted by admin {admin.id}")
    return {"message": f"User {user_id} deleted", "id": user_id}

visibility_router = build_crud_router(
    VisibilitySetting,
    resource="Visibility setting",
    guard=lambda action: require_admin,
    owned=False,
    read_schema=VisibilitySettingResponse,
    create_schema=VisibilitySettingCreate,
    update_schema=VisibilitySettingUpdate,
    order_by=VisibilitySetting.user_id,
)
