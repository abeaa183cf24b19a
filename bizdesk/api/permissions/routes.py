# bizdesk/api/permissions/routes.py
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..crud import commit_or_400
from ...core.auth import require_permission
from ...core.errors import BadRequestError, ResourceNotFoundError
from ...core.security import Identity
from ...db.database import get_db
from ...models.models import Permission, Role
from .schemas import PermissionCreate, PermissionFlags, PermissionResponse

logger = logging.getLogger(__name__)

router = APIRouter()

def _require_role(db: Session, role_id: int) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise BadRequestError(f"Role {role_id} does not exist")
    return role

@router.get("", response_model=List[PermissionResponse])
def list_permissions(
    role_id: Optional[int] = Query(None),
    user: Identity = Depends(require_permission("users", "view")),
    db: Session = Depends(get_db)
):
    query = db.query(Permission)
    if role_id is not None:
        query = query.filter(Permission.role_id == role_id)
    return query.order_by(Permission.role_id, Permission.page).all()

@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
def create_permission(
    payload: PermissionCreate,
    request: Request,
    user: Identity = Depends(require_permission("users", "create")),
    db: Session = Depends(get_db)
):
    _require_role(db, payload.role_id)
    existing = db.query(Permission).filter(
        Permission.role_id == payload.role_id,
        Permission.page == payload.page
    ).first()
    if existing:
        raise BadRequestError(f"Permission for role {payload.role_id} on {payload.page} already exists")

    permission = Permission(**payload.model_dump())
    db.add(permission)
    commit_or_400(db, "Permission")
    db.refresh(permission)
    request.app.state.permission_cache.clear()
    logger.info(f"Permission {permission.id} ({payload.role_id}/{payload.page}) created by user {user.id}")
    return permission

@router.put("/{role_id}/{page}", response_model=PermissionResponse)
def upsert_permission(
    role_id: int,
    page: str,
    payload: PermissionFlags,
    request: Request,
    user: Identity = Depends(require_permission("users", "edit")),
    db: Session = Depends(get_db)
):
    """Create or replace the flags a role has on a page."""
    _require_role(db, role_id)
    permission = db.query(Permission).filter(
        Permission.role_id == role_id,
        Permission.page == page
    ).first()
    if permission is None:
        permission = Permission(role_id=role_id, page=page)
        db.add(permission)
    for key, value in payload.model_dump().items():
        setattr(permission, key, value)

    commit_or_400(db, "Permission")
    db.refresh(permission)
    request.app.state.permission_cache.clear()
    logger.info(f"Permissions of role {role_id} on {page} set by user {user.id}")
    return permission

@router.delete("/{permission_id}")
def delete_permission(
    permission_id: int,
    request: Request,
    user: Identity = Depends(require_permission("users", "delete")),
    db: Session = Depends(get_db)
):
    permission = db.query(Permission).filter(Permission.id == permission_id).first()
    if permission is None:
        raise ResourceNotFoundError("Permission", permission_id)
    db.delete(permission)
    commit_or_400(db, "Permission")
    request.app.state.permission_cache.clear()
    logger.info(f"Permission {permission_id} deleted by user {user.id}")
    return {"message": f"Permission {permission_id} deleted", "id": permission_id}
