# bizdesk/api/roles/routes.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List
import logging

from ..crud import commit_or_400
from ...core.auth import require_admin
from ...core.errors import BadRequestError, ResourceNotFoundError
from ...core.security import Identity
from ...db.database import get_db
from ...models.models import Role, User
from .schemas import RoleCreate, RoleUpdate, RoleResponse

logger = logging.getLogger(__name__)

router = APIRouter()

def _get_role(db: Session, role_id: int) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise ResourceNotFoundError("Role", role_id)
    return role

@router.get("", response_model=List[RoleResponse])
def list_roles(admin: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(Role).order_by(Role.id).all()

@router.get("/{role_id}", response_model=RoleResponse)
def get_role(role_id: int, admin: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return _get_role(db, role_id)

@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(payload: RoleCreate, admin: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    if db.query(Role).filter(Role.name == payload.name).first():
        raise BadRequestError(f"Role {payload.name} already exists")
    role = Role(**payload.model_dump())
    db.add(role)
    commit_or_400(db, "Role")
    db.refresh(role)
    logger.info(f"Role {role.id} ({role.name}) created by admin {admin.id}")
    return role

@router.put("/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    payload: RoleUpdate,
    request: Request,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    role = _get_role(db, role_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(role, key, value)
    commit_or_400(db, "Role")
    db.refresh(role)
    request.app.state.permission_cache.clear()
    logger.info(f"Role {role_id} updated by admin {admin.id}")
    return role

@router.delete("/{role_id}")
def delete_role(
    role_id: int,
    request: Request,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db)
):
    role = _get_role(db, role_id)
    assigned = db.query(User).filter(User.role_id == role_id).count()
    if assigned:
        raise BadRequestError(f"Role {role.name} is assigned to {assigned} user(s)")
    db.delete(role)
    commit_or_400(db, "Role")
    request.app.state.permission_cache.clear()
    logger.info(f"Role {role_id} deleted by admin {admin.id}")
    return {"message": f"Role {role_id} deleted", "id": role_id}
