"""
Shared CRUD router builder for the resource modules.

Rows of "owned" models carry a user_id: non-admin users only see and
modify their own rows, admins see everything.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Callable, List, Optional, Type
from pydantic import BaseModel
import logging

from ..core.auth import require_permission
from ..core.errors import BadRequestError, ResourceNotFoundError
from ..core.security import Identity
from ..db.database import get_db

logger = logging.getLogger(__name__)

def scope_to_owner(query, model, user: Identity, owner_field: str = "user_id"):
    if user.role == "admin":
        return query
    return query.filter(getattr(model, owner_field) == user.id)

def get_or_404(db: Session, model, item_id: int, user: Identity, resource: str, owned: bool = True,
               owner_field: str = "user_id"):
    query = db.query(model).filter(model.id == item_id)
    if owned:
        query = scope_to_owner(query, model, user, owner_field)
    item = query.first()
    if item is None:
        raise ResourceNotFoundError(resource, item_id)
    return item

def commit_or_400(db: Session, resource: str):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error on {resource}: {str(e.orig)}")
        raise BadRequestError(f"{resource} conflicts with existing data or references a missing row")

def build_crud_router(
    model,
    *,
    resource: str,
    read_schema: Type[BaseModel],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    page: Optional[str] = None,
    guard: Optional[Callable[[str], Callable]] = None,
    owned: bool = True,
    order_by=None
) -> APIRouter:
    """
    Build list/get/create/update/delete routes for `model`.

    Access is checked with require_permission(page, action) unless an
    explicit `guard(action)` dependency factory is given.
    """
    if guard is None:
        if page is None:
            raise ValueError("build_crud_router needs either page or guard")
        guard = lambda action: require_permission(page, action)  # noqa: E731

    router = APIRouter()
    ordering = order_by if order_by is not None else model.id

    @router.get("", response_model=List[read_schema])
    def list_items(user: Identity = Depends(guard("view")), db: Session = Depends(get_db)):
        query = db.query(model)
        if owned:
            query = scope_to_owner(query, model, user)
        return query.order_by(ordering).all()

    @router.get("/{item_id}", response_model=read_schema)
    def get_item(item_id: int, user: Identity = Depends(guard("view")), db: Session = Depends(get_db)):
        return get_or_404(db, model, item_id, user, resource, owned)

    @router.post("", response_model=read_schema, status_code=status.HTTP_201_CREATED)
    def create_item(
        payload: create_schema,
        user: Identity = Depends(guard("create")),
        db: Session = Depends(get_db)
    ):
        values = payload.model_dump()
        if owned:
            values["user_id"] = user.id
        item = model(**values)
        db.add(item)
        commit_or_400(db, resource)
        db.refresh(item)
        logger.info(f"{resource} {item.id} created by user {user.id}")
        return item

    @router.put("/{item_id}", response_model=read_schema)
    def update_item(
        item_id: int,
        payload: update_schema,
        user: Identity = Depends(guard("edit")),
        db: Session = Depends(get_db)
    ):
        item = get_or_404(db, model, item_id, user, resource, owned)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(item, key, value)
        commit_or_400(db, resource)
        db.refresh(item)
        logger.info(f"{resource} {item.id} updated by user {user.id}")
        return item

    @router.delete("/{item_id}")
    def delete_item(item_id: int, user: Identity = Depends(guard("delete")), db: Session = Depends(get_db)):
        item = get_or_404(db, model, item_id, user, resource, owned)
        db.delete(item)
        commit_or_400(db, resource)
        logger.info(f"{resource} {item_id} deleted by user {user.id}")
        return {"message": f"{resource} {item_id} deleted", "id": item_id}

    return router
