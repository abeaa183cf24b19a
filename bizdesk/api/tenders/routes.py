# bizdesk/api/tenders/routes.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..crud import build_crud_router, commit_or_400, get_or_404, scope_to_owner
from ...core.auth import require_permission
from ...core.errors import BadRequestError
from ...core.security import Identity
from ...db.database import get_db
from ...models.models import Document, HeaderNote, Tender, TenderBudget
from .schemas import (
    TenderCreate, TenderUpdate, TenderResponse,
    TenderBudgetCreate, TenderBudgetUpdate, TenderBudgetResponse,
    HeaderNoteCreate, HeaderNoteUpdate, HeaderNoteResponse,
    DocumentCreate, DocumentResponse
)

logger = logging.getLogger(__name__)

tenders_router = build_crud_router(
    Tender,
    resource="Tender",
    page="tenders",
    read_schema=TenderResponse,
    create_schema=TenderCreate,
    update_schema=TenderUpdate,
    order_by=Tender.id.desc(),
)

tender_budget_router = build_crud_router(
    TenderBudget,
    resource="Tender budget",
    page="finance",
    read_schema=TenderBudgetResponse,
    create_schema=TenderBudgetCreate,
    update_schema=TenderBudgetUpdate,
)

header_notes_router = build_crud_router(
    HeaderNote,
    resource="Note",
    page="notes",
    read_schema=HeaderNoteResponse,
    create_schema=HeaderNoteCreate,
    update_schema=HeaderNoteUpdate,
)

# Documents keep metadata only; ownership is the uploader
documents_router = APIRouter()

@documents_router.get("", response_model=List[DocumentResponse])
def list_documents(
    tender_id: Optional[int] = Query(None),
    user: Identity = Depends(require_permission("tenders", "view")),
    db: Session = Depends(get_db)
):
    query = scope_to_owner(db.query(Document), Document, user, owner_field="uploaded_by")
    if tender_id is not None:
        query = query.filter(Document.tender_id == tender_id)
    return query.order_by(Document.id).all()

@documents_router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: DocumentCreate,
    user: Identity = Depends(require_permission("tenders", "create")),
    db: Session = Depends(get_db)
):
    if payload.tender_id is not None:
        tender = scope_to_owner(db.query(Tender), Tender, user).filter(Tender.id == payload.tender_id).first()
        if tender is None:
            raise BadRequestError(f"Tender {payload.tender_id} does not exist")

    document = Document(**payload.model_dump(), uploaded_by=user.id)
    db.add(document)
    commit_or_400(db, "Document")
    db.refresh(document)
    logger.info(f"Document {document.id} ({document.file_name}) registered by user {user.id}")
    return document

@documents_router.delete("/{document_id}")
def delete_document(
    document_id: int,
    user: Identity = Depends(require_permission("tenders", "delete")),
    db: Session = Depends(get_db)
):
    document = get_or_404(db, Document, document_id, user, "Document", owner_field="uploaded_by")
    db.delete(document)
    commit_or_400(db, "Document")
    logger.info(f"Document {document_id} deleted by user {user.id}")
    return {"message": f"Document {document_id} deleted", "id": document_id}
