# bizdesk/api/system/routes.py
from fastapi import APIRouter, Depends, Request
import logging

from ...core.auth import require_admin
from ...core.errors import utc_timestamp
from ...core.security import Identity
from ...db.database import get_database_status

logger = logging.getLogger(__name__)

db_status_router = APIRouter()

@db_status_router.get("")
def database_status(request: Request, admin: Identity = Depends(require_admin)):
    status = get_database_status(request.app.state.engine)
    logger.info(f"Database status requested by admin {admin.id}: connected={status['connected']}")
    return {**status, "timestamp": utc_timestamp()}
