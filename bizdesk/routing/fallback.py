from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from ..core.errors import utc_timestamp
from ..core.middleware import client_ip

logger = logging.getLogger(__name__)

FALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

NOT_FOUND_HINT = "Check the request path and method; the resource may not be mounted"

async def route_not_found(request: Request):
    """Terminal handler for requests that matched no mounted route."""
    logger.warning(f"Route not found: {request.method} {request.url.path} from IP: {client_ip(request)}")
    return JSONResponse(
        status_code=404,
        content={
            "error": "route not found",
            "method": request.method,
            "path": request.url.path,
            "timestamp": utc_timestamp(),
            "hint": NOT_FOUND_HINT,
        },
    )

def register_fallback(app: FastAPI):
    # Must be the last route registered: it matches every path
    app.add_api_route(
        "/{full_path:path}",
        route_not_found,
        methods=FALLBACK_METHODS,
        include_in_schema=False,
    )
