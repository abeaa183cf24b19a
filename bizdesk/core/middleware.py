from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import time

from ..config.settings import Settings
from .errors import internal_error_response

logger = logging.getLogger(__name__)

SYNCING_HEADER = "X-Syncing"

def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    logger.info(
        f"Request: {request.method} {request.url.path} from IP: {client_ip(request)} "
        f"(authorization {'provided' if request.headers.get('Authorization') else 'not provided'})"
    )
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    logger.debug(
        f"Response: {request.method} {request.url.path} status={response.status_code} "
        f"duration={duration_ms:.1f}ms"
    )
    return response

async def set_syncing_header(request: Request, call_next):
    """X-Syncing is "true" on JSON responses and "false" on everything else."""
    response = await call_next(request)
    content_type = response.headers.get("content-type", "")
    response.headers[SYNCING_HEADER] = "true" if content_type.startswith("application/json") else "false"
    return response

async def catch_unhandled_errors(request: Request, call_next):
    """Turn unhandled exceptions into the JSON 500 inside the middleware stack."""
    try:
        return await call_next(request)
    except Exception as e:
        return internal_error_response(request, e)

def setup_middleware(app: FastAPI, settings: Settings):
    # Starlette runs the last added middleware first: logging wraps everything
    app.middleware("http")(catch_unhandled_errors)
    app.middleware("http")(set_syncing_header)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Authorization",
        ],
        expose_headers=[SYNCING_HEADER]
    )
    app.middleware("http")(log_requests)
