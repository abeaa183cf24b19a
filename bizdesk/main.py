from fastapi import FastAPI, APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Mapping, Optional
import logging
import os
import time

from .config.settings import Settings, get_settings
from .core.auth import PermissionCache, authenticate
from .core.errors import register_error_handlers, utc_timestamp
from .core.logging_config import setup_logging
from .core.middleware import setup_middleware
from .core.rate_limiter import RateLimiter, check_rate_limit
from .db.database import create_db_engine, create_session_factory, get_database_status, init_db, seed_defaults
from .routing.fallback import register_fallback
from .routing.handlers import HANDLERS
from .routing.registry import DEFAULT_ROUTE_TABLE, HandlerFactory, RouteTable, mount_routes

logger = logging.getLogger(__name__)

def build_index_router(settings: Settings) -> APIRouter:
    """Root and health endpoints; neither requires a token."""
    router = APIRouter(prefix=settings.API_PREFIX)

    async def api_root(request: Request):
        logger.info(f"API root requested: {request.method} {request.url.path}")
        return {
            "message": "API server is running",
            "version": settings.APP_VERSION,
            "status": "ok",
            "timestamp": utc_timestamp(),
        }

    for path in ("", "/") if settings.API_PREFIX else ("/",):
        router.add_api_route(path, api_root, methods=["GET"], include_in_schema=(path == "/"))

    @router.get("/health")
    async def health(request: Request):
        database = get_database_status(request.app.state.engine)
        healthy = database["connected"]
        body = {
            "status": "healthy" if healthy else "unhealthy",
            "server": {
                "uptime": round(time.monotonic() - request.app.state.started_at, 3),
                "pid": os.getpid(),
                "environment": settings.ENVIRONMENT,
                "version": settings.APP_VERSION,
            },
            "database": database,
            "timestamp": utc_timestamp(),
        }
        if not healthy:
            logger.error("Health check failed: database unreachable")
        return JSONResponse(status_code=200 if healthy else 503, content=body)

    return router

def create_app(
    settings: Optional[Settings] = None,
    route_table: RouteTable = DEFAULT_ROUTE_TABLE,
    handlers: Mapping[str, HandlerFactory] = HANDLERS,
    rate_limiter: Optional[RateLimiter] = None
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)

    rate_limiter = rate_limiter or RateLimiter(
        redis_url=settings.REDIS_URL,
        max_requests=settings.RATE_LIMIT_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"bizdesk API {settings.APP_VERSION} started ({settings.ENVIRONMENT})")
        yield
        await app.state.rate_limiter.close()
        app.state.engine.dispose()
        logger.info("bizdesk API shut down")

    app = FastAPI(title="bizdesk API", version=settings.APP_VERSION, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    seed_defaults(
        app.state.session_factory,
        admin_username=settings.ADMIN_USERNAME,
        admin_password=settings.ADMIN_PASSWORD,
        admin_telegram=settings.ADMIN_TELEGRAM,
    )
    app.state.permission_cache = PermissionCache()
    app.state.rate_limiter = rate_limiter
    app.state.started_at = time.monotonic()

    setup_middleware(app, settings)
    register_error_handlers(app)

    api_router = build_index_router(settings)
    app.state.mount_report = mount_routes(api_router, route_table, handlers, authenticate)
    app.include_router(api_router, dependencies=[Depends(check_rate_limit)])

    register_fallback(app)
    return app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
