"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Build the FastAPI application (create_app) with metadata, middleware,
    routers and exception handlers
  - Own the process lifecycle: build the container at startup, close it at
    shutdown, optionally seed a dev admin
  - Expose health, readiness and metrics endpoints

Collaborators:
  - container.build_container: pool, Redis client, hasher, tokens, UserService
  - RequestContextMiddleware: request id and logging context
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - user_routes.router: /api/v1 endpoints

Notes:
  - create_app(container=...) skips the lifespan wiring and uses the given
    container as-is (tests inject in-memory fakes)
  - /healthz is liveness only; /readyz pings DB and cache
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..application import ensure_dev_admin
from ..container import Container, build_container
from ..crosscutting.config import Settings, get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import RequestContextMiddleware
from .exception_handlers import register_exception_handlers
from .user_routes import router as user_router

API_TITLE = "User API"
API_VERSION = "1.0.0"


def _lifespan_for(settings: Settings, injected: Container | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle. Builds and closes the container."""
        if injected is not None:
            app.state.container = injected
            yield
            return

        container = await build_container(settings)
        app.state.container = container

        try:
            await ensure_dev_admin(settings, users=container.users)

            logger.info(
                "User API starting up",
                extra={
                    "app_env": settings.app_env,
                    "db_pool_min": settings.db_pool_min_size,
                    "db_pool_max": settings.db_pool_max_size,
                    "jwt_ttl_minutes": settings.jwt_access_ttl_minutes,
                    "user_cache_ttl_seconds": settings.user_cache_ttl_seconds,
                },
            )

            yield

        finally:
            await container.close()
            logger.info("User API shutting down")

    return lifespan


def create_app(
    settings: Settings | None = None, *, container: Container | None = None
) -> FastAPI:
    """Application factory."""
    settings = settings or (container.settings if container else get_settings())

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        lifespan=_lifespan_for(settings, container),
        openapi_tags=[
            {"name": "auth", "description": "Login and token introspection (JWT)"},
            {"name": "users", "description": "User registration and CRUD"},
            {"name": "admin", "description": "Admin-only endpoints"},
        ],
    )
    if container is not None:
        # TestClient sin context manager no corre el lifespan.
        app.state.container = container

    # R: Middleware order (last added = outermost):
    # 1. CORSMiddleware - handles preflight
    # 2. RequestContextMiddleware - sets request_id
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )

    app.include_router(user_router)
    register_exception_handlers(app)

    @app.get("/healthz", tags=["health"])
    async def healthz(request: Request):
        """Liveness: the process is up and serving."""
        return {
            "status": "healthy",
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/readyz", tags=["health"])
    async def readyz(request: Request, response: Response):
        """Readiness: DB and cache reachable."""
        current: Container = request.app.state.container
        db_ok = await current.repository.ping()
        cache_ok = await current.cache.ping()

        if not db_ok:
            response.status_code = 503

        return {
            "ok": db_ok,
            "db": "connected" if db_ok else "disconnected",
            # Cache caído degrada performance, no disponibilidad.
            "cache": "connected" if cache_ok else "disconnected",
            "cache_stats": current.cache.stats(),
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/metrics", tags=["health"])
    async def metrics():
        """Prometheus text format metrics."""
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return app


app = create_app()
