"""
FastAPI Application Entry Point

JWT Pizza Service - pizza ordering backend.

Endpoints:
    - POST/PUT/DELETE /api/auth: Register, login, logout
    - /api/user: Profile and user management
    - /api/franchise: Franchises and their stores
    - /api/order: Menu and diner orders
    - GET /api/docs: Endpoint listing
    - GET /health: System health check

Run:
    uvicorn pizza_service.main:app --port 3000
    jwt-pizza            (host and port from API_HOST / API_PORT)
"""

import logging
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from pizza_service.auth import authenticate_token, set_auth_user
from pizza_service.core.config import Settings, get_settings, setup_logging
from pizza_service.core.exceptions import StatusCodeError
from pizza_service.core.roles import Role
from pizza_service.database import Database, get_db
from pizza_service.repository import PizzaRepository
from pizza_service.routers import auth, franchise, order, user
from pizza_service.schemas import HealthResponse
from pizza_service.services.factory import create_factory_service

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

async def bootstrap_admin(database: Database, settings: Settings) -> None:
    """Create the default admin when the store has no admin at all."""
    if not settings.default_admin_password:
        return

    async with database.session_maker() as session:
        repository = PizzaRepository(session)
        if await repository.has_admin():
            return
        if await repository.get_user_by_email(settings.default_admin_email) is not None:
            logger.warning(
                f"No admin exists but {settings.default_admin_email} is taken; skipping bootstrap"
            )
            return

        admin = await repository.add_user(
            settings.default_admin_name,
            settings.default_admin_email,
            settings.default_admin_password,
            roles=[(Role.ADMIN, None)],
        )
        logger.info(f"Default admin #{admin.id} created ({admin.email})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # Startup
    logger.info("=" * 60)
    logger.info(f"🍕 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Database: {settings.database_backend}")
    logger.info(f"   Factory: {app.state.factory_service.provider_name}")
    logger.info("=" * 60)

    await database.init()
    await bootstrap_admin(database, settings)

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await database.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def status_code_error_handler(request: Request, exc: StatusCodeError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, **exc.extra},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "unknown endpoint"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content={"message": "; ".join(problems) or "invalid request"})


def build_unhandled_exception_handler(settings: Settings):
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={"message": str(exc) if settings.debug else "An unexpected error occurred"},
        )

    return unhandled_exception_handler


# =============================================================================
# SERVICE ENDPOINTS
# =============================================================================

def _requires_auth(route: APIRoute) -> bool:
    pending = list(route.dependant.dependencies)
    while pending:
        dependant = pending.pop()
        if dependant.call is authenticate_token:
            return True
        pending.extend(dependant.dependencies)
    return False


API_ROUTERS = (auth.router, user.router, franchise.router, order.router)


def _api_routes(app: FastAPI) -> list[APIRoute]:
    """
    Routes declared on the app itself followed by those of every API router.

    Router routes already carry their prefix. Depending on the FastAPI release
    ``include_router`` either copies them into ``app.routes`` or keeps the
    router as a single entry, so duplicates are dropped by (path, methods).
    """
    routes = [r for r in app.routes if isinstance(r, APIRoute)]
    for router in API_ROUTERS:
        routes.extend(r for r in router.routes if isinstance(r, APIRoute))

    unique, seen = [], set()
    for route in routes:
        key = (route.path, frozenset(route.methods))
        if key not in seen:
            seen.add(key)
            unique.append(route)
    return unique


def describe_endpoints(app: FastAPI) -> list[dict[str, Any]]:
    endpoints = []
    for route in _api_routes(app):
        if not route.include_in_schema or not route.path.startswith("/api"):
            continue
        for method in sorted(route.methods):
            endpoints.append({
                "method": method,
                "path": route.path,
                "requiresAuth": _requires_auth(route),
                "description": route.summary or route.name,
            })
    return endpoints


def register_service_routes(app: FastAPI) -> None:
    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root."""
        return {
            "message": "welcome to JWT Pizza",
            "version": app.state.settings.app_version,
        }

    @app.get("/api/docs", tags=["Root"], summary="Service documentation")
    async def api_docs() -> dict[str, Any]:
        settings: Settings = app.state.settings
        return {
            "version": settings.app_version,
            "endpoints": describe_endpoints(app),
            "config": {
                "factory": settings.factory_url,
                "db": settings.database_backend,
            },
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"], summary="System Health Check")
    async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
        """Verify all system components are operational."""
        db_status = "healthy"
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"unhealthy: {e}"
            logger.error(f"Database health check failed: {e}")

        factory_ok = await app.state.factory_service.health_check()
        factory_status = "healthy" if factory_ok else "unhealthy"

        overall = "operational" if db_status == "healthy" and factory_ok else "degraded"
        return HealthResponse(
            status=overall,
            database=db_status,
            factory=factory_status,
            timestamp=datetime.now(),
        )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a fully wired application.

    The database and the factory service are created here and kept on
    ``app.state``; routes reach them through dependencies.
    """
    settings = settings or get_settings()
    setup_logging(settings=settings)

    app = FastAPI(
        title=settings.app_name,
        description="Pizza ordering backend: diners, franchises, stores, menu and orders.",
        version=settings.app_version,
        lifespan=lifespan,
        dependencies=[Depends(set_auth_user)],
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.database = Database(settings.database_url, echo=settings.database_echo)
    app.state.factory_service = create_factory_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StatusCodeError, status_code_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, build_unhandled_exception_handler(settings))

    register_service_routes(app)
    for router in API_ROUTERS:
        app.include_router(router)

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
