"""FastAPI application factory for Nester-Engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nester_engine.common.config import get_settings
from nester_engine.common.exceptions import NesterError
from nester_engine.common.handlers import nester_error_handler
from nester_engine.common.logging import setup_logging
from nester_engine.common.schemas import HealthResponse
from nester_engine.scope import SessionScopeMiddleware


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from nester_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        from nester_engine.deps import close_clients
        await close_clients()
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_exception_handler(NesterError, nester_error_handler)

    # CORS is outermost; preflight requests never reach the session scope.
    app.add_middleware(SessionScopeMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from nester_engine.identity.router import router as auth_router
    from nester_engine.brand.router import router as brand_router
    from nester_engine.jobs.router import router as jobs_router
    from nester_engine.backend.router import router as backend_router

    prefix = settings.api_prefix
    app.include_router(auth_router, prefix=prefix, tags=["auth"])
    app.include_router(brand_router, prefix=prefix, tags=["brand"])
    app.include_router(jobs_router, prefix=prefix, tags=["jobs"])
    app.include_router(backend_router, prefix=prefix, tags=["properties"])

    # Mount dashboard sub-application
    from nester_engine.dashboard.router import create_dashboard_app
    app.mount("/dashboard", create_dashboard_app())

    return app
