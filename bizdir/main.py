# bizdir/main.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from bizdir import __version__
from bizdir.shared.config import settings, AppEnv
from bizdir.shared.container import container
from bizdir.shared.logging_config import configure_logging
from bizdir.shared.telemetry import setup_telemetry, instrument_fastapi

# Import Routers
# Modules are imported directly so 'container.wire' can patch their @inject markers
from bizdir.adapters.api.routers import health, listings

logger = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application Lifecycle Manager.
    1. Startup: logging, telemetry, DI wiring.
    2. Shutdown: closes the directory connection pool.
    """
    configure_logging()
    setup_telemetry(settings.OTEL_SERVICE_NAME)

    logger.info("app_startup", app=settings.APP_NAME, env=settings.APP_ENV.value)

    container.wire(modules=[
        "bizdir.adapters.api.dependencies",
        "bizdir.adapters.api.routers.health",
        "bizdir.adapters.api.routers.listings",
    ])

    yield

    logger.info("app_shutdown")
    directory = container.directory()
    close = getattr(directory, "close", None)
    if close is not None:
        await close()
    # A later startup in the same process gets a fresh pool and catalog
    container.directory.reset()
    container.catalog.reset()

def create_app() -> FastAPI:
    """
    Factory function to create the FastAPI application.
    """
    app = FastAPI(
        title="Business Directory Locator",
        version=__version__,
        description="Location-aware business listings with scope fallback",
        docs_url="/docs" if settings.APP_ENV != AppEnv.PRODUCTION else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Allow all in Dev, restrict in Prod
    origins = ["*"] if settings.DEBUG else []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    instrument_fastapi(app)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "code": exc.status_code,
                "message": exc.detail,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catches unhandled exceptions so stack traces never leak in Prod.
        """
        logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": "error",
                "code": 500,
                "message": "Internal Server Error" if not settings.DEBUG else str(exc),
            },
        )

    app.include_router(health.router)
    app.include_router(listings.router, prefix="/api/v1")

    return app

# Entry point for Uvicorn
app = create_app()
