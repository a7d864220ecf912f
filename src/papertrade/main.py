"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from papertrade.config.settings import get_settings
from papertrade.config.logging_config import setup_logging
from papertrade.api.deps import get_context
from papertrade.api.routers import options_router, portfolio_router, session_router
from papertrade.core.exceptions import AppError, NotFoundError, SessionNotReadyError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: anonymous local session, then periodic refresh
    setup_logging()
    ctx = app.dependency_overrides.get(get_context, get_context)()
    ctx.initialize()
    await ctx.open_session()
    ctx.scheduler.start()
    yield
    # Shutdown
    await ctx.close()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Paper-trading portfolio with option pricing and expiration settlement",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(session_router)
app.include_router(portfolio_router)
app.include_router(options_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, SessionNotReadyError):
        status_code = 409
    else:
        status_code = 400
    if status_code == 400 and exc.code == "PERSISTENCE_ERROR":
        logger.error("Persistence failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
