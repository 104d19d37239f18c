"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import (
    admin_router,
    health_router,
    sync_router,
    users_router,
    webhooks_router,
)
from core.config import API_DEBUG, API_VERSION, DB_PATH, SYNC_FAILED_MESSAGE
from core.database import get_connection, init_schema
from core.errors import AuthError, NotFoundError, ProviderError
from core.google_client import close_google_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup: make sure the event store schema exists
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection()
    try:
        init_schema(conn)
    finally:
        conn.close()

    yield

    # Shutdown: release pooled provider connections
    await close_google_client()


app = FastAPI(
    title="Calendar Sync API",
    description="Syncs users' Google Calendar events into a shared store and serves them",
    version=API_VERSION,
    debug=API_DEBUG,
    lifespan=lifespan,
)

# CORS middleware (for development)
if API_DEBUG:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _error_response(status_code: int, error: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, details=[]).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Return structured details as the top-level body."""
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code, content=exc.detail, headers=exc.headers
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail), code=ErrorCodes.INVALID_REQUEST, details=[]
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return _error_response(401, str(exc), ErrorCodes.UNAUTHORIZED)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(404, str(exc), ErrorCodes.NOT_FOUND)


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error("Google Calendar request failed: %s", exc)
    return _error_response(502, SYNC_FAILED_MESSAGE, ErrorCodes.PROVIDER_ERROR)


# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "Internal server error", ErrorCodes.INTERNAL_ERROR)


# Include routers
app.include_router(health_router)
app.include_router(users_router)
app.include_router(sync_router)
app.include_router(admin_router)
app.include_router(webhooks_router)


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    logging.basicConfig(level=logging.DEBUG if API_DEBUG else logging.INFO)
    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
    )
