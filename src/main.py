"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api import auth, health, users
from src.config import get_settings
from src.services.errors import ConstraintViolationError, RecordNotFoundError, StoreError

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(
        f"API available under '{settings.api_prefix or '/'}' ({settings.environment})"
    )
    yield


app = FastAPI(
    title="Session Auth API",
    description="User registration, cookie-based JWT sessions and user management",
    version="0.1.0",
    lifespan=lifespan,
)

# Credentials must be allowed for the browser to send the token cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Turn write failures from the user store into an HTTP error."""
    if isinstance(exc, RecordNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConstraintViolationError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    logger.warning(f"{request.method} {request.url.path} failed in store: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Register routers
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(health.router, prefix=settings.api_prefix)


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
