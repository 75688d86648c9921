"""
Prompt Optimizer Web Backend - FastAPI Application

Main entry point for the web backend API server.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import sys

from prompt_optimizer import (
    EmptyResponseError,
    InvalidRequestError,
    MalformedResponseError,
    OptimizerError,
    RfqStateError,
    SafetyBlockedError,
    TransportFailureError,
)

from .config import settings
from .routes import prompts
from .schemas import ErrorResponse

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)

# Keep SDK transport logging quiet
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('google_genai').setLevel(logging.WARNING)

# Status code for each optimizer failure
ERROR_STATUS_CODES = {
    InvalidRequestError: 400,
    SafetyBlockedError: 422,
    EmptyResponseError: 503,
    MalformedResponseError: 502,
    TransportFailureError: 502,
    RfqStateError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    yield

    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Token-economical prompt rewriting with Hanzi substitution",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OptimizerError)
async def optimizer_exception_handler(request: Request, exc: OptimizerError):
    """Map optimizer failures to HTTP errors with a user-facing message."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"Optimization failed: {type(exc).__name__}: {exc}")
    else:
        logger.warning(f"Optimization rejected: {type(exc).__name__}: {exc}")

    error = ErrorResponse(detail=exc.user_message, type=type(exc).__name__, retryable=exc.retryable)
    return JSONResponse(status_code=status_code, content=error.model_dump())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred. Please check the logs.",
            "type": type(exc).__name__,
            "retryable": False,
        }
    )


# Health check endpoint
@app.get(f"{settings.API_PREFIX}/health")
async def health_check():
    """
    Health check endpoint.

    Returns application status and version information.
    """
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME,
    }


# Include API routers
app.include_router(
    prompts.router,
    prefix=f"{settings.API_PREFIX}/prompts",
    tags=["prompts"]
)


def run() -> None:
    """Serve the API with uvicorn (``uvicorn web_backend.main:app`` works too)."""
    import uvicorn

    uvicorn.run(
        "web_backend.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
