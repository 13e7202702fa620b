# pyright: reportMissingTypeStubs=false
"""
Care Team Backend API

A FastAPI application for multi-tenant clinician assignment and patient
handoff management.

Features:
- Clinician-to-patient assignments (primary / secondary)
- Patient handoff workflow (request, approve, reject, cancel)
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import assignments, handoffs, organization
from core.constants import CORS_ORIGINS
from core.exceptions import (
    AuditRecordError,
    CareTeamError,
    ConflictError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Care Team Backend API")
    yield
    logger.info("Shutting down Care Team Backend API")


# Create FastAPI application
app = FastAPI(
    title="Care Team Backend",
    description="Clinician assignment and patient handoff management",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

_ERROR_RESPONSES = {
    401: {"description": "Unauthorized"},
    403: {"description": "Forbidden"},
    404: {"description": "Resource not found"},
    500: {"description": "Internal server error"},
}

# Include API routers
app.include_router(
    organization.router,
    prefix="/api",
    tags=["organization"],
    responses=_ERROR_RESPONSES,
)
app.include_router(
    assignments.router,
    prefix="/api",
    tags=["assignments"],
    responses={**_ERROR_RESPONSES, 409: {"description": "Conflict"}},
)
app.include_router(
    handoffs.router,
    prefix="/api",
    tags=["handoffs"],
    responses={
        **_ERROR_RESPONSES,
        400: {"description": "Bad request"},
        409: {"description": "Conflict"},
    },
)


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


def _status_code_for(exc: CareTeamError) -> int:
    # Subclasses share the status of their base class
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, NotAuthorizedError):
        return 403
    if isinstance(exc, InvalidTransitionError):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConflictError):
        return 409
    return 500


# Global exception handlers
@app.exception_handler(CareTeamError)
async def care_team_error_handler(request: Request, exc: CareTeamError):
    """Map domain errors to HTTP responses."""
    status_code = _status_code_for(exc)
    if isinstance(exc, AuditRecordError):
        logger.error(f"Audit failure on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "type": exc.code},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )
