"""
Lexi - Legal Document Risk Engine
=================================
Main FastAPI application entry point.

This application provides:
- PDF, DOCX and plain-text ingestion
- Extraction quality checks
- Rule-based clause risk scanning
- Deterministic risk reports with explanations

Version: 1.0.0
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import analyze_router, quality_router, risk_router
from core.catalog import get_catalog
from core.config import SUPPORTED_MEDIA_TYPES, get_settings
from schemas import HealthCheckResponse

# === Configuration ===
settings = get_settings()


# === Logging Setup ===
def setup_logging():
    """Configure structured logging."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure root logger
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


setup_logging()
logger = structlog.get_logger(__name__)


# === Lifespan Management ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan management.

    Startup:
    - Load the clause pattern catalog once, failing fast on a bad extension file
    """
    logger.info("Starting Lexi API", version=settings.app_version)

    catalog = get_catalog()
    logger.info(
        "Risk catalog loaded",
        version=catalog.version,
        rules=len(catalog.rules),
        keywords=len(catalog.risk_keywords)
    )

    yield

    logger.info("Shutting down Lexi API")


# === Application Setup ===
app = FastAPI(
    title="Lexi API",
    description="""
    ## Legal Document Risk Engine

    Lexi scans legal documents for risky clauses:

    - **Accepts** PDF, DOCX and plain-text documents
    - **Validates** that extraction produced readable text
    - **Flags** indemnification, arbitration, termination and other clauses
    - **Explains** each finding in plain language

    ### API Flow

    1. `POST /quality` - Optionally pre-check extracted text
    2. `POST /analyze` - Upload a document and get its risk report
    3. `GET /risk/catalog` - Inspect the rules behind the findings
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)


# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Exception Handlers ===
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred. Please try again.",
            "details": {"path": request.url.path} if settings.debug else None
        }
    )


# === Health Check ===
@app.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check",
    description="Check if the API is running and the risk catalog is loaded."
)
async def health_check() -> HealthCheckResponse:
    """
    Health check endpoint.

    Returns the status of the API and its catalog.
    """
    catalog = get_catalog()
    services = {
        "api": "healthy",
        "catalog": f"loaded ({len(catalog.rules)} rules, v{catalog.version})"
    }

    return HealthCheckResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now(timezone.utc),
        services=services
    )


@app.get(
    "/",
    tags=["Health"],
    summary="Root endpoint",
    description="Welcome message and API information."
)
async def root():
    """Root endpoint with welcome message."""
    return {
        "name": "Lexi API",
        "version": settings.app_version,
        "description": "Legal Document Risk Engine",
        "supported_formats": SUPPORTED_MEDIA_TYPES,
        "docs": "/docs",
        "health": "/health"
    }


# === Register Routers ===
app.include_router(analyze_router)
app.include_router(quality_router)
app.include_router(risk_router)


# === Main Entry Point ===
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
