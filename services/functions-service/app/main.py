"""
Functions Service - Main Application
Privileged create-user and delete-user functions for HotLunchHub
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from shared.schemas.user import ErrorResponse

from app.config import get_settings
from app.routes import functions, health
from app.utils.supabase_client import SupabaseAdminClient


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog on top of the stdlib logging module"""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper(), logging.INFO))

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


settings = get_settings()
configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events"""
    logger.info("functions_service_starting", version=settings.service_version)
    settings.log_config()

    if getattr(app.state, "supabase", None) is None:
        app.state.supabase = SupabaseAdminClient()
    if not app.state.supabase.is_available():
        logger.warning("functions_service_without_supabase")

    yield

    logger.info("functions_service_shutdown_complete")


# Create FastAPI application
app = FastAPI(
    title="HotLunchHub - Functions Service",
    description="Privileged user-lifecycle functions",
    version=settings.service_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Browser clients call the functions directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Render HTTP errors in the functions' error envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        method=request.method,
        url=str(request.url),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


# Register routes
app.include_router(health.router, tags=["Health"])
app.include_router(functions.router, prefix="/functions/v1", tags=["Functions"])


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "status": "running",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8010,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
