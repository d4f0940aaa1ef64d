"""
Health check routes for functions service
"""

from datetime import datetime

from fastapi import APIRouter, Request
import structlog

from app.config import get_settings

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    settings = get_settings()
    supabase = getattr(request.app.state, "supabase", None)
    supabase_status = await supabase.health_check() if supabase is not None else "not_initialized"

    if supabase_status == "unhealthy":
        logger.warning("health_check_degraded", supabase=supabase_status)

    return {
        "service": settings.service_name,
        "status": "healthy" if supabase_status != "unhealthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "supabase": supabase_status,
        "version": settings.service_version,
    }
