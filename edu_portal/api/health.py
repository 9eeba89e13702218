"""
Service info and health routes
FILE: edu_portal/api/health.py
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging
import time

from edu_portal.api.deps import get_registry
from edu_portal.db.mongodb import ping_database
from edu_portal.services.llm_client import ProviderRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


@router.get("/", tags=["Root"])
async def root():
    """Service name, version and the main entry points"""
    return {
        "message": "Education Portal AI API",
        "version": API_VERSION,
        "status": "operational",
        "endpoints": {
            "docs": "/docs",
            "mentor": "/api/ai-mentor",
            "generate_test": "/api/generate-test",
            "content_status": "/api/subjects/{subject_id}/content-status",
            "progress": "/api/progress",
            "quiz_attempts": "/api/quiz-attempts",
            "health": "/health"
        }
    }


@router.get("/health", tags=["Health"])
async def health_check(registry: ProviderRegistry = Depends(get_registry)):
    """
    Report MongoDB reachability and which AI providers are configured.

    Returns 503 ("degraded") when MongoDB does not answer or no provider
    has a credential, since generation cannot succeed in either case.
    """
    mongo_ok = await ping_database()
    if not mongo_ok:
        logger.error("❌ Health check: MongoDB unreachable")

    eligible = registry.eligible()
    if not eligible:
        logger.warning("⚠️ Health check: no AI provider configured")

    healthy = mongo_ok and bool(eligible)

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": time.time(),
            "version": API_VERSION,
            "components": {
                "mongodb": {
                    "status": "healthy" if mongo_ok else "unhealthy",
                    "message": "Connected and responsive" if mongo_ok else "Connection failed"
                },
                "providers": registry.health(),
                "fallback_order": [p.name for p in eligible]
            }
        }
    )
