"""
Health check endpoints.
"""
from fastapi import APIRouter

from advisorboard.core.logging import get_logger
from advisorboard.services.orchestration.orchestrator import get_response_orchestrator

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def health_check():
    """
    Basic health check endpoint.
    """
    return {
        "status": "ok",
        "message": "API is running"
    }


@router.get("/llm")
async def llm_health():
    """
    Provider connectivity and orchestrator collaborators.

    Returns "healthy" when at least one provider answers, "degraded" when
    only the static fallback is available, "unhealthy" otherwise.
    """
    health = await get_response_orchestrator().health_check()
    if health["status"] != "healthy":
        logger.warning("llm_health_degraded", status=health["status"], providers=health["providers"])
    return health
