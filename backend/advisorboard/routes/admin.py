"""
Admin endpoints for cache and provider management.

POST /admin/cache/clear
PUT /admin/provider
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from advisorboard.core.errors import ConfigurationError
from advisorboard.core.logging import get_logger
from advisorboard.services.llm.integration import get_llm_integration_layer
from advisorboard.services.orchestration.orchestrator import get_response_orchestrator

logger = get_logger(__name__)

router = APIRouter()


class ProviderRequest(BaseModel):
    """Request to switch the active LLM provider."""
    provider: str


@router.post("/cache/clear")
async def clear_caches():
    """
    Clear the advisor response cache and the LLM response cache.

    Security: Should require admin authentication in production.
    """
    advisor_entries = get_response_orchestrator().clear_cache()
    llm_entries = get_llm_integration_layer().clear_cache()
    logger.info("admin_cache_cleared", advisor_entries=advisor_entries, llm_entries=llm_entries)
    return {"status": "cleared", "advisor_entries": advisor_entries, "llm_entries": llm_entries}


@router.put("/provider")
async def set_active_provider(request: ProviderRequest):
    """Switch the provider tried first for every consultation."""
    integration = get_llm_integration_layer()
    try:
        integration.set_active_provider(request.provider)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "status": "updated",
        "active_provider": integration.get_active_provider(),
        "available_providers": integration.get_available_providers(),
    }
