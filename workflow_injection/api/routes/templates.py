from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from workflow_injection.api.dependencies import get_injection_service
from workflow_injection.core.exceptions import ConfigurationError
from workflow_injection.schemas.injection import CacheInvalidationResponse
from workflow_injection.services.injection_pipeline import WorkflowInjectionService

router = APIRouter()


@router.delete("/cache", response_model=CacheInvalidationResponse)
async def invalidate_template_cache(
    provider: str | None = Query(default=None),
    service: WorkflowInjectionService = Depends(get_injection_service),
) -> CacheInvalidationResponse:
    """Drop cached templates so the next request reloads them from the source."""
    try:
        dropped = service.invalidate_cache(provider)
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CacheInvalidationResponse(invalidated=[p.value for p in dropped])
