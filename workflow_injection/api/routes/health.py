"""
Health API Routes
"""
from fastapi import APIRouter, Depends

from workflow_injection.api.dependencies import get_injection_service
from workflow_injection.config import settings
from workflow_injection.services.injection_pipeline import WorkflowInjectionService

router = APIRouter()


@router.get("/health")
async def health_check(service: WorkflowInjectionService = Depends(get_injection_service)) -> dict:
    """Application health and template cache state"""
    return {
        "status": "healthy",
        "environment": settings.app_env,
        "substitution_mode": service.engine.mode,
        "template_source": "remote" if settings.template_source_url else "packaged",
        "cached_templates": sorted(p.value for p in service.selector.cache.providers()),
    }
