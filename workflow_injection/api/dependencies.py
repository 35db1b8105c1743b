"""Shared API dependencies."""
from __future__ import annotations

from fastapi import HTTPException, Request, status

from workflow_injection.services.injection_pipeline import WorkflowInjectionService


def get_injection_service(request: Request) -> WorkflowInjectionService:
    service = getattr(request.app.state, "injection_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Injection service not ready")
    return service
