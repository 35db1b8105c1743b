from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from workflow_injection.services.injection_pipeline import InjectionResult
from workflow_injection.services.workflow_validator import ValidationReport


class InjectionResponse(BaseModel):
    provider: str
    workflow: dict[str, Any]
    report: ValidationReport
    pending_credentials: list[str] = []
    degraded_layers: list[str] = []

    @classmethod
    def from_result(cls, result: InjectionResult) -> InjectionResponse:
        return cls(
            provider=result.provider.value,
            workflow=result.to_document(),
            report=result.report,
            pending_credentials=result.pending_credentials,
            degraded_layers=result.degraded_layers,
        )


class CacheInvalidationResponse(BaseModel):
    invalidated: list[str]
