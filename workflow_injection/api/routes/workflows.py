from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from workflow_injection.api.dependencies import get_injection_service
from workflow_injection.core.exceptions import ConfigurationError, SubstitutionParseError
from workflow_injection.schemas.business import BusinessConfig
from workflow_injection.schemas.injection import InjectionResponse
from workflow_injection.services.injection_pipeline import WorkflowInjectionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/inject", response_model=InjectionResponse)
async def inject_workflow(
    payload: dict[str, Any] = Body(...),
    service: WorkflowInjectionService = Depends(get_injection_service),
) -> InjectionResponse:
    """Build the provider workflow for a business configuration without deploying it."""
    try:
        config = BusinessConfig.from_payload(payload)
        result = await service.build(config)
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SubstitutionParseError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.to_dict()) from exc
    except Exception as exc:
        logger.exception("Workflow injection failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Workflow injection failed") from exc
    return InjectionResponse.from_result(result)
