from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from workflow_injection.config import Settings, get_settings
from workflow_injection.core.exceptions import WorkflowValidationError
from workflow_injection.integrations.template_source import build_template_source
from workflow_injection.schemas.business import BusinessConfig, Provider
from workflow_injection.schemas.workflow import WorkflowTemplate
from workflow_injection.services.credential_injector import CredentialInjector, pending_credential_nodes
from workflow_injection.services.placeholder_engine import PlaceholderEngine
from workflow_injection.services.template_selector import TemplateCache, TemplateSelector
from workflow_injection.services.workflow_validator import ValidationReport, WorkflowValidator

logger = logging.getLogger(__name__)


class WorkflowDeployer(Protocol):
    async def deploy(self, workflow: dict[str, Any]) -> dict[str, Any]:
        ...


@dataclass
class InjectionResult:
    workflow: WorkflowTemplate
    report: ValidationReport
    provider: Provider
    pending_credentials: list[str] = field(default_factory=list)
    degraded_layers: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return self.workflow.to_document()


class WorkflowInjectionService:
    """Select, substitute, bind and validate one provider workflow per request."""

    def __init__(
        self,
        selector: TemplateSelector,
        engine: PlaceholderEngine | None = None,
        credential_injector: CredentialInjector | None = None,
        validator: WorkflowValidator | None = None,
    ):
        self.selector = selector
        self.engine = engine or PlaceholderEngine()
        self.credential_injector = credential_injector or CredentialInjector()
        self.validator = validator or WorkflowValidator()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        cache: TemplateCache | None = None,
    ) -> WorkflowInjectionService:
        settings = settings or get_settings()
        return cls(
            selector=TemplateSelector(build_template_source(settings), cache=cache),
            engine=PlaceholderEngine(mode=settings.substitution_mode),
            credential_injector=CredentialInjector(settings.default_openai_credential_id),
        )

    async def build(self, config: BusinessConfig) -> InjectionResult:
        template = await self.selector.load_template(config.provider)
        placeholders = self.engine.prepare(config)
        workflow = self.engine.inject(template, config, placeholders=placeholders)
        self.credential_injector.bind_credentials(workflow, config)
        report = self.validator.validate(workflow)
        result = InjectionResult(
            workflow=workflow,
            report=report,
            provider=config.provider,
            pending_credentials=pending_credential_nodes(workflow),
            degraded_layers=list(placeholders.degraded_layers),
        )
        logger.info(
            "Built %s workflow for client %s: score=%d, %d node(s) awaiting credentials",
            config.provider.value,
            config.id or "<unknown>",
            report.score,
            len(result.pending_credentials),
        )
        return result

    async def deploy(
        self,
        config: BusinessConfig,
        deployer: WorkflowDeployer,
        *,
        require_valid: bool = True,
    ) -> dict[str, Any]:
        result = await self.build(config)
        if require_valid and not result.report.valid:
            logger.warning("Refusing to deploy invalid workflow: %s", "; ".join(result.report.issues))
            raise WorkflowValidationError(result.report)
        response = await deployer.deploy(result.to_document())
        logger.info("Deployed %s workflow for client %s", config.provider.value, config.id or "<unknown>")
        return response

    def invalidate_cache(self, provider: str | Provider | None = None) -> list[Provider]:
        return self.selector.invalidate_cache(provider)
