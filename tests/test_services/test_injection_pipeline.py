from __future__ import annotations

import pytest

from workflow_injection.config import Settings
from workflow_injection.core.exceptions import ConfigurationError, TemplateLoadError, WorkflowValidationError
from workflow_injection.integrations.template_source import PackagedTemplateSource
from workflow_injection.schemas.business import BusinessConfig, Provider
from workflow_injection.services.injection_pipeline import WorkflowInjectionService
from workflow_injection.services.template_selector import TemplateCache, TemplateSelector


class RecordingDeployer:
    def __init__(self):
        self.deployed: list[dict] = []

    async def deploy(self, workflow: dict) -> dict:
        self.deployed.append(workflow)
        return {"id": "wf_1", "active": False}


class BrokenSource:
    async def fetch(self, provider: Provider) -> dict:
        raise TemplateLoadError(provider.value, "source offline")


@pytest.fixture
def service() -> WorkflowInjectionService:
    return WorkflowInjectionService(TemplateSelector(PackagedTemplateSource()))


@pytest.mark.asyncio
async def test_build_runs_every_stage(service, business_config):
    result = await service.build(business_config)

    assert result.provider is Provider.GMAIL
    assert result.report.valid is True
    assert result.report.score == 100
    assert result.pending_credentials == []
    assert result.degraded_layers == []
    assert result.workflow.name == "Blue Lagoon Pools Gmail AI Email Automation v3"
    assert result.to_document()["nodes"][0]["credentials"]["gmailOAuth2"]["id"] == "gmail-cred-001"


@pytest.mark.asyncio
async def test_build_reports_nodes_awaiting_credentials(service, business_payload):
    business_payload["provider"] = "outlook"
    business_payload["credentials"] = {"outlook": "outlook-cred-001"}
    result = await service.build(BusinessConfig.from_payload(business_payload))

    assert result.report.valid is True
    assert result.pending_credentials == ["OpenAI Classifier Model", "OpenAI Reply Model"]
    assert "Node awaiting credentials: OpenAI Reply Model" in result.report.warnings
    assert "Outlook" in result.workflow.name


@pytest.mark.asyncio
async def test_deploy_hands_document_to_deployer(service, business_config):
    deployer = RecordingDeployer()
    response = await service.deploy(business_config, deployer)

    assert response == {"id": "wf_1", "active": False}
    assert len(deployer.deployed) == 1
    assert deployer.deployed[0]["name"] == "Blue Lagoon Pools Gmail AI Email Automation v3"


@pytest.mark.asyncio
async def test_deploy_refuses_invalid_workflow(business_config):
    service = WorkflowInjectionService(TemplateSelector(BrokenSource()))
    deployer = RecordingDeployer()

    with pytest.raises(WorkflowValidationError) as exc_info:
        await service.deploy(business_config, deployer)

    assert deployer.deployed == []
    assert exc_info.value.report.score == 25
    assert "Workflow has no nodes" in str(exc_info.value)


@pytest.mark.asyncio
async def test_deploy_can_skip_validity_requirement(business_config):
    service = WorkflowInjectionService(TemplateSelector(BrokenSource()))
    deployer = RecordingDeployer()

    await service.deploy(business_config, deployer, require_valid=False)

    assert deployer.deployed[0]["name"] == "Fallback Workflow"
    assert deployer.deployed[0]["nodes"] == []


@pytest.mark.asyncio
async def test_from_settings_wires_mode_and_default_credential(business_payload):
    settings = Settings(SUBSTITUTION_MODE="tree", DEFAULT_OPENAI_CREDENTIAL_ID="openai-shared")
    cache = TemplateCache()
    service = WorkflowInjectionService.from_settings(settings, cache=cache)
    business_payload["credentials"] = {"gmail": "gmail-cred-001"}

    result = await service.build(BusinessConfig.from_payload(business_payload))

    assert service.engine.mode == "tree"
    assert result.pending_credentials == []
    assert Provider.GMAIL in cache
    assert service.invalidate_cache() == [Provider.GMAIL]


def test_unknown_provider_is_rejected_at_the_boundary(business_payload):
    business_payload["provider"] = "yahoo"
    with pytest.raises(ConfigurationError):
        BusinessConfig.from_payload(business_payload)


def test_missing_business_name_is_rejected(business_payload):
    business_payload["business"]["name"] = "   "
    with pytest.raises(ConfigurationError) as exc_info:
        BusinessConfig.from_payload(business_payload)
    assert "business.name" in str(exc_info.value)
