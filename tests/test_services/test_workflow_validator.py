from __future__ import annotations

import pytest

from workflow_injection.schemas.business import BusinessConfig
from workflow_injection.schemas.workflow import NodeRole, WorkflowNode, WorkflowTemplate, fallback_template
from workflow_injection.services.credential_injector import CredentialInjector
from workflow_injection.services.placeholder_engine import PlaceholderEngine
from workflow_injection.services.workflow_validator import WorkflowValidator

NO_ROUTER_TEMPLATE = {
    "name": "<<<BUSINESS_NAME>>> Gmail AI Email Automation v<<<CONFIG_VERSION>>>",
    "nodes": [
        {
            "parameters": {},
            "name": "Gmail Trigger",
            "type": "n8n-nodes-base.gmailTrigger",
            "typeVersion": 1.2,
            "position": [200, 300],
            "credentials": {"gmailOAuth2": {"id": "<<<CLIENT_GMAIL_CRED_ID>>>", "name": "Gmail OAuth2 account"}},
        },
        {
            "parameters": {
                "assignments": {
                    "assignments": [{"name": "businessName", "value": "<<<BUSINESS_NAME>>>", "type": "string"}]
                }
            },
            "name": "Business Context",
            "type": "n8n-nodes-base.set",
            "typeVersion": 3.4,
            "position": [400, 300],
        },
        {
            "parameters": {"options": {"systemMessage": "<<<AI_SYSTEM_MESSAGE>>>"}},
            "name": "AI Master Classifier",
            "type": "@n8n/n8n-nodes-langchain.agent",
            "typeVersion": 1.8,
            "position": [600, 300],
        },
    ],
    "connections": {
        "Gmail Trigger": {"main": [[{"node": "Business Context", "type": "main", "index": 0}]]},
        "Business Context": {"main": [[{"node": "AI Master Classifier", "type": "main", "index": 0}]]},
    },
}


def _build(template: WorkflowTemplate, config: BusinessConfig) -> WorkflowTemplate:
    workflow = PlaceholderEngine().inject(template, config)
    return CredentialInjector().bind_credentials(workflow, config)


def test_complete_workflow_scores_full_marks(business_config, gmail_template):
    report = WorkflowValidator().validate(_build(gmail_template, business_config))
    assert report.valid is True
    assert report.score == 100
    assert report.issues == []
    assert report.warnings == []


@pytest.mark.parametrize(
    ("role", "issue"),
    [
        (NodeRole.TRIGGER, "Missing trigger node"),
        (NodeRole.CLASSIFIER, "Missing classifier node"),
        (NodeRole.ROUTER, "Missing router node"),
    ],
)
def test_removing_a_required_role_lowers_score_and_adds_one_issue(business_config, gmail_template, role, issue):
    validator = WorkflowValidator()
    workflow = _build(gmail_template, business_config)
    baseline = validator.validate(workflow)

    workflow.nodes = [n for n in workflow.nodes if n.kind is None or n.kind.role is not role]
    report = validator.validate(workflow)

    assert report.score < baseline.score
    assert report.issues == baseline.issues + [issue]
    assert report.valid is False
    assert any(w.startswith("Connection") for w in report.warnings)


def test_unmapped_labels_are_reported_without_penalty(business_payload, gmail_template):
    business_payload["email_labels"] = {"URGENT": "Label_100", "SALES": "Label_200"}
    report = WorkflowValidator().validate(_build(gmail_template, BusinessConfig.from_payload(business_payload)))

    assert report.valid is True
    assert report.score == 100
    assert report.issues == [
        "Label routing incomplete: <<<LABEL_SUPPORT_ID>>>",
        "Label routing incomplete: <<<LABEL_MANAGER_ID>>>",
        "Label routing incomplete: <<<LABEL_MISC_ID>>>",
    ]


def test_unresolved_placeholders_are_penalized():
    workflow = WorkflowTemplate.model_validate(NO_ROUTER_TEMPLATE)
    workflow.nodes.append(
        WorkflowNode(name="Switch", type="n8n-nodes-base.switch", parameters={"value": "<<<UNKNOWN>>>"})
    )
    report = WorkflowValidator().validate(workflow)

    assert report.valid is False
    assert report.issues[-1].startswith("Unresolved placeholders: <<<BUSINESS_NAME>>>, <<<CONFIG_VERSION>>>")
    assert "<<<UNKNOWN>>>" in report.issues[-1]
    assert report.score == 85


def test_fallback_template_report():
    report = WorkflowValidator().validate(fallback_template())
    assert report.valid is False
    assert report.score == 25
    assert report.issues == [
        "Workflow has no nodes",
        "Workflow has no connections",
        "Missing trigger node",
        "Missing classifier node",
        "Missing router node",
    ]


def test_every_check_failing_scores_zero():
    workflow = WorkflowTemplate(name="  ", nodes=[], connections={}, settings={"note": "<<<MISSING>>>"})
    report = WorkflowValidator().validate(workflow)
    assert report.score == 0
    assert len(report.issues) == 7


def test_business_name_with_punctuation_and_no_router(business_payload):
    business_payload["business"]["name"] = 'O\'Brien "Pools" & Spa\n'
    business_payload["services"] = business_payload["services"][:1]
    business_payload["managers"] = []
    business_payload["credentials"] = {}
    config = BusinessConfig.from_payload(business_payload)

    workflow = _build(WorkflowTemplate.model_validate(NO_ROUTER_TEMPLATE), config)
    report = WorkflowValidator().validate(workflow)

    assert workflow.name.startswith("OBrien Pools  Spa")
    assert 'O\'Brien \\"Pools\\" & Spa' in workflow.to_json()
    assert report.valid is False
    assert report.issues == ["Missing router node"]
    assert report.score == 90
    assert report.warnings == ["Node awaiting credentials: Gmail Trigger"]
