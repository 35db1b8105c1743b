from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from workflow_injection.core.tokens import find_tokens, is_label_token
from workflow_injection.schemas.workflow import NodeRole, WorkflowTemplate
from workflow_injection.services.credential_injector import pending_credential_nodes

logger = logging.getLogger(__name__)

MAX_SCORE = 100

NAME_PENALTY = 10
NODES_PENALTY = 20
CONNECTIONS_PENALTY = 15
UNRESOLVED_PENALTY = 15

REQUIRED_ROLES: tuple[tuple[NodeRole, str, int], ...] = (
    (NodeRole.TRIGGER, "Missing trigger node", 15),
    (NodeRole.CLASSIFIER, "Missing classifier node", 15),
    (NodeRole.ROUTER, "Missing router node", 10),
)


class ValidationReport(BaseModel):
    valid: bool
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    score: int = Field(ge=0, le=MAX_SCORE)


class WorkflowValidator:
    """Structural checks on an injected workflow, scored out of 100.

    Unresolved label tokens are reported as issues but carry no penalty: a
    user may not have created every routing label yet.
    """

    def validate(self, workflow: WorkflowTemplate) -> ValidationReport:
        issues: list[str] = []
        penalty = 0

        def fail(issue: str, points: int) -> None:
            nonlocal penalty
            issues.append(issue)
            penalty += points

        if not workflow.name.strip():
            fail("Workflow name is missing", NAME_PENALTY)
        if not workflow.nodes:
            fail("Workflow has no nodes", NODES_PENALTY)
        if not workflow.connections:
            fail("Workflow has no connections", CONNECTIONS_PENALTY)
        for role, issue, points in REQUIRED_ROLES:
            if not workflow.nodes_with_role(role):
                fail(issue, points)

        tokens = find_tokens(workflow.to_json())
        unresolved = [token for token in tokens if not is_label_token(token)]
        if unresolved:
            fail(f"Unresolved placeholders: {', '.join(unresolved)}", UNRESOLVED_PENALTY)
        valid = not issues
        issues.extend(f"Label routing incomplete: {token}" for token in tokens if is_label_token(token))

        report = ValidationReport(
            valid=valid,
            issues=issues,
            warnings=self._warnings(workflow),
            score=max(0, MAX_SCORE - penalty),
        )
        logger.info("Validated %s: score=%d valid=%s", workflow.name or "<unnamed>", report.score, report.valid)
        return report

    @staticmethod
    def _warnings(workflow: WorkflowTemplate) -> list[str]:
        warnings: list[str] = []
        names = workflow.node_names()
        for source, targets in workflow.downstream().items():
            if source not in names:
                warnings.append(f"Connection source not found: {source}")
            for target in targets:
                if target not in names:
                    warnings.append(f"Connection target not found: {source} -> {target}")
        warnings.extend(f"Node awaiting credentials: {name}" for name in pending_credential_nodes(workflow))
        return warnings
