from __future__ import annotations

import logging
import re

from workflow_injection.core.tokens import TOKEN_PATTERN
from workflow_injection.schemas.business import BusinessConfig, Provider
from workflow_injection.schemas.workflow import CredentialKind, CredentialRef, WorkflowNode, WorkflowTemplate

logger = logging.getLogger(__name__)

PLACEHOLDER_SUFFIX = "-cred-placeholder"

_PROVIDER_MENTIONS = {
    Provider.GMAIL: re.compile(r"gmail", re.IGNORECASE),
    Provider.OUTLOOK: re.compile(r"(microsoft\s+)?outlook", re.IGNORECASE),
}


def placeholder_credential_id(slot: str) -> str:
    return f"{slot}{PLACEHOLDER_SUFFIX}"


def is_concrete_credential(value: str | None) -> bool:
    """True for a real credential id: not blank, not a sentinel and not a token."""
    if value is None:
        return False
    text = value.strip()
    if not text or text.endswith(PLACEHOLDER_SUFFIX):
        return False
    return TOKEN_PATTERN.search(text) is None


def _bound_id(node: WorkflowNode, kind: CredentialKind) -> str | None:
    if not node.credentials or kind.key not in node.credentials:
        return None
    return node.credentials[kind.key].id


def pending_credential_nodes(workflow: WorkflowTemplate) -> list[str]:
    """Names of nodes whose credential kind has no concrete binding yet."""
    pending = []
    for node in workflow.nodes:
        kind = node.kind
        if kind is None or kind.credential_kind is None:
            continue
        if not is_concrete_credential(_bound_id(node, kind.credential_kind)):
            pending.append(node.name)
    return pending


class CredentialInjector:
    def __init__(self, default_openai_credential_id: str | None = None):
        self.default_openai_credential_id = default_openai_credential_id

    def resolve(self, config: BusinessConfig, kind: CredentialKind) -> str | None:
        value = config.credential_for(kind.slot)
        if is_concrete_credential(value):
            return value
        if kind is CredentialKind.OPENAI and is_concrete_credential(self.default_openai_credential_id):
            return self.default_openai_credential_id
        return None

    def wired_provider(self, config: BusinessConfig) -> Provider:
        wired = [
            kind.provider
            for kind in (CredentialKind.GMAIL, CredentialKind.OUTLOOK)
            if self.resolve(config, kind) is not None
        ]
        if len(wired) == 1 and wired[0] is not None:
            return wired[0]
        return config.provider

    def bind_credentials(self, workflow: WorkflowTemplate, config: BusinessConfig) -> WorkflowTemplate:
        """Attach concrete credentials in place and drop stale references."""
        resolved = {kind: self.resolve(config, kind) for kind in CredentialKind}
        bound = 0
        for node in workflow.nodes:
            kind = node.kind
            if kind is None or kind.credential_kind is None:
                continue
            credential_kind = kind.credential_kind
            credential_id = resolved[credential_kind]
            credentials = dict(node.credentials or {})
            if credential_id is None:
                if credentials.pop(credential_kind.key, None) is not None:
                    logger.debug("Removed unbound %s credential from node %s", credential_kind.key, node.name)
            else:
                existing = credentials.get(credential_kind.key)
                name = existing.name if existing is not None and existing.name else credential_kind.display_name
                credentials[credential_kind.key] = CredentialRef(id=credential_id, name=name)
                bound += 1
            node.credentials = credentials or None

        workflow.name = self._rename_for_provider(workflow.name, self.wired_provider(config))
        logger.info("Bound credentials on %d node(s) of %s", bound, workflow.name)
        return workflow

    @staticmethod
    def _rename_for_provider(name: str, provider: Provider) -> str:
        other = Provider.OUTLOOK if provider is Provider.GMAIL else Provider.GMAIL
        return _PROVIDER_MENTIONS[other].sub(provider.display_name, name)
