"""n8n workflow document model and the closed set of node kinds the engine knows."""
from __future__ import annotations

import copy
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from workflow_injection.schemas.business import Provider


class NodeRole(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    CLASSIFIER = "classifier"
    ROUTER = "router"


class CredentialKind(Enum):
    GMAIL = ("gmailOAuth2", "gmail", "Gmail OAuth2 account")
    OUTLOOK = ("microsoftOutlookOAuth2Api", "outlook", "Microsoft Outlook OAuth2 account")
    OPENAI = ("openAiApi", "openai", "OpenAI API Key")

    def __init__(self, key: str, slot: str, display_name: str) -> None:
        self.key = key
        self.slot = slot
        self.display_name = display_name

    @property
    def provider(self) -> Provider | None:
        if self is CredentialKind.GMAIL:
            return Provider.GMAIL
        if self is CredentialKind.OUTLOOK:
            return Provider.OUTLOOK
        return None


class NodeKind(Enum):
    """Node types the engine understands, each carrying its role and credential kind."""

    GMAIL_TRIGGER = ("n8n-nodes-base.gmailTrigger", NodeRole.TRIGGER, CredentialKind.GMAIL)
    GMAIL_ACTION = ("n8n-nodes-base.gmail", NodeRole.ACTION, CredentialKind.GMAIL)
    OUTLOOK_TRIGGER = ("n8n-nodes-base.microsoftOutlookTrigger", NodeRole.TRIGGER, CredentialKind.OUTLOOK)
    OUTLOOK_ACTION = ("n8n-nodes-base.microsoftOutlook", NodeRole.ACTION, CredentialKind.OUTLOOK)
    OPENAI_CHAT_MODEL = ("@n8n/n8n-nodes-langchain.lmChatOpenAi", NodeRole.CLASSIFIER, CredentialKind.OPENAI)
    AI_AGENT = ("@n8n/n8n-nodes-langchain.agent", NodeRole.CLASSIFIER, None)
    SWITCH = ("n8n-nodes-base.switch", NodeRole.ROUTER, None)
    IF = ("n8n-nodes-base.if", NodeRole.ROUTER, None)

    def __init__(self, type_tag: str, role: NodeRole, credential_kind: CredentialKind | None) -> None:
        self.type_tag = type_tag
        self.role = role
        self.credential_kind = credential_kind

    @classmethod
    def from_type(cls, type_tag: str) -> NodeKind | None:
        return _KINDS_BY_TYPE.get(type_tag)


_KINDS_BY_TYPE: dict[str, NodeKind] = {kind.type_tag: kind for kind in NodeKind}


class CredentialRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str


class WorkflowNode(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    name: str
    type: str
    type_version: int | float | None = Field(default=None, alias="typeVersion")
    position: list[int | float] | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, CredentialRef] | None = None

    @property
    def kind(self) -> NodeKind | None:
        return NodeKind.from_type(self.type)

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {}
        if self.parameters or "parameters" in self.model_fields_set:
            document["parameters"] = copy.deepcopy(self.parameters)
        if self.id is not None:
            document["id"] = self.id
        document["name"] = self.name
        document["type"] = self.type
        if self.type_version is not None:
            document["typeVersion"] = self.type_version
        if self.position is not None:
            document["position"] = list(self.position)
        if self.credentials is not None:
            document["credentials"] = {key: ref.model_dump() for key, ref in self.credentials.items()}
        document.update(copy.deepcopy(self.model_extra or {}))
        return document


class WorkflowTemplate(BaseModel):
    """A provider-specific workflow document, before or after injection."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    nodes: list[WorkflowNode] = Field(default_factory=list)
    connections: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] | None = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "name": self.name,
            "nodes": [node.to_document() for node in self.nodes],
            "connections": copy.deepcopy(self.connections),
        }
        if self.settings is not None:
            document["settings"] = copy.deepcopy(self.settings)
        document.update(copy.deepcopy(self.model_extra or {}))
        return document

    def to_json(self) -> str:
        return json.dumps(self.to_document(), ensure_ascii=False)

    def node_names(self) -> set[str]:
        return {node.name for node in self.nodes}

    def nodes_with_role(self, role: NodeRole) -> list[WorkflowNode]:
        return [node for node in self.nodes if node.kind is not None and node.kind.role is role]

    def downstream(self) -> dict[str, list[str]]:
        """Node name -> ordered downstream node names across every output lane."""
        graph: dict[str, list[str]] = {}
        for source, outputs in self.connections.items():
            targets: list[str] = []
            if not isinstance(outputs, dict):
                graph[source] = targets
                continue
            for lanes in outputs.values():
                for lane in lanes or []:
                    for target in lane or []:
                        if isinstance(target, dict) and target.get("node"):
                            targets.append(str(target["node"]))
            graph[source] = targets
        return graph


FALLBACK_TEMPLATE_NAME = "Fallback Workflow"


def fallback_template() -> WorkflowTemplate:
    return WorkflowTemplate(name=FALLBACK_TEMPLATE_NAME, nodes=[], connections={})
