"""Placeholder substitution for provider workflow templates.

Business values and configuration layer outputs are merged into a template
in one of two modes:

* ``text``: the template is serialized once, every value is escaped for a JSON
  string literal and all tokens are replaced in a single tokenizer pass before
  the text is parsed back into a workflow.
* ``tree``: string keys and values of the document are walked and substituted
  with the raw values, no escaping involved.

Both modes produce the same document. Values are token-neutralized first, so a
business value can never introduce a placeholder of its own.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import ValidationError

from workflow_injection.core.exceptions import LayerExtractionError, SubstitutionParseError
from workflow_injection.core.sanitize import (
    escape_json_string,
    neutralize_tokens,
    sanitize_display_name,
    strip_control_characters,
)
from workflow_injection.core.tokens import make_token, replace_tokens
from workflow_injection.schemas.business import BusinessConfig
from workflow_injection.schemas.workflow import WorkflowTemplate
from workflow_injection.services.business_context import BusinessContext
from workflow_injection.services.credential_injector import placeholder_credential_id
from workflow_injection.services.label_injector import inject_label_ids, label_tokens
from workflow_injection.services.layer_extractors import DEFAULT_ESCALATION, LayerExtractors

logger = logging.getLogger(__name__)

SubstitutionMode = Literal["text", "tree"]

EXCERPT_RADIUS = 80


@dataclass(frozen=True)
class PlaceholderSet:
    """Everything one injection substitutes: base and layer values plus label ids."""

    values: dict[str, str]
    label_ids: dict[str, str] = field(default_factory=dict)
    degraded_layers: tuple[str, ...] = ()


def _credential_value(config: BusinessConfig, slot: str) -> str:
    return config.credential_for(slot) or placeholder_credential_id(slot)


def base_placeholders(context: BusinessContext, config: BusinessConfig) -> dict[str, str]:
    suppliers = [
        {"name": supplier.name, "email": supplier.email or "", "category": supplier.category or ""}
        for supplier in context.suppliers
    ]
    values = {
        # Keeps the caller's punctuation; only the display name drops it.
        "BUSINESS_NAME": context.name or strip_control_characters(config.business.name),
        "CONFIG_VERSION": str(context.version),
        "CLIENT_ID": context.client_id,
        "USER_ID": context.client_id,
        "EMAIL_DOMAIN": context.email_domain,
        "CURRENCY": context.currency,
        "TIMEZONE": context.timezone,
        "BUSINESS_PHONE": context.phone,
        "CONTACT_EMAIL": context.contact_email,
        "WEBSITE_URL": context.website,
        "BUSINESS_ADDRESS": context.address,
        "SERVICE_AREA": context.service_area,
        "BUSINESS_CATEGORY": context.category or context.business_types_text,
        "OPERATING_HOURS": context.operating_hours,
        "RESPONSE_TIME": context.response_time,
        "CLIENT_GMAIL_CRED_ID": _credential_value(config, "gmail"),
        "CLIENT_OUTLOOK_CRED_ID": _credential_value(config, "outlook"),
        "CLIENT_OPENAI_CRED_ID": _credential_value(config, "openai"),
        "MANAGERS_TEXT": ", ".join(context.manager_names),
        "SUPPLIERS": json.dumps(suppliers, ensure_ascii=False),
        "SIGNATURE_BLOCK": context.signature_block(),
        "SERVICE_CATALOG_TEXT": context.service_catalog(),
        "ESCALATION_RULE": context.escalation_rules or DEFAULT_ESCALATION,
        "REPLY_TONE": context.tone,
        "ALLOW_PRICING": "true" if context.allow_pricing else "false",
    }
    return {make_token(key): value for key, value in values.items()}


def _excerpt(text: str, position: int) -> str:
    return text[max(0, position - EXCERPT_RADIUS) : position + EXCERPT_RADIUS]


def parse_workflow_text(text: str) -> WorkflowTemplate:
    """Parse substituted workflow text and confirm the model round-trips it.

    Raises SubstitutionParseError with the byte offset, character position and
    an excerpt around the failure.
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        offset = len(text[: exc.pos].encode("utf-8"))
        excerpt = _excerpt(text, exc.pos)
        logger.error("Substituted workflow is not valid JSON at byte %d: %s | %r", offset, exc.msg, excerpt)
        raise SubstitutionParseError(
            f"Substituted workflow is not valid JSON: {exc.msg}",
            offset=offset,
            position=exc.pos,
            excerpt=excerpt,
        ) from exc
    return _validate_document(document, text)


def _validate_document(document: Any, text: str = "") -> WorkflowTemplate:
    if not isinstance(document, dict):
        raise SubstitutionParseError("Substituted workflow is not a JSON object", excerpt=text[: EXCERPT_RADIUS * 2])
    try:
        workflow = WorkflowTemplate.model_validate(document)
    except ValidationError as exc:
        logger.error("Substituted workflow does not match the workflow shape: %s", exc)
        raise SubstitutionParseError(f"Substituted workflow has an invalid shape: {exc}") from exc
    if workflow.to_document() != document:
        logger.error("Substituted workflow changed while re-serializing")
        raise SubstitutionParseError("Substituted workflow does not round-trip through the workflow model")
    return workflow


def _substitute_tree(value: Any, mapping: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return replace_tokens(value, mapping)
    if isinstance(value, list):
        return [_substitute_tree(item, mapping) for item in value]
    if isinstance(value, dict):
        return {replace_tokens(key, mapping): _substitute_tree(item, mapping) for key, item in value.items()}
    return value


class PlaceholderEngine:
    def __init__(self, extractors: LayerExtractors | None = None, mode: SubstitutionMode = "text"):
        if mode not in ("text", "tree"):
            raise ValueError(f"Unknown substitution mode: {mode!r}")
        self.extractors = extractors or LayerExtractors()
        self.mode = mode

    def prepare(self, config: BusinessConfig) -> PlaceholderSet:
        context = BusinessContext.from_config(config)
        values = base_placeholders(context, config)
        degraded: list[str] = []
        for layer, extractor, fallback in self.extractors.with_fallbacks():
            try:
                layer_values = {str(token): str(value) for token, value in dict(extractor(context)).items()}
            except Exception as exc:
                error = LayerExtractionError(layer, exc)
                logger.warning("%s; using minimal defaults for %s", error, context.name)
                layer_values = dict(fallback(context))
                degraded.append(layer)
            values.update(layer_values)
        raw = {token: neutralize_tokens(strip_control_characters(value)) for token, value in values.items()}
        return PlaceholderSet(values=raw, label_ids=label_tokens(config.email_labels), degraded_layers=tuple(degraded))

    def build_placeholder_map(self, config: BusinessConfig) -> dict[str, str]:
        """Token -> raw value for every base and layer placeholder."""
        return dict(self.prepare(config).values)

    def inject(
        self,
        template: WorkflowTemplate,
        config: BusinessConfig,
        placeholders: PlaceholderSet | None = None,
    ) -> WorkflowTemplate:
        placeholders = placeholders or self.prepare(config)
        if self.mode == "tree":
            workflow = self._inject_tree(template, placeholders)
        else:
            workflow = self._inject_text(template, config, placeholders)
        workflow.name = sanitize_display_name(workflow.name)
        logger.debug("Injected %d placeholders into %s (%s mode)", len(placeholders.values), workflow.name, self.mode)
        return workflow

    def _inject_text(
        self, template: WorkflowTemplate, config: BusinessConfig, placeholders: PlaceholderSet
    ) -> WorkflowTemplate:
        escaped = {token: escape_json_string(value) for token, value in placeholders.values.items()}
        text = replace_tokens(template.to_json(), escaped)
        text = inject_label_ids(text, config.email_labels, escape=True)
        return parse_workflow_text(text)

    def _inject_tree(self, template: WorkflowTemplate, placeholders: PlaceholderSet) -> WorkflowTemplate:
        document = _substitute_tree(template.to_document(), placeholders.values)
        document = _substitute_tree(document, placeholders.label_ids)
        return _validate_document(document)
