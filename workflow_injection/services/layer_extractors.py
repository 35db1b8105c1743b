"""Default configuration layer extractors.

Each extractor turns a BusinessContext into an opaque ``token -> string`` map:

* AI layer: classifier keywords, categories and the system message.
* Behavior layer: tone, guardrails and the reply-drafting prompt.
* Label layer: provider label ids grouped by category and by recipient team.

The substitution engine treats them as black boxes; callers may pass their
own implementations through ``LayerExtractors``.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from workflow_injection.core.sanitize import sanitize_text
from workflow_injection.core.tokens import make_token
from workflow_injection.services.business_context import BusinessContext

LayerExtractor = Callable[[BusinessContext], Mapping[str, str]]

BASE_KEYWORDS = ["urgent", "emergency", "asap", "quote", "estimate", "invoice", "payment", "appointment"]
FALLBACK_KEYWORDS = ["urgent", "emergency", "ASAP", "service", "quote"]
DEFAULT_CATEGORIES = ["URGENT", "SALES", "SUPPORT", "MANAGER", "SUPPLIERS", "BANKING", "RECRUITMENT", "MISC"]
DEFAULT_ESCALATION = "Escalate all URGENT emails immediately"
DEFAULT_GOALS = ("Be helpful", "Be professional")
REPLY_GOALS = DEFAULT_GOALS + ("Turn inquiries into booked appointments",)

INTENT_MAPPING = {
    "ai.emergency_request": "URGENT",
    "ai.service_request": "SUPPORT",
    "ai.quote_request": "SALES",
    "ai.invoice_question": "BANKING",
    "ai.job_application": "RECRUITMENT",
}


def _dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


def _categories(context: BusinessContext) -> list[str]:
    if not context.email_labels:
        return list(DEFAULT_CATEGORIES)
    seen: dict[str, None] = {}
    for label_name in context.email_labels:
        top = label_name.split("/", 1)[0].strip().upper()
        if top:
            seen.setdefault(top, None)
    return list(seen)


def extract_ai_layer(context: BusinessContext) -> dict[str, str]:
    keywords = list(BASE_KEYWORDS)
    for service in context.services:
        name = sanitize_text(service.name).lower()
        if name and name not in keywords:
            keywords.append(name)

    categories = _categories(context)
    managers = context.manager_names
    suppliers = [sanitize_text(s.name) for s in context.suppliers if sanitize_text(s.name)]
    escalation = context.escalation_rules or DEFAULT_ESCALATION

    lines = [
        f"You are an expert email classifier for {context.name}, a {context.business_types_text} business.",
        f"Emails sent from @{context.email_domain} are internal and must never be classified as SALES.",
        "",
        "Classify every incoming email into exactly one primary category:",
        *(f"- {category}" for category in categories),
        "",
        f"Urgent keywords: {', '.join(keywords[:3])}.",
        f"Escalation: {escalation}",
    ]
    if managers:
        lines.append(f"Route emails that name a manager ({', '.join(managers)}) to MANAGER.")
    if suppliers:
        lines.append(f"Known suppliers: {', '.join(suppliers)}. Their emails go to SUPPLIERS.")
    lines.extend(
        [
            "",
            "Respond with JSON only:",
            '{"primary_category": "...", "secondary_category": null, "confidence": 0.0, '
            '"summary": "...", "ai_can_reply": false}',
        ]
    )

    rules = [
        f"- {category}: keywords {', '.join(keywords)}" if category == "URGENT" else f"- {category}"
        for category in categories
    ]
    return {
        make_token("AI_KEYWORDS"): _dumps(keywords),
        make_token("AI_SYSTEM_MESSAGE"): "\n".join(lines),
        make_token("AI_INTENT_MAPPING"): _dumps(INTENT_MAPPING),
        make_token("AI_CLASSIFICATION_RULES"): "\n".join(rules),
        make_token("AI_ESCALATION_RULES"): escalation,
        make_token("AI_CATEGORIES"): ", ".join(categories),
        make_token("AI_BUSINESS_TYPES"): context.business_types_text,
    }


def _formality(context: BusinessContext) -> str:
    if context.voice_profile is None:
        return "professional"
    level = context.voice_profile.formality_level
    if level >= 0.7:
        return "professional"
    if level >= 0.4:
        return "conversational"
    return "casual"


def _voice_section(context: BusinessContext) -> list[str]:
    voice = context.voice_profile
    if voice is None or (voice.sample_size == 0 and not voice.example_phrases):
        return []
    source = f"from {voice.sample_size} analyzed edits" if voice.sample_size else "from historical email analysis"
    lines = [
        "",
        f"VOICE PROFILE ({source}):",
        f"- Empathy Level: {voice.empathy_level:.2f}/1.0",
        f"- Formality Level: {voice.formality_level:.2f}/1.0",
        f"- Directness Level: {voice.directness_level:.2f}/1.0",
        f"- Voice Confidence: {voice.confidence:.2f}/1.0",
    ]
    phrases = sorted(voice.example_phrases, key=lambda p: p.confidence, reverse=True)[:10]
    if phrases:
        lines.append("PREFERRED PHRASES (use these frequently):")
        for phrase in phrases:
            context_note = f", context: {phrase.context}" if phrase.context else ""
            lines.append(f'- "{phrase.phrase}" ({phrase.confidence:.2f} confidence{context_note})')
    if voice.common_phrases:
        lines.append("COMMON PHRASES FROM YOUR STYLE:")
        lines.extend(f'- "{phrase}"' for phrase in voice.common_phrases[:8])
    lines.append(f"SIGN-OFF: {voice.sign_off or 'Best regards,'}")
    return lines


def extract_behavior_layer(context: BusinessContext) -> dict[str, str]:
    goals = "\n".join(f"{i}. {goal}" for i, goal in enumerate(REPLY_GOALS, 1))
    pricing_rule = (
        "You may quote prices from the service catalog."
        if context.allow_pricing
        else "Never quote prices; offer a free estimate instead."
    )
    prompt = [
        f"You draft email replies on behalf of {context.name} ({context.business_types_text}).",
        f"Tone: {context.tone}. Formality: {_formality(context)}.",
        f"Business hours: {context.operating_hours} ({context.timezone}). We reply within {context.response_time}.",
        f"Service area: {context.service_area}.",
        pricing_rule,
    ]
    if context.services:
        prompt.extend(["", "SERVICES:", context.service_catalog()])
    if context.phone or context.website:
        contact = ", ".join(part for part in (context.phone, context.website) if part)
        prompt.append(f"Contact details you may share: {contact}.")
    prompt.extend(_voice_section(context))

    sign_off = context.voice_profile.sign_off if context.voice_profile and context.voice_profile.sign_off else None
    signature = context.signature_block().strip()
    if sign_off:
        signature = signature.replace("Best regards,", sign_off, 1)

    return {
        make_token("BEHAVIOR_VOICE_TONE"): context.tone,
        make_token("BEHAVIOR_FORMALITY"): _formality(context),
        make_token("BEHAVIOR_ALLOW_PRICING"): "true" if context.allow_pricing else "false",
        make_token("BEHAVIOR_UPSELL_TEXT"): "Mention related maintenance plans when the customer asks about repairs.",
        make_token("BEHAVIOR_FOLLOWUP_TEXT"): f"Follow up within {context.response_time} if the customer has not replied.",
        make_token("BEHAVIOR_GOALS"): goals,
        make_token("BEHAVIOR_REPLY_PROMPT"): "\n".join(prompt),
        make_token("BEHAVIOR_CATEGORY_OVERRIDES"): "{}",
        make_token("BEHAVIOR_SIGNATURE_TEMPLATE"): signature,
    }


def _team_routing(context: BusinessContext, prefix: str, names: list[str]) -> dict[str, str | None]:
    by_upper = {label.upper(): label_id for label, label_id in context.email_labels.items()}
    return {name: by_upper.get(f"{prefix}/{name}".upper()) for name in names}


def extract_label_layer(context: BusinessContext) -> dict[str, str]:
    grouped: dict[str, dict[str, str]] = {}
    for label_name, label_id in context.email_labels.items():
        category = label_name.split("/", 1)[0].strip().upper() or "MISC"
        grouped.setdefault(category, {})[label_name] = label_id

    suppliers = [sanitize_text(s.name) for s in context.suppliers if sanitize_text(s.name)]
    team = {
        "managers": _team_routing(context, "MANAGER", context.manager_names),
        "suppliers": _team_routing(context, "SUPPLIERS", suppliers),
    }
    label_map = _dumps(context.email_labels)
    return {
        make_token("LABEL_MAP"): label_map,
        make_token("LABEL_MAPPINGS"): label_map,
        make_token("LABEL_ROUTING"): _dumps(grouped),
        make_token("TEAM_ROUTING"): _dumps(team),
    }


def fallback_ai_layer(context: BusinessContext) -> dict[str, str]:
    return {
        make_token("AI_KEYWORDS"): _dumps(FALLBACK_KEYWORDS),
        make_token("AI_SYSTEM_MESSAGE"): f"You are an email classifier for {context.name}. Categorize emails accurately.",
        make_token("AI_INTENT_MAPPING"): "{}",
        make_token("AI_CLASSIFICATION_RULES"): "",
        make_token("AI_ESCALATION_RULES"): DEFAULT_ESCALATION,
        make_token("AI_CATEGORIES"): ", ".join(DEFAULT_CATEGORIES),
        make_token("AI_BUSINESS_TYPES"): context.business_types_text,
    }


def fallback_behavior_layer(context: BusinessContext) -> dict[str, str]:
    return {
        make_token("BEHAVIOR_VOICE_TONE"): context.tone,
        make_token("BEHAVIOR_FORMALITY"): "professional",
        make_token("BEHAVIOR_ALLOW_PRICING"): "true" if context.allow_pricing else "false",
        make_token("BEHAVIOR_UPSELL_TEXT"): "",
        make_token("BEHAVIOR_FOLLOWUP_TEXT"): "",
        make_token("BEHAVIOR_GOALS"): "\n".join(f"{i}. {goal}" for i, goal in enumerate(DEFAULT_GOALS, 1)),
        make_token("BEHAVIOR_REPLY_PROMPT"): f"Draft professional replies for {context.name}.",
        make_token("BEHAVIOR_CATEGORY_OVERRIDES"): "{}",
        make_token("BEHAVIOR_SIGNATURE_TEMPLATE"): "",
    }


def fallback_label_layer(context: BusinessContext) -> dict[str, str]:
    return {
        make_token("LABEL_MAP"): "{}",
        make_token("LABEL_MAPPINGS"): "{}",
        make_token("LABEL_ROUTING"): "{}",
        make_token("TEAM_ROUTING"): "{}",
    }


@dataclass(frozen=True)
class LayerExtractors:
    ai: LayerExtractor = extract_ai_layer
    behavior: LayerExtractor = extract_behavior_layer
    labels: LayerExtractor = extract_label_layer

    def with_fallbacks(self) -> list[tuple[str, LayerExtractor, LayerExtractor]]:
        return [
            ("ai", self.ai, fallback_ai_layer),
            ("behavior", self.behavior, fallback_behavior_layer),
            ("labels", self.labels, fallback_label_layer),
        ]
