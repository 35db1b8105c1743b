from __future__ import annotations

from dataclasses import dataclass, field

from workflow_injection.core.sanitize import sanitize_text
from workflow_injection.schemas.business import (
    DEFAULT_BUSINESS_TYPE,
    DEFAULT_CURRENCY,
    DEFAULT_EMAIL_DOMAIN,
    DEFAULT_OPERATING_HOURS,
    DEFAULT_RESPONSE_TIME,
    DEFAULT_SERVICE_AREA,
    DEFAULT_TIMEZONE,
    DEFAULT_TONE,
    BusinessConfig,
    Provider,
    ServiceItem,
    Supplier,
    TeamMember,
    VoiceProfile,
)


@dataclass(frozen=True)
class BusinessContext:
    """Sanitized business facts with documented defaults applied.

    Built once per request from a BusinessConfig and shared by the layer
    extractors and the substitution engine, so no consumer has to re-check
    optional fields.
    """

    client_id: str
    version: int
    provider: Provider
    name: str
    email_domain: str
    phone: str
    contact_email: str
    website: str
    address: str
    service_area: str
    timezone: str
    currency: str
    category: str
    business_types: tuple[str, ...]
    operating_hours: str
    response_time: str
    tone: str
    allow_pricing: bool
    escalation_rules: str
    services: tuple[ServiceItem, ...] = ()
    managers: tuple[TeamMember, ...] = ()
    suppliers: tuple[Supplier, ...] = ()
    email_labels: dict[str, str] = field(default_factory=dict)
    voice_profile: VoiceProfile | None = None

    @classmethod
    def from_config(cls, config: BusinessConfig) -> BusinessContext:
        business = config.business
        rules = config.rules
        address_parts = [
            sanitize_text(part)
            for part in (business.address, business.city, business.state, business.zip_code, business.country)
        ]
        service_area = sanitize_text(business.service_area) or sanitize_text(business.city) or sanitize_text(
            business.state, DEFAULT_SERVICE_AREA
        )
        types = tuple(t for t in (sanitize_text(t) for t in business.business_types) if t)
        return cls(
            client_id=sanitize_text(config.id),
            version=config.version,
            provider=config.provider,
            name=sanitize_text(business.name),
            email_domain=sanitize_text(business.email_domain, DEFAULT_EMAIL_DOMAIN),
            phone=sanitize_text(config.contact.phone),
            contact_email=sanitize_text(config.contact.email),
            website=sanitize_text(config.contact.website),
            address=", ".join(part for part in address_parts if part),
            service_area=service_area,
            timezone=sanitize_text(business.timezone, DEFAULT_TIMEZONE),
            currency=sanitize_text(business.currency, DEFAULT_CURRENCY),
            category=sanitize_text(business.category),
            business_types=types or (DEFAULT_BUSINESS_TYPE,),
            operating_hours=rules.business_hours.describe() if rules.business_hours else DEFAULT_OPERATING_HOURS,
            response_time=sanitize_text(rules.sla, DEFAULT_RESPONSE_TIME),
            tone=sanitize_text(rules.tone, DEFAULT_TONE),
            allow_pricing=rules.allow_pricing,
            escalation_rules=(rules.escalation_rules or "").strip(),
            services=tuple(config.services),
            managers=tuple(config.managers),
            suppliers=tuple(config.suppliers),
            email_labels=dict(config.email_labels),
            voice_profile=config.voice_profile,
        )

    @property
    def business_types_text(self) -> str:
        return " + ".join(self.business_types)

    @property
    def manager_names(self) -> list[str]:
        return [name for name in (sanitize_text(m.name) for m in self.managers) if name]

    def signature_block(self) -> str:
        lines = ["", "", "Best regards,", f"The {self.name} Team"]
        if self.phone:
            lines.append(self.phone)
        return "\n".join(lines)

    def service_catalog(self) -> str:
        lines = []
        for service in self.services:
            pricing_type = sanitize_text(service.pricing_type, "Starting at")
            price = sanitize_text(service.price, "Call for pricing")
            description = sanitize_text(service.description)
            line = f"- {sanitize_text(service.name)} ({pricing_type} {price} {self.currency})"
            if description:
                line += f": {description}"
            lines.append(line)
        return "\n".join(lines)
