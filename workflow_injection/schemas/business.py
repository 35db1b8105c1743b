"""Business configuration supplied by the caller for one deployment request."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from workflow_injection.core.exceptions import ConfigurationError

DEFAULT_CURRENCY = "USD"
DEFAULT_OPERATING_HOURS = "Monday-Friday 8AM-5PM"
DEFAULT_RESPONSE_TIME = "24 hours"
DEFAULT_TONE = "Professional and friendly"
DEFAULT_EMAIL_DOMAIN = "example.com"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_SERVICE_AREA = "Main service area"
DEFAULT_BUSINESS_TYPE = "General Services"


class Provider(str, Enum):
    GMAIL = "gmail"
    OUTLOOK = "outlook"

    @classmethod
    def parse(cls, value: str | Provider) -> Provider:
        """Resolve a provider name, raising ConfigurationError for unknown values."""
        if isinstance(value, Provider):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            supported = ", ".join(p.value for p in cls)
            raise ConfigurationError(f"Unsupported email provider {value!r}; expected one of: {supported}") from exc

    @property
    def display_name(self) -> str:
        return "Gmail" if self is Provider.GMAIL else "Outlook"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class BusinessIdentity(_ConfigModel):
    name: str
    email_domain: str | None = Field(default=None, alias="emailDomain")
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zipCode")
    country: str | None = None
    timezone: str | None = None
    currency: str | None = None
    category: str | None = None
    service_area: str | None = Field(default=None, alias="serviceArea")
    business_types: list[str] = Field(default_factory=list, alias="types")

    @field_validator("name")
    @classmethod
    def require_name(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("business name is required")
        return value


class ContactInfo(_ConfigModel):
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class ServiceItem(_ConfigModel):
    name: str
    price: str | int | float | None = None
    pricing_type: str | None = Field(default=None, alias="pricingType")
    description: str | None = None


class BusinessHours(_ConfigModel):
    mon_fri: str | None = None
    sat: str | None = None
    sun: str | None = None

    def describe(self) -> str:
        parts: list[str] = []
        if self.mon_fri:
            parts.append(f"Monday-Friday {self.mon_fri}")
        if self.sat and self.sat != "Closed":
            parts.append(f"Saturday {self.sat}")
        if self.sun and self.sun != "Closed":
            parts.append(f"Sunday {self.sun}")
        return ", ".join(parts) or DEFAULT_OPERATING_HOURS


class OperatingRules(_ConfigModel):
    business_hours: BusinessHours | None = Field(default=None, alias="businessHours")
    sla: str | None = None
    tone: str | None = None
    allow_pricing: bool = Field(default=False, alias="allowPricing")
    escalation_rules: str | None = Field(default=None, alias="escalationRules")


class TeamMember(_ConfigModel):
    name: str
    email: str | None = None
    role: str | None = None


class Supplier(_ConfigModel):
    name: str
    email: str | None = None
    category: str | None = None


class PhraseExample(_ConfigModel):
    phrase: str
    confidence: float = 0.0
    context: str | None = None


class VoiceProfile(_ConfigModel):
    """Tone statistics learned from the business's own sent mail."""

    empathy_level: float = Field(default=0.7, ge=0, le=1)
    formality_level: float = Field(default=0.8, ge=0, le=1)
    directness_level: float = Field(default=0.8, ge=0, le=1)
    confidence: float = Field(default=0.5, ge=0, le=1)
    sample_size: int = Field(default=0, ge=0, alias="learning_count")
    example_phrases: list[PhraseExample] = Field(default_factory=list)
    common_phrases: list[str] = Field(default_factory=list)
    sign_off: str | None = None


class BusinessConfig(_ConfigModel):
    id: str | None = None
    version: int = Field(default=1, ge=1)
    provider: Provider = Provider.GMAIL
    business: BusinessIdentity
    contact: ContactInfo = Field(default_factory=ContactInfo)
    services: list[ServiceItem] = Field(default_factory=list)
    rules: OperatingRules = Field(default_factory=OperatingRules)
    managers: list[TeamMember] = Field(default_factory=list)
    suppliers: list[Supplier] = Field(default_factory=list)
    email_labels: dict[str, str] = Field(default_factory=dict)
    credentials: dict[str, str] = Field(default_factory=dict)
    voice_profile: VoiceProfile | None = Field(default=None, alias="voiceProfile")

    @field_validator("provider", mode="before")
    @classmethod
    def parse_provider(cls, value: Any) -> Provider:
        return Provider.parse(value)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BusinessConfig:
        """Validate a raw payload once at the boundary."""
        if not isinstance(payload, dict):
            raise ConfigurationError("Business configuration must be an object")
        try:
            return cls.model_validate(payload)
        except ConfigurationError:
            raise
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
            )
            raise ConfigurationError(f"Invalid business configuration: {problems}") from exc

    def credential_for(self, slot: str) -> str | None:
        value = self.credentials.get(slot)
        return value.strip() if isinstance(value, str) and value.strip() else None
