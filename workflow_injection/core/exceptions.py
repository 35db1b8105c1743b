"""Custom exception types for the injection engine and API layers."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base app exception."""


class ConfigurationError(AppError):
    """Unknown provider or missing mandatory business fields."""


class TemplateLoadError(AppError):
    """Template source failure. Recovered by the selector with a fallback template."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"Failed to load {provider} template: {message}")
        self.provider = provider


class SubstitutionParseError(AppError):
    """Substituted workflow text no longer parses into a workflow document."""

    def __init__(
        self,
        message: str,
        *,
        offset: int | None = None,
        position: int | None = None,
        excerpt: str = "",
    ) -> None:
        detail = message if offset is None else f"{message} (byte offset {offset})"
        super().__init__(detail)
        self.offset = offset
        self.position = position
        self.excerpt = excerpt

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "offset": self.offset,
            "position": self.position,
            "excerpt": self.excerpt,
        }


class LayerExtractionError(AppError):
    """A configuration layer extractor failed. Recovered with literal defaults."""

    def __init__(self, layer: str, cause: Exception) -> None:
        super().__init__(f"{layer} layer extraction failed: {cause}")
        self.layer = layer
        self.cause = cause


class WorkflowValidationError(AppError):
    """Raised only when a caller requires a valid report before deployment."""

    def __init__(self, report: Any) -> None:
        super().__init__("Workflow failed structural validation: " + "; ".join(report.issues))
        self.report = report
