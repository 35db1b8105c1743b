"""External integration adapters."""

from .template_source import (
    HttpTemplateSource,
    PackagedTemplateSource,
    TemplateSource,
    build_template_source,
)

__all__ = [
    "HttpTemplateSource",
    "PackagedTemplateSource",
    "TemplateSource",
    "build_template_source",
]
