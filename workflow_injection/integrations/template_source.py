from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol

import httpx

from workflow_injection.config import Settings
from workflow_injection.core.exceptions import TemplateLoadError
from workflow_injection.schemas.business import Provider

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"


class TemplateSource(Protocol):
    async def fetch(self, provider: Provider) -> dict[str, Any]:
        """Return the raw workflow document for a provider or raise TemplateLoadError."""
        ...


class PackagedTemplateSource:
    """Workflow templates shipped as JSON files inside the package."""

    def __init__(self, template_dir: Path | str = TEMPLATE_DIR):
        self.template_dir = Path(template_dir)

    async def fetch(self, provider: Provider) -> dict[str, Any]:
        path = self.template_dir / f"{provider.value}.json"
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            document = json.loads(text)
        except (OSError, json.JSONDecodeError) as exc:
            raise TemplateLoadError(provider.value, str(exc)) from exc
        logger.debug("Loaded packaged %s template from %s", provider.value, path)
        return document


class HttpTemplateSource:
    """Templates served by the onboarding backend at ``/api/templates/{provider}``."""

    def __init__(self, base_url: str, timeout: float = 15.0, client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def fetch(self, provider: Provider) -> dict[str, Any]:
        url = f"{self.base_url}/api/templates/{provider.value}"
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url)
            response.raise_for_status()
            document = response.json()
        except httpx.HTTPError as exc:
            raise TemplateLoadError(provider.value, f"{url}: {exc}") from exc
        except ValueError as exc:
            raise TemplateLoadError(provider.value, f"{url} returned invalid JSON: {exc}") from exc
        logger.debug("Fetched %s template from %s", provider.value, url)
        return document


def build_template_source(settings: Settings) -> TemplateSource:
    if settings.template_source_url is None:
        return PackagedTemplateSource()
    return HttpTemplateSource(str(settings.template_source_url), timeout=settings.template_fetch_timeout)
