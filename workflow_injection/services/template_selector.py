from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from pydantic import ValidationError

from workflow_injection.core.exceptions import TemplateLoadError
from workflow_injection.integrations.template_source import TemplateSource
from workflow_injection.schemas.business import Provider
from workflow_injection.schemas.workflow import WorkflowTemplate, fallback_template

logger = logging.getLogger(__name__)


class TemplateCache:
    """Provider -> JSON text snapshot of a validated template.

    Snapshots are immutable strings, so a reader holding one is never affected
    by a later invalidation.
    """

    def __init__(self) -> None:
        self._snapshots: dict[Provider, str] = {}
        self._lock = threading.Lock()

    def get(self, provider: Provider) -> str | None:
        with self._lock:
            return self._snapshots.get(provider)

    def put(self, provider: Provider, snapshot: str) -> None:
        with self._lock:
            self._snapshots[provider] = snapshot

    def invalidate(self, provider: Provider | None = None) -> list[Provider]:
        with self._lock:
            if provider is None:
                dropped = list(self._snapshots)
                self._snapshots.clear()
                return dropped
            return [provider] if self._snapshots.pop(provider, None) is not None else []

    def providers(self) -> list[Provider]:
        with self._lock:
            return list(self._snapshots)

    def __contains__(self, provider: object) -> bool:
        with self._lock:
            return provider in self._snapshots

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)


def _validate_shape(provider: Provider, document: Any) -> WorkflowTemplate:
    if not isinstance(document, dict):
        raise TemplateLoadError(provider.value, "template document must be a JSON object")
    if not isinstance(document.get("nodes"), list):
        raise TemplateLoadError(provider.value, "template has no 'nodes' array")
    if not isinstance(document.get("connections"), dict):
        raise TemplateLoadError(provider.value, "template has no 'connections' object")
    try:
        return WorkflowTemplate.model_validate(document)
    except ValidationError as exc:
        raise TemplateLoadError(provider.value, f"template shape is invalid: {exc}") from exc


class TemplateSelector:
    def __init__(self, source: TemplateSource, cache: TemplateCache | None = None):
        self.source = source
        self.cache = cache if cache is not None else TemplateCache()
        self._locks: dict[Provider, asyncio.Lock] = {}

    async def load_template(self, provider: str | Provider) -> WorkflowTemplate:
        """Return a private copy of the provider's template.

        Raises ConfigurationError for an unknown provider. Source failures are
        logged and answered with the uncached fallback template.
        """
        resolved = Provider.parse(provider)
        snapshot = self.cache.get(resolved)
        if snapshot is None:
            lock = self._locks.setdefault(resolved, asyncio.Lock())
            async with lock:
                snapshot = self.cache.get(resolved)
                if snapshot is None:
                    try:
                        snapshot = await self._fetch_snapshot(resolved)
                    except TemplateLoadError as exc:
                        logger.warning("%s; continuing with fallback template", exc)
                        return fallback_template()
                    self.cache.put(resolved, snapshot)
                    logger.info("Cached %s template", resolved.value)
        return WorkflowTemplate.model_validate_json(snapshot)

    def invalidate_cache(self, provider: str | Provider | None = None) -> list[Provider]:
        resolved = Provider.parse(provider) if provider is not None else None
        dropped = self.cache.invalidate(resolved)
        if dropped:
            logger.info("Invalidated template cache: %s", ", ".join(p.value for p in dropped))
        return dropped

    async def _fetch_snapshot(self, provider: Provider) -> str:
        try:
            document = await self.source.fetch(provider)
        except TemplateLoadError:
            raise
        except Exception as exc:
            raise TemplateLoadError(provider.value, str(exc)) from exc
        return _validate_shape(provider, document).to_json()
