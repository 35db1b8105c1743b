from __future__ import annotations

import httpx
import pytest

from workflow_injection.config import Settings
from workflow_injection.core.exceptions import TemplateLoadError
from workflow_injection.integrations.template_source import (
    HttpTemplateSource,
    PackagedTemplateSource,
    build_template_source,
)
from workflow_injection.schemas.business import Provider


@pytest.mark.asyncio
@pytest.mark.parametrize("provider", list(Provider))
async def test_packaged_templates_ship_for_every_provider(provider):
    document = await PackagedTemplateSource().fetch(provider)
    assert document["name"].startswith("<<<BUSINESS_NAME>>>")
    assert provider.display_name in document["name"]
    assert document["nodes"]
    assert document["connections"]


@pytest.mark.asyncio
async def test_packaged_source_missing_file(tmp_path):
    with pytest.raises(TemplateLoadError) as exc_info:
        await PackagedTemplateSource(tmp_path).fetch(Provider.GMAIL)
    assert exc_info.value.provider == "gmail"


@pytest.mark.asyncio
async def test_packaged_source_invalid_json(tmp_path):
    (tmp_path / "outlook.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(TemplateLoadError):
        await PackagedTemplateSource(tmp_path).fetch(Provider.OUTLOOK)


@pytest.mark.asyncio
async def test_http_source_fetches_provider_template():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"name": "Remote", "nodes": [], "connections": {}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        source = HttpTemplateSource("https://templates.example.com/", client=client)
        document = await source.fetch(Provider.OUTLOOK)

    assert document["name"] == "Remote"
    assert seen == ["https://templates.example.com/api/templates/outlook"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, text="<html>"),
    ],
)
async def test_http_source_wraps_failures(response):
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)) as client:
        source = HttpTemplateSource("https://templates.example.com", client=client)
        with pytest.raises(TemplateLoadError):
            await source.fetch(Provider.GMAIL)


def test_build_template_source_follows_settings():
    assert isinstance(build_template_source(Settings()), PackagedTemplateSource)
    remote = build_template_source(
        Settings(TEMPLATE_SOURCE_URL="https://templates.example.com", TEMPLATE_FETCH_TIMEOUT=5)
    )
    assert isinstance(remote, HttpTemplateSource)
    assert remote.timeout == 5
