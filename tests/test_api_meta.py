from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from apps.api.main import app


@pytest.mark.anyio
async def test_meta_returns_capabilities_and_request_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SMARTTOOLS_ENABLE_META", raising=False)
    monkeypatch.delenv("SMARTTOOLS_CATALOG_PATH", raising=False)
    monkeypatch.delenv("SMARTTOOLS_MANIFEST_PATH", raising=False)
    monkeypatch.setenv("SMARTTOOLS_MAX_CONTENT_CHARS", "5000")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 200
    assert response.headers["X-SmartTools-Request-Id"]

    payload = response.json()
    assert payload["version"]
    assert payload["token_types"] == ["smartlink", "dotphrase", "wildcard", "smartlist"]
    assert payload["modes"] == ["clinical", "forensic"]
    assert payload["prompt_version"] == "1"
    assert "Moonlit Psychiatry" in payload["settings"]
    assert payload["forensic_sections"][0] == "Patient Identification"
    assert payload["forensic_word_band"] == [800, 1000]
    assert payload["catalog_configured"] is False
    assert payload["max_content_chars"] == 5000


@pytest.mark.anyio
@pytest.mark.parametrize("value", ["0", "false", "OFF", "no"])
async def test_meta_can_be_disabled(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("SMARTTOOLS_ENABLE_META", value)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


@pytest.mark.anyio
async def test_meta_reports_broken_manifest(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    manifest = tmp_path / "manifest.yaml"
    manifest.write_text("- not a mapping\n", encoding="utf-8")
    monkeypatch.delenv("SMARTTOOLS_ENABLE_META", raising=False)
    monkeypatch.setenv("SMARTTOOLS_MANIFEST_PATH", str(manifest))

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 500
    assert response.json()["error_code"] == "INVALID_MANIFEST"
