"""Tests for the hardening headers and the production HTTPS redirect."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from factucr.config import settings
from factucr.middleware.security import HTTPSRedirectMiddleware, SecurityHeadersMiddleware

pytestmark = [pytest.mark.api, pytest.mark.asyncio]


def _app(**redirect_kwargs) -> FastAPI:
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(HTTPSRedirectMiddleware, **redirect_kwargs)

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    return app


async def _get(app, url):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.get(url, follow_redirects=False)


class TestHTTPSRedirect:
    async def test_production_redirects_plain_http(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")

        resp = await _get(_app(), "http://test/api/ping?page=2")

        assert resp.status_code == 301
        assert resp.headers["location"] == "https://test/api/ping?page=2"

    async def test_development_serves_plain_http(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")

        resp = await _get(_app(), "http://test/api/ping")

        assert resp.status_code == 200

    async def test_forced_outside_production(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")

        resp = await _get(_app(force_https=True), "http://test/api/ping")

        assert resp.status_code == 301

    async def test_https_request_passes_through(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")

        resp = await _get(_app(), "https://test/api/ping")

        assert resp.status_code == 200
        assert resp.headers["strict-transport-security"].startswith("max-age=")


class TestSecurityHeaders:
    async def test_headers_present(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")

        resp = await _get(_app(), "http://test/api/ping")

        assert resp.headers["x-content-type-options"] == "nosniff"
        assert resp.headers["x-frame-options"] == "DENY"
        assert "strict-transport-security" not in resp.headers
