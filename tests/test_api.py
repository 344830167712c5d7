"""
FastAPI endpoint tests for the Quick Query API.

Uses httpx + FastAPI TestClient — no real server needed, no live rate calls.
"""

from __future__ import annotations

import api
import pytest
from api import app
from conftest import FakeRateService
from fastapi.testclient import TestClient

client = TestClient(app)


@pytest.fixture(scope="module", autouse=True)
def _fake_rates() -> None:
    """Install an in-memory rate service for all API tests (bypasses lifespan)."""
    api._rate_service = FakeRateService()
    yield  # type: ignore[misc]
    api._rate_service = None


class TestHealthEndpoint:
    def test_health_returns_200(self) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_shape(self) -> None:
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["unit_categories"] == 5
        assert data["color_formats"] == 8
        assert data["currency_aliases"] >= 1


class TestResolveEndpoint:
    def test_calculator(self) -> None:
        resp = client.post("/resolve", json={"query": "2+2"})
        assert resp.status_code == 200
        result = resp.json()["result"]
        assert result["kind"] == "calculator"
        assert result["display_value"] == "4"
        assert result["is_preview"] is False

    def test_unit(self) -> None:
        result = client.post("/resolve", json={"query": "10 feet to meters"}).json()["result"]
        assert result["kind"] == "unit"
        assert result["copy_value"] == "3.048"

    def test_color_has_swatch(self) -> None:
        result = client.post("/resolve", json={"query": "#ff0000 to hsl"}).json()["result"]
        assert result["kind"] == "color"
        assert result["color_swatch"] == "#FF0000"

    def test_currency_awaits_rate(self) -> None:
        result = client.post("/resolve", json={"query": "20 usd in yen"}).json()["result"]
        assert result["kind"] == "currency"
        assert result["display_value"] == "3.000,00 JPY"
        assert result["copy_value"] == "3000.00"

    def test_preview(self) -> None:
        result = client.post("/resolve", json={"query": "10 fahr"}).json()["result"]
        assert result["is_preview"] is True
        assert result["display_query"] == "10 fahrenheit to celsius"

    def test_no_match_is_null(self) -> None:
        data = client.post("/resolve", json={"query": "hello world"}).json()
        assert data["query"] == "hello world"
        assert data["result"] is None

    def test_failed_currency_is_null(self) -> None:
        data = client.post("/resolve", json={"query": "10 usd to chf"}).json()
        assert data["result"] is None

    def test_missing_query_rejected(self) -> None:
        resp = client.post("/resolve", json={})
        assert resp.status_code == 422

    def test_overlong_query_rejected(self) -> None:
        resp = client.post("/resolve", json={"query": "1+" * 200})
        assert resp.status_code == 422


class TestColorConvertEndpoint:
    def test_all_formats(self) -> None:
        resp = client.post("/color/convert", json={"color": "#FF0000"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["source_format"] == "hex"
        assert data["swatch"] == "#FF0000"
        assert len(data["formats"]) == 8
        assert data["formats"]["hsl"] == "hsl(0, 100%, 50%)"

    def test_single_target_alias(self) -> None:
        data = client.post(
            "/color/convert", json={"color": "rgb(0, 0, 0)", "target": "CMYK"}
        ).json()
        assert data["source_format"] == "rgb"
        assert data["formats"] == {"cmyk": "cmyk(0%, 0%, 0%, 100%)"}

    def test_unknown_color(self) -> None:
        resp = client.post("/color/convert", json={"color": "chartreuse"})
        assert resp.status_code == 422

    def test_unknown_target(self) -> None:
        resp = client.post("/color/convert", json={"color": "#fff", "target": "pantone"})
        assert resp.status_code == 422
