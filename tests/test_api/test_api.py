"""Tests for API endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from svgnorm.config import Settings
from svgnorm.dependencies import get_settings
from svgnorm.main import app
from tests.conftest import CYCLE_SVG, PRECISION_SVG, SYMBOL_USE_SVG, TRANSLATED_GROUP_SVG


client = TestClient(app)


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["passes_registered"] == 5
    assert [p["id"] for p in data["passes"]] == ["N0.01", "N1.01", "N1.02", "N2.01", "N3.01"]
    assert data["passes"][0]["stage"] == "GEOMETRY"


def test_normalize_folds_transforms():
    response = client.post("/api/normalize", json={"svg": TRANSLATED_GROUP_SVG})
    assert response.status_code == 200
    data = response.json()
    assert "transform=" not in data["svg"]
    assert 'd="M10,20 L20,20 L20,30 Z"' in data["svg"]
    assert data["passes_completed"] == ["N0.01", "N1.01", "N1.02", "N2.01"]
    assert data["errors"] == {}
    assert data["processing_time_ms"] >= 0


def test_normalize_with_precision():
    response = client.post("/api/normalize", json={"svg": PRECISION_SVG, "precision": 2})
    assert response.status_code == 200
    data = response.json()
    assert 'width="107.66px"' in data["svg"]
    assert "N3.01" in data["passes_completed"]


def test_normalize_default_precision_from_settings():
    app.dependency_overrides[get_settings] = lambda: Settings(default_precision=0)
    try:
        response = client.post("/api/normalize", json={"svg": PRECISION_SVG})
    finally:
        app.dependency_overrides.clear()
    assert 'width="108px"' in response.json()["svg"]


def test_normalize_explicit_null_precision_skips_rounding():
    app.dependency_overrides[get_settings] = lambda: Settings(default_precision=0)
    try:
        response = client.post("/api/normalize", json={"svg": PRECISION_SVG, "precision": None})
    finally:
        app.dependency_overrides.clear()
    assert 'width="107.65932px"' in response.json()["svg"]


def test_normalize_selected_passes():
    response = client.post("/api/normalize", json={"svg": SYMBOL_USE_SVG, "passes": ["N1.01"]})
    data = response.json()
    assert data["passes_completed"] == ["N1.01"]
    # Offsets are not folded without the transform passes
    assert "translate(5,6)" in data["svg"]


def test_normalize_reports_diagnostics():
    response = client.post("/api/normalize", json={"svg": CYCLE_SVG})
    assert response.status_code == 200
    codes = {d["code"] for d in response.json()["diagnostics"]}
    assert codes == {"reference_cycle"}


def test_normalize_unknown_pass():
    response = client.post("/api/normalize", json={"svg": SYMBOL_USE_SVG, "passes": ["N9.99"]})
    assert response.status_code == 400


def test_normalize_invalid_svg():
    response = client.post("/api/normalize", json={"svg": "<not-svg"})
    assert response.status_code == 400
    assert "Unreadable SVG" in response.json()["detail"]
