import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from rubriq.main import app
from rubriq.settings import settings


@pytest.mark.parametrize(
    ("api_key", "expected_openai_configured"),
    [("test-key", True), ("   ", False)],
)
def test_health_returns_openai_configuration_status(monkeypatch, api_key: str, expected_openai_configured: bool) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", api_key)

    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200

    payload = response.json()
    assert payload["ok"] is True
    assert payload["openai_configured"] is expected_openai_configured


def test_health_deep_returns_storage_and_db_diagnostics(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("OPENAI_MOCK", "1")

    with TestClient(app) as client:
        response = client.get("/health/deep")

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["openai_configured"] is True
    assert payload["openai_mock"] is True
    assert payload["storage_writable"] is True
    assert payload["db_ok"] is True
    assert payload["ocr_provider"] == settings.ocr_provider
    assert payload["data_dir"] == str(settings.data_path)


@pytest.mark.parametrize(
    ("env", "expected_mode"),
    [({}, "heuristic"), ({"OPENAI_API_KEY": "test-key"}, "openai"), ({"OPENAI_MOCK": "1"}, "mock")],
)
def test_health_reports_feedback_mode(monkeypatch, env: dict[str, str], expected_mode: str) -> None:
    for name, value in env.items():
        monkeypatch.setenv(name, value)

    with TestClient(app) as client:
        response = client.get("/health")

    assert response.json()["feedback_mode"] == expected_mode
