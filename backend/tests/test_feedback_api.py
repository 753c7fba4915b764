from __future__ import annotations

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from rubriq.ai.openai_feedback import OpenAIRequestError, get_optional_essay_analyzer
from rubriq.main import app

RUBRIC = "AO1: writer contrast evidence\nAO2: language structure danger"


class _FailingAnalyzer:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code

    def _fail(self, *args, **kwargs):
        raise OpenAIRequestError(status_code=self.status_code, body="{}", message="OpenAI request failed: boom")

    generate_feedback = _fail
    generate_score = _fail
    generate_band_analysis = _fail


@pytest.fixture
def failing_analyzer():
    def _install(status_code: int) -> None:
        app.dependency_overrides[get_optional_essay_analyzer] = lambda: _FailingAnalyzer(status_code)

    yield _install
    app.dependency_overrides.clear()


def test_feedback_uses_ai_when_available(monkeypatch, essay_text: str) -> None:
    monkeypatch.setenv("OPENAI_MOCK", "1")

    with TestClient(app) as client:
        response = client.post("/feedback", json={"essay_text": essay_text, "rubric_text": RUBRIC})

    assert response.status_code == 200
    payload = response.json()
    assert payload["source"] == "ai"
    assert payload["model_name"] == "mock"
    assert payload["overall_score"] == 72.0
    assert payload["overall_band"] == 4
    assert payload["strengths"] == ["Clear central argument"]
    assert [item["criterion"] for item in payload["criteria_matches"]] == ["AO1", "AO2"]
    assert [item["criterion_id"] for item in payload["rubric_scores"]] == ["AO1", "AO2", "AO3", "AO4"]
    assert [item["criterion_id"] for item in payload["rubric_matches"]] == ["AO1", "AO2"]
    assert payload["feedback_id"] is None


def test_feedback_falls_back_to_heuristics_without_api_key(essay_text: str) -> None:
    with TestClient(app) as client:
        response = client.post("/feedback", json={"essay_text": essay_text, "rubric_text": RUBRIC, "seed": 3})

    assert response.status_code == 200
    payload = response.json()
    assert payload["source"] == "heuristic"
    assert payload["model_name"] == "heuristic"
    assert payload["overall_score"] is None
    assert payload["overall_band"] is None
    assert len(payload["strengths"]) == 3
    assert len(payload["improvements"]) == 3
    assert payload["tone"] in {"Academic", "Semi-formal"}
    assert 1 <= payload["readability_score"] <= 10
    assert payload["readability_description"]

    contrast = payload["rubric_matches"][0]
    assert contrast["has_evidence"] is True
    assert contrast["matched_sentences"][0] == "The writer shows a clear contrast between the two cities"


def test_feedback_is_reproducible_with_seed(essay_text: str) -> None:
    body = {"essay_text": essay_text, "seed": 11}

    with TestClient(app) as client:
        first = client.post("/feedback", json=body).json()
        second = client.post("/feedback", json=body).json()

    assert first["strengths"] == second["strengths"]
    assert first["rubric_scores"] == second["rubric_scores"]
    assert first["suggested_feedback"] == second["suggested_feedback"]


def test_feedback_falls_back_when_ai_call_fails(failing_analyzer, essay_text: str) -> None:
    failing_analyzer(500)

    with TestClient(app) as client:
        response = client.post("/feedback", json={"essay_text": essay_text})

    assert response.status_code == 200
    assert response.json()["source"] == "heuristic"


def test_feedback_rejects_short_essay() -> None:
    with TestClient(app) as client:
        response = client.post("/feedback", json={"essay_text": "Far too short."})

    assert response.status_code == 400
    assert response.json()["detail"] == "Essay is too short (minimum 10 words)"


def test_saved_feedback_can_be_listed_fetched_and_deleted(monkeypatch, essay_text: str) -> None:
    monkeypatch.setenv("OPENAI_MOCK", "1")

    with TestClient(app) as client:
        created = client.post(
            "/feedback",
            json={
                "essay_text": essay_text,
                "rubric_text": RUBRIC,
                "title": "Two Cities",
                "student_name": "Sam",
                "save": True,
            },
        )
        feedback_id = created.json()["feedback_id"]

        listed = client.get("/feedback")
        detail = client.get(f"/feedback/{feedback_id}")
        deleted = client.delete(f"/feedback/{feedback_id}")
        missing = client.get(f"/feedback/{feedback_id}")

    assert created.status_code == 200
    assert isinstance(feedback_id, int)

    assert listed.status_code == 200
    records = listed.json()
    assert [record["id"] for record in records] == [feedback_id]
    assert records[0]["title"] == "Two Cities"
    assert records[0]["source"] == "ai"
    assert records[0]["word_count"] == len(essay_text.split())

    assert detail.status_code == 200
    body = detail.json()
    assert body["essay_text"] == essay_text
    assert body["rubric_text"] == RUBRIC
    assert body["student_name"] == "Sam"
    assert body["overall_score"] == 72.0
    assert body["strengths"] == ["Clear central argument"]
    assert len(body["rubric_scores"]) == 4
    assert [item["criterion_id"] for item in body["rubric_matches"]] == ["AO1", "AO2"]

    assert deleted.status_code == 204
    assert missing.status_code == 404


def test_feedback_history_is_newest_first_and_limited(essay_text: str) -> None:
    with TestClient(app) as client:
        ids = [client.post("/feedback", json={"essay_text": essay_text, "save": True}).json()["feedback_id"] for _ in range(3)]
        listed = client.get("/feedback", params={"limit": 2})

    assert [record["id"] for record in listed.json()] == [ids[2], ids[1]]


def test_delete_unknown_feedback_returns_404() -> None:
    with TestClient(app) as client:
        response = client.delete("/feedback/999")

    assert response.status_code == 404


def test_score_requires_configured_ai(essay_text: str) -> None:
    with TestClient(app) as client:
        response = client.post("/feedback/score", json={"essay_text": essay_text, "rubric_text": RUBRIC})

    assert response.status_code == 503
    assert response.json()["detail"] == "AI service is not configured"


def test_score_returns_band_and_descriptor(monkeypatch, essay_text: str) -> None:
    monkeypatch.setenv("OPENAI_MOCK", "1")

    with TestClient(app) as client:
        response = client.post("/feedback/score", json={"essay_text": essay_text, "rubric_text": RUBRIC})

    assert response.status_code == 200
    assert response.json() == {"score": 72, "band": 4, "band_descriptor": "Explained, developed", "model_name": "mock"}


def test_score_requires_essay_and_rubric() -> None:
    with TestClient(app) as client:
        response = client.post("/feedback/score", json={"essay_text": "", "rubric_text": RUBRIC})

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("status_code", "expected_status", "expected_detail"),
    [
        (429, 429, "Rate limit exceeded"),
        (401, 401, "OpenAI API authentication failed"),
        (500, 500, "OpenAI request failed: boom"),
    ],
)
def test_score_maps_ai_errors(failing_analyzer, essay_text: str, status_code: int, expected_status: int, expected_detail: str) -> None:
    failing_analyzer(status_code)

    with TestClient(app) as client:
        response = client.post("/feedback/score", json={"essay_text": essay_text, "rubric_text": RUBRIC})

    assert response.status_code == expected_status
    assert response.json()["detail"] == expected_detail


def test_band_analysis_returns_ao_breakdown(monkeypatch, essay_text: str) -> None:
    monkeypatch.setenv("OPENAI_MOCK", "1")

    with TestClient(app) as client:
        response = client.post(
            "/feedback/band-analysis",
            json={"essay_text": essay_text, "rubric_text": RUBRIC, "exam_board": "AQA"},
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["overall_band"] == 4
    assert payload["model_name"] == "mock"
    assert [item["ao"] for item in payload["ao_bands"]] == ["AO1", "AO2"]
