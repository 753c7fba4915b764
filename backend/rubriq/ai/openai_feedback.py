"""OpenAI essay feedback, scoring and band-analysis client."""

from __future__ import annotations

import copy
import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

import httpx

from rubriq.grading.bands import score_to_band
from rubriq.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class OpenAIRequestError(Exception):
    status_code: int | None
    body: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class SchemaBuildError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidAIResponseError(Exception):
    message: str
    model: str = ""

    def __str__(self) -> str:
        return self.message


@dataclass
class CriterionExamples:
    criterion: str
    examples: list[str] = field(default_factory=list)


@dataclass
class AIFeedback:
    grammar_issues: list[str]
    strengths: list[str]
    improvements: list[str]
    criteria_matches: list[CriterionExamples]
    suggested_feedback: str
    overall_score: float
    model: str


@dataclass
class AOBand:
    ao: str
    band: int
    comment: str


@dataclass
class BandAnalysis:
    overall_band: int
    overall_score: float
    ao_bands: list[AOBand]
    justification: str
    model: str


@dataclass
class ScoreResult:
    score: int
    band: int
    model: str


class EssayAnalyzer(Protocol):
    def generate_feedback(self, essay: str, rubric_criteria: str, exam_board: str | None, request_id: str) -> AIFeedback:
        """Produce structured teacher feedback for an essay."""

    def generate_score(self, essay: str, rubric_criteria: str, request_id: str) -> ScoreResult:
        """Score an essay 0-100 against GCSE bands."""

    def generate_band_analysis(self, essay: str, rubric_criteria: str, exam_board: str | None, request_id: str) -> BandAnalysis:
        """Break an essay down by assessment objective band."""


_STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _base_feedback_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "grammar_issues": copy.deepcopy(_STRING_LIST),
            "strengths": copy.deepcopy(_STRING_LIST),
            "improvements": copy.deepcopy(_STRING_LIST),
            "criteria_matches": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "criterion": {"type": "string"},
                        "examples": copy.deepcopy(_STRING_LIST),
                    },
                },
            },
            "suggested_feedback": {"type": "string"},
            "overall_score": {"type": "number"},
        },
    }


def _base_band_analysis_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "overall_band": {"type": "integer"},
            "overall_score": {"type": "number"},
            "ao_bands": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "ao": {"type": "string"},
                        "band": {"type": "integer"},
                        "comment": {"type": "string"},
                    },
                },
            },
            "justification": {"type": "string"},
        },
    }


def _base_score_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {"score": {"type": "integer"}}}


def _ensure_strict_schema_node(node: object) -> None:
    if isinstance(node, list):
        for item in node:
            _ensure_strict_schema_node(item)
        return

    if not isinstance(node, dict):
        return

    if node.get("type") == "object":
        properties = node.get("properties")
        if not isinstance(properties, dict):
            properties = {}
            node["properties"] = properties
        node["additionalProperties"] = False
        node["required"] = list(properties.keys())

    properties = node.get("properties")
    if isinstance(properties, dict):
        for value in properties.values():
            _ensure_strict_schema_node(value)

    items = node.get("items")
    if items is not None:
        _ensure_strict_schema_node(items)


def validate_schema_strictness(schema: dict[str, Any]) -> None:
    def _walk(node: object, path: str) -> None:
        if isinstance(node, list):
            for idx, item in enumerate(node):
                _walk(item, f"{path}[{idx}]")
            return

        if not isinstance(node, dict):
            return

        if node.get("type") == "object":
            if node.get("additionalProperties") is not False:
                raise SchemaBuildError(f"Object at {path} missing additionalProperties=false")
            required = node.get("required")
            if not isinstance(required, list):
                raise SchemaBuildError(f"Object at {path} missing required list")

        for key, value in node.items():
            _walk(value, f"{path}.{key}")

    _walk(schema, "schema")


def _strict(base: dict[str, Any]) -> dict[str, Any]:
    schema = copy.deepcopy(base)
    _ensure_strict_schema_node(schema)
    validate_schema_strictness(schema)
    return schema


def build_feedback_response_schema() -> dict[str, Any]:
    return _strict(_base_feedback_schema())


def build_band_analysis_response_schema() -> dict[str, Any]:
    return _strict(_base_band_analysis_schema())


def build_score_response_schema() -> dict[str, Any]:
    return _strict(_base_score_schema())


_BAND_CONVERSION = (
    "BAND CONVERSION: Band 6: 90-100% (Perceptive, sophisticated); Band 5: 75-89% (Clear, effective); "
    "Band 4: 60-74% (Explained, developed); Band 3: 45-59% (Attempted, simple); "
    "Band 2: 30-44% (Limited, unclear); Band 1: 0-29% (Very limited)."
)


def _examiner(exam_board: str | None) -> str:
    return f"You are a senior GCSE examiner for {exam_board}." if exam_board else "You are a senior GCSE examiner."


def build_feedback_instructions(exam_board: str | None) -> str:
    return (
        f"{_examiner(exam_board)} Give constructive feedback on a student essay. "
        "List specific grammar issues, strengths and improvements. For each rubric criterion, quote the essay "
        "sentences that evidence it in criteria_matches. Write suggested_feedback in a warm teacher voice, "
        "and give overall_score as a percentage from 0 to 100. "
        f"{_BAND_CONVERSION} Return ONLY JSON matching the provided schema."
    )


def build_score_instructions() -> str:
    return (
        "You are a GCSE examiner. Assess the essay against GCSE bands (1-6) and convert to a percentage. "
        f"{_BAND_CONVERSION} Return ONLY JSON with the integer percentage in score."
    )


def build_band_analysis_instructions(exam_board: str | None) -> str:
    return (
        f"{_examiner(exam_board)} Provide detailed band analysis: an overall_band (1-6), overall_score (0-100), "
        "one ao_bands entry per assessment objective with a brief comment, and a 2-3 sentence justification. "
        f"{_BAND_CONVERSION} Return ONLY JSON matching the provided schema."
    )


def build_essay_request(
    model: str,
    instructions: str,
    essay: str,
    rubric_criteria: str,
    schema_name: str,
    schema: dict[str, object],
    temperature: float,
    max_output_tokens: int,
) -> dict[str, object]:
    user_text = f"RUBRIC:\n{rubric_criteria}\n\nESSAY:\n{essay}"
    return {
        "model": model,
        "input": [
            {"role": "system", "content": [{"type": "input_text", "text": instructions}]},
            {"role": "user", "content": [{"type": "input_text", "text": user_text}]},
        ],
        "temperature": temperature,
        "max_output_tokens": max_output_tokens,
        "text": {
            "format": {
                "type": "json_schema",
                "name": schema_name,
                "strict": True,
                "schema": schema,
            }
        },
    }


def _string_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload.get(key)
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _number(payload: dict[str, Any], key: str, model: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidAIResponseError(f"{key} missing or invalid", model=model)
    return float(value)


def feedback_from_payload(payload: dict[str, Any], model: str) -> AIFeedback:
    overall = _number(payload, "overall_score", model)
    if overall < 0 or overall > 100:
        raise InvalidAIResponseError("overall_score out of range", model=model)

    matches: list[CriterionExamples] = []
    raw_matches = payload.get("criteria_matches")
    if isinstance(raw_matches, list):
        for item in raw_matches:
            if isinstance(item, dict) and str(item.get("criterion") or "").strip():
                matches.append(CriterionExamples(criterion=str(item["criterion"]), examples=_string_list(item, "examples")))

    return AIFeedback(
        grammar_issues=_string_list(payload, "grammar_issues"),
        strengths=_string_list(payload, "strengths"),
        improvements=_string_list(payload, "improvements"),
        criteria_matches=matches,
        suggested_feedback=str(payload.get("suggested_feedback") or ""),
        overall_score=overall,
        model=model,
    )


def score_from_payload(payload: dict[str, Any], model: str) -> ScoreResult:
    value = payload.get("score")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise InvalidAIResponseError("Invalid score returned", model=model)
    score = int(value)
    if score < 0 or score > 100:
        raise InvalidAIResponseError("Invalid score returned", model=model)
    return ScoreResult(score=score, band=score_to_band(score), model=model)


def band_analysis_from_payload(payload: dict[str, Any], model: str) -> BandAnalysis:
    overall_band = int(_number(payload, "overall_band", model))
    if overall_band < 1 or overall_band > 6:
        raise InvalidAIResponseError("overall_band out of range", model=model)
    overall_score = _number(payload, "overall_score", model)

    ao_bands: list[AOBand] = []
    raw_bands = payload.get("ao_bands")
    if isinstance(raw_bands, list):
        for item in raw_bands:
            if not isinstance(item, dict):
                continue
            band = item.get("band")
            if isinstance(band, bool) or not isinstance(band, (int, float)):
                continue
            ao_bands.append(AOBand(ao=str(item.get("ao") or ""), band=min(6, max(1, int(band))), comment=str(item.get("comment") or "")))

    return BandAnalysis(
        overall_band=overall_band,
        overall_score=overall_score,
        ao_bands=ao_bands,
        justification=str(payload.get("justification") or ""),
        model=model,
    )


class OpenAIEssayAnalyzer:
    def __init__(
        self,
        model: str | None = None,
        fallback_model: str | None = None,
        timeout_seconds: float | None = None,
        retry_backoffs_seconds: tuple[float, ...] = (1.0, 2.0),
    ) -> None:
        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set")

        from openai import OpenAI

        self._client = OpenAI(api_key=api_key, timeout=timeout_seconds or settings.openai_timeout_seconds)
        self._model = model or settings.openai_model
        self._fallback_model = fallback_model or settings.openai_fallback_model
        self._retry_backoffs_seconds = retry_backoffs_seconds

    def _call_openai_with_retry(self, request_payload: dict[str, object], model: str, request_id: str) -> dict[str, Any]:
        last_exc: OpenAIRequestError | None = None
        attempts = len(self._retry_backoffs_seconds) + 1
        for attempt in range(attempts):
            try:
                response = self._client.responses.create(**request_payload)
            except Exception as exc:  # pragma: no cover
                status_code = getattr(exc, "status_code", None)
                if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
                    status_code = 504
                response_obj = getattr(exc, "response", None)
                body_text = ""
                if response_obj is not None:
                    body_text = getattr(response_obj, "text", "") or ""
                if not body_text:
                    body_text = str(exc)

                retryable = isinstance(exc, (httpx.TimeoutException, TimeoutError)) or status_code in {429, 503, 504}
                last_exc = OpenAIRequestError(status_code=status_code, body=body_text, message=f"OpenAI request failed: {exc}")

                if retryable and attempt < attempts - 1:
                    logger.warning(
                        "openai retry",
                        extra={
                            "request_id": request_id,
                            "stage": "openai_retry",
                            "model": model,
                            "attempt": attempt + 1,
                            "status_code": status_code,
                        },
                    )
                    time.sleep(self._retry_backoffs_seconds[attempt])
                    continue
                raise last_exc from exc

            try:
                payload = json.loads(response.output_text)
            except (TypeError, ValueError) as exc:
                raise InvalidAIResponseError("Model returned non-JSON output", model=model) from exc
            if not isinstance(payload, dict):
                raise InvalidAIResponseError("Model returned a non-object payload", model=model)
            return payload

        if last_exc:
            raise last_exc
        raise OpenAIRequestError(status_code=None, body="Unknown OpenAI error", message="OpenAI request failed")

    def _run(self, stage: str, request_id: str, build: Callable[[str], dict[str, object]], convert: Callable[[dict[str, Any], str], Any]) -> Any:
        models = [self._model]
        if self._fallback_model and self._fallback_model != self._model:
            models.append(self._fallback_model)

        for index, model in enumerate(models):
            started = time.perf_counter()
            try:
                payload = self._call_openai_with_retry(build(model), model=model, request_id=request_id)
                result = convert(payload, model)
            except (OpenAIRequestError, InvalidAIResponseError) as exc:
                auth_failure = isinstance(exc, OpenAIRequestError) and exc.status_code in {401, 403}
                if auth_failure or index == len(models) - 1:
                    raise
                logger.info(
                    "openai primary model failed -> retrying with fallback model",
                    extra={"request_id": request_id, "stage": f"{stage}_fallback", "model": models[index + 1], "error": str(exc)},
                )
                continue
            logger.info(
                "openai call timing",
                extra={"request_id": request_id, "stage": stage, "model": model, "openai_ms": int((time.perf_counter() - started) * 1000)},
            )
            return result
        raise OpenAIRequestError(status_code=None, body="No model configured", message="OpenAI request failed")

    def generate_feedback(self, essay: str, rubric_criteria: str, exam_board: str | None, request_id: str) -> AIFeedback:
        schema = build_feedback_response_schema()
        instructions = build_feedback_instructions(exam_board)
        return self._run(
            "generate_feedback",
            request_id,
            lambda model: build_essay_request(model, instructions, essay, rubric_criteria, "essay_feedback", schema, 0.4, 1200),
            feedback_from_payload,
        )

    def generate_score(self, essay: str, rubric_criteria: str, request_id: str) -> ScoreResult:
        schema = build_score_response_schema()
        instructions = build_score_instructions()
        return self._run(
            "generate_score",
            request_id,
            lambda model: build_essay_request(model, instructions, essay, rubric_criteria, "essay_score", schema, 0.2, 50),
            score_from_payload,
        )

    def generate_band_analysis(self, essay: str, rubric_criteria: str, exam_board: str | None, request_id: str) -> BandAnalysis:
        schema = build_band_analysis_response_schema()
        instructions = build_band_analysis_instructions(exam_board)
        return self._run(
            "generate_band_analysis",
            request_id,
            lambda model: build_essay_request(model, instructions, essay, rubric_criteria, "band_analysis", schema, 0.3, 400),
            band_analysis_from_payload,
        )


class MockEssayAnalyzer:
    model = "mock"

    def generate_feedback(self, essay: str, rubric_criteria: str, exam_board: str | None, request_id: str) -> AIFeedback:
        _ = (exam_board, request_id)
        criteria = [line.split(":", 1)[0].strip() for line in rubric_criteria.splitlines() if line.strip()]
        first_sentence = essay.strip().split(".")[0].strip()
        return feedback_from_payload(
            {
                "grammar_issues": [],
                "strengths": ["Clear central argument"],
                "improvements": ["Develop analysis of language choices"],
                "criteria_matches": [{"criterion": name, "examples": [first_sentence] if first_sentence else []} for name in criteria],
                "suggested_feedback": "A focused response; push the analysis further in each paragraph.",
                "overall_score": 72,
            },
            self.model,
        )

    def generate_score(self, essay: str, rubric_criteria: str, request_id: str) -> ScoreResult:
        _ = (essay, rubric_criteria, request_id)
        return score_from_payload({"score": 72}, self.model)

    def generate_band_analysis(self, essay: str, rubric_criteria: str, exam_board: str | None, request_id: str) -> BandAnalysis:
        _ = (essay, rubric_criteria, exam_board, request_id)
        return band_analysis_from_payload(
            {
                "overall_band": 4,
                "overall_score": 72,
                "ao_bands": [
                    {"ao": "AO1", "band": 4, "comment": "Clear understanding of the main ideas."},
                    {"ao": "AO2", "band": 4, "comment": "Relevant comments on language."},
                ],
                "justification": "A clear, developed response with some explained analysis.",
            },
            self.model,
        )


def get_essay_analyzer() -> EssayAnalyzer:
    if os.getenv("OPENAI_MOCK", "").strip() == "1":
        return MockEssayAnalyzer()
    return OpenAIEssayAnalyzer()


def get_optional_essay_analyzer() -> EssayAnalyzer | None:
    """Return the configured analyzer, or None when the AI service is not configured."""
    try:
        return get_essay_analyzer()
    except RuntimeError as exc:
        logger.warning("essay analyzer unavailable", extra={"stage": "analyzer_init", "error": str(exc)})
        return None
