"""Essay feedback endpoints: AI feedback with offline fallback, scoring and history."""

from __future__ import annotations

import json
import logging
import random
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel import Session, col, select

from rubriq.ai.openai_feedback import (
    AIFeedback,
    EssayAnalyzer,
    InvalidAIResponseError,
    OpenAIRequestError,
    get_optional_essay_analyzer,
)
from rubriq.db import get_session
from rubriq.grading.bands import band_descriptor, readability_description, score_to_band
from rubriq.grading.matcher import match_sentences_to_rubric, parse_rubric
from rubriq.grading.mock_feedback import generate_mock_feedback
from rubriq.models import Essay, Feedback, FeedbackSource
from rubriq.parsing.essay import validate_essay
from rubriq.routers.essays import rubric_score_read
from rubriq.routers.rubrics import rubric_match_read
from rubriq.schemas import (
    AOBandRead,
    BandAnalysisRead,
    CriteriaMatchRead,
    EssayScoreAIRequest,
    FeedbackDetail,
    FeedbackRecordRead,
    FeedbackRequest,
    FeedbackResponse,
    RubricMatchRead,
    RubricScoreRead,
    ScoreRead,
)
from rubriq.settings import settings

router = APIRouter(prefix="/feedback", tags=["feedback"])
logger = logging.getLogger(__name__)


def _ai_error_to_http(exc: OpenAIRequestError | InvalidAIResponseError) -> HTTPException:
    if isinstance(exc, OpenAIRequestError):
        if exc.status_code == 401:
            return HTTPException(status_code=401, detail="OpenAI API authentication failed")
        if exc.status_code == 429:
            return HTTPException(status_code=429, detail="Rate limit exceeded")
    return HTTPException(status_code=500, detail=str(exc) or "Failed to generate feedback")


def _require_analyzer(analyzer: EssayAnalyzer | None) -> EssayAnalyzer:
    if analyzer is None:
        raise HTTPException(status_code=503, detail="AI service is not configured")
    return analyzer


def _request_ai_feedback(analyzer: EssayAnalyzer | None, payload: FeedbackRequest, request_id: str) -> AIFeedback | None:
    if analyzer is None:
        return None
    try:
        return analyzer.generate_feedback(payload.essay_text, payload.rubric_text, payload.exam_board, request_id)
    except (OpenAIRequestError, InvalidAIResponseError) as exc:
        logger.warning(
            "feedback ai call failed -> using heuristic feedback",
            extra={"request_id": request_id, "stage": "feedback_fallback", "error": str(exc)},
        )
        return None


def _save_feedback(session: Session, payload: FeedbackRequest, word_count: int, response: FeedbackResponse) -> int:
    essay = Essay(
        title=payload.title,
        student_name=payload.student_name,
        content=payload.essay_text,
        word_count=word_count,
        rubric_text=payload.rubric_text or None,
    )
    session.add(essay)
    session.flush()

    row = Feedback(
        essay_id=essay.id,
        source=response.source,
        model_name=response.model_name,
        grammar_issues_json=json.dumps(response.grammar_issues),
        strengths_json=json.dumps(response.strengths),
        improvements_json=json.dumps(response.improvements),
        rubric_scores_json=json.dumps([item.model_dump() for item in response.rubric_scores]),
        rubric_matches_json=json.dumps([item.model_dump() for item in response.rubric_matches]),
        suggested_feedback=response.suggested_feedback,
        overall_score=response.overall_score,
        readability_score=response.readability_score,
        tone=response.tone,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row.id


@router.post("", response_model=FeedbackResponse)
def create_feedback(
    payload: FeedbackRequest,
    session: Session = Depends(get_session),
    analyzer: EssayAnalyzer | None = Depends(get_optional_essay_analyzer),
) -> FeedbackResponse:
    validation = validate_essay(payload.essay_text, min_words=settings.essay_min_words, max_words=settings.essay_max_words)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error)

    request_id = uuid.uuid4().hex
    rng = random.Random(payload.seed) if payload.seed is not None else None

    rubric = parse_rubric(payload.rubric_text)
    rubric_matches = [rubric_match_read(match) for match in match_sentences_to_rubric(payload.essay_text, rubric)]

    local = generate_mock_feedback(payload.essay_text, rng)
    ai = _request_ai_feedback(analyzer, payload, request_id)

    response = FeedbackResponse(
        source=FeedbackSource.HEURISTIC,
        model_name="heuristic",
        grammar_issues=local.grammar,
        strengths=local.strengths,
        improvements=local.improvements,
        suggested_feedback=local.suggested_feedback,
        readability_score=local.readability_score,
        readability_description=readability_description(local.readability_score),
        tone=local.tone,
        rubric_scores=[rubric_score_read(score) for score in local.rubric_scores],
        rubric_matches=rubric_matches,
    )
    if ai is not None:
        response.source = FeedbackSource.AI
        response.model_name = ai.model
        response.grammar_issues = ai.grammar_issues
        response.strengths = ai.strengths
        response.improvements = ai.improvements
        response.suggested_feedback = ai.suggested_feedback or local.suggested_feedback
        response.overall_score = ai.overall_score
        response.overall_band = score_to_band(ai.overall_score)
        response.criteria_matches = [CriteriaMatchRead(criterion=m.criterion, examples=m.examples) for m in ai.criteria_matches]

    if payload.save:
        response.feedback_id = _save_feedback(session, payload, validation.word_count, response)
        logger.info(
            "feedback saved",
            extra={"request_id": request_id, "stage": "feedback_saved", "feedback_id": response.feedback_id, "source": response.source.value},
        )
    return response


@router.post("/score", response_model=ScoreRead)
def create_score(
    payload: EssayScoreAIRequest,
    analyzer: EssayAnalyzer | None = Depends(get_optional_essay_analyzer),
) -> ScoreRead:
    active = _require_analyzer(analyzer)
    try:
        result = active.generate_score(payload.essay_text, payload.rubric_text, uuid.uuid4().hex)
    except (OpenAIRequestError, InvalidAIResponseError) as exc:
        raise _ai_error_to_http(exc) from exc
    return ScoreRead(score=result.score, band=result.band, band_descriptor=band_descriptor(result.band), model_name=result.model)


@router.post("/band-analysis", response_model=BandAnalysisRead)
def create_band_analysis(
    payload: EssayScoreAIRequest,
    analyzer: EssayAnalyzer | None = Depends(get_optional_essay_analyzer),
) -> BandAnalysisRead:
    active = _require_analyzer(analyzer)
    try:
        result = active.generate_band_analysis(payload.essay_text, payload.rubric_text, payload.exam_board, uuid.uuid4().hex)
    except (OpenAIRequestError, InvalidAIResponseError) as exc:
        raise _ai_error_to_http(exc) from exc
    return BandAnalysisRead(
        overall_band=result.overall_band,
        overall_score=result.overall_score,
        ao_bands=[AOBandRead(ao=item.ao, band=item.band, comment=item.comment) for item in result.ao_bands],
        justification=result.justification,
        model_name=result.model,
    )


def _record_read(row: Feedback, essay: Essay) -> FeedbackRecordRead:
    return FeedbackRecordRead(
        id=row.id,
        essay_id=essay.id,
        title=essay.title,
        student_name=essay.student_name,
        word_count=essay.word_count,
        source=row.source,
        model_name=row.model_name,
        overall_score=row.overall_score,
        readability_score=row.readability_score,
        tone=row.tone,
        created_at=row.created_at,
    )


@router.get("", response_model=list[FeedbackRecordRead])
def list_feedback(
    limit: int = Query(default=50, ge=1, le=500),
    session: Session = Depends(get_session),
) -> list[FeedbackRecordRead]:
    rows = session.exec(
        select(Feedback, Essay).where(Feedback.essay_id == Essay.id).order_by(col(Feedback.id).desc()).limit(limit)
    ).all()
    return [_record_read(row, essay) for row, essay in rows]


@router.get("/{feedback_id}", response_model=FeedbackDetail)
def get_feedback(feedback_id: int, session: Session = Depends(get_session)) -> FeedbackDetail:
    row = session.get(Feedback, feedback_id)
    if not row:
        raise HTTPException(status_code=404, detail="Feedback not found")
    essay = session.get(Essay, row.essay_id)
    if not essay:
        raise HTTPException(status_code=404, detail="Essay not found")

    return FeedbackDetail(
        **_record_read(row, essay).model_dump(),
        essay_text=essay.content,
        rubric_text=essay.rubric_text,
        grammar_issues=json.loads(row.grammar_issues_json),
        strengths=json.loads(row.strengths_json),
        improvements=json.loads(row.improvements_json),
        suggested_feedback=row.suggested_feedback,
        rubric_scores=[RubricScoreRead(**item) for item in json.loads(row.rubric_scores_json)],
        rubric_matches=[RubricMatchRead(**item) for item in json.loads(row.rubric_matches_json)],
    )


@router.delete("/{feedback_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_feedback(feedback_id: int, session: Session = Depends(get_session)) -> Response:
    row = session.get(Feedback, feedback_id)
    if not row:
        raise HTTPException(status_code=404, detail="Feedback not found")
    essay = session.get(Essay, row.essay_id)
    session.delete(row)
    if essay:
        session.delete(essay)
    session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
