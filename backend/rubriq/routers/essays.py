"""Essay ingestion, validation and offline scoring endpoints."""

from __future__ import annotations

import random

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from rubriq.grading.base import RubricScore
from rubriq.grading.heuristic import generate_rubric_scores
from rubriq.parsing.essay import EssayParseError, UnsupportedFileTypeError, extract_text, is_image, validate_essay
from rubriq.parsing.transcribe import get_ocr_provider
from rubriq.schemas import EssayScoreRequest, EssayTextIn, EssayUploadResponse, EssayValidationRead, RubricScoreRead
from rubriq.settings import settings
from rubriq.storage import read_upload

router = APIRouter(prefix="/essays", tags=["essays"])


def rubric_score_read(score: RubricScore) -> RubricScoreRead:
    return RubricScoreRead(criterion_id=score.criterion_id, score=score.score, feedback=score.feedback)


def essay_validation_read(text: str) -> EssayValidationRead:
    result = validate_essay(text, min_words=settings.essay_min_words, max_words=settings.essay_max_words)
    return EssayValidationRead(valid=result.valid, word_count=result.word_count, error=result.error)


@router.post("/validate", response_model=EssayValidationRead)
def validate(payload: EssayTextIn) -> EssayValidationRead:
    return essay_validation_read(payload.essay_text)


@router.post("/upload", response_model=EssayUploadResponse)
async def upload_essay(file: UploadFile = File(...)) -> EssayUploadResponse:
    filename = file.filename or ""
    try:
        data = await read_upload(file, settings.max_upload_bytes)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc

    ocr_provider = None
    if is_image(filename, file.content_type):
        try:
            ocr_provider = get_ocr_provider(settings.ocr_provider)
        except (ValueError, RuntimeError) as exc:
            raise HTTPException(status_code=400, detail=f"OCR is not available: {exc}") from exc

    try:
        text = extract_text(filename, data, file.content_type, ocr_provider=ocr_provider)
    except (UnsupportedFileTypeError, EssayParseError, RuntimeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return EssayUploadResponse(filename=filename, text=text, validation=essay_validation_read(text))


@router.post("/score", response_model=list[RubricScoreRead])
def score_essay(payload: EssayScoreRequest) -> list[RubricScoreRead]:
    rng = random.Random(payload.seed) if payload.seed is not None else None
    return [rubric_score_read(score) for score in generate_rubric_scores(payload.essay_text, rng)]
