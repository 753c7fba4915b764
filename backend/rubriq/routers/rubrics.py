"""Rubric parsing, upload and sentence-matching endpoints."""

from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from rubriq.grading.base import RubricCriterion, RubricMatch
from rubriq.grading.heuristic import GCSE_ENGLISH_RUBRIC
from rubriq.grading.matcher import match_sentences_to_rubric, parse_rubric
from rubriq.parsing.essay import EssayParseError, UnsupportedFileTypeError, extract_text, is_image
from rubriq.parsing.rubric_text import ParsedCriterion, parse_rubric_text
from rubriq.schemas import (
    ParsedCriterionRead,
    RubricCriterionIn,
    RubricCriterionRead,
    RubricMatchRead,
    RubricMatchRequest,
    RubricTextIn,
    RubricUploadResponse,
)
from rubriq.settings import settings
from rubriq.storage import read_upload

router = APIRouter(prefix="/rubrics", tags=["rubrics"])


def criterion_read(criterion: RubricCriterion) -> RubricCriterionRead:
    return RubricCriterionRead(id=criterion.id, name=criterion.name, description=criterion.description)


def parsed_criterion_read(criterion: ParsedCriterion) -> ParsedCriterionRead:
    return ParsedCriterionRead(category=criterion.category, max_points=criterion.max_points, description=criterion.description)


def rubric_match_read(match: RubricMatch) -> RubricMatchRead:
    return RubricMatchRead(
        criterion_id=match.criterion_id,
        name=match.name,
        description=match.description,
        matched_sentences=list(match.matched_sentences),
        score=match.score,
        has_evidence=match.has_evidence,
    )


def criteria_from_input(items: list[RubricCriterionIn]) -> list[RubricCriterion]:
    return [RubricCriterion(id=item.id, name=item.name or item.id, description=item.description) for item in items]


@router.post("/parse", response_model=list[RubricCriterionRead])
def parse_rubric_lines(payload: RubricTextIn) -> list[RubricCriterionRead]:
    return [criterion_read(criterion) for criterion in parse_rubric(payload.text)]


@router.post("/parse-detailed", response_model=list[ParsedCriterionRead])
def parse_rubric_detailed(payload: RubricTextIn) -> list[ParsedCriterionRead]:
    return [parsed_criterion_read(criterion) for criterion in parse_rubric_text(payload.text)]


@router.post("/upload", response_model=RubricUploadResponse)
async def upload_rubric(file: UploadFile = File(...)) -> RubricUploadResponse:
    filename = file.filename or ""
    if is_image(filename, file.content_type):
        raise HTTPException(status_code=400, detail="Rubric images are not supported. Upload .txt, .docx or .pdf files.")

    try:
        data = await read_upload(file, settings.max_upload_bytes)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc

    try:
        text = extract_text(filename, data, file.content_type)
    except (UnsupportedFileTypeError, EssayParseError, RuntimeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    criteria = parse_rubric_text(text)
    if not criteria:
        raise HTTPException(status_code=400, detail="No rubric criteria could be found in the uploaded file")
    return RubricUploadResponse(filename=filename, text=text, criteria=[parsed_criterion_read(c) for c in criteria])


@router.post("/match", response_model=list[RubricMatchRead])
def match_rubric(payload: RubricMatchRequest) -> list[RubricMatchRead]:
    if payload.criteria is not None:
        rubric = criteria_from_input(payload.criteria)
    else:
        rubric = parse_rubric(payload.rubric_text or "")
    return [rubric_match_read(match) for match in match_sentences_to_rubric(payload.essay_text, rubric)]


@router.get("/templates/gcse-english", response_model=list[RubricCriterionRead])
def gcse_english_template() -> list[RubricCriterionRead]:
    return [criterion_read(criterion) for criterion in GCSE_ENGLISH_RUBRIC]
