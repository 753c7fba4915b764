"""Request and response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from rubriq.models import FeedbackSource


class RubricCriterionIn(BaseModel):
    id: str = Field(min_length=1)
    name: str | None = None
    description: str


class RubricCriterionRead(BaseModel):
    id: str
    name: str
    description: str


class RubricTextIn(BaseModel):
    text: str


class ParsedCriterionRead(BaseModel):
    category: str
    max_points: int
    description: str | None = None


class RubricUploadResponse(BaseModel):
    filename: str
    text: str
    criteria: list[ParsedCriterionRead]


class RubricMatchRequest(BaseModel):
    essay_text: str
    rubric_text: str | None = None
    criteria: list[RubricCriterionIn] | None = None


class RubricMatchRead(BaseModel):
    criterion_id: str
    name: str
    description: str
    matched_sentences: list[str]
    score: int
    has_evidence: bool


class RubricScoreRead(BaseModel):
    criterion_id: str
    score: int
    feedback: str


class EssayTextIn(BaseModel):
    essay_text: str


class EssayScoreRequest(BaseModel):
    essay_text: str
    seed: int | None = None


class EssayValidationRead(BaseModel):
    valid: bool
    word_count: int
    error: str | None = None


class EssayUploadResponse(BaseModel):
    filename: str
    text: str
    validation: EssayValidationRead


class CriteriaMatchRead(BaseModel):
    criterion: str
    examples: list[str] = Field(default_factory=list)


class FeedbackRequest(BaseModel):
    essay_text: str
    rubric_text: str = ""
    exam_board: str | None = None
    title: str = "Untitled Essay"
    student_name: str | None = None
    save: bool = False
    seed: int | None = None


class FeedbackResponse(BaseModel):
    feedback_id: int | None = None
    source: FeedbackSource
    model_name: str
    grammar_issues: list[str]
    strengths: list[str]
    improvements: list[str]
    suggested_feedback: str
    overall_score: float | None = None
    overall_band: int | None = None
    readability_score: int
    readability_description: str
    tone: str
    rubric_scores: list[RubricScoreRead]
    rubric_matches: list[RubricMatchRead] = Field(default_factory=list)
    criteria_matches: list[CriteriaMatchRead] = Field(default_factory=list)


class EssayScoreAIRequest(BaseModel):
    essay_text: str = Field(min_length=1)
    rubric_text: str = Field(min_length=1)
    exam_board: str | None = None


class ScoreRead(BaseModel):
    score: int
    band: int
    band_descriptor: str
    model_name: str


class AOBandRead(BaseModel):
    ao: str
    band: int
    comment: str


class BandAnalysisRead(BaseModel):
    overall_band: int
    overall_score: float
    ao_bands: list[AOBandRead]
    justification: str
    model_name: str


class FeedbackRecordRead(BaseModel):
    id: int
    essay_id: int
    title: str
    student_name: str | None
    word_count: int
    source: FeedbackSource
    model_name: str
    overall_score: float | None
    readability_score: int
    tone: str
    created_at: datetime


class FeedbackDetail(FeedbackRecordRead):
    essay_text: str
    rubric_text: str | None
    grammar_issues: list[str]
    strengths: list[str]
    improvements: list[str]
    suggested_feedback: str
    rubric_scores: list[RubricScoreRead]
    rubric_matches: list[RubricMatchRead]
