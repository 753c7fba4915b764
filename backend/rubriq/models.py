"""SQLModel ORM models for Rubriq feedback history."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Return timezone-aware UTC now timestamp."""
    return datetime.now(timezone.utc)


class FeedbackSource(str, Enum):
    AI = "ai"
    HEURISTIC = "heuristic"


class Essay(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = "Untitled Essay"
    student_name: Optional[str] = None
    content: str
    word_count: int
    rubric_text: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Feedback(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    essay_id: int = Field(foreign_key="essay.id", index=True)
    source: FeedbackSource = Field(default=FeedbackSource.HEURISTIC)
    model_name: str
    grammar_issues_json: str = "[]"
    strengths_json: str = "[]"
    improvements_json: str = "[]"
    rubric_scores_json: str = "[]"
    rubric_matches_json: str = "[]"
    suggested_feedback: str = ""
    overall_score: Optional[float] = None
    readability_score: int = 0
    tone: str = ""
    created_at: datetime = Field(default_factory=utcnow)
