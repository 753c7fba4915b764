"""Rubric and score records shared by the local scorers."""

from __future__ import annotations

from dataclasses import dataclass, field

NO_EVIDENCE_SENTINEL = "No clear evidence found for this criterion."


@dataclass(frozen=True)
class RubricCriterion:
    id: str
    name: str
    description: str


@dataclass
class RubricMatch:
    criterion_id: str
    name: str
    description: str
    matched_sentences: list[str] = field(default_factory=list)
    score: int = 1

    @property
    def has_evidence(self) -> bool:
        """False when the only entry is the no-evidence sentinel."""
        return self.matched_sentences != [NO_EVIDENCE_SENTINEL]


@dataclass
class RubricScore:
    criterion_id: str
    score: int
    feedback: str
