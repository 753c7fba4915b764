"""Keyword-overlap matcher linking essay sentences to rubric criteria."""

from __future__ import annotations

import re

from rubriq.grading.base import NO_EVIDENCE_SENTINEL, RubricCriterion, RubricMatch

_SENTENCE_DELIMITERS = re.compile(r"[.!?]")
_MIN_KEYWORD_LENGTH = 4


def parse_rubric(text: str) -> list[RubricCriterion]:
    """Parse ``"<id>: <description>"`` lines, dropping anything else."""
    criteria: list[RubricCriterion] = []
    for line in text.split("\n"):
        crit_id, sep, desc = line.partition(":")
        crit_id = crit_id.strip()
        desc = desc.strip()
        if not sep or not crit_id or not desc:
            continue
        criteria.append(RubricCriterion(id=crit_id, name=crit_id, description=desc))
    return criteria


def split_sentences(essay: str) -> list[str]:
    return [piece.strip() for piece in _SENTENCE_DELIMITERS.split(essay) if piece.strip()]


def extract_keywords(description: str) -> list[str]:
    return [tok for tok in description.lower().split() if len(tok) >= _MIN_KEYWORD_LENGTH]


def match_score(matched_count: int) -> int:
    return min(10, max(1, matched_count * 3))


def match_sentences_to_rubric(essay: str, rubric: list[RubricCriterion]) -> list[RubricMatch]:
    sentences = split_sentences(essay)
    lowered = [sentence.lower() for sentence in sentences]

    matches: list[RubricMatch] = []
    for crit in rubric:
        keywords = extract_keywords(crit.description)
        matched = [
            sentence
            for sentence, lower in zip(sentences, lowered)
            if any(keyword in lower for keyword in keywords)
        ]
        # The sentinel counts as one entry, so "no evidence" scores like a single hit.
        matched_sentences = matched or [NO_EVIDENCE_SENTINEL]
        matches.append(
            RubricMatch(
                criterion_id=crit.id,
                name=crit.name,
                description=crit.description,
                matched_sentences=matched_sentences,
                score=match_score(len(matched_sentences)),
            )
        )
    return matches
