from __future__ import annotations

import random

from rubriq.grading.heuristic import split_words
from rubriq.grading.mock_feedback import (
    IMPROVEMENT_TEMPLATES,
    STRENGTH_TEMPLATES,
    classify_tone,
    generate_mock_feedback,
    readability_score,
)


def test_mock_feedback_is_reproducible_with_a_seed(essay_text: str) -> None:
    first = generate_mock_feedback(essay_text, rng=random.Random(3))
    second = generate_mock_feedback(essay_text, rng=random.Random(3))

    assert first == second


def test_mock_feedback_sections(essay_text: str) -> None:
    feedback = generate_mock_feedback(essay_text, rng=random.Random(11))

    assert len(feedback.grammar) == 3
    assert len(feedback.strengths) == 3
    assert len(set(feedback.strengths)) == 3
    assert all(item in STRENGTH_TEMPLATES for item in feedback.strengths)
    assert len(feedback.improvements) == 3
    assert all("{" not in item for item in feedback.improvements + feedback.grammar)
    assert [s.criterion_id for s in feedback.rubric_scores] == ["AO1", "AO2", "AO3", "AO4"]
    assert 1 <= feedback.readability_score <= 10
    assert feedback.suggested_feedback.startswith("Your essay demonstrates")


def test_mock_feedback_for_empty_text_has_no_grammar_notes() -> None:
    feedback = generate_mock_feedback("", rng=random.Random(0))

    assert feedback.grammar == []
    assert feedback.readability_score == 1
    assert len(feedback.rubric_scores) == 4


def test_improvement_paragraph_numbers_stay_within_essay() -> None:
    text = "First paragraph here.\n\nSecond paragraph here."
    templates = {t.split("{")[0] for t in IMPROVEMENT_TEMPLATES}
    for seed in range(20):
        for item in generate_mock_feedback(text, rng=random.Random(seed)).improvements:
            assert any(item.startswith(prefix) for prefix in templates)
            if item.startswith("Consider developing the argument in paragraph"):
                assert item.split("paragraph ")[1].split(" ")[0] in {"1", "2"}


def test_readability_score_bounds() -> None:
    assert readability_score(split_words("Short words here."), 1) == 1
    assert readability_score(split_words("Extraordinary vocabulary demonstrates sophistication."), 1) == 10


def test_classify_tone_needs_more_than_two_formal_markers() -> None:
    assert classify_tone("Therefore, moreover, thus.") == "Academic"
    assert classify_tone("Therefore thus") == "Semi-formal"
