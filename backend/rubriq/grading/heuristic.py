"""Lexical-statistics scorer for the four GCSE assessment objectives.

Used as the offline scoring path when the AI service is unavailable. Scores
are deterministic for a given essay; only the feedback sentence is drawn at
random, from an injectable ``random.Random``-compatible source.
"""

from __future__ import annotations

import math
import random
import re

from rubriq.grading.base import RubricCriterion, RubricScore

GCSE_ENGLISH_RUBRIC: list[RubricCriterion] = [
    RubricCriterion(id="AO1", name="Understanding", description="Demonstrates understanding of ideas and perspectives."),
    RubricCriterion(id="AO2", name="Analysis", description="Analyses how writers use language and structure."),
    RubricCriterion(id="AO3", name="Comparison", description="Compares writers' ideas and perspectives."),
    RubricCriterion(id="AO4", name="Technical Accuracy", description="Uses accurate spelling, punctuation, and grammar."),
]

FEEDBACK_TEMPLATES: dict[str, dict[str, list[str]]] = {
    "AO1": {
        "high": [
            "Shows sophisticated understanding of the text's themes and perspectives.",
            "Demonstrates excellent grasp of complex ideas and nuanced viewpoints.",
            "Thoroughly explores the deeper meanings and implications.",
        ],
        "medium": [
            "Shows good understanding of main ideas and perspectives.",
            "Demonstrates clear comprehension of key themes.",
            "Generally accurate interpretation of the text.",
        ],
        "low": [
            "Basic understanding of main ideas.",
            "Some misinterpretation of key concepts.",
            "Limited exploration of themes and perspectives.",
        ],
    },
    "AO2": {
        "high": [
            "Sophisticated analysis of language and structural features.",
            "Detailed examination of writing techniques and their effects.",
            "Perceptive understanding of how meaning is crafted.",
        ],
        "medium": [
            "Clear analysis of key language features.",
            "Some exploration of structural elements.",
            "Generally effective discussion of writing techniques.",
        ],
        "low": [
            "Simple comments on obvious language features.",
            "Limited analysis of structure.",
            "Basic understanding of writing techniques.",
        ],
    },
    "AO3": {
        "high": [
            "Insightful comparison of ideas and perspectives.",
            "Sophisticated linking of themes across texts.",
            "Detailed exploration of similarities and differences.",
        ],
        "medium": [
            "Clear comparison of main ideas.",
            "Some effective linking of themes.",
            "Generally valid connections made.",
        ],
        "low": [
            "Basic comparisons made.",
            "Limited linking of ideas.",
            "Superficial connections between texts.",
        ],
    },
    "AO4": {
        "high": [
            "Consistently accurate spelling throughout.",
            "Sophisticated range of punctuation used effectively.",
            "Complex grammatical structures handled with confidence.",
        ],
        "medium": [
            "Generally accurate spelling with few errors.",
            "Some variety in punctuation usage.",
            "Mostly correct grammar with occasional mistakes.",
        ],
        "low": [
            "Frequent spelling errors affect clarity.",
            "Basic punctuation with some errors.",
            "Limited control of grammar and sentence structure.",
        ],
    },
}

ANALYTICAL_MARKERS = re.compile(
    r"therefore|because|consequently|suggests|implies|shows|demonstrates|reveals|indicates",
    re.IGNORECASE,
)
COMPARATIVE_MARKERS = re.compile(
    r"however|whereas|similarly|unlike|like|contrast|compare|both|while",
    re.IGNORECASE,
)

_WORD_SPLIT = re.compile(r"\s+")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_BREAK = "\n\n"
_IDEAL_SENTENCE_LENGTH = 15


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return min(10, max(1, round_half_up(value)))


def split_words(text: str) -> list[str]:
    # An empty text still yields one (empty) token.
    return _WORD_SPLIT.split(text)


def split_sentences(text: str) -> list[str]:
    return [piece for piece in _SENTENCE_SPLIT.split(text) if piece]


def split_paragraphs(text: str) -> list[str]:
    return [piece for piece in text.split(_PARAGRAPH_BREAK) if piece]


def average_sentence_length(word_count: int, sentence_count: int) -> float:
    if sentence_count == 0:
        return 0.0
    return word_count / sentence_count


def score_level(score: int) -> str:
    if score >= 7:
        return "high"
    if score >= 4:
        return "medium"
    return "low"


def pick_feedback(criterion_id: str, score: int, rng: random.Random) -> str:
    templates = FEEDBACK_TEMPLATES[criterion_id][score_level(score)]
    return rng.choice(templates)


def compute_axis_scores(text: str) -> dict[str, int]:
    """Return the AO1..AO4 scores, in order, without feedback."""
    words = split_words(text)
    sentences = split_sentences(text)
    paragraphs = split_paragraphs(text)

    analytical = len(ANALYTICAL_MARKERS.findall(text))
    comparative = len(COMPARATIVE_MARKERS.findall(text))
    avg_length = average_sentence_length(len(words), len(sentences))

    return {
        "AO1": clamp_score(len(paragraphs) * 2 + len(words) / 100),
        "AO2": clamp_score(analytical * 1.5),
        "AO3": clamp_score(comparative * 1.5),
        "AO4": clamp_score(10 - abs(avg_length - _IDEAL_SENTENCE_LENGTH) / 2),
    }


def generate_rubric_scores(text: str, rng: random.Random | None = None) -> list[RubricScore]:
    rng = rng or random.Random()
    return [
        RubricScore(criterion_id=crit_id, score=score, feedback=pick_feedback(crit_id, score, rng))
        for crit_id, score in compute_axis_scores(text).items()
    ]
