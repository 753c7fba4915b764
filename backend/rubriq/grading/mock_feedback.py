"""Offline feedback generator used when the AI service cannot be reached."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field

from rubriq.grading.base import RubricScore
from rubriq.grading.heuristic import (
    average_sentence_length,
    clamp_score,
    generate_rubric_scores,
    split_sentences,
    split_words,
)

GRAMMAR_TEMPLATES: dict[str, list[str]] = {
    "sentence_structure": [
        'Consider revising the complex sentence in paragraph {n}: "{excerpt}"',
        'The sentence "{excerpt}" could be split into two for better clarity',
        'Review the word order in: "{excerpt}"',
    ],
    "punctuation": [
        'Add a comma after the introductory phrase in: "{excerpt}"',
        'Consider using a semicolon instead of a comma in: "{excerpt}"',
        'Check the placement of quotation marks in: "{excerpt}"',
    ],
    "word_choice": [
        'The word "{word}" might be replaced with a more precise term',
        'Consider a more academic alternative to "{word}"',
        '"{word}" is informal; consider a more suitable synonym',
    ],
}

STRENGTH_TEMPLATES: list[str] = [
    "Strong thesis statement that clearly outlines the main argument",
    "Effective use of evidence to support key points",
    "Clear logical progression of ideas throughout the essay",
    "Sophisticated vocabulary choices enhance the academic tone",
    "Well-structured paragraphs with clear topic sentences",
    "Excellent integration of source material",
    "Compelling introduction that engages the reader",
    "Strong concluding paragraph that synthesizes main points",
    "Effective use of transitions between paragraphs",
    "Demonstrates deep understanding of the subject matter",
]

IMPROVEMENT_TEMPLATES: list[str] = [
    "Consider developing the argument in paragraph {n} with more specific examples",
    "The transition between paragraphs {n} and {n_next} could be stronger",
    "The conclusion could more explicitly connect to the thesis",
    "Some secondary points could be better connected to the main argument",
    "Consider addressing potential counter-arguments",
    "More critical analysis of evidence would strengthen the argument",
    "Some claims would benefit from additional supporting evidence",
    "The introduction could better preview the essay's structure",
    "Consider varying sentence structure for better flow",
    "Key terms could be defined more precisely",
]

FORMALITY_MARKERS = re.compile(r"therefore|moreover|consequently|furthermore|thus", re.IGNORECASE)

_LONG_WORD_LENGTH = 6
_PICKS_PER_SECTION = 3


@dataclass
class MockFeedback:
    grammar: list[str]
    strengths: list[str]
    improvements: list[str]
    suggested_feedback: str
    readability_score: int
    tone: str
    rubric_scores: list[RubricScore] = field(default_factory=list)


def readability_score(words: list[str], sentence_count: int) -> int:
    avg_words = average_sentence_length(len(words), sentence_count)
    long_words = sum(1 for word in words if len(word) > _LONG_WORD_LENGTH)
    long_ratio = long_words / len(words) if words else 0.0
    return clamp_score(avg_words * 0.3 + long_ratio * 10)


def classify_tone(text: str) -> str:
    return "Academic" if len(FORMALITY_MARKERS.findall(text)) > 2 else "Semi-formal"


def _grammar_notes(sentences: list[str], words: list[str], paragraph_count: int, rng: random.Random) -> list[str]:
    if not sentences:
        return []
    excerpt = rng.choice(sentences).strip()
    word = rng.choice(words)
    return [
        GRAMMAR_TEMPLATES["sentence_structure"][0].format(n=rng.randint(1, max(1, paragraph_count)), excerpt=excerpt),
        GRAMMAR_TEMPLATES["punctuation"][1].format(excerpt=excerpt),
        GRAMMAR_TEMPLATES["word_choice"][0].format(word=word),
    ]


def _fill_paragraph(template: str, paragraph_count: int, rng: random.Random) -> str:
    n = rng.randint(1, max(1, paragraph_count))
    return template.format(n=n, n_next=n + 1)


def _suggested_feedback(score: int, tone: str, strength: str, improvement: str) -> str:
    command = "excellent" if score >= 7 else "good" if score >= 5 else "fair"
    fit = "suits the context well" if tone == "Academic" else "could be more formal for academic writing"
    variety = (
        "Consider varying your sentence structure and vocabulary to enhance readability."
        if score < 7
        else "Your varied sentence structure and vocabulary choices effectively maintain reader engagement."
    )
    potential = "strong potential" if score >= 8 else "promise"
    return (
        f"Your essay demonstrates {command} command of written expression. "
        f"The writing style is predominantly {tone.lower()}, which {fit}.\n\n"
        f"{strength}. However, {improvement[0].lower() + improvement[1:]}.\n\n"
        "Focus on maintaining consistent paragraph structure and strengthening transitions between ideas. "
        f"{variety}\n\n"
        f"Overall, your work shows {potential} and with the suggested revisions, it will be even more impactful."
    )


def generate_mock_feedback(text: str, rng: random.Random | None = None) -> MockFeedback:
    rng = rng or random.Random()
    words = split_words(text)
    sentences = split_sentences(text)
    paragraph_count = len(text.split("\n\n"))

    score = readability_score(words, len(sentences))
    tone = classify_tone(text)

    strengths = rng.sample(STRENGTH_TEMPLATES, _PICKS_PER_SECTION)
    improvements = [
        _fill_paragraph(template, paragraph_count, rng)
        for template in rng.sample(IMPROVEMENT_TEMPLATES, _PICKS_PER_SECTION)
    ]
    summary_strength = rng.choice(STRENGTH_TEMPLATES)
    summary_improvement = _fill_paragraph(rng.choice(IMPROVEMENT_TEMPLATES), paragraph_count, rng)

    return MockFeedback(
        grammar=_grammar_notes(sentences, words, paragraph_count, rng),
        strengths=strengths,
        improvements=improvements,
        suggested_feedback=_suggested_feedback(score, tone, summary_strength, summary_improvement),
        readability_score=score,
        tone=tone,
        rubric_scores=generate_rubric_scores(text, rng),
    )
