from __future__ import annotations

import pytest

from rubriq.grading.bands import band_descriptor, readability_description, score_to_band


@pytest.mark.parametrize(
    ("percentage", "band"),
    [(0, 1), (29, 1), (30, 2), (44, 2), (45, 3), (59, 3), (60, 4), (74, 4), (75, 5), (89, 5), (90, 6), (100, 6)],
)
def test_score_to_band_boundaries(percentage: int, band: int) -> None:
    assert score_to_band(percentage) == band


def test_score_to_band_clamps_out_of_range_input() -> None:
    assert score_to_band(-5) == 1
    assert score_to_band(150) == 6


def test_descriptors() -> None:
    assert band_descriptor(6) == "Perceptive, sophisticated"
    assert band_descriptor(1) == "Very limited"
    assert readability_description(7) == "Clear and well-structured"
    assert readability_description(0) == "Needs significant revision for clarity"
