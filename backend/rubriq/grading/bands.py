"""GCSE band conversion and readability descriptors."""

from __future__ import annotations

# Lower bound (inclusive) of each band's percentage range, highest first.
BAND_THRESHOLDS: list[tuple[int, int]] = [(90, 6), (75, 5), (60, 4), (45, 3), (30, 2), (0, 1)]

BAND_DESCRIPTORS: dict[int, str] = {
    6: "Perceptive, sophisticated",
    5: "Clear, effective",
    4: "Explained, developed",
    3: "Attempted, simple",
    2: "Limited, unclear",
    1: "Very limited",
}

READABILITY_DESCRIPTIONS: dict[int, str] = {
    1: "Needs significant revision for clarity",
    2: "Challenging to follow the main ideas",
    3: "Basic ideas present but unclear",
    4: "Generally understandable but needs work",
    5: "Average clarity and readability",
    6: "Above average clarity",
    7: "Clear and well-structured",
    8: "Very clear and engaging",
    9: "Excellent clarity and flow",
    10: "Exceptional clarity and sophistication",
}


def score_to_band(percentage: float) -> int:
    """Map a 0-100 percentage onto GCSE band 1-6."""
    value = min(100.0, max(0.0, float(percentage)))
    for lower, band in BAND_THRESHOLDS:
        if value >= lower:
            return band
    return 1


def band_descriptor(band: int) -> str:
    return BAND_DESCRIPTORS[min(6, max(1, band))]


def readability_description(score: int) -> str:
    return READABILITY_DESCRIPTIONS[min(10, max(1, score))]
