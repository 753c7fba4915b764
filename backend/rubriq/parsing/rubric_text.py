"""Free-form rubric import: turns pasted or uploaded rubric text into criteria."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_MAX_POINTS = 10

_UNIT = r"(?:points?|pts?|marks?)"
_HEADER_MARKERS = ("rubric", "grading criteria")

# "Category - 5 points" with an optional ": Description"
_DASH_POINTS_FORM = re.compile(rf"^([^:]+?)\s*[-–—]\s*(\d+)\s*{_UNIT}(?::\s*(.*))?$", re.IGNORECASE)
# "Category: Description" or "Category (5 points): Description"
_COLON_FORM = re.compile(rf"^(.+?)(?:\s*\((\d+)\s*{_UNIT}\))?:\s*(.*)$", re.IGNORECASE)
# "1. Category" or "AO1 - Category (5 marks)"
_NUMBERED_FORM = re.compile(r"^(?:\d+\.|[A-Z]{2,3}\d+)[\s\-:]+(.+)$")
_INLINE_POINTS = re.compile(rf"\((\d+)\s*{_UNIT}\)", re.IGNORECASE)
_NO_LETTERS = re.compile(r"^[^a-zA-Z]+$")


@dataclass
class ParsedCriterion:
    category: str
    max_points: int = DEFAULT_MAX_POINTS
    description: str | None = None


def _is_header(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in _HEADER_MARKERS)


def _parse_line(line: str) -> ParsedCriterion | None:
    match = _DASH_POINTS_FORM.match(line)
    if match:
        return ParsedCriterion(match.group(1).strip(), int(match.group(2)), (match.group(3) or "").strip() or None)

    match = _COLON_FORM.match(line)
    if match:
        points = int(match.group(2)) if match.group(2) else DEFAULT_MAX_POINTS
        return ParsedCriterion(match.group(1).strip(), points, (match.group(3) or "").strip() or None)

    match = _NUMBERED_FORM.match(line)
    if match:
        content = match.group(1).strip()
        points_match = _INLINE_POINTS.search(content)
        points = int(points_match.group(1)) if points_match else DEFAULT_MAX_POINTS
        return ParsedCriterion(_INLINE_POINTS.sub("", content, count=1).strip(), points)

    if len(line) > 3 and not _NO_LETTERS.match(line):
        return ParsedCriterion(line)
    return None


def parse_rubric_text(text: str) -> list[ParsedCriterion]:
    """Parse rubric text in any of the supported line formats.

    Header lines (mentioning "rubric" or "grading criteria") are skipped, as are
    lines too short or without letters. Unrecognised lines never raise.
    """
    criteria: list[ParsedCriterion] = []
    for raw_line in re.split(r"\n+", text):
        line = raw_line.strip()
        if not line or _is_header(line):
            continue
        parsed = _parse_line(line)
        if parsed is not None:
            criteria.append(parsed)
    return criteria
