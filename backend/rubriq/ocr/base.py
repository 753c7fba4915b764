"""Interfaces shared by the scanned-essay OCR engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

# Mean word confidence below which a transcription is flagged for teacher review.
LOW_CONFIDENCE_THRESHOLD = 0.6


@dataclass
class OCRResult:
    text: str
    confidence: float
    raw: dict = field(default_factory=dict)

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())

    @property
    def low_confidence(self) -> bool:
        return self.confidence < LOW_CONFIDENCE_THRESHOLD


class OCRProvider(Protocol):
    """Turns a photographed or scanned essay page into plain text."""

    name: str

    def transcribe(self, image_path: Path) -> OCRResult:
        ...
