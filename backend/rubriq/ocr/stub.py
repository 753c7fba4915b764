"""Offline OCR engine that returns canned essay text."""

from pathlib import Path

from rubriq.ocr.base import OCRProvider, OCRResult


class StubOCRProvider(OCRProvider):
    name = "stub"

    def __init__(self, text: str | None = None, confidence: float = 0.5) -> None:
        self._text = text
        self._confidence = confidence

    def transcribe(self, image_path: Path) -> OCRResult:
        text = self._text if self._text is not None else f"[stub-ocr] Scanned essay text from {image_path.name}."
        return OCRResult(text=text, confidence=self._confidence, raw={"engine": self.name, "image": image_path.name})
