"""Tesseract OCR provider for photographed or scanned essays."""

from pathlib import Path

from PIL import Image, ImageOps

from rubriq.ocr.base import OCRProvider, OCRResult


class TesseractProvider(OCRProvider):
    name = "tesseract"

    def __init__(self, lang: str = "eng") -> None:
        try:
            import pytesseract  # type: ignore
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(
                "pytesseract is not installed. Install pytesseract and the tesseract binary for OCR support."
            ) from exc
        self._engine = pytesseract
        self._lang = lang

    def transcribe(self, image_path: Path) -> OCRResult:
        with Image.open(image_path) as source:
            image = ImageOps.exif_transpose(source).convert("RGB")
            data = self._engine.image_to_data(image, lang=self._lang, output_type=self._engine.Output.DICT)
            text = self._engine.image_to_string(image, lang=self._lang)

        confidences = [float(conf) for conf in data.get("conf", []) if float(conf) >= 0]
        confidence = sum(confidences) / len(confidences) / 100 if confidences else 0.0
        return OCRResult(text=text.strip(), confidence=confidence, raw={"engine": self.name, "lang": self._lang, "words": len(confidences)})
