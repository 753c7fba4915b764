"""OCR provider factory/dispatcher."""

from rubriq.ocr.base import OCRProvider
from rubriq.ocr.stub import StubOCRProvider
from rubriq.ocr.tesseract_provider import TesseractProvider


def get_ocr_provider(name: str) -> OCRProvider:
    provider = name.lower()
    if provider == "stub":
        return StubOCRProvider()
    if provider == "tesseract":
        return TesseractProvider()
    raise ValueError(f"Unknown OCR provider '{name}'. Use one of: stub, tesseract")
