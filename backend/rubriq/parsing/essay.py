"""Essay and rubric file ingestion plus essay validation."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path

from rubriq.ocr.base import OCRProvider
from rubriq.storage import remove_file, save_upload_bytes

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".txt", ".docx", ".pdf"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tif", ".tiff"}


@dataclass
class UnsupportedFileTypeError(Exception):
    extension: str

    def __str__(self) -> str:
        shown = self.extension or "(none)"
        return f"Unsupported file type: {shown}. Please upload .txt, .docx or .pdf files, or an image for OCR scanning."


@dataclass
class EssayParseError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class EssayValidation:
    valid: bool
    word_count: int
    error: str | None = None


def count_words(text: str) -> int:
    return len(text.split())


def validate_essay(text: str, min_words: int = 10, max_words: int = 10_000) -> EssayValidation:
    trimmed = text.strip()
    word_count = count_words(trimmed)
    if not trimmed:
        return EssayValidation(valid=False, word_count=0, error="Essay is empty")
    if word_count < min_words:
        return EssayValidation(valid=False, word_count=word_count, error=f"Essay is too short (minimum {min_words} words)")
    if word_count > max_words:
        return EssayValidation(valid=False, word_count=word_count, error=f"Essay is too long (maximum {max_words:,} words)")
    return EssayValidation(valid=True, word_count=word_count)


def _extract_docx(data: bytes) -> str:
    try:
        import docx2txt  # type: ignore
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError("docx2txt is not installed. Install docx2txt for .docx support.") from exc
    try:
        return docx2txt.process(io.BytesIO(data)) or ""
    except Exception as exc:  # noqa: BLE001
        raise EssayParseError("Failed to read .docx file. The file may be corrupted.") from exc


def _extract_pdf(data: bytes) -> str:
    try:
        import pdfplumber  # type: ignore
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError("pdfplumber is not installed. Install pdfplumber for PDF support.") from exc
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:  # noqa: BLE001
        raise EssayParseError("Failed to parse PDF file. The file may be corrupted or encrypted.") from exc
    return "\n".join(pages).strip()


def _extract_image(data: bytes, suffix: str, ocr_provider: OCRProvider) -> str:
    image_path = save_upload_bytes(data, suffix or ".png")
    try:
        result = ocr_provider.transcribe(image_path)
    except OSError as exc:
        # Pillow's UnidentifiedImageError and pytesseract's TesseractNotFoundError are both OSErrors.
        logger.warning("essay ocr failed", extra={"stage": "ocr", "provider": ocr_provider.name, "error": str(exc)})
        raise EssayParseError("Could not read the uploaded image. Upload a PNG or JPEG photo or scan.") from exc
    finally:
        remove_file(image_path)
    if not result.has_text:
        raise EssayParseError("No readable text was found in the image. Try a clearer photo or scan.")
    if result.low_confidence:
        logger.warning(
            "essay ocr low confidence",
            extra={"stage": "ocr", "provider": ocr_provider.name, "confidence": result.confidence},
        )
    else:
        logger.info(
            "essay ocr complete",
            extra={"stage": "ocr", "provider": ocr_provider.name, "confidence": result.confidence},
        )
    return result.text


def is_image(filename: str, content_type: str | None) -> bool:
    if content_type and content_type.lower().startswith("image/"):
        return True
    return Path(filename).suffix.lower() in IMAGE_EXTENSIONS


def extract_text(filename: str, data: bytes, content_type: str | None = None, ocr_provider: OCRProvider | None = None) -> str:
    """Return the plain text of an uploaded essay or rubric file."""
    suffix = Path(filename).suffix.lower()

    if is_image(filename, content_type):
        if ocr_provider is None:
            raise UnsupportedFileTypeError(suffix)
        return _extract_image(data, suffix, ocr_provider)

    if suffix == ".txt":
        return data.decode("utf-8", errors="replace")
    if suffix == ".docx":
        return _extract_docx(data)
    if suffix == ".pdf":
        return _extract_pdf(data)
    raise UnsupportedFileTypeError(suffix)
