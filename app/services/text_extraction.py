"""
Text extraction for uploaded study material.

Supports PDF (PyMuPDF), images (Tesseract OCR) and plain text.  Every result
is passed through :func:`clean_and_normalize_text` before segmentation.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from app.config import settings
from app.utils.helpers import clean_and_normalize_text, word_count

logger = logging.getLogger(__name__)


class TextExtractionError(RuntimeError):
    """The file could not be read."""


@dataclass
class ExtractedText:
    """Output of the TextExtractor."""

    text: str
    word_count: int
    page_count: Optional[int] = None
    ocr_confidence: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class TextExtractor:
    """Produces clean document text from raw upload bytes."""

    def __init__(self) -> None:
        if settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD

    async def extract(self, data: bytes, filename: str, mime_type: str) -> ExtractedText:
        """
        Extract and normalize the text of an uploaded file.

        Args:
            data:      Raw file bytes.
            filename:  Original filename, used for logging only.
            mime_type: Content type reported by the client.

        Raises:
            ValueError:          Unsupported MIME type.
            TextExtractionError: The file is corrupt or unreadable.
        """
        logger.info("Processing file: %s (%s)", filename, mime_type)

        if mime_type == "application/pdf":
            extracted = self._extract_pdf(data)
        elif mime_type.startswith("image/"):
            extracted = self._extract_image(data)
        elif mime_type == "text/plain":
            extracted = self._read_text(data)
        else:
            raise ValueError(f"Unsupported file type: {mime_type}")

        extracted.text = clean_and_normalize_text(extracted.text)
        extracted.word_count = word_count(extracted.text)

        logger.info("Text processing complete: %d words", extracted.word_count)
        return extracted

    # ------------------------------------------------------------------
    # Formats
    # ------------------------------------------------------------------

    def _extract_pdf(self, data: bytes) -> ExtractedText:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise TextExtractionError(f"Failed to extract PDF text: {exc}") from exc

        try:
            if doc.needs_pass:
                raise TextExtractionError(
                    "PDF is password-protected. Please provide an unlocked copy."
                )
            raw_meta = doc.metadata or {}
            text = "\n".join(page.get_text() for page in doc)
            page_count = doc.page_count
        finally:
            doc.close()

        logger.info("PDF extraction complete: %d pages", page_count)
        return ExtractedText(
            text=text,
            word_count=0,
            page_count=page_count,
            metadata={
                "title": raw_meta.get("title") or "Unknown",
                "author": raw_meta.get("author") or "Unknown",
                "creation_date": raw_meta.get("creationDate") or None,
            },
        )

    def _extract_image(self, data: bytes) -> ExtractedText:
        try:
            img = Image.open(io.BytesIO(data))
            ocr = pytesseract.image_to_data(img, output_type=pytesseract.Output.DICT)
        except Exception as exc:
            raise TextExtractionError(f"Failed to extract image text: {exc}") from exc

        words = [w for w in ocr.get("text", []) if w and w.strip()]
        confidences = [
            float(c) for c, w in zip(ocr.get("conf", []), ocr.get("text", []))
            if w and w.strip() and float(c) >= 0
        ]
        confidence = round(sum(confidences) / len(confidences), 1) if confidences else 0.0

        logger.info("OCR extraction complete: confidence %.1f%%", confidence)
        return ExtractedText(
            text=_join_ocr_lines(ocr) if words else "",
            word_count=0,
            ocr_confidence=confidence,
        )

    def _read_text(self, data: bytes) -> ExtractedText:
        return ExtractedText(text=data.decode("utf-8", errors="replace"), word_count=0)


def _join_ocr_lines(ocr: Dict[str, Any]) -> str:
    """Rebuild line breaks from Tesseract's block/paragraph/line numbering."""
    lines: Dict[tuple, list] = {}
    for i, word in enumerate(ocr.get("text", [])):
        if not word or not word.strip():
            continue
        key = (ocr["block_num"][i], ocr["par_num"][i], ocr["line_num"][i])
        lines.setdefault(key, []).append(word)
    return "\n".join(" ".join(words) for _key, words in lines.items())
