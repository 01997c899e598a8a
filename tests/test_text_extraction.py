"""Tests for TextExtractor (plain text, PDF, OCR)."""
import io

import fitz
import pytest
from PIL import Image

from app.services.text_extraction import TextExtractionError, TextExtractor


def _make_pdf(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _make_png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (20, 20), "white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.mark.asyncio
async def test_plain_text_is_cleaned():
    raw = "# Intro  \r\n\n\n\nHello   world\n".encode("utf-8")
    result = await TextExtractor().extract(raw, "notes.txt", "text/plain")

    assert result.text == "# Intro\nHello world"
    assert result.word_count == 4
    assert result.page_count is None


@pytest.mark.asyncio
async def test_invalid_utf8_is_replaced():
    result = await TextExtractor().extract(b"caf\xff notes", "notes.txt", "text/plain")
    assert result.text.endswith("notes")


@pytest.mark.asyncio
async def test_unsupported_type_raises_value_error():
    with pytest.raises(ValueError, match="Unsupported file type"):
        await TextExtractor().extract(b"PK..", "notes.docx", "application/zip")


@pytest.mark.asyncio
async def test_pdf_pages_are_joined():
    data = _make_pdf("CHAPTER ONE", "CHAPTER TWO")
    result = await TextExtractor().extract(data, "book.pdf", "application/pdf")

    assert result.page_count == 2
    assert "CHAPTER ONE" in result.text
    assert "CHAPTER TWO" in result.text
    assert set(result.metadata) == {"title", "author", "creation_date"}


@pytest.mark.asyncio
async def test_corrupt_pdf_raises():
    with pytest.raises(TextExtractionError):
        await TextExtractor().extract(b"not a pdf", "broken.pdf", "application/pdf")


@pytest.mark.asyncio
async def test_image_ocr(monkeypatch):
    ocr = {
        "text": ["Cell", "biology", "", "Mitosis"],
        "conf": ["90", "80", "-1", "70"],
        "block_num": [1, 1, 1, 1],
        "par_num": [1, 1, 1, 1],
        "line_num": [1, 1, 1, 2],
    }
    monkeypatch.setattr(
        "app.services.text_extraction.pytesseract.image_to_data",
        lambda img, output_type=None: ocr,
    )
    result = await TextExtractor().extract(_make_png(), "scan.png", "image/png")

    assert result.text == "Cell biology\nMitosis"
    assert result.ocr_confidence == 80.0
    assert result.word_count == 3
