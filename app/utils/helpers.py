"""
Common text utility functions shared by the segmentation and extraction services.
"""
from typing import Any
import math
import re


_FIRST_SENTENCE_RE = re.compile(r"^[^.!?]*[.!?]")


def describe(body: str, max_length: int = 150) -> str:
    """
    Synthesize a short description for a block of text.

    Returns the first complete sentence (cut to ``max_length`` characters),
    or the first ``max_length`` characters followed by ``...`` when the text
    has no sentence terminator.

    Args:
        body: Text of a subtopic
        max_length: Maximum description length before the ellipsis

    Returns:
        Description string; empty for empty input
    """
    if not body:
        return ""

    trimmed = body.strip()

    match = _FIRST_SENTENCE_RE.match(trimmed)
    if match:
        return match.group(0)[:max_length]

    return trimmed[:max_length] + ("..." if len(trimmed) > max_length else "")


def word_count(text: str) -> int:
    """
    Count words using whitespace tokenization.

    Args:
        text: Input text

    Returns:
        Number of whitespace-separated tokens
    """
    if not text:
        return 0
    return len(text.split())


def validate_subtopic(title: str, body: str, min_chars: int = 20) -> bool:
    """
    Check that a subtopic has a usable title and enough body text.

    Args:
        title: Subtopic title
        body: Subtopic body text
        min_chars: Bodies must be strictly longer than this after trimming

    Returns:
        True if the subtopic should be kept
    """
    return bool(
        title
        and title.strip()
        and body
        and len(body.strip()) > min_chars
    )


def clean_and_normalize_text(text: str) -> str:
    """
    Clean text produced by PDF parsing or OCR.

    Collapses runs of blank lines and spaces, replaces tabs and carriage
    returns, trims every line, drops empty lines and normalizes curly quotes.

    Args:
        text: Raw extracted text

    Returns:
        Normalized text
    """
    if not text:
        return ""

    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ ]{2,}", " ", text)
    text = re.sub(r"[\t\r]", " ", text)

    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(line for line in lines if line)

    text = re.sub(r"[“”]", '"', text)
    text = re.sub(r"[‘’]", "'", text)
    return text.strip()


def clamp(value: Any, lo: float = 0.0, hi: float = 1.0) -> float:
    """Parse *value* as float, clamped to [lo, hi]; returns midpoint on error."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return (lo + hi) / 2.0
    if number != number:  # NaN
        return (lo + hi) / 2.0
    return max(lo, min(hi, number))


def scale_confidence(confidence: Any) -> int:
    """
    Convert a 0-1 confidence into the 0-100 integer scale used in responses.

    Out-of-range values are clamped before scaling.

    Args:
        confidence: Confidence as produced by a detector or the AI service

    Returns:
        Integer percentage in [0, 100]
    """
    # half-up rounding, 0.125 -> 13
    return int(math.floor(clamp(confidence) * 100 + 0.5))


def preview(text: str, length: int = 80) -> str:
    """Short preview used by the comparison report."""
    return (text or "")[:length] + "..."
