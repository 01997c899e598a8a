"""
Heading detectors used by the segmentation engine.

Each detector scans raw text for a single structural signal and returns the
candidate sections it finds:

  markdown_headings: ``#``, ``##`` or ``###`` followed by a title
  numbered_sections: ``1. Title`` or ``1.1. Title`` (two levels at most)
  allcaps_headings: short upper-case lines such as ``CHAPTER 1: CELLS``
  bullet_sections: a plain line followed by a group of bullet points
  fixed_chunks: fixed-size character windows when nothing else matches

Detectors are pure functions of their input and keep no state between calls.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from app.utils.helpers import describe

# Bodies must be strictly longer than this (after trimming) to be kept.
MIN_BODY_CHARS = 20

_MARKDOWN_HEADING_RE = re.compile(r"^(#{1,3})\s+(.+)$")
_NUMBERED_HEADING_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)*)\.\s+(.+)$")
_ALLCAPS_HEADING_RE = re.compile(r"^[A-Z0-9\s\-:]+$")
_BULLET_RE = re.compile(r"^[\-\*•]\s")

_MAX_NUMBERED_DEPTH = 2
_MAX_ALLCAPS_WORDS = 5


@dataclass
class Candidate:
    """A section found by a detector, before order and confidence are assigned."""

    title: str
    description: str
    body: str


def _make_candidate(title: str, lines: List[str]) -> Candidate:
    content = "\n".join(lines)
    return Candidate(title=title, description=describe(content), body=content.strip())


def _keep_long_enough(candidates: List[Candidate], min_chars: int) -> List[Candidate]:
    return [c for c in candidates if len(c.body.strip()) > min_chars]


# ---------------------------------------------------------------------------
# Line-oriented heading detectors
# ---------------------------------------------------------------------------

def markdown_headings(text: str, min_chars: int = MIN_BODY_CHARS) -> List[Candidate]:
    """
    Split on markdown headings of depth 1 to 3.

    A heading with blank text closes the open section without opening a new
    one; lines up to the next heading are dropped.
    """
    candidates: List[Candidate] = []
    heading: Optional[str] = None
    content: List[str] = []

    for line in text.split("\n"):
        match = _MARKDOWN_HEADING_RE.match(line)
        if match:
            if heading:
                candidates.append(_make_candidate(heading, content))
            heading = match.group(2).strip()
            content = []
        elif heading:
            content.append(line)

    if heading and content:
        candidates.append(_make_candidate(heading, content))

    return _keep_long_enough(candidates, min_chars)


def numbered_sections(text: str, min_chars: int = MIN_BODY_CHARS) -> List[Candidate]:
    """
    Split on numbered outline headings.

    ``1. Title`` and ``1.2. Title`` open a section; deeper numbering such as
    ``1.2.3. Title`` is kept as body text of the enclosing section.  Blank
    headings such as ``3.`` followed by spaces are handled as in
    :func:`markdown_headings`.
    """
    candidates: List[Candidate] = []
    heading: Optional[str] = None
    content: List[str] = []

    for line in text.split("\n"):
        match = _NUMBERED_HEADING_RE.match(line)
        if match and len(match.group(1).split(".")) <= _MAX_NUMBERED_DEPTH:
            if heading:
                candidates.append(_make_candidate(heading, content))
            heading = match.group(2).strip()
            content = []
        elif heading:
            content.append(line)

    if heading and content:
        candidates.append(_make_candidate(heading, content))

    return _keep_long_enough(candidates, min_chars)


def _is_allcaps_heading(line: str) -> bool:
    return (
        len(line) > 3
        and _ALLCAPS_HEADING_RE.match(line) is not None
        and len(line.split()) <= _MAX_ALLCAPS_WORDS
    )


def allcaps_headings(text: str, min_chars: int = MIN_BODY_CHARS) -> List[Candidate]:
    """
    Split on short upper-case lines.

    Lines are trimmed before matching and blank lines are not carried into
    section bodies.  Long upper-case sentences (more than five words) are
    treated as body text.
    """
    candidates: List[Candidate] = []
    heading: Optional[str] = None
    content: List[str] = []

    for raw_line in text.split("\n"):
        line = raw_line.strip()

        if _is_allcaps_heading(line):
            if heading is not None:
                candidates.append(_make_candidate(heading, content))
            heading = line
            content = []
        elif heading is not None and line:
            content.append(line)

    if heading is not None and content:
        candidates.append(_make_candidate(heading, content))

    return _keep_long_enough(candidates, min_chars)


def bullet_sections(text: str, min_chars: int = MIN_BODY_CHARS) -> List[Candidate]:
    """
    Group bullet lists under the plain line that precedes them.

    A non-indented, non-bullet line opens a section when none is open; bullet
    lines are collected into it, and a blank line after at least one bullet
    closes it.  Any non-bullet line introducing a list counts as a title,
    including ordinary prose.
    """
    candidates: List[Candidate] = []
    heading: Optional[str] = None
    content: List[str] = []

    for line in text.split("\n"):
        trimmed = line.strip()
        is_bullet = _BULLET_RE.match(trimmed) is not None

        if trimmed and not is_bullet and heading is None and not line.startswith(" "):
            heading = trimmed
            content = []
        elif heading is not None and is_bullet:
            content.append(trimmed)
        elif heading is not None and not trimmed and content:
            candidates.append(_make_candidate(heading, content))
            heading = None
            content = []

    if heading is not None and content:
        candidates.append(_make_candidate(heading, content))

    return _keep_long_enough(candidates, min_chars)


# ---------------------------------------------------------------------------
# Terminal fallback
# ---------------------------------------------------------------------------

def fixed_chunks(text: str, chunk_chars: int = 500) -> List[Candidate]:
    """
    Split text into consecutive ``chunk_chars``-character windows.

    The title is the first 50 characters of the window's trimmed first line,
    or ``Section N`` (N counting emitted chunks from 1) when that line is
    blank.  Windows holding only whitespace are skipped; no other length
    filter applies.
    """
    candidates: List[Candidate] = []

    for start in range(0, len(text), chunk_chars):
        chunk = text[start:start + chunk_chars]
        body = chunk.strip()
        if not body:
            continue

        title = chunk.split("\n")[0].strip()[:50] or f"Section {len(candidates) + 1}"
        candidates.append(Candidate(title=title, description=describe(chunk), body=body))

    return candidates
