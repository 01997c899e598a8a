"""
AI-written study notes for extracted subtopics.

Notes for a whole document are generated in parallel batches of
NOTES_BATCH_SIZE subtopics with NOTES_BATCH_DELAY_SECONDS between batches to
stay under Gemini's rate limits.  One failing subtopic does not abort the
others.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from app.config import settings
from app.services.gemini_client import AIStructuringError, GeminiClient

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class StudyNotes:
    """Structured notes for one subtopic."""

    title: str
    summary: str
    key_points: List[str]
    definitions: List[Dict[str, str]]
    examples: List[str]
    review_questions: List[str]

    @property
    def content_length(self) -> int:
        return len(self.summary) + sum(
            len(s) for s in self.key_points + self.examples + self.review_questions
        ) + sum(len(d["term"]) + len(d["definition"]) for d in self.definitions)


@dataclasses.dataclass
class NotesSource:
    """The part of a subtopic the notes are written from."""

    title: str
    content: str
    order: Optional[int] = None


@dataclasses.dataclass
class NotesOutcome:
    source: NotesSource
    notes: Optional[StudyNotes] = None
    error: Optional[str] = None
    batch_number: int = 1


@dataclasses.dataclass
class BatchNotesSummary:
    """Returned by generate_for_subtopics."""

    total: int
    results: List[NotesOutcome]
    processing_time_ms: int

    @property
    def succeeded(self) -> List[NotesOutcome]:
        return [r for r in self.results if r.notes is not None]

    @property
    def failed(self) -> List[NotesOutcome]:
        return [r for r in self.results if r.notes is None]


_NOTES_PROMPT = """\
You are a tutor writing concise study notes for a student.

Topic: "{title}"

Source material:
---
{content}
---

Write study notes based only on the source material. Provide:
1. summary: Two to four sentences covering the main idea
2. keyPoints: Between 3 and 8 short bullet points
3. definitions: Important terms as objects with "term" and "definition"
4. examples: Concrete examples from the material (may be empty)
5. reviewQuestions: Between 2 and 5 questions a student could answer after studying

Respond ONLY with a valid JSON object. No explanation, no markdown:
{{"summary": "...", "keyPoints": ["..."], "definitions": [{{"term": "...", "definition": "..."}}], "examples": ["..."], "reviewQuestions": ["..."]}}\
"""


class NotesGenerator:
    """Generates study notes with Gemini."""

    NOTES_PROMPT = _NOTES_PROMPT
    MAX_CONTENT_CHARS: int = 12000

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> None:
        self.client = client or GeminiClient()
        self.batch_size = batch_size or settings.NOTES_BATCH_SIZE
        self.batch_delay = settings.NOTES_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay

    @property
    def configured(self) -> bool:
        return self.client.configured

    async def generate_notes(self, title: str, content: str) -> StudyNotes:
        """
        Generate notes for a single subtopic.

        Raises:
            AIStructuringError: Gemini failed or returned something other
                than a notes object.
        """
        prompt = self.NOTES_PROMPT.format(
            title=title,
            content=content[: self.MAX_CONTENT_CHARS],
        )
        raw = await self.client.generate_json(prompt)
        if isinstance(raw, list) and len(raw) == 1:
            raw = raw[0]
        if not isinstance(raw, dict):
            raise AIStructuringError("Malformed notes response: expected a JSON object")

        notes = StudyNotes(
            title=title,
            summary=str(raw.get("summary") or "").strip(),
            key_points=_str_list(raw.get("keyPoints")),
            definitions=_definitions(raw.get("definitions")),
            examples=_str_list(raw.get("examples")),
            review_questions=_str_list(raw.get("reviewQuestions")),
        )
        if not notes.summary and not notes.key_points:
            raise AIStructuringError("Malformed notes response: no summary or key points")
        return notes

    async def generate_for_subtopics(self, sources: Sequence[NotesSource]) -> BatchNotesSummary:
        """
        Generate notes for every subtopic in parallel batches.

        Results keep the input order.  Failures are recorded on their
        ``NotesOutcome`` instead of being raised.
        """
        t0 = time.monotonic()
        results: List[NotesOutcome] = []
        total_batches = (len(sources) + self.batch_size - 1) // self.batch_size

        for start in range(0, len(sources), self.batch_size):
            batch = list(sources[start:start + self.batch_size])
            batch_number = start // self.batch_size + 1
            logger.info(
                "generate_for_subtopics: batch %d/%d (%d subtopics)",
                batch_number,
                total_batches,
                len(batch),
            )

            outcomes = await asyncio.gather(
                *(self._generate_one(source, batch_number) for source in batch)
            )
            results.extend(outcomes)

            if start + self.batch_size < len(sources) and self.batch_delay > 0:
                logger.info(
                    "generate_for_subtopics: waiting %.1f s before next batch",
                    self.batch_delay,
                )
                await asyncio.sleep(self.batch_delay)

        summary = BatchNotesSummary(
            total=len(sources),
            results=results,
            processing_time_ms=int((time.monotonic() - t0) * 1000),
        )
        logger.info(
            "generate_for_subtopics: %d/%d successful",
            len(summary.succeeded),
            summary.total,
        )
        return summary

    async def _generate_one(self, source: NotesSource, batch_number: int) -> NotesOutcome:
        try:
            notes = await self.generate_notes(source.title, source.content)
        except Exception as exc:
            logger.error("generate_for_subtopics: failed %r: %s", source.title, exc)
            return NotesOutcome(source=source, error=str(exc) or type(exc).__name__,
                                batch_number=batch_number)
        return NotesOutcome(source=source, notes=notes, batch_number=batch_number)


def notes_to_markdown(notes: StudyNotes) -> str:
    """Render structured notes as a markdown document."""
    parts: List[str] = [f"# {notes.title}"]

    if notes.summary:
        parts.append(f"## Summary\n\n{notes.summary}")
    if notes.key_points:
        parts.append("## Key Points\n\n" + "\n".join(f"- {p}" for p in notes.key_points))
    if notes.definitions:
        parts.append(
            "## Definitions\n\n"
            + "\n".join(f"- **{d['term']}**: {d['definition']}" for d in notes.definitions)
        )
    if notes.examples:
        parts.append("## Examples\n\n" + "\n".join(f"- {e}" for e in notes.examples))
    if notes.review_questions:
        parts.append(
            "## Review Questions\n\n"
            + "\n".join(f"{i}. {q}" for i, q in enumerate(notes.review_questions, start=1))
        )

    return "\n\n".join(parts) + "\n"


def _str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def _definitions(value: Any) -> List[Dict[str, str]]:
    if not isinstance(value, list):
        return []
    result: List[Dict[str, str]] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        term = str(item.get("term") or "").strip()
        definition = str(item.get("definition") or "").strip()
        if term and definition:
            result.append({"term": term, "definition": definition})
    return result
