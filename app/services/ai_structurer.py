"""
Gemini-based document structure extraction.

Public API
----------
GeminiStructureService.extract_structure(text) -> List[AISubtopic]

The service is the AI collaborator of the extraction arbitrator.  It either
returns at least one valid subtopic or raises; it never returns a partial
"empty" success.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, List, Optional

from app.config import settings
from app.services.gemini_client import AIStructuringError, GeminiClient
from app.utils.helpers import clamp, describe, validate_subtopic

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class AISubtopic:
    """One subtopic as reported by the AI service (confidence in 0-1)."""

    order: int
    title: str
    description: str
    extracted_text: str
    confidence: float
    hierarchy_level: Optional[int] = None


_STRUCTURE_PROMPT = """\
You are an expert at organising study material.

Split the following document into its main subtopics, in reading order.
For each subtopic provide:
1. title: A short title (at most 10 words)
2. description: One sentence summarising the subtopic
3. extractedText: The full text of the document that belongs to this subtopic, copied verbatim
4. order: Zero-based position of the subtopic in the document
5. confidence: How clearly the document marks this subtopic as distinct (0.0 to 1.0)
6. hierarchyLevel: 1 for a main topic, 2 for a subsection

Cover the whole document. Do not invent content that is not in the text.

Document:
---
{document_text}
---

Respond ONLY with a valid JSON array. No explanation, no markdown:
[{{"title": "...", "description": "...", "extractedText": "...", "order": 0, "confidence": 0.9, "hierarchyLevel": 1}}]\
"""


class GeminiStructureService:
    """Extracts document structure with Gemini."""

    STRUCTURE_PROMPT = _STRUCTURE_PROMPT

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        max_input_chars: Optional[int] = None,
    ) -> None:
        self.client = client or GeminiClient()
        self.max_input_chars = max_input_chars or settings.AI_INPUT_MAX_CHARS

    @property
    def configured(self) -> bool:
        return self.client.configured

    async def extract_structure(self, text: str) -> List[AISubtopic]:
        """
        Ask Gemini to split *text* into subtopics.

        Returns:
            Valid subtopics sorted by the order Gemini reported and
            renumbered from 0.

        Raises:
            AIStructuringError: the call failed, the payload is not a list,
                or no item passed validation.
        """
        prompt = self.STRUCTURE_PROMPT.format(document_text=text[: self.max_input_chars])
        raw = await self.client.generate_json(prompt)

        if isinstance(raw, dict):
            # {"subtopics": [...]} is a common variation
            raw = raw.get("subtopics", raw.get("sections"))
        if not isinstance(raw, list):
            raise AIStructuringError(
                f"Malformed Gemini response: expected a list, got {type(raw).__name__}"
            )

        items = [self._parse_item(item, position) for position, item in enumerate(raw)]
        valid = [item for item in items if item is not None]
        if not valid:
            raise AIStructuringError("Malformed Gemini response: no valid subtopics")

        dropped = len(raw) - len(valid)
        if dropped:
            logger.warning("extract_structure: dropped %d invalid item(s)", dropped)

        valid.sort(key=lambda pair: pair[0])
        subtopics = [
            dataclasses.replace(subtopic, order=order)
            for order, (_reported, subtopic) in enumerate(valid)
        ]
        logger.info("extract_structure: %d subtopics from Gemini", len(subtopics))
        return subtopics

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_item(item: Any, position: int) -> Optional[tuple]:
        """Return ``(reported_order, AISubtopic)`` or None for an invalid item."""
        if not isinstance(item, dict):
            return None

        title = str(item.get("title") or "").strip()
        body = str(item.get("extractedText") or item.get("extracted_text") or "").strip()
        if not validate_subtopic(title, body, settings.MIN_SUBTOPIC_CHARS):
            return None

        description = str(item.get("description") or "").strip() or describe(body)

        reported = item.get("order", position)
        if not isinstance(reported, (int, float)) or isinstance(reported, bool):
            reported = position

        return (
            reported,
            AISubtopic(
                order=position,
                title=title[:255],
                description=description,
                extracted_text=body,
                confidence=clamp(item.get("confidence", 0.5)),
                hierarchy_level=_as_level(item.get("hierarchyLevel")),
            ),
        )


def _as_level(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None

