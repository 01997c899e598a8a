"""
Subtopic segmentation engine.

Detection strategies (in priority order):
  1. markdown-headings  (confidence 0.95)
  2. numbered-sections  (confidence 0.90)
  3. allcaps-headings   (confidence 0.85)
  4. bullet-sections    (confidence 0.70)
  5. chunk-fallback     (confidence 0.50)

Strategies are evaluated lazily and the first one producing at least one
section wins; lower-priority strategies are never run.  A document is assumed
to use one heading style throughout, so results from different strategies are
never mixed within a run.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from app.config import settings
from app.services import heading_detectors
from app.services.heading_detectors import Candidate
from app.utils.helpers import word_count

logger = logging.getLogger(__name__)


class DetectionMethod(str, enum.Enum):
    """Tag identifying which strategy produced a subtopic."""

    MARKDOWN_HEADINGS = "markdown-headings"
    NUMBERED_SECTIONS = "numbered-sections"
    ALLCAPS_HEADINGS = "allcaps-headings"
    BULLET_SECTIONS = "bullet-sections"
    CHUNK_FALLBACK = "chunk-fallback"
    GEMINI_AI = "gemini-ai"


# Fixed trust level of each heuristic strategy.
CONFIDENCE_BY_METHOD: Dict[DetectionMethod, float] = {
    DetectionMethod.MARKDOWN_HEADINGS: 0.95,
    DetectionMethod.NUMBERED_SECTIONS: 0.90,
    DetectionMethod.ALLCAPS_HEADINGS: 0.85,
    DetectionMethod.BULLET_SECTIONS: 0.70,
    DetectionMethod.CHUNK_FALLBACK: 0.50,
}


class SegmentationError(RuntimeError):
    """Raised when a detector fails unexpectedly.  Indicates a bug, not bad input."""


@dataclasses.dataclass(frozen=True)
class Subtopic:
    """A titled, ordered segment of a document."""

    order: int
    title: str
    description: str
    extracted_text: str
    word_count: int
    detection_method: DetectionMethod
    confidence: float


Detector = Callable[[str], List[Candidate]]


class SegmentationEngine:
    """
    Converts raw document text into an ordered list of subtopics.

    The engine holds only configuration; every call to :meth:`segment` is an
    independent computation over its argument, so one instance can be shared
    across concurrent requests.
    """

    def __init__(
        self,
        min_body_chars: Optional[int] = None,
        chunk_chars: Optional[int] = None,
    ) -> None:
        self.min_body_chars = (
            settings.MIN_SUBTOPIC_CHARS if min_body_chars is None else min_body_chars
        )
        self.chunk_chars = chunk_chars or settings.FALLBACK_CHUNK_CHARS

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def strategies(self) -> Sequence[Tuple[DetectionMethod, Detector]]:
        """Return the detection strategies in priority order."""
        min_chars = self.min_body_chars
        return (
            (DetectionMethod.MARKDOWN_HEADINGS,
             lambda text: heading_detectors.markdown_headings(text, min_chars)),
            (DetectionMethod.NUMBERED_SECTIONS,
             lambda text: heading_detectors.numbered_sections(text, min_chars)),
            (DetectionMethod.ALLCAPS_HEADINGS,
             lambda text: heading_detectors.allcaps_headings(text, min_chars)),
            (DetectionMethod.BULLET_SECTIONS,
             lambda text: heading_detectors.bullet_sections(text, min_chars)),
            (DetectionMethod.CHUNK_FALLBACK,
             lambda text: heading_detectors.fixed_chunks(text, self.chunk_chars)),
        )

    def segment(self, text: str) -> List[Subtopic]:
        """
        Segment *text* into subtopics.

        Args:
            text: Extracted document text.  Empty or whitespace-only input
                  yields an empty list.

        Returns:
            Subtopics from the first strategy that found anything, with
            ``order`` assigned from 0 and the strategy's fixed confidence.

        Raises:
            SegmentationError: a detector raised unexpectedly.
        """
        if not text or not text.strip():
            return []

        for method, detector in self.strategies():
            try:
                candidates = detector(text)
            except Exception as exc:
                logger.error("segment: %s detector failed: %s", method.value, exc, exc_info=True)
                raise SegmentationError(
                    f"Failed to detect subtopics ({method.value}): {exc}"
                ) from exc

            if candidates:
                logger.info(
                    "segment: %d subtopic(s) via %s", len(candidates), method.value
                )
                return self._to_subtopics(candidates, method)

        return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_subtopics(
        candidates: List[Candidate],
        method: DetectionMethod,
    ) -> List[Subtopic]:
        confidence = CONFIDENCE_BY_METHOD[method]
        return [
            Subtopic(
                order=order,
                title=candidate.title,
                description=candidate.description,
                extracted_text=candidate.body,
                word_count=word_count(candidate.body),
                detection_method=method,
                confidence=confidence,
            )
            for order, candidate in enumerate(candidates)
        ]


def segment(text: str) -> List[Subtopic]:
    """Segment *text* with a default-configured engine."""
    return SegmentationEngine().segment(text)
