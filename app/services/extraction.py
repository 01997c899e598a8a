"""
Extraction arbitration between Gemini and the pattern-based segmentation engine.

State machine per request
-------------------------
1. Gemini not configured      -> fallback (reason ``not-configured``)
2. Gemini call succeeds        -> AIExtraction, subtopics tagged ``gemini-ai``
3. Gemini call raises anything -> fallback (reason ``ai-error``), error logged
4. Fallback finds nothing      -> FallbackExtraction with an empty list (not an error)

AI failures never reach the caller of :meth:`ExtractionArbitrator.extract_structure`.
Only :class:`SegmentationError` from the engine itself propagates.

:meth:`ExtractionArbitrator.compare` runs both methods side by side for
diagnostics, without substituting one for the other.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from typing import ClassVar, List, Optional, Union

from app.config import settings
from app.services.ai_structurer import AISubtopic, GeminiStructureService
from app.services.segmentation import (
    DetectionMethod,
    SegmentationEngine,
    SegmentationError,
    Subtopic,
)
from app.utils.helpers import preview, scale_confidence, word_count

logger = logging.getLogger(__name__)


class ExtractionMethod(str, enum.Enum):
    GEMINI_AI = "gemini-ai"
    PATTERN_FALLBACK = "pattern-based-fallback"


class FallbackReason(str, enum.Enum):
    NOT_CONFIGURED = "not-configured"
    AI_ERROR = "ai-error"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class ExtractedSubtopic:
    """A subtopic ready for persistence, with confidence on a 0-100 scale."""

    order: int
    title: str
    description: str
    extracted_text: str
    word_count: int
    detection_method: str
    detection_confidence: int
    hierarchy_level: Optional[int] = None

    @classmethod
    def from_subtopic(cls, subtopic: Subtopic) -> "ExtractedSubtopic":
        return cls(
            order=subtopic.order,
            title=subtopic.title,
            description=subtopic.description,
            extracted_text=subtopic.extracted_text,
            word_count=subtopic.word_count,
            detection_method=subtopic.detection_method.value,
            detection_confidence=scale_confidence(subtopic.confidence),
        )

    @classmethod
    def from_ai(cls, subtopic: AISubtopic) -> "ExtractedSubtopic":
        return cls(
            order=subtopic.order,
            title=subtopic.title,
            description=subtopic.description,
            extracted_text=subtopic.extracted_text,
            word_count=word_count(subtopic.extracted_text),
            detection_method=DetectionMethod.GEMINI_AI.value,
            detection_confidence=scale_confidence(subtopic.confidence),
            hierarchy_level=subtopic.hierarchy_level,
        )


@dataclasses.dataclass(frozen=True)
class AIExtraction:
    """Gemini produced the structure."""

    subtopics: List[ExtractedSubtopic]

    method: ClassVar[ExtractionMethod] = ExtractionMethod.GEMINI_AI
    used_fallback: ClassVar[bool] = False


@dataclasses.dataclass(frozen=True)
class FallbackExtraction:
    """The pattern-based engine produced the structure."""

    subtopics: List[ExtractedSubtopic]
    reason: FallbackReason
    error: Optional[str] = None

    method: ClassVar[ExtractionMethod] = ExtractionMethod.PATTERN_FALLBACK
    used_fallback: ClassVar[bool] = True


ExtractionResult = Union[AIExtraction, FallbackExtraction]


@dataclasses.dataclass(frozen=True)
class SubtopicPreview:
    title: str
    confidence: float
    detection_method: str
    preview: str
    hierarchy_level: Optional[int] = None


@dataclasses.dataclass(frozen=True)
class MethodOutcome:
    """One side of a comparison report."""

    method: str
    subtopics: List[SubtopicPreview] = dataclasses.field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.subtopics)


@dataclasses.dataclass(frozen=True)
class ComparisonResult:
    pattern_based: MethodOutcome
    gemini_ai: MethodOutcome


PATTERN_LABEL = "Pattern Matching"
GEMINI_LABEL = "Gemini AI"


# ---------------------------------------------------------------------------
# Arbitrator
# ---------------------------------------------------------------------------

class ExtractionArbitrator:
    """
    Chooses between Gemini and pattern-based segmentation for one document.

    Args:
        engine:        Segmentation engine used for the fallback path.
        ai_service:    Object with an ``async extract_structure(text)`` method
                       returning ``List[AISubtopic]``; may raise anything.
        ai_configured: Whether AI credentials are available.  Defaults to
                       ``settings.gemini_configured``.
    """

    def __init__(
        self,
        engine: Optional[SegmentationEngine] = None,
        ai_service: Optional[GeminiStructureService] = None,
        ai_configured: Optional[bool] = None,
    ) -> None:
        self.engine = engine or SegmentationEngine()
        self.ai_service = ai_service or GeminiStructureService()
        self.ai_configured = (
            settings.gemini_configured if ai_configured is None else ai_configured
        )

    # ------------------------------------------------------------------
    # Primary extraction path
    # ------------------------------------------------------------------

    async def extract_structure(self, text: str) -> ExtractionResult:
        """
        Extract subtopics, preferring Gemini and degrading to pattern matching.

        Raises:
            SegmentationError: only when the fallback engine itself fails.
        """
        if not self.ai_configured:
            logger.info("extract_structure: Gemini not configured, using pattern-based detection")
            return self._fallback(text, FallbackReason.NOT_CONFIGURED)

        try:
            ai_subtopics = await self.ai_service.extract_structure(text)
        except Exception as exc:
            logger.warning("extract_structure: Gemini extraction failed: %s", exc)
            logger.info("extract_structure: falling back to pattern-based detection")
            return self._fallback(text, FallbackReason.AI_ERROR, error=_message(exc))

        subtopics = [ExtractedSubtopic.from_ai(s) for s in ai_subtopics]
        logger.info("extract_structure: %d subtopics from Gemini", len(subtopics))
        return AIExtraction(subtopics=subtopics)

    def _fallback(
        self,
        text: str,
        reason: FallbackReason,
        error: Optional[str] = None,
    ) -> FallbackExtraction:
        detected = self.engine.segment(text)
        if not detected:
            logger.info("extract_structure: pattern detection found nothing")
        return FallbackExtraction(
            subtopics=[ExtractedSubtopic.from_subtopic(s) for s in detected],
            reason=reason,
            error=error,
        )

    # ------------------------------------------------------------------
    # Diagnostic comparison
    # ------------------------------------------------------------------

    async def compare(self, text: str) -> ComparisonResult:
        """
        Run pattern matching and (if configured) Gemini independently.

        Never raises on Gemini failure; each side reports its own error.
        """
        try:
            detected = self.engine.segment(text)
            pattern_based = MethodOutcome(
                method=PATTERN_LABEL,
                subtopics=[
                    SubtopicPreview(
                        title=s.title,
                        confidence=s.confidence,
                        detection_method=s.detection_method.value,
                        preview=preview(s.description or s.extracted_text),
                    )
                    for s in detected
                ],
            )
        except SegmentationError as exc:
            logger.error("compare: pattern detection error: %s", exc)
            pattern_based = MethodOutcome(method=PATTERN_LABEL, error=str(exc))

        if not self.ai_configured:
            gemini_ai = MethodOutcome(method=GEMINI_LABEL, error="GEMINI_API_KEY not configured")
        else:
            try:
                ai_subtopics = await self.ai_service.extract_structure(text)
                gemini_ai = MethodOutcome(
                    method=GEMINI_LABEL,
                    subtopics=[
                        SubtopicPreview(
                            title=s.title,
                            confidence=s.confidence,
                            detection_method=DetectionMethod.GEMINI_AI.value,
                            preview=preview(s.description or s.extracted_text),
                            hierarchy_level=s.hierarchy_level,
                        )
                        for s in ai_subtopics
                    ],
                )
            except Exception as exc:
                logger.warning("compare: Gemini comparison failed: %s", exc)
                gemini_ai = MethodOutcome(method=GEMINI_LABEL, error=_message(exc))

        return ComparisonResult(pattern_based=pattern_based, gemini_ai=gemini_ai)


def _message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
