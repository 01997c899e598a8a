"""
Subtopic detection and extraction endpoints.

Route summary
-------------
POST /segment: pattern-based segmentation only.
POST /extract: Gemini extraction with pattern-based fallback.
POST /compare: run both methods side by side (diagnostic, never falls back).
POST /upload: extract text from a PDF, image or text file, then /extract it.

All endpoints are stateless; storing the returned subtopics (replacing any
previous set for the document) is the caller's responsibility.
"""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.config import settings
from app.dependencies.services import (
    get_arbitrator,
    get_segmentation_engine,
    get_text_extractor,
)
from app.models.schemas import (
    ComparisonResponse,
    DocumentTextRequest,
    ExtractedSubtopicResponse,
    ExtractionResponse,
    MethodOutcomeResponse,
    SegmentationResponse,
    SubtopicPreviewResponse,
    SubtopicResponse,
    UploadExtractionResponse,
)
from app.services.extraction import (
    ExtractionArbitrator,
    ExtractionResult,
    FallbackReason,
    MethodOutcome,
)
from app.services.segmentation import SegmentationEngine, SegmentationError
from app.services.text_extraction import TextExtractionError, TextExtractor

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# POST /segment
# ---------------------------------------------------------------------------

@router.post("/segment", response_model=SegmentationResponse)
async def segment_text(
    body: DocumentTextRequest,
    engine: SegmentationEngine = Depends(get_segmentation_engine),
) -> SegmentationResponse:
    """
    Split document text into subtopics using heading heuristics only.

    Empty text returns an empty list, never an error.
    """
    try:
        detected = engine.segment(body.text)
    except SegmentationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )

    return SegmentationResponse(
        count=len(detected),
        detection_method=detected[0].detection_method.value if detected else None,
        subtopics=[
            SubtopicResponse(
                order=s.order,
                title=s.title,
                description=s.description,
                extracted_text=s.extracted_text,
                word_count=s.word_count,
                detection_method=s.detection_method.value,
                confidence=s.confidence,
            )
            for s in detected
        ],
    )


# ---------------------------------------------------------------------------
# POST /extract
# ---------------------------------------------------------------------------

@router.post("/extract", response_model=ExtractionResponse)
async def extract_subtopics(
    body: DocumentTextRequest,
    arbitrator: ExtractionArbitrator = Depends(get_arbitrator),
) -> ExtractionResponse:
    """
    Extract subtopics with Gemini, falling back to pattern matching.

    Gemini failures are reported as a ``warning``; the request still
    succeeds.  ``extraction_method`` tells which path produced the result.
    """
    result = await _run_extraction(arbitrator, body.text)
    return ExtractionResponse(**_extraction_fields(result))


# ---------------------------------------------------------------------------
# POST /compare
# ---------------------------------------------------------------------------

@router.post("/compare", response_model=ComparisonResponse)
async def compare_methods(
    body: DocumentTextRequest,
    arbitrator: ExtractionArbitrator = Depends(get_arbitrator),
) -> ComparisonResponse:
    """Show pattern-based and Gemini results for the same text."""
    comparison = await arbitrator.compare(body.text)
    return ComparisonResponse(
        pattern_based=_outcome_response(comparison.pattern_based),
        gemini_ai=_outcome_response(comparison.gemini_ai),
    )


# ---------------------------------------------------------------------------
# POST /upload
# ---------------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=UploadExtractionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_and_extract(
    file: UploadFile = File(...),
    extractor: TextExtractor = Depends(get_text_extractor),
    arbitrator: ExtractionArbitrator = Depends(get_arbitrator),
) -> UploadExtractionResponse:
    """
    Extract text from an uploaded PDF, image or plain-text file and split it
    into subtopics.

    - Max file size: 10 MB (configurable via MAX_FILE_SIZE)
    - Accepted types: SUPPORTED_MIME_TYPES
    """
    mime_type = (file.content_type or "").split(";")[0].strip().lower()
    if mime_type not in settings.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unsupported file type '{mime_type or 'unknown'}'. "
                f"Accepted: {', '.join(settings.SUPPORTED_MIME_TYPES)}"
            ),
        )

    data = await file.read(settings.MAX_FILE_SIZE + 1)
    if len(data) > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.MAX_FILE_SIZE // (1024 * 1024)} MB size limit.",
        )

    filename = file.filename or "upload"
    try:
        extracted = await extractor.extract(data, filename, mime_type)
    except (ValueError, TextExtractionError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    if not extracted.text.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Document contains no extractable text.",
        )

    result = await _run_extraction(arbitrator, extracted.text)
    logger.info(
        "upload_and_extract: %r -> %d subtopics (%s)",
        filename,
        len(result.subtopics),
        result.method.value,
    )
    return UploadExtractionResponse(
        **_extraction_fields(result),
        filename=filename,
        mime_type=mime_type,
        word_count=extracted.word_count,
        page_count=extracted.page_count,
        ocr_confidence=extracted.ocr_confidence,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _run_extraction(arbitrator: ExtractionArbitrator, text: str) -> ExtractionResult:
    try:
        return await arbitrator.extract_structure(text)
    except SegmentationError as exc:
        logger.error("extract: pattern detection failed: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to extract subtopics: {exc}",
        )


def _extraction_fields(result: ExtractionResult) -> dict:
    count = len(result.subtopics)
    warning = None
    reason = None

    if not result.used_fallback:
        message = f"Extracted {count} subtopics using Gemini AI"
    else:
        reason = result.reason.value
        if count == 0:
            message = "No subtopics could be extracted (Gemini unavailable, pattern detection found nothing)"
        elif result.reason is FallbackReason.NOT_CONFIGURED:
            message = f"Gemini API not configured. Using pattern-based detection. Extracted {count} subtopics"
        else:
            message = (
                "Gemini API unavailable. Using pattern-based detection instead. "
                f"Extracted {count} subtopics"
            )
        if result.error:
            warning = f"Gemini extraction failed: {result.error}. Used fallback method."

    subtopics: List[ExtractedSubtopicResponse] = [
        ExtractedSubtopicResponse(
            order=s.order,
            title=s.title,
            description=s.description,
            extracted_text=s.extracted_text,
            word_count=s.word_count,
            detection_method=s.detection_method,
            detection_confidence=s.detection_confidence,
            hierarchy_level=s.hierarchy_level,
        )
        for s in result.subtopics
    ]
    return {
        "count": count,
        "extraction_method": result.method.value,
        "fallback_reason": reason,
        "message": message,
        "warning": warning,
        "subtopics": subtopics,
    }


def _outcome_response(outcome: MethodOutcome) -> MethodOutcomeResponse:
    return MethodOutcomeResponse(
        method=outcome.method,
        count=outcome.count,
        error=outcome.error,
        subtopics=[
            SubtopicPreviewResponse(
                title=s.title,
                confidence=s.confidence,
                detection_method=s.detection_method,
                preview=s.preview,
                hierarchy_level=s.hierarchy_level,
            )
            for s in outcome.subtopics
        ],
    )
