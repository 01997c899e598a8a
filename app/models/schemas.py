"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class DetectionMethodSchema(str, Enum):
    """Detection methods for API responses."""

    MARKDOWN_HEADINGS = "markdown-headings"
    NUMBERED_SECTIONS = "numbered-sections"
    ALLCAPS_HEADINGS = "allcaps-headings"
    BULLET_SECTIONS = "bullet-sections"
    CHUNK_FALLBACK = "chunk-fallback"
    GEMINI_AI = "gemini-ai"


class ExtractionMethodSchema(str, Enum):
    """Which path produced an extraction result."""

    GEMINI_AI = "gemini-ai"
    PATTERN_FALLBACK = "pattern-based-fallback"


# Request Schemas
class DocumentTextRequest(BaseModel):
    """Extracted document text to segment."""

    text: str = Field(..., description="Document text produced by PDF/OCR/plain-text extraction")


# Segmentation Schemas
class SubtopicResponse(BaseModel):
    """A subtopic detected by the pattern-based engine."""

    order: int
    title: str
    description: str
    extracted_text: str
    word_count: int
    detection_method: DetectionMethodSchema
    confidence: float = Field(..., ge=0.0, le=1.0)


class SegmentationResponse(BaseModel):
    """Response for POST /api/subtopics/segment."""

    count: int
    detection_method: Optional[DetectionMethodSchema] = None
    subtopics: List[SubtopicResponse]


# Extraction Schemas
class ExtractedSubtopicResponse(BaseModel):
    """A subtopic ready for storage, confidence on a 0-100 scale."""

    order: int
    title: str
    description: str
    extracted_text: str
    word_count: int
    detection_method: DetectionMethodSchema
    detection_confidence: int = Field(..., ge=0, le=100)
    hierarchy_level: Optional[int] = None


class ExtractionResponse(BaseModel):
    """Response for POST /api/subtopics/extract and /upload."""

    count: int
    extraction_method: ExtractionMethodSchema
    fallback_reason: Optional[str] = None
    message: str
    warning: Optional[str] = None
    subtopics: List[ExtractedSubtopicResponse]


class UploadExtractionResponse(ExtractionResponse):
    """Extraction response with details of the uploaded file."""

    filename: str
    mime_type: str
    word_count: int
    page_count: Optional[int] = None
    ocr_confidence: Optional[float] = None


# Comparison Schemas
class SubtopicPreviewResponse(BaseModel):
    title: str
    confidence: float
    detection_method: DetectionMethodSchema
    preview: str
    hierarchy_level: Optional[int] = None


class MethodOutcomeResponse(BaseModel):
    method: str
    count: int
    error: Optional[str] = None
    subtopics: List[SubtopicPreviewResponse] = []


class ComparisonResponse(BaseModel):
    """Response for POST /api/subtopics/compare."""

    pattern_based: MethodOutcomeResponse
    gemini_ai: MethodOutcomeResponse


# Notes Schemas
class NotesSubtopicRequest(BaseModel):
    """Subtopic to write notes for (description preferred over the full text)."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    extracted_text: Optional[str] = None
    order: Optional[int] = None


class NotesBatchRequest(BaseModel):
    subtopics: List[NotesSubtopicRequest] = Field(..., min_length=1)


class DefinitionResponse(BaseModel):
    term: str
    definition: str


class StudyNotesResponse(BaseModel):
    title: str
    summary: str
    key_points: List[str]
    definitions: List[DefinitionResponse]
    examples: List[str]
    review_questions: List[str]
    markdown: str
    content_length: int


class NotesResultResponse(BaseModel):
    subtopic_title: str
    order: Optional[int] = None
    batch_number: int = 1
    notes: Optional[StudyNotesResponse] = None
    error: Optional[str] = None


class NotesBatchResponse(BaseModel):
    """Response for POST /api/notes/batch."""

    total_subtopics: int
    success_count: int
    failure_count: int
    processing_time_ms: int
    results: List[NotesResultResponse]


# Health Schemas
class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    segmentation: str
    gemini: str
    timestamp: datetime
