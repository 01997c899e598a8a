"""Request and response schemas for the study-notes API."""
from app.models.schemas import (
    DetectionMethodSchema,
    ExtractionMethodSchema,
    DocumentTextRequest,
    SubtopicResponse,
    SegmentationResponse,
    ExtractedSubtopicResponse,
    ExtractionResponse,
    UploadExtractionResponse,
    ComparisonResponse,
    NotesSubtopicRequest,
    NotesBatchRequest,
    StudyNotesResponse,
    NotesBatchResponse,
    HealthCheckResponse,
)

__all__ = [
    # Enums
    "DetectionMethodSchema",
    "ExtractionMethodSchema",
    # Subtopics
    "DocumentTextRequest",
    "SubtopicResponse",
    "SegmentationResponse",
    "ExtractedSubtopicResponse",
    "ExtractionResponse",
    "UploadExtractionResponse",
    "ComparisonResponse",
    # Notes
    "NotesSubtopicRequest",
    "NotesBatchRequest",
    "StudyNotesResponse",
    "NotesBatchResponse",
    # Health
    "HealthCheckResponse",
]
