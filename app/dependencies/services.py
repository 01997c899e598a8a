"""
Service dependencies for FastAPI routes.

Routes receive their services through ``Depends`` so tests can swap in fakes
via ``app.dependency_overrides``.
"""
from __future__ import annotations

from app.services.extraction import ExtractionArbitrator
from app.services.notes import NotesGenerator
from app.services.segmentation import SegmentationEngine
from app.services.text_extraction import TextExtractor


def get_segmentation_engine() -> SegmentationEngine:
    return SegmentationEngine()


def get_arbitrator() -> ExtractionArbitrator:
    return ExtractionArbitrator()


def get_text_extractor() -> TextExtractor:
    return TextExtractor()


def get_notes_generator() -> NotesGenerator:
    return NotesGenerator()
