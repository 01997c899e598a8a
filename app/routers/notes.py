"""
Study-notes generation endpoints.

POST /subtopic: notes for a single subtopic.
POST /batch: notes for many subtopics, in rate-limited parallel batches.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies.services import get_notes_generator
from app.models.schemas import (
    DefinitionResponse,
    NotesBatchRequest,
    NotesBatchResponse,
    NotesResultResponse,
    NotesSubtopicRequest,
    StudyNotesResponse,
)
from app.services.gemini_client import AIStructuringError
from app.services.notes import NotesGenerator, NotesSource, StudyNotes, notes_to_markdown

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_gemini(generator: NotesGenerator) -> None:
    if not generator.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gemini API not configured. Please set GEMINI_API_KEY in .env",
        )


def _source(subtopic: NotesSubtopicRequest) -> NotesSource:
    return NotesSource(
        title=subtopic.title,
        content=subtopic.description or subtopic.extracted_text or subtopic.title,
        order=subtopic.order,
    )


@router.post(
    "/subtopic",
    response_model=StudyNotesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_subtopic_notes(
    body: NotesSubtopicRequest,
    generator: NotesGenerator = Depends(get_notes_generator),
) -> StudyNotesResponse:
    """Generate study notes for one subtopic."""
    _require_gemini(generator)
    source = _source(body)

    logger.info("generate_subtopic_notes: %r", source.title)
    try:
        notes = await generator.generate_notes(source.title, source.content)
    except AIStructuringError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to generate notes: {exc}",
        )
    return _notes_response(notes)


@router.post("/batch", response_model=NotesBatchResponse)
async def generate_batch_notes(
    body: NotesBatchRequest,
    generator: NotesGenerator = Depends(get_notes_generator),
) -> NotesBatchResponse:
    """
    Generate notes for every subtopic in the request.

    Subtopics are processed in parallel batches (NOTES_BATCH_SIZE) with a
    pause between batches.  Per-subtopic failures are listed in the
    response rather than failing the request.
    """
    _require_gemini(generator)

    summary = await generator.generate_for_subtopics([_source(s) for s in body.subtopics])

    return NotesBatchResponse(
        total_subtopics=summary.total,
        success_count=len(summary.succeeded),
        failure_count=len(summary.failed),
        processing_time_ms=summary.processing_time_ms,
        results=[
            NotesResultResponse(
                subtopic_title=r.source.title,
                order=r.source.order,
                batch_number=r.batch_number,
                notes=_notes_response(r.notes) if r.notes else None,
                error=r.error,
            )
            for r in summary.results
        ],
    )


def _notes_response(notes: StudyNotes) -> StudyNotesResponse:
    return StudyNotesResponse(
        title=notes.title,
        summary=notes.summary,
        key_points=notes.key_points,
        definitions=[DefinitionResponse(**d) for d in notes.definitions],
        examples=notes.examples,
        review_questions=notes.review_questions,
        markdown=notes_to_markdown(notes),
        content_length=notes.content_length,
    )
