"""Tests for the SegmentationEngine strategy cascade."""
import pytest

from app.services import heading_detectors
from app.services.segmentation import (
    CONFIDENCE_BY_METHOD,
    DetectionMethod,
    SegmentationEngine,
    SegmentationError,
    segment,
)

from tests.conftest import ALLCAPS_DOC, BULLET_DOC, MARKDOWN_DOC, NUMBERED_DOC


def test_markdown_document():
    result = segment(MARKDOWN_DOC)
    assert [(s.title, s.order) for s in result] == [("Intro", 0), ("Details", 1)]
    assert {s.detection_method for s in result} == {DetectionMethod.MARKDOWN_HEADINGS}
    assert all(s.confidence == 0.95 for s in result)


def test_unstructured_text_falls_back_to_chunks():
    result = segment("abcdefghij" * 120)
    assert [s.order for s in result] == [0, 1, 2]
    assert [len(s.extracted_text) for s in result] == [500, 500, 200]
    assert all(s.detection_method is DetectionMethod.CHUNK_FALLBACK for s in result)
    assert all(s.confidence == 0.50 for s in result)


@pytest.mark.parametrize("text", ["", "   ", "\n\n\t"])
def test_empty_input_returns_empty_list(text):
    assert segment(text) == []


@pytest.mark.parametrize(
    "text, method",
    [
        (NUMBERED_DOC, DetectionMethod.NUMBERED_SECTIONS),
        (ALLCAPS_DOC, DetectionMethod.ALLCAPS_HEADINGS),
        (BULLET_DOC, DetectionMethod.BULLET_SECTIONS),
    ],
)
def test_each_heading_style_is_detected(text, method):
    result = segment(text)
    assert result
    assert all(s.detection_method is method for s in result)
    assert all(s.confidence == CONFIDENCE_BY_METHOD[method] for s in result)


def test_markdown_wins_over_other_styles():
    text = MARKDOWN_DOC + "\n1. Numbered\nThis numbered heading is only body text here."
    result = segment(text)
    assert all(s.detection_method is DetectionMethod.MARKDOWN_HEADINGS for s in result)
    assert "1. Numbered" in result[-1].extracted_text


def test_lower_priority_detectors_not_run_after_a_match(monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("should not be evaluated")

    monkeypatch.setattr(heading_detectors, "numbered_sections", boom)
    monkeypatch.setattr(heading_detectors, "fixed_chunks", boom)
    assert len(segment(MARKDOWN_DOC)) == 2


def test_word_count_and_order():
    result = segment(NUMBERED_DOC)
    assert [s.order for s in result] == list(range(len(result)))
    for s in result:
        assert s.word_count == len(s.extracted_text.split())


def test_titles_are_non_empty_and_bodies_long_enough():
    for text in (MARKDOWN_DOC, NUMBERED_DOC, ALLCAPS_DOC, BULLET_DOC):
        for s in segment(text):
            assert s.title.strip()
            assert len(s.extracted_text.strip()) > 20


@pytest.mark.parametrize(
    "text, method",
    [
        (
            "#  \nThis body text is long enough to be kept as a section.\n"
            "# Real\nThe real section body is also long enough to keep.",
            DetectionMethod.MARKDOWN_HEADINGS,
        ),
        (
            "1.  \nThis body text is long enough to be kept as a section.\n"
            "2. Real\nThe real section body is also long enough to keep.",
            DetectionMethod.NUMBERED_SECTIONS,
        ),
    ],
)
def test_blank_headings_never_produce_untitled_subtopics(text, method):
    result = segment(text)
    assert [s.title for s in result] == ["Real"]
    assert result[0].order == 0
    assert result[0].detection_method is method


def test_segmentation_is_deterministic():
    assert segment(BULLET_DOC) == segment(BULLET_DOC)


def test_detector_failure_raises_segmentation_error(monkeypatch):
    def broken(text, min_chars):
        raise KeyError("bad state")

    monkeypatch.setattr(heading_detectors, "markdown_headings", broken)
    with pytest.raises(SegmentationError, match="markdown-headings"):
        segment(MARKDOWN_DOC)


def test_engine_configuration():
    engine = SegmentationEngine(min_body_chars=100, chunk_chars=1000)
    # bodies are too short for the heading detectors at this threshold
    result = engine.segment(MARKDOWN_DOC)
    assert len(result) == 1
    assert result[0].detection_method is DetectionMethod.CHUNK_FALLBACK


def test_confidence_table_covers_every_heuristic():
    assert set(CONFIDENCE_BY_METHOD) == set(DetectionMethod) - {DetectionMethod.GEMINI_AI}
    ordered = [CONFIDENCE_BY_METHOD[m] for m, _ in SegmentationEngine().strategies()]
    assert ordered == sorted(ordered, reverse=True)
