"""Tests for NotesGenerator and markdown rendering."""
import pytest

from app.services.gemini_client import AIStructuringError
from app.services.notes import NotesGenerator, NotesSource, StudyNotes, notes_to_markdown

from tests.conftest import FakeGeminiClient


def _sources(n: int):
    return [NotesSource(title=f"Topic {i}", content=f"Content {i}", order=i) for i in range(n)]


@pytest.mark.asyncio
async def test_generate_notes_parses_reply():
    client = FakeGeminiClient()
    notes = await NotesGenerator(client=client).generate_notes("Cells", "Cells are small.")

    assert notes.title == "Cells"
    assert notes.summary == "Cells are the basic unit of life."
    assert len(notes.key_points) == 2
    assert notes.definitions == [{"term": "Cell", "definition": "Smallest unit of life"}]
    assert notes.review_questions == ["What is a cell?"]
    assert "Cells are small." in client.prompts[0]


@pytest.mark.asyncio
async def test_generate_notes_unwraps_single_item_list():
    client = FakeGeminiClient(reply=[{"summary": "Wrapped.", "keyPoints": "one point"}])
    notes = await NotesGenerator(client=client).generate_notes("T", "c")
    assert notes.summary == "Wrapped."
    assert notes.key_points == ["one point"]


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [["a", "b"], {"examples": ["only examples"]}])
async def test_generate_notes_rejects_unusable_reply(reply):
    with pytest.raises(AIStructuringError, match="Malformed notes response"):
        await NotesGenerator(client=FakeGeminiClient(reply=reply)).generate_notes("T", "c")


@pytest.mark.asyncio
async def test_batches_keep_order_and_isolate_failures():
    client = FakeGeminiClient(failing={"Topic 2"})
    generator = NotesGenerator(client=client, batch_size=2, batch_delay=0)
    summary = await generator.generate_for_subtopics(_sources(5))

    assert summary.total == 5
    assert [r.source.title for r in summary.results] == [f"Topic {i}" for i in range(5)]
    assert [r.batch_number for r in summary.results] == [1, 1, 2, 2, 3]
    assert len(summary.succeeded) == 4
    assert [r.source.title for r in summary.failed] == ["Topic 2"]
    assert "HTTP 500" in summary.failed[0].error
    assert len(client.prompts) == 5


@pytest.mark.asyncio
async def test_batches_sleep_between_batches(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("app.services.notes.asyncio.sleep", fake_sleep)
    generator = NotesGenerator(client=FakeGeminiClient(), batch_size=4, batch_delay=2.0)
    await generator.generate_for_subtopics(_sources(9))

    assert delays == [2.0, 2.0]


@pytest.mark.asyncio
async def test_empty_batch():
    summary = await NotesGenerator(client=FakeGeminiClient(), batch_delay=0).generate_for_subtopics([])
    assert summary.total == 0
    assert summary.results == []


def test_notes_to_markdown():
    notes = StudyNotes(
        title="Cells",
        summary="Cells are the basic unit of life.",
        key_points=["Point A"],
        definitions=[{"term": "Cell", "definition": "Unit of life"}],
        examples=[],
        review_questions=["Q1?", "Q2?"],
    )
    md = notes_to_markdown(notes)

    assert md.startswith("# Cells\n")
    assert "## Key Points\n\n- Point A" in md
    assert "- **Cell**: Unit of life" in md
    assert "## Examples" not in md
    assert "1. Q1?\n2. Q2?" in md


def test_content_length():
    notes = StudyNotes("T", "abc", ["de"], [{"term": "f", "definition": "gh"}], [], ["i"])
    assert notes.content_length == 9
