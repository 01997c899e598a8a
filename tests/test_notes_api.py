"""Tests for the /api/notes endpoints."""
import pytest
from httpx import AsyncClient

from app.dependencies.services import get_notes_generator
from app.main import app
from app.services.notes import NotesGenerator

from tests.conftest import FakeGeminiClient


def _override_generator(client: FakeGeminiClient) -> None:
    app.dependency_overrides[get_notes_generator] = lambda: NotesGenerator(
        client=client, batch_size=2, batch_delay=0
    )


@pytest.mark.asyncio
async def test_notes_unavailable_without_gemini(client: AsyncClient):
    resp = await client.post("/api/notes/subtopic", json={"title": "Cells"})
    assert resp.status_code == 503
    assert "GEMINI_API_KEY" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_single_subtopic_notes(client: AsyncClient):
    fake = FakeGeminiClient()
    _override_generator(fake)
    resp = await client.post(
        "/api/notes/subtopic",
        json={"title": "Cells", "description": "Cells are small.", "extracted_text": "Long text"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["title"] == "Cells"
    assert data["markdown"].startswith("# Cells")
    assert data["definitions"] == [{"term": "Cell", "definition": "Smallest unit of life"}]
    # description is preferred over the full text
    assert "Cells are small." in fake.prompts[0]
    assert "Long text" not in fake.prompts[0]


@pytest.mark.asyncio
async def test_single_subtopic_gemini_failure(client: AsyncClient):
    _override_generator(FakeGeminiClient(failing={"Cells"}))
    resp = await client.post("/api/notes/subtopic", json={"title": "Cells"})
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_batch_notes(client: AsyncClient):
    _override_generator(FakeGeminiClient(failing={"Broken"}))
    resp = await client.post(
        "/api/notes/batch",
        json={"subtopics": [
            {"title": "Cells", "order": 0},
            {"title": "Broken", "order": 1},
            {"title": "Tissues", "order": 2},
        ]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_subtopics"] == 3
    assert data["success_count"] == 2
    assert data["failure_count"] == 1
    assert [r["batch_number"] for r in data["results"]] == [1, 1, 2]
    assert data["results"][1]["notes"] is None
    assert data["results"][1]["error"]


@pytest.mark.asyncio
async def test_batch_requires_subtopics(client: AsyncClient):
    _override_generator(FakeGeminiClient())
    resp = await client.post("/api/notes/batch", json={"subtopics": []})
    assert resp.status_code == 422
