"""
Shared fixtures for the study-notes backend tests.

Gemini is never contacted: the API key is cleared before any app module is
imported, and tests that need an AI collaborator inject fakes through
constructor arguments or ``app.dependency_overrides``.
"""
from __future__ import annotations

import os
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Clear GEMINI_API_KEY *before* any app module is imported, so that
# settings.gemini_configured is False regardless of the developer's shell.
os.environ["GEMINI_API_KEY"] = ""

from app.main import app  # noqa: E402
from app.services.ai_structurer import AISubtopic  # noqa: E402
from app.services.gemini_client import AIStructuringError  # noqa: E402


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeStructureService:
    """Stands in for GeminiStructureService."""

    def __init__(
        self,
        subtopics: Optional[List[AISubtopic]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.subtopics = subtopics or []
        self.error = error
        self.calls = 0

    @property
    def configured(self) -> bool:
        return True

    async def extract_structure(self, text: str) -> List[AISubtopic]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.subtopics)


class FakeGeminiClient:
    """Returns canned JSON per topic title; raises for titles in ``failing``."""

    def __init__(self, failing=(), reply=None):
        self.failing = set(failing)
        self.reply = reply
        self.prompts = []

    @property
    def configured(self) -> bool:
        return True

    async def generate_json(self, prompt: str, max_tokens: int = 8192):
        self.prompts.append(prompt)
        for title in self.failing:
            if f'Topic: "{title}"' in prompt:
                raise AIStructuringError(f"Gemini returned HTTP 500 for {title}")
        if self.reply is not None:
            return self.reply
        return {
            "summary": "Cells are the basic unit of life.",
            "keyPoints": ["All organisms are made of cells", "Cells come from cells"],
            "definitions": [{"term": "Cell", "definition": "Smallest unit of life"}, {"term": ""}],
            "examples": ["Red blood cells"],
            "reviewQuestions": ["What is a cell?"],
        }


def make_ai_subtopic(order: int, title: str, confidence: float = 0.9, **kwargs) -> AISubtopic:
    return AISubtopic(
        order=order,
        title=title,
        description=kwargs.get("description", f"About {title}."),
        extracted_text=kwargs.get(
            "extracted_text",
            f"{title} is covered in detail in this part of the lecture notes.",
        ),
        confidence=confidence,
        hierarchy_level=kwargs.get("hierarchy_level", 1),
    )


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

MARKDOWN_DOC = (
    "# Intro\n"
    "Hello world this is enough text to pass the length filter easily.\n"
    "# Details\n"
    "More content here that also exceeds twenty characters."
)

NUMBERED_DOC = (
    "1. Cell Structure\n"
    "Cells contain organelles such as the nucleus and mitochondria.\n"
    "1.1. Membranes\n"
    "The plasma membrane controls what enters and leaves the cell.\n"
    "2. Cell Division\n"
    "Mitosis produces two genetically identical daughter cells."
)

ALLCAPS_DOC = (
    "CHAPTER 1: PHOTOSYNTHESIS\n"
    "Plants convert light energy into chemical energy stored in glucose.\n"
    "\n"
    "CHAPTER 2: RESPIRATION\n"
    "Cells break down glucose to release usable energy as ATP."
)

BULLET_DOC = (
    "Key terms for the exam\n"
    "- Osmosis is the movement of water across a membrane\n"
    "- Diffusion moves particles down a gradient\n"
    "\n"
    "Things to revise\n"
    "* Enzyme structure and the lock and key model\n"
    "* Factors affecting rate of reaction\n"
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_ai_factory():
    return FakeStructureService


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient wired to the FastAPI app; overrides cleared afterwards."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
