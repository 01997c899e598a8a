"""
Thin async client for the Gemini ``generateContent`` REST endpoint.

Shared by the structure extraction and notes generation services.  Every
failure raises :class:`AIStructuringError`; the extraction arbitrator falls
back to pattern-based segmentation and the notes generator records it.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class AIStructuringError(RuntimeError):
    """The Gemini service could not produce a usable response."""


class GeminiClient:
    """
    Gemini REST client returning parsed JSON.

    Requests run in JSON response mode; see :func:`parse_json_reply` for the
    deviations that are still tolerated.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(float(timeout or settings.GEMINI_TIMEOUT), connect=10.0)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    # ------------------------------------------------------------------
    # Core caller
    # ------------------------------------------------------------------

    async def generate_text(self, prompt: str, max_tokens: int = 8192) -> str:
        """
        POST *prompt* to Gemini and return the text of the first candidate.

        Raises:
            AIStructuringError: not configured, timeout, connection failure,
                non-200 response, an answer cut off at *max_tokens*, or a
                blocked or empty answer.
        """
        if not self.configured:
            raise AIStructuringError("GEMINI_API_KEY not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.GEMINI_TEMPERATURE,
                "maxOutputTokens": max_tokens,
                "responseMimeType": "application/json",
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self.api_key},
                )
        except httpx.TimeoutException as exc:
            raise AIStructuringError(f"Gemini request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise AIStructuringError(f"Gemini request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "generate_text: Gemini returned HTTP %d: %s",
                resp.status_code,
                resp.text[:300],
            )
            raise AIStructuringError(f"Gemini returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise AIStructuringError("Gemini response is not valid JSON") from exc

        candidate = _first_candidate(body)
        finish_reason = str(candidate.get("finishReason") or "")
        if finish_reason == "MAX_TOKENS":
            # A cut-off JSON document is never usable
            raise AIStructuringError(f"Gemini response truncated at {max_tokens} tokens")

        text = _answer_text(candidate)
        if not text:
            reason = finish_reason
            if isinstance(body, dict):
                reason = str((body.get("promptFeedback") or {}).get("blockReason") or reason)
            raise AIStructuringError(
                "Gemini returned an empty response" + (f" ({reason})" if reason else "")
            )
        return text

    async def generate_json(self, prompt: str, max_tokens: int = 8192) -> Any:
        """
        Call Gemini and decode the JSON document in its answer.

        Raises:
            AIStructuringError: the call failed or the answer holds no JSON.
        """
        return parse_json_reply(await self.generate_text(prompt, max_tokens))


# ---------------------------------------------------------------------------
# generateContent response shapes
# ---------------------------------------------------------------------------

def _first_candidate(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        return {}
    candidates = body.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return {}
    return candidates[0]


def _answer_text(candidate: Dict[str, Any]) -> str:
    """Join the answer parts of a candidate, skipping thinking-model ``thought`` parts."""
    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(
        str(part.get("text", ""))
        for part in parts
        if isinstance(part, dict) and not part.get("thought")
    ).strip()


_FENCE_RE = re.compile(r"^```[A-Za-z]*\s*|\s*```$")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_DOCUMENT_START_RE = re.compile(r"[\[{]")


def parse_json_reply(reply: str) -> Any:
    """
    Decode the JSON document in a Gemini answer.

    With ``responseMimeType=application/json`` the answer is normally a bare
    document.  Models occasionally still wrap it in a markdown fence, leave a
    trailing comma, or put a sentence in front of it; those three cases are
    recovered.

    Raises:
        AIStructuringError: no JSON document could be decoded.
    """
    text = _FENCE_RE.sub("", (reply or "").strip())

    for attempt in (text, _TRAILING_COMMA_RE.sub(r"\1", text)):
        try:
            return json.loads(attempt)
        except ValueError:
            pass

    # Leading prose: decode from the first bracket that starts a document
    decoder = json.JSONDecoder()
    for match in _DOCUMENT_START_RE.finditer(text):
        try:
            value, _end = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        return value

    logger.warning("parse_json_reply: no JSON document in answer: %s", (reply or "")[:400])
    raise AIStructuringError("Could not parse JSON from Gemini response")
