import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from travel_ai.config import GEMINI_API_BASE, GEMINI_MODEL
from travel_ai.errors import (
    EmptyResponseError,
    HttpStatusError,
    NotConfiguredError,
    TransportError,
)

logger = logging.getLogger(__name__)

GEMINI_15_FLASH = "gemini-1.5-flash"
GEMINI_20_FLASH_EXP = "gemini-2.0-flash-exp"

_JPEG_SIGNATURE = b"\xff\xd8\xff"


def sniff_mime_type(photo: bytes) -> str:
    if photo.startswith(_JPEG_SIGNATURE):
        return "image/jpeg"
    return "image/png"


def build_payload(prompt: str, photo: Optional[bytes] = None) -> Dict[str, Any]:
    """Request body for ``generateContent``: the prompt text plus an optional inline image."""
    parts: List[Dict[str, Any]] = [{"text": prompt}]
    if photo is not None:
        parts.append({
            "inlineData": {
                "mimeType": sniff_mime_type(photo),
                "data": base64.b64encode(photo).decode("ascii"),
            }
        })
    return {"contents": [{"parts": parts}]}


def extract_text(data: Any) -> str:
    """Return the first candidate's first text part, or raise EmptyResponseError."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise EmptyResponseError() from None
    if not isinstance(text, str):
        raise EmptyResponseError()
    return text


class GenerativeClient:
    """Thin async client for the Gemini ``generateContent`` REST endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        model: str = GEMINI_MODEL,
        api_base: str = GEMINI_API_BASE,
        credential: Optional[str] = None,
    ):
        self._http = http_client
        self._model = model
        self._api_base = api_base.rstrip("/")
        self._credential = credential

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_configured(self) -> bool:
        return bool(self._credential)

    def configure(self, credential: str) -> None:
        self._credential = credential
        logger.info("Generative client configured for model %s", self._model)

    @property
    def endpoint(self) -> str:
        return f"{self._api_base}/models/{self._model}:generateContent"

    async def generate(self, prompt: str, photo: Optional[bytes] = None) -> str:
        if not self._credential:
            raise NotConfiguredError()

        payload = build_payload(prompt, photo)
        logger.info(
            "Calling %s (prompt=%d chars, photo=%s)",
            self.endpoint, len(prompt), f"{len(photo)} bytes" if photo is not None else "none",
        )
        try:
            r = await self._http.post(
                self.endpoint,
                params={"key": self._credential},
                json=payload,
            )
        except httpx.TimeoutException:
            raise TransportError("The request timed out. Please try again.") from None
        except httpx.HTTPError as e:
            raise TransportError(f"Network error: {e}") from e

        if not r.is_success:
            logger.warning("Generative endpoint returned %d", r.status_code)
            raise HttpStatusError(r.status_code, r.text)

        try:
            data = r.json()
        except ValueError:
            logger.warning("Generative endpoint returned a non-JSON body")
            raise EmptyResponseError() from None

        text = extract_text(data)
        logger.info("Generated %d chars", len(text))
        return text
