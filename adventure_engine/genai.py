"""Generative AI client: HTTP connection to the Gemini REST API.

The game code depends on a GenAI object matching the protocol below:

    async def generate_json(self, stage: str, prompt: str, schema: dict) -> str
    async def generate_image(self, prompt: str) -> str
    async def chat(self, history, message: str, system_instruction: str) -> str

`stage` names the caller ("start_adventure", "advance_adventure") and is
used only for logging.

GeminiClient is the real implementation. Tests use StubGenAI (defined in
the test helpers) instead.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from adventure_engine.config import Settings
from adventure_engine.models import ChatMessage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every client implementation must match these signatures
# ---------------------------------------------------------------------------

class GenAI(Protocol):
    async def generate_json(self, stage: str, prompt: str, schema: dict[str, Any]) -> str: ...

    async def generate_image(self, prompt: str) -> str: ...

    async def chat(
        self, history: Sequence[ChatMessage], message: str, system_instruction: str
    ) -> str: ...


# ---------------------------------------------------------------------------
# GeminiClient: connects to the real service
# ---------------------------------------------------------------------------

class GeminiClient:
    """Async HTTP client for the Gemini and Imagen REST endpoints.

    Endpoints:
      text / chat:  POST {base}/models/{model}:generateContent
                     Response: {"candidates": [{"content": {"parts": [{"text": ...}]}}]}
      image:        POST {base}/models/{model}:predict
                     Response: {"predictions": [{"bytesBase64Encoded": ...}]}

    Args:
        api_key:         Sent as the x-goog-api-key header.
        base_url:        API root, e.g. "https://generativelanguage.googleapis.com/v1beta".
        adventure_model: Model used for story turns (structured JSON output).
        image_model:     Imagen model used for scene images.
        chat_model:      Model used by the side chat.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        adventure_model: str,
        image_model: str,
        chat_model: str,
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._adventure_model = adventure_model
        self._image_model = image_model
        self._chat_model = chat_model
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiClient:
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            adventure_model=settings.adventure_model,
            image_model=settings.image_model,
            chat_model=settings.chat_model,
            timeout=settings.timeout,
        )

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

    def _url(self, model: str, method: str) -> str:
        return f"{self._base_url}/models/{model}:{method}"

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise GenAIError(f"Cannot connect to generative AI service at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise GenAIError(
                f"Generative AI service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise GenAIError(f"Generative AI service timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise GenAIError(f"Request to generative AI service failed: {type(e).__name__}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise GenAIError("Generative AI service returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise GenAIError("Unexpected response format from generative AI service")
        return data

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate."""
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise GenAIError("Unexpected response format from generative AI service")
        content = candidates[0].get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise GenAIError("Unexpected response format from generative AI service")
        texts = [p["text"] for p in parts if isinstance(p, dict) and "text" in p]
        if not texts:
            raise GenAIError("Unexpected response format from generative AI service")
        return "".join(texts)

    async def generate_json(self, stage: str, prompt: str, schema: dict[str, Any]) -> str:
        url = self._url(self._adventure_model, "generateContent")
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        logger.debug("genai call stage=%s model=%s prompt_len=%d", stage, self._adventure_model, len(prompt))
        text = self._extract_text(await self._post(url, body))
        logger.debug("genai response stage=%s len=%d", stage, len(text))
        return text

    async def generate_image(self, prompt: str) -> str:
        """Generate one 16:9 JPEG and return it as a data URL."""
        url = self._url(self._image_model, "predict")
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": "16:9",
                "outputOptions": {"mimeType": "image/jpeg"},
            },
        }
        logger.debug("genai image model=%s prompt_len=%d", self._image_model, len(prompt))
        data = await self._post(url, body)
        predictions = data.get("predictions")
        first = predictions[0] if isinstance(predictions, list) and predictions else None
        encoded = first.get("bytesBase64Encoded") if isinstance(first, dict) else None
        if not encoded:
            raise GenAIError("Image generation failed.")
        return f"data:image/jpeg;base64,{encoded}"

    async def chat(
        self, history: Sequence[ChatMessage], message: str, system_instruction: str
    ) -> str:
        url = self._url(self._chat_model, "generateContent")
        contents = [{"role": m.role, "parts": [{"text": m.content}]} for m in history]
        contents.append({"role": "user", "parts": [{"text": message}]})
        body = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": contents,
        }
        logger.debug("genai chat model=%s turns=%d", self._chat_model, len(contents))
        return self._extract_text(await self._post(url, body))


# ---------------------------------------------------------------------------
# GenAIError: raised by GeminiClient for all connection and protocol failures
# ---------------------------------------------------------------------------

class GenAIError(RuntimeError):
    """Raised when the generative AI service cannot be reached or returns an error."""
