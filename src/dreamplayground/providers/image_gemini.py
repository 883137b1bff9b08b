"""Gemini image generation provider.

Streams panoramas from the Gemini image model through the google-genai SDK.
Each streamed response carries content parts that are either text (model
commentary) or ``inline_data`` with raw image bytes and a MIME type.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, NoReturn

import httpx

from dreamplayground.observability.logging import get_logger
from dreamplayground.providers.content import is_safety_block
from dreamplayground.providers.image import (
    ImageChunk,
    ImageContentPolicyError,
    ImageProviderConnectionError,
    ImageProviderError,
    ImageResult,
)

if TYPE_CHECKING:
    from google.genai import Client

log = get_logger(__name__)

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"


class GeminiImageProvider:
    """Streamed image generation via the Gemini API.

    Args:
        model: Gemini image model name.
        api_key: Google API key. Falls back to ``GOOGLE_API_KEY`` env var.
        client: Pre-built ``google.genai.Client`` (tests inject a fake).
    """

    def __init__(
        self,
        model: str = DEFAULT_IMAGE_MODEL,
        api_key: str | None = None,
        client: Client | None = None,
    ) -> None:
        self._model = model
        if client is not None:
            self._client = client
            return

        self._api_key = api_key or os.getenv("GOOGLE_API_KEY")
        if not self._api_key:
            raise ImageProviderError(
                "gemini",
                "API key required. Set GOOGLE_API_KEY environment variable.",
            )
        self._client = self._create_client()

    def _create_client(self) -> Client:
        from google import genai

        return genai.Client(api_key=self._api_key)

    @property
    def model(self) -> str:
        return self._model

    async def stream(self, prompt: str) -> AsyncIterator[ImageChunk]:
        """Stream text and image chunks for a panorama prompt.

        Raises:
            ImageContentPolicyError: If the prompt or output is safety-blocked.
            ImageProviderConnectionError: On network errors.
            ImageProviderError: On any other API failure.
        """
        from google.genai import types

        log.debug("image_stream_start", model=self._model, prompt_length=len(prompt))

        try:
            response = await self._client.aio.models.generate_content_stream(
                model=self._model,
                contents=prompt,
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
            async for chunk in response:
                for item in self._chunks_from_response(chunk):
                    yield item
        except ImageProviderError:
            raise
        except Exception as e:
            self._handle_error(e)

    def _chunks_from_response(self, response: Any) -> list[ImageChunk]:
        """Convert one SDK response into zero or more ImageChunks."""
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None)
        if block_reason:
            raise ImageContentPolicyError("gemini", f"Prompt blocked: SAFETY ({block_reason})")

        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []

        candidate = candidates[0]
        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason is not None and is_safety_block(str(finish_reason)):
            raise ImageContentPolicyError("gemini", f"Generation stopped: SAFETY ({finish_reason})")

        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []

        chunks: list[ImageChunk] = []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                mime_type = inline.mime_type or "image/png"
                chunks.append(
                    ImageChunk(
                        image=ImageResult(
                            image_data=inline.data,
                            content_type=mime_type,
                            provider_metadata={"model": self._model},
                        )
                    )
                )
            elif getattr(part, "text", None):
                chunks.append(ImageChunk(text=part.text))
        return chunks

    def _handle_error(self, error: Exception) -> NoReturn:
        """Convert SDK and transport exceptions to ImageProvider exceptions."""
        from google.genai import errors

        if isinstance(error, httpx.TransportError):
            raise ImageProviderConnectionError("gemini", f"Connection error: {error}") from error

        if isinstance(error, errors.APIError):
            if "SAFETY" in str(error).upper():
                raise ImageContentPolicyError(
                    "gemini", f"Content policy rejection: SAFETY {error}"
                ) from error
            raise ImageProviderError("gemini", f"API error (HTTP {error.code}): {error}") from error

        raise ImageProviderError("gemini", f"Image generation failed: {error}") from error
