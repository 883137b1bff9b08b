"""Streamed panorama generation: chunk types and the provider protocol.

A panorama request yields a sequence of chunks. Each chunk is either model
commentary or inline image bytes. LangChain offers no streamed image API, so
backends implement the small protocol below directly.

Backends:
    - GeminiImageProvider (image_gemini.py)
    - PlaceholderImageProvider (image_placeholder.py), offline
"""

from __future__ import annotations

import base64
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ImageResult:
    """Inline image bytes received from a backend.

    Attributes:
        image_data: Encoded image bytes.
        content_type: MIME type announced by the backend.
        provider_metadata: Backend details such as model name.
    """

    image_data: bytes
    content_type: str = "image/png"
    provider_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def size_bytes(self) -> int:
        return len(self.image_data)

    @property
    def data_url(self) -> str:
        """``data:`` URL carrying the bytes, suitable for an <img> src."""
        payload = base64.b64encode(self.image_data).decode("ascii")
        return f"data:{self.content_type};base64,{payload}"


@dataclass(frozen=True)
class ImageChunk:
    """Commentary text or an image; one stream element."""

    text: str | None = None
    image: ImageResult | None = None

    @property
    def has_image(self) -> bool:
        return self.image is not None


@runtime_checkable
class ImageStreamProvider(Protocol):
    """A backend that turns a panorama prompt into a chunk stream."""

    def stream(self, prompt: str) -> AsyncIterator[ImageChunk]:
        """Yield chunks in arrival order.

        Raises:
            ImageProviderError: On any backend failure, including mid-stream.
        """
        ...


class ImageProviderError(Exception):
    """An image backend failed."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class ImageContentPolicyError(ImageProviderError):
    """The backend refused the prompt or the image on safety grounds."""


class ImageProviderConnectionError(ImageProviderError):
    """The backend could not be reached."""
