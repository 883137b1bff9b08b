"""Tests for image stream types and the image provider factory."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import pytest

from dreamplayground.providers.image import (
    ImageChunk,
    ImageContentPolicyError,
    ImageProviderConnectionError,
    ImageProviderError,
    ImageResult,
    ImageStreamProvider,
)
from dreamplayground.providers.image_factory import create_image_provider
from dreamplayground.providers.image_placeholder import PlaceholderImageProvider

# ---------------------------------------------------------------------------
# ImageResult / ImageChunk
# ---------------------------------------------------------------------------


class TestImageResult:
    def test_defaults_to_png(self) -> None:
        panorama = ImageResult(image_data=b"\x89PNG panorama")
        assert panorama.content_type == "image/png"
        assert panorama.provider_metadata == {}

    def test_size_bytes(self) -> None:
        assert ImageResult(image_data=b"12345").size_bytes == 5

    def test_data_url(self) -> None:
        result = ImageResult(image_data=b"abc", content_type="image/webp")
        assert result.data_url == "data:image/webp;base64," + base64.b64encode(b"abc").decode()

    def test_immutable(self) -> None:
        panorama = ImageResult(image_data=b"sky")
        with pytest.raises(AttributeError):
            panorama.content_type = "image/jpeg"  # type: ignore[misc]


class TestImageChunk:
    def test_text_chunk(self) -> None:
        chunk = ImageChunk(text="thinking")
        assert not chunk.has_image

    def test_image_chunk(self) -> None:
        assert ImageChunk(image=ImageResult(image_data=b"x")).has_image


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class TestExceptions:
    def test_base_error(self) -> None:
        err = ImageProviderError("gemini", "something failed")
        assert err.provider == "gemini"
        assert "[gemini]" in str(err)

    def test_subclasses(self) -> None:
        assert isinstance(ImageContentPolicyError("gemini", "x"), ImageProviderError)
        assert isinstance(ImageProviderConnectionError("gemini", "x"), ImageProviderError)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateImageProvider:
    def test_placeholder(self) -> None:
        provider = create_image_provider("placeholder")
        assert isinstance(provider, PlaceholderImageProvider)
        assert isinstance(provider, ImageStreamProvider)

    def test_gemini_with_model(self) -> None:
        from dreamplayground.providers.image_gemini import GeminiImageProvider

        provider = create_image_provider("gemini/my-image-model", client=MagicMock())
        assert isinstance(provider, GeminiImageProvider)
        assert provider.model == "my-image-model"

    def test_google_alias_default_model(self) -> None:
        from dreamplayground.providers.image_gemini import DEFAULT_IMAGE_MODEL

        provider = create_image_provider("Google", client=MagicMock())
        assert provider.model == DEFAULT_IMAGE_MODEL  # type: ignore[attr-defined]

    def test_gemini_requires_key(self) -> None:
        with patch.dict("os.environ", {}, clear=True), pytest.raises(ImageProviderError):
            create_image_provider("gemini")

    def test_unknown_provider(self) -> None:
        with pytest.raises(ImageProviderError, match="Unknown image provider"):
            create_image_provider("dalle/3")
