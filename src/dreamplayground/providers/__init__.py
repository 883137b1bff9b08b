"""LLM and image provider integrations."""

from dreamplayground.providers.base import ProviderContentSafetyError, ProviderError
from dreamplayground.providers.content import extract_text, is_safety_block
from dreamplayground.providers.factory import (
    ChatModelFactory,
    chat_model_factory,
    create_chat_model,
    get_default_model,
    parse_provider_spec,
)
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

__all__ = [
    "ChatModelFactory",
    "ImageChunk",
    "ImageContentPolicyError",
    "ImageProviderConnectionError",
    "ImageProviderError",
    "ImageResult",
    "ImageStreamProvider",
    "PlaceholderImageProvider",
    "ProviderContentSafetyError",
    "ProviderError",
    "chat_model_factory",
    "create_chat_model",
    "create_image_provider",
    "extract_text",
    "get_default_model",
    "is_safety_block",
    "parse_provider_spec",
]
