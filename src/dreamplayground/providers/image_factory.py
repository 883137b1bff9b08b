"""Image provider factory.

Creates image stream providers from provider strings (e.g., ``gemini/<model>``).
Provider implementations are lazily imported so the google-genai SDK is only
loaded when actually needed.
"""

from __future__ import annotations

from typing import Any

from dreamplayground.providers.image import ImageProviderError, ImageStreamProvider


def create_image_provider(provider_spec: str, **kwargs: Any) -> ImageStreamProvider:
    """Create an image stream provider from a provider string.

    Args:
        provider_spec: Format ``provider/model`` (e.g.,
            ``gemini/gemini-2.5-flash-image-preview``). If no model is
            specified, a provider-specific default is used.
        **kwargs: Additional provider options forwarded to the constructor.

    Returns:
        Configured image stream provider.

    Raises:
        ImageProviderError: If provider is unknown.
    """
    if "/" in provider_spec:
        provider, model = provider_spec.split("/", 1)
    else:
        provider = provider_spec
        model = None

    provider_lower = provider.lower()

    if provider_lower == "placeholder":
        from dreamplayground.providers.image_placeholder import PlaceholderImageProvider

        return PlaceholderImageProvider(**kwargs)

    if provider_lower in ("gemini", "google"):
        from dreamplayground.providers.image_gemini import GeminiImageProvider

        if model:
            return GeminiImageProvider(model=model, **kwargs)
        return GeminiImageProvider(**kwargs)

    raise ImageProviderError(provider_lower, f"Unknown image provider: {provider_lower}")
