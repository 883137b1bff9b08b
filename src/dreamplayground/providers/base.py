"""Exception types for LLM providers."""

from __future__ import annotations


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class ProviderContentSafetyError(ProviderError):
    """Raised when the provider refuses a prompt on safety grounds."""
