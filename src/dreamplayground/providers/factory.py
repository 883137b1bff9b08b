"""Chat model construction for the dream text requests.

Models are built with LangChain's ``init_chat_model``. Credentials are looked
up here first so a missing key fails with a readable message instead of a
provider SDK traceback.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dreamplayground.observability.logging import get_logger
from dreamplayground.providers.base import ProviderError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

log = get_logger(__name__)

# (temperature, max_tokens, thinking_budget) -> chat model with those settings
ChatModelFactory = Callable[[float, "int | None", "int | None"], "BaseChatModel"]


@dataclass(frozen=True)
class _ProviderInfo:
    default_model: str | None
    env_var: str
    init_name: str
    package: str
    # constructor keyword for the reasoning allowance, if the integration has one
    thinking_kwarg: str | None = None


_PROVIDERS: dict[str, _ProviderInfo] = {
    "ollama": _ProviderInfo(None, "OLLAMA_HOST", "ollama", "langchain-ollama"),
    "openai": _ProviderInfo("gpt-5-mini", "OPENAI_API_KEY", "openai", "langchain-openai"),
    "anthropic": _ProviderInfo(
        "claude-sonnet-4-20250514", "ANTHROPIC_API_KEY", "anthropic", "langchain-anthropic"
    ),
    "google": _ProviderInfo(
        "gemini-2.5-flash",
        "GOOGLE_API_KEY",
        "google_genai",
        "langchain-google-genai",
        thinking_kwarg="thinking_budget",
    ),
}

# None means the model must be named explicitly
PROVIDER_DEFAULTS: dict[str, str | None] = {
    name: info.default_model for name, info in _PROVIDERS.items()
}

_ALIASES = {"gemini": "google"}


def _normalize_provider(provider_name: str) -> str:
    name = provider_name.strip().lower()
    return _ALIASES.get(name, name)


def get_default_model(provider_name: str) -> str | None:
    """Default model for a provider, or None when one must be given."""
    return PROVIDER_DEFAULTS.get(_normalize_provider(provider_name))


def parse_provider_spec(spec: str) -> tuple[str, str]:
    """Resolve ``provider`` or ``provider/model`` to a (provider, model) pair.

    Everything after the first slash is the model, so Ollama library paths
    such as ``ollama/library/qwen3:4b`` survive.

    Raises:
        ProviderError: No model given and the provider has no default.
    """
    name, sep, model = spec.partition("/")
    provider = _normalize_provider(name)
    if sep:
        return provider, model

    default = get_default_model(provider)
    if default is None:
        raise ProviderError(
            provider,
            f"Provider '{provider}' requires explicit model. "
            f"Use --provider {provider}/<model-name>",
        )
    return provider, default


def _resolve_credentials(provider: str, info: _ProviderInfo, options: dict[str, Any]) -> None:
    """Fill ``base_url`` (Ollama) or ``api_key`` in place from options or env."""
    if provider == "ollama":
        host = options.pop("host", None) or os.getenv(info.env_var)
        if not host:
            log.error("provider_config_error", provider=provider, missing=info.env_var)
            raise ProviderError(
                provider, f"{info.env_var} not configured. Set {info.env_var} environment variable."
            )
        options["base_url"] = host
        return

    key = options.pop("google_api_key", None) or options.get("api_key") or os.getenv(info.env_var)
    if not key:
        log.error("provider_config_error", provider=provider, missing=info.env_var)
        raise ProviderError(
            provider, f"API key required. Set {info.env_var} environment variable."
        )
    options["api_key"] = key


def create_chat_model(provider_name: str, model: str, **kwargs: Any) -> BaseChatModel:
    """Build a chat model for ``provider_name``.

    Keyword arguments are passed to the LangChain constructor; those set to
    None are dropped so provider defaults apply.

    Raises:
        ProviderError: Unknown provider, missing credentials, or the
            integration package is not installed.
    """
    provider = _normalize_provider(provider_name)
    info = _PROVIDERS.get(provider)
    if info is None:
        log.error("provider_unknown", provider=provider)
        raise ProviderError(provider, f"Unknown provider: {provider}")

    options = {key: value for key, value in kwargs.items() if value is not None}
    _resolve_credentials(provider, info, options)

    try:
        chat_model = _init_chat_model_safe(info.init_name, model, **options)
    except ImportError as e:
        log.error("provider_import_error", provider=provider, package=info.package)
        raise ProviderError(
            provider, f"{info.package} not installed. Run: pip install {info.package}"
        ) from e

    log.info("chat_model_created", provider=provider, model=model)
    return chat_model


def chat_model_factory(provider_spec: str, **kwargs: Any) -> ChatModelFactory:
    """Return a cached ``(temperature, max_tokens, thinking_budget) -> model`` callable.

    Each prompt template has its own sampling settings. They are applied when
    the model is constructed, one model per distinct combination. A thinking
    budget only reaches providers whose integration accepts one.

    Raises:
        ProviderError: Raised immediately if the provider string cannot be resolved.
    """
    provider, model = parse_provider_spec(provider_spec)
    info = _PROVIDERS.get(provider)
    thinking_kwarg = info.thinking_kwarg if info is not None else None
    models: dict[tuple[float, int | None, int | None], BaseChatModel] = {}

    def _model_for(
        temperature: float, max_tokens: int | None, thinking_budget: int | None = None
    ) -> BaseChatModel:
        if thinking_kwarg is None:
            thinking_budget = None
        key = (temperature, max_tokens, thinking_budget)
        if key not in models:
            options: dict[str, Any] = {"temperature": temperature, "max_tokens": max_tokens}
            if thinking_kwarg is not None:
                options[thinking_kwarg] = thinking_budget
            models[key] = create_chat_model(provider, model, **options, **kwargs)
        return models[key]

    return _model_for


def _init_chat_model_safe(provider: str, model: str, **kwargs: Any) -> BaseChatModel:
    """Call init_chat_model, letting ImportError surface to the caller."""
    from langchain.chat_models import init_chat_model

    result: BaseChatModel = init_chat_model(model=model, model_provider=provider, **kwargs)
    return result
