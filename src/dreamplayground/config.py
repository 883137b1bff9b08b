"""Configuration loading.

Resolution order for each setting (highest priority first):
1. CLI flags (applied by the caller via ``with_overrides``)
2. Environment variables (``DREAM_PROVIDER``, ``DREAM_IMAGE_PROVIDER``)
3. ``dreamplayground.yaml`` in the working directory (or ``--config``)
4. Built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

DEFAULT_PROVIDER = "google/gemini-2.5-flash"
DEFAULT_IMAGE_PROVIDER = "gemini/gemini-2.5-flash-image-preview"
DEFAULT_CONFIG_FILE = Path("dreamplayground.yaml")

MAX_QUESTIONS = 3


class ConfigError(Exception):
    """Raised when configuration cannot be loaded."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Invalid config {path}: {message}")


@dataclass(frozen=True)
class DreamConfig:
    """Settings for one dream session.

    Attributes:
        provider: Text model as ``provider/model`` (title, questions, analysis,
            scene plan).
        image_provider: Panorama backend as ``provider/model`` or
            ``placeholder``.
        max_questions: Upper bound on clarifying questions shown.
    """

    provider: str = DEFAULT_PROVIDER
    image_provider: str = DEFAULT_IMAGE_PROVIDER
    max_questions: int = MAX_QUESTIONS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DreamConfig:
        """Create config from a mapping, ignoring unknown keys."""
        providers = data.get("providers") or {}
        max_questions = int(data.get("max_questions", MAX_QUESTIONS))
        return cls(
            provider=providers.get("text", DEFAULT_PROVIDER),
            image_provider=providers.get("image", DEFAULT_IMAGE_PROVIDER),
            max_questions=max(0, min(MAX_QUESTIONS, max_questions)),
        )

    def with_overrides(
        self,
        provider: str | None = None,
        image_provider: str | None = None,
    ) -> DreamConfig:
        """Return a copy with the non-None overrides applied."""
        return replace(
            self,
            provider=provider or self.provider,
            image_provider=image_provider or self.image_provider,
        )


def load_config(path: Path | None = None) -> DreamConfig:
    """Load configuration from YAML and the environment.

    Args:
        path: Explicit config file. Must exist when given. When None,
            ``dreamplayground.yaml`` is used if present.

    Returns:
        Resolved DreamConfig.

    Raises:
        ConfigError: If the file is missing (explicit path) or malformed.
    """
    config = DreamConfig()

    config_file = path or DEFAULT_CONFIG_FILE
    if config_file.exists():
        yaml = YAML(typ="safe")
        try:
            with config_file.open(encoding="utf-8") as f:
                data = yaml.load(f)
        except Exception as e:
            raise ConfigError(config_file, str(e)) from e
        if data is not None:
            if not isinstance(data, dict):
                raise ConfigError(config_file, "top level must be a mapping")
            try:
                config = DreamConfig.from_dict(data)
            except (TypeError, ValueError, AttributeError) as e:
                raise ConfigError(config_file, str(e)) from e
    elif path is not None:
        raise ConfigError(path, "file not found")

    return config.with_overrides(
        provider=os.getenv("DREAM_PROVIDER"),
        image_provider=os.getenv("DREAM_IMAGE_PROVIDER"),
    )
