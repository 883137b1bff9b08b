"""Read prompt templates from YAML files under ``templates/``."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

TEMPLATE_SUFFIX = ".yaml"
DEFAULT_TEMPERATURE = 0.5


@dataclass
class PromptTemplate:
    """One prompt and the sampling settings it is sent with.

    Attributes:
        name: Template name, the file stem unless the file overrides it.
        description: Human note on what the prompt asks for.
        user: Body with ``{{ variable }}`` placeholders.
        temperature: Sampling temperature.
        max_tokens: Output cap; None leaves it to the provider.
        thinking_budget: Reasoning token allowance where the provider has
            one (0 turns thinking off); None keeps the model default.
    """

    name: str
    description: str
    user: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = None
    thinking_budget: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str) -> PromptTemplate:
        cap = data.get("max_tokens")
        budget = data.get("thinking_budget")
        return cls(
            name=str(data.get("name") or name),
            description=str(data.get("description") or ""),
            user=str(data.get("user") or ""),
            temperature=float(data.get("temperature", DEFAULT_TEMPERATURE)),
            max_tokens=None if cap is None else int(cap),
            thinking_budget=None if budget is None else int(budget),
        )


class TemplateNotFoundError(Exception):
    """No file exists for the requested template."""

    def __init__(self, template_name: str, path: Path) -> None:
        self.template_name = template_name
        self.path = path
        super().__init__(f"No template '{template_name}' (looked for {path})")


class TemplateParseError(Exception):
    """The template file exists but is not a usable template."""

    def __init__(self, template_name: str, reason: str) -> None:
        self.template_name = template_name
        self.reason = reason
        super().__init__(f"Template '{template_name}' is invalid: {reason}")


class PromptLoader:
    """Loads and caches templates from ``<prompts_path>/templates``."""

    def __init__(self, prompts_path: Path) -> None:
        self.prompts_path = prompts_path
        self.templates_path = prompts_path / "templates"
        self._yaml = YAML(typ="safe")
        self._cache: dict[str, PromptTemplate] = {}

    def _read(self, template_name: str) -> dict[str, Any]:
        path = self.templates_path / f"{template_name}{TEMPLATE_SUFFIX}"
        if not path.is_file():
            raise TemplateNotFoundError(template_name, path)

        try:
            data = self._yaml.load(path.read_text(encoding="utf-8"))
        except (YAMLError, UnicodeDecodeError) as e:
            raise TemplateParseError(template_name, str(e)) from e

        if not isinstance(data, dict):
            raise TemplateParseError(template_name, "Expected a mapping")
        return data

    def load(self, template_name: str) -> PromptTemplate:
        """Return the named template, reading it on first request.

        Raises:
            TemplateNotFoundError: No such template file.
            TemplateParseError: Invalid YAML or not a mapping.
        """
        cached = self._cache.get(template_name)
        if cached is None:
            cached = PromptTemplate.from_dict(self._read(template_name), template_name)
            self._cache[template_name] = cached
        return cached

    def list_templates(self) -> list[str]:
        """Names of the available templates, sorted."""
        if not self.templates_path.is_dir():
            return []
        return sorted(p.stem for p in self.templates_path.glob(f"*{TEMPLATE_SUFFIX}") if p.is_file())
