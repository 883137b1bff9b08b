"""Prompt compiler for assembling request prompts."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dreamplayground.prompts.loader import PromptLoader, TemplateNotFoundError

DEFAULT_PROMPTS_PATH = Path(__file__).parent


@dataclass
class CompiledPrompt:
    """A compiled prompt ready for submission."""

    text: str
    template_name: str
    temperature: float
    max_tokens: int | None = None
    thinking_budget: int | None = None


class PromptCompileError(Exception):
    """Raised when prompt compilation fails."""

    def __init__(self, template_name: str, message: str) -> None:
        self.template_name = template_name
        super().__init__(f"Failed to compile template '{template_name}': {message}")


class PromptCompiler:
    """Compile prompts from templates with ``{{ variable }}`` substitution.

    Strings are inserted verbatim; lists, dicts and models are rendered as
    JSON. Unresolved placeholders are an error so a prompt never reaches the
    model with a hole in it.
    """

    _VAR_PATTERN = re.compile(r"\{\{\s*(\w+)(\|json)?\s*\}\}")

    def __init__(self, prompts_path: Path = DEFAULT_PROMPTS_PATH) -> None:
        self._loader = PromptLoader(prompts_path)

    @staticmethod
    def _render(value: Any, as_json: bool) -> str:
        if hasattr(value, "model_dump"):
            value = value.model_dump(exclude_none=True)
        elif isinstance(value, list):
            value = [v.model_dump(exclude_none=True) if hasattr(v, "model_dump") else v for v in value]
        if as_json or isinstance(value, (list, dict)):
            return json.dumps(value, ensure_ascii=False)
        return str(value)

    def compile(self, template_name: str, context: dict[str, Any] | None = None) -> CompiledPrompt:
        """Compile a prompt from a template.

        Args:
            template_name: Name of the template (e.g., ``title``).
            context: Values for the template placeholders. A ``|json`` suffix
                on a placeholder renders the value as a JSON literal.

        Raises:
            PromptCompileError: If the template is missing or a placeholder
                has no value.
        """
        context = context or {}
        try:
            template = self._loader.load(template_name)
        except TemplateNotFoundError as e:
            raise PromptCompileError(template_name, str(e)) from e

        def replace_match(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in context:
                raise PromptCompileError(template_name, f"Missing value for '{name}'")
            return self._render(context[name], as_json=bool(match.group(2)))

        return CompiledPrompt(
            text=self._VAR_PATTERN.sub(replace_match, template.user),
            template_name=template.name,
            temperature=template.temperature,
            max_tokens=template.max_tokens,
            thinking_budget=template.thinking_budget,
        )
