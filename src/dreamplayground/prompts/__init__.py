"""Prompt templates and compilation."""

from dreamplayground.prompts.compiler import CompiledPrompt, PromptCompileError, PromptCompiler
from dreamplayground.prompts.loader import (
    PromptLoader,
    PromptTemplate,
    TemplateNotFoundError,
    TemplateParseError,
)

__all__ = [
    "CompiledPrompt",
    "PromptCompileError",
    "PromptCompiler",
    "PromptLoader",
    "PromptTemplate",
    "TemplateNotFoundError",
    "TemplateParseError",
]
