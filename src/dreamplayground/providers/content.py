"""Utilities for normalizing LLM message content across providers.

Gemini returns ``AIMessage.content`` as a list of content-block dicts rather
than a plain string, and flags refusals in ``response_metadata``.  The helpers
here give the rest of the code a plain string and a single safety check.
"""

from __future__ import annotations

from typing import Any

# Finish reasons that mean the provider withheld the answer on policy grounds
SAFETY_FINISH_REASONS = frozenset(
    {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "IMAGE_SAFETY", "content_filter"}
)


def extract_text(content: str | list[Any]) -> str:
    """Extract plain text from an LLM message content field.

    Handles two formats:
    - ``str``: returned as-is.
    - ``list``: content blocks. Text is taken from plain string blocks and
      from dict blocks with ``type == "text"``, then joined with newlines.

    Falls back to ``str(content)`` for unexpected shapes so callers never crash.
    """
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    parts.append(text)
        if parts:
            return "\n".join(parts)

    return str(content)


def is_safety_block(finish_reason: str | None) -> bool:
    """Return True if a provider finish reason denotes a safety refusal."""
    if not finish_reason:
        return False
    reason = str(finish_reason).rsplit(".", 1)[-1]
    return reason in SAFETY_FINISH_REASONS
