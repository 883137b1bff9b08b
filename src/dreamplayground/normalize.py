"""Tolerant JSON extraction from free-form model output.

Models asked for "ONLY JSON" still wrap it in code fences, prose, smart
quotes and trailing commas. ``normalize`` recovers a best-effort structured
value and signals failure with ``None``; it never raises. Call sites only
depend on this one function, so a stricter strategy can replace it without
touching them.
"""

from __future__ import annotations

import json
import re
from typing import Any

from dreamplayground.observability.logging import get_logger

log = get_logger(__name__)

_SMART_QUOTES = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "‘": "'",
        "’": "'",
    }
)
_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCE_MARKER = re.compile(r"```json|```", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def normalize_quotes(text: str) -> str:
    """Replace typographic quotes with their ASCII equivalents."""
    return text.translate(_SMART_QUOTES)


def strip_code_fences(text: str) -> str:
    """Remove every code-fence marker, keeping the fenced content."""
    return _FENCE_MARKER.sub("", text)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace or bracket."""
    return _TRAILING_COMMA.sub(r"\1", text)


def extract_json_block(text: str) -> str | None:
    """Locate the JSON payload inside ``text``.

    A fenced ``json`` block wins. Otherwise the span from the first ``{`` to
    the last ``}`` is taken, widened to the surrounding ``[ ... ]`` when the
    objects are the elements of an array.

    Returns:
        The candidate payload, or None if the text holds no ``{...}`` pair.
    """
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None

    fenced = _FENCED_JSON.search(text)
    if fenced:
        return fenced.group(1)

    text = strip_code_fences(text)
    first = text.find("{")
    last = text.rfind("}")

    open_bracket = text.rfind("[", 0, first)
    close_bracket = text.find("]", last)
    if (
        open_bracket != -1
        and close_bracket != -1
        and not text[open_bracket + 1 : first].strip()
        and not text[last + 1 : close_bracket].replace(",", "").strip()
    ):
        return text[open_bracket : close_bracket + 1]
    return text[first : last + 1]


def normalize(raw_text: str | None, expect: type | None = None) -> Any | None:
    """Parse loosely formatted model output into a JSON value.

    Args:
        raw_text: Raw model text.
        expect: Optional top-level type (``list`` or ``dict``). A parsed value
            of any other type is treated as a failure.

    Returns:
        The parsed value, or None when nothing usable could be recovered.
    """
    if not raw_text:
        return None

    candidate = extract_json_block(normalize_quotes(raw_text))
    if candidate is None:
        log.debug("normalize_no_payload", length=len(raw_text))
        return None

    candidate = remove_trailing_commas(strip_code_fences(candidate).strip())
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        log.debug("normalize_parse_failed", error=str(e), preview=candidate[:120])
        return None

    if expect is not None and not isinstance(value, expect):
        log.debug(
            "normalize_unexpected_shape",
            expected=expect.__name__,
            actual=type(value).__name__,
        )
        return None
    return value
