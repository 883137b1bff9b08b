"""Title sanitizer.

Title requests ask for one short line, but models answer with labels,
bullet lists of options, quotes and markdown. ``sanitize_title`` is a pure,
deterministic filter that always produces a usable single-line title.
"""

from __future__ import annotations

import re

PLACEHOLDER_TITLE = "Untitled Dream"
MAX_TITLE_LENGTH = 64

_CODE_BLOCK = re.compile(r"```[\s\S]*?```")
_LABEL = re.compile(r"^\s*(?:(?:title\s*:\s*)|(?:here are.*$)|(?:options?:.*$))", re.IGNORECASE)
_BULLET = re.compile(r"^\s*[-*]\s*")
_NUMBERING = re.compile(r"^\s*\d+[).\]]\s*")
_WRAPPING_QUOTES = re.compile(r'^\s*"|"\s*$')
_EMPHASIS = re.compile(r"\*\*?|__|~~")
_WHITESPACE = re.compile(r"\s+")


def _clean_line(line: str) -> str:
    line = line.replace("```", "")
    line = _LABEL.sub("", line)
    line = _BULLET.sub("", line)
    line = _NUMBERING.sub("", line)
    line = _WRAPPING_QUOTES.sub("", line)
    line = _EMPHASIS.sub("", line)
    return line.strip()


def _is_good_candidate(line: str) -> bool:
    return 2 <= len(line.split()) <= 6 and ":" not in line


def title_candidates(raw_text: str) -> list[str]:
    """Return the cleaned, non-empty candidate lines of ``raw_text``."""
    text = _CODE_BLOCK.sub("", raw_text or "")
    text = text.replace("“", '"').replace("”", '"')
    text = text.replace("‘", "'").replace("’", "'")
    return [cleaned for cleaned in map(_clean_line, text.splitlines()) if cleaned]


def sanitize_title(raw_text: str | None) -> str:
    """Pick the best single-line title from free-form model output.

    Prefers the first candidate with 2-6 words and no colon, then the first
    candidate of any shape, then the placeholder. The result has collapsed
    whitespace and is at most 64 characters.
    """
    candidates = title_candidates(raw_text or "")
    pick = next((line for line in candidates if _is_good_candidate(line)), None)
    if pick is None:
        pick = candidates[0] if candidates else PLACEHOLDER_TITLE

    title = _WHITESPACE.sub(" ", pick).strip()[:MAX_TITLE_LENGTH].strip()
    return title or PLACEHOLDER_TITLE
