"""Tests for message content helpers."""

from __future__ import annotations

from typing import Any

import pytest

from dreamplayground.providers.content import extract_text, is_safety_block


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("Glass Ocean", "Glass Ocean"),
        ([{"type": "text", "text": "Velvet Tide"}], "Velvet Tide"),
        (["Title:", {"type": "text", "text": "Lantern Forest"}], "Title:\nLantern Forest"),
        ([{"type": "image", "data": "..."}, {"type": "text", "text": "caption"}], "caption"),
        ([{"type": "text", "text": 7}, {"type": "text", "text": "kept"}], "kept"),
    ],
)
def test_extract_text(content: Any, expected: str) -> None:
    assert extract_text(content) == expected


@pytest.mark.parametrize(("content", "expected"), [([], "[]"), (3.5, "3.5")])
def test_extract_text_unrecognized_shape(content: Any, expected: str) -> None:
    assert extract_text(content) == expected


@pytest.mark.parametrize(
    "reason",
    ["SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "FinishReason.IMAGE_SAFETY", "content_filter"],
)
def test_refusal_reasons(reason: str) -> None:
    assert is_safety_block(reason)


@pytest.mark.parametrize("reason", [None, "", "STOP", "length", "FinishReason.MAX_TOKENS"])
def test_ordinary_reasons(reason: str | None) -> None:
    assert not is_safety_block(reason)
