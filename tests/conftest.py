"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from tests.fixtures.fake_providers import StaticImageProvider


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep provider overrides and a stray config file out of every test."""
    monkeypatch.delenv("DREAM_PROVIDER", raising=False)
    monkeypatch.delenv("DREAM_IMAGE_PROVIDER", raising=False)
    monkeypatch.chdir(tmp_path)


def _as_message(item: Any) -> Any:
    if isinstance(item, (BaseException, AIMessage)):
        return item
    return AIMessage(content=item)


@pytest.fixture
def scripted_models() -> Callable[..., tuple[MagicMock, MagicMock]]:
    """Build a chat-model factory whose model answers in a fixed order.

    Each response is a string, an ``AIMessage`` or an exception to raise.
    Returns ``(model_for, model)``.
    """

    def _build(*responses: Any) -> tuple[MagicMock, MagicMock]:
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=[_as_message(r) for r in responses])
        model_for = MagicMock(return_value=model)
        return model_for, model

    return _build


@pytest.fixture
def image_provider() -> StaticImageProvider:
    return StaticImageProvider()
