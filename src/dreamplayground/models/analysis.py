"""Pydantic models for the structured dream analysis.

The analyst model is asked for camelCase JSON with loosely bounded lists and
0..1 scores. Its output is coerced here, at ingestion, rather than trusted:
bare strings become themes or symbols, malformed entries are dropped, lists
are truncated and unusable scores fall back to their defaults. One loose
field never costs the rest of the analysis.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CONFIDENCE = 0.6
DEFAULT_STRENGTH = 0.5

# Maximum kept entries per list field
LIST_LIMITS: dict[str, int] = {
    "emotions": 6,
    "themes": 6,
    "symbols": 10,
    "likely_factors": 6,
    "suggestions": 6,
}

_CAMEL_KEYS: dict[str, str] = {
    "likelyFactors": "likely_factors",
    "sleepStage": "sleep_stage",
    "sensoryModalities": "sensory_modalities",
    "copingStrategies": "coping_strategies",
}

# List fields holding objects, with the key a bare string is promoted to
_OBJECT_LISTS: dict[str, str] = {"themes": "name", "symbols": "symbol"}


def clamp_unit(value: Any, default: float | None = None) -> float | None:
    """Clamp a numeric value to [0, 1].

    None, booleans and values that do not read as a number map to
    ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return min(1.0, max(0.0, number))


def _strings(items: list[Any]) -> list[str]:
    texts = (str(item).strip() for item in items if isinstance(item, str | int | float))
    return [text for text in texts if text]


def _objects(items: list[Any], key: str) -> list[dict[str, Any]]:
    """Promote bare strings to ``{key: s}`` and drop entries without ``key``."""
    kept: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item, str):
            item = {key: item}
        if not isinstance(item, dict):
            continue
        label = item.get(key)
        if not isinstance(label, str) or not label.strip():
            continue
        kept.append(
            {
                field: value if field == "strength" or isinstance(value, str) else str(value)
                for field, value in item.items()
                if value is not None
            }
        )
    return kept


class DreamTheme(BaseModel):
    """A recurring theme, e.g. control, uncertainty, transformation."""

    name: str
    description: str = ""
    strength: float = Field(default=DEFAULT_STRENGTH, ge=0.0, le=1.0)

    @field_validator("strength", mode="before")
    @classmethod
    def clamp_strength(cls, value: Any) -> Any:
        return clamp_unit(value, default=DEFAULT_STRENGTH)


class DreamSymbolInsight(BaseModel):
    """A dream symbol (teeth, falling, water) and what it may mean."""

    symbol: str
    meaning: str = ""
    evidence: str | None = None


class DreamAnalysis(BaseModel):
    """Structured, non-diagnostic reflection on a dream."""

    summary: str = ""
    emotions: list[str] = Field(default_factory=list)
    themes: list[DreamTheme] = Field(default_factory=list)
    symbols: list[DreamSymbolInsight] = Field(default_factory=list)
    likely_factors: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    narrative: str = ""
    sleep_stage: str | None = None
    sensory_modalities: list[str] | None = None
    coping_strategies: list[str] | None = None
    intensity: float | None = Field(default=None, ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def bound_payload(cls, data: Any) -> Any:
        """Accept camelCase keys and coerce loose values field by field."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for camel, snake in _CAMEL_KEYS.items():
            if camel in data and snake not in data:
                data[snake] = data.pop(camel)

        for key, limit in LIST_LIMITS.items():
            value = data.get(key)
            if isinstance(value, str | dict):
                value = [value]
            if not isinstance(value, list):
                value = []
            if key in _OBJECT_LISTS:
                data[key] = _objects(value, _OBJECT_LISTS[key])[:limit]
            else:
                data[key] = _strings(value)[:limit]

        for key in ("sensory_modalities", "coping_strategies"):
            value = data.get(key)
            if isinstance(value, str):
                value = [value]
            data[key] = _strings(value) if isinstance(value, list) else None

        data["confidence"] = clamp_unit(data.get("confidence"), default=DEFAULT_CONFIDENCE)
        data["intensity"] = clamp_unit(data.get("intensity"))
        for key in ("summary", "narrative"):
            if not isinstance(data.get(key), str):
                data[key] = ""
        if not isinstance(data.get("sleep_stage"), str) or not data["sleep_stage"].strip():
            data["sleep_stage"] = None
        return data

    @property
    def has_profile(self) -> bool:
        """True when sleep stage, modalities or intensity are present."""
        return bool(self.sleep_stage or self.sensory_modalities or self.intensity is not None)
