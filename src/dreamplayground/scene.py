"""Scene-plan sanitizer.

Turns an already-parsed, loosely typed list of object descriptors into
``SceneObject`` instances the viewer can place without further checks.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dreamplayground.models.scene import (
    ANIMATION_TYPES,
    PRIMITIVE_TYPES,
    SceneObject,
    Vector3,
)

MAX_SCENE_OBJECTS = 12
DEFAULT_COLOR = "#9ca3af"
DEFAULT_PRIMITIVE = "box"
DEFAULT_METALNESS = 0.2
DEFAULT_ROUGHNESS = 0.6

# (min, max, default) per axis
POSITION_BOUNDS: tuple[tuple[float, float, float], ...] = (
    (-8.0, 8.0, 0.0),
    (-2.0, 5.0, 0.0),
    (-8.0, 8.0, -2.0),
)


class SceneSanitizeError(ValueError):
    """Raised when the scene plan is not a list of object records."""


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _vector(value: Any) -> Vector3 | None:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        return None
    numbers = [_number(v) for v in value]
    if any(n is None for n in numbers):
        return None
    return (numbers[0], numbers[1], numbers[2])  # type: ignore[return-value]


def _position(value: Any) -> Vector3:
    raw = list(value) if isinstance(value, (list, tuple)) else []
    axes: list[float] = []
    for index, (low, high, default) in enumerate(POSITION_BOUNDS):
        number = _number(raw[index]) if index < len(raw) else None
        axes.append(_clamp(default if number is None else number, low, high))
    return (axes[0], axes[1], axes[2])


def _unit(value: Any, default: float) -> float:
    number = _number(value)
    return default if number is None else _clamp(number, 0.0, 1.0)


def _scale(value: Any) -> float | Vector3:
    number = _number(value)
    if number is not None:
        return number
    return _vector(value) or 1.0


def _color(value: Any, default: str | None) -> str | None:
    return value if isinstance(value, str) and value.strip() else default


def sanitize_scene_object(record: Mapping[str, Any], index: int) -> SceneObject:
    """Coerce one raw descriptor into a bounded SceneObject."""
    shape = record.get("type")
    animation = record.get("animation")
    raw_id = record.get("id")

    return SceneObject(
        id=str(raw_id) if raw_id not in (None, "") else f"obj-{index}",
        type=shape if shape in PRIMITIVE_TYPES else DEFAULT_PRIMITIVE,
        position=_position(record.get("position")),
        rotation=_vector(record.get("rotation")) or (0.0, 0.0, 0.0),
        scale=_scale(record.get("scale")),
        color=_color(record.get("color"), DEFAULT_COLOR) or DEFAULT_COLOR,
        emissive=_color(record.get("emissive"), None),
        metalness=_unit(record.get("metalness"), DEFAULT_METALNESS),
        roughness=_unit(record.get("roughness"), DEFAULT_ROUGHNESS),
        animation=animation if animation in ANIMATION_TYPES else "none",
    )


def sanitize_scene(parsed: Any) -> list[SceneObject]:
    """Sanitize a parsed scene plan.

    Keeps the first 12 descriptors, fills defaults and clamps positions,
    metalness and roughness.

    Raises:
        SceneSanitizeError: If ``parsed`` is not a list of mappings.
    """
    if not isinstance(parsed, list):
        raise SceneSanitizeError(f"Scene plan must be a list, got {type(parsed).__name__}")

    objects: list[SceneObject] = []
    for index, record in enumerate(parsed[:MAX_SCENE_OBJECTS]):
        if not isinstance(record, Mapping):
            raise SceneSanitizeError(
                f"Scene object {index} must be a mapping, got {type(record).__name__}"
            )
        objects.append(sanitize_scene_object(record, index))
    return objects
