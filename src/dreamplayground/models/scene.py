"""Pydantic models for the scene plan that accompanies a panorama.

A scene plan is a short list of primitive 3D objects placed around the
viewer. The bounds here are the viewer's contract; the sanitizer in
``dreamplayground.scene`` coerces raw model output into them.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, Field

PrimitiveType = Literal[
    "box",
    "sphere",
    "torus",
    "cone",
    "cylinder",
    "icosahedron",
    "dodecahedron",
    "plane",
]
AnimationType = Literal["none", "rotate", "float", "orbit"]

PRIMITIVE_TYPES: tuple[str, ...] = get_args(PrimitiveType)
ANIMATION_TYPES: tuple[str, ...] = get_args(AnimationType)

Vector3 = tuple[float, float, float]


class SceneObject(BaseModel):
    """One primitive placed in the dream scene."""

    id: str | None = Field(default=None, description="Stable identifier within the plan")
    type: PrimitiveType = Field(description="Primitive shape")
    position: Vector3 = Field(description="X, Y, Z position around the origin")
    rotation: Vector3 = Field(default=(0.0, 0.0, 0.0), description="Euler rotation in radians")
    scale: float | Vector3 = Field(default=1.0, description="Uniform or per-axis scale")
    color: str = Field(default="#9ca3af", description="Hex or CSS color")
    emissive: str | None = Field(default=None, description="Optional emissive color")
    metalness: float = Field(default=0.2, ge=0.0, le=1.0)
    roughness: float = Field(default=0.6, ge=0.0, le=1.0)
    animation: AnimationType = "none"
