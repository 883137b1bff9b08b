"""Pydantic model for a generated dreamscape."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dreamplayground.models.scene import SceneObject
from dreamplayground.providers.image import ImageResult

MAX_SCENE_OBJECTS = 12


class GeneratedDream(BaseModel):
    """Panorama, title and optional scene plan for one dream.

    Title and image are produced together; the scene plan is best-effort and
    may be absent.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: ImageResult
    title: str = Field(min_length=1, max_length=64)
    scene_objects: list[SceneObject] | None = None

    @field_validator("scene_objects", mode="before")
    @classmethod
    def cap_scene_objects(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[:MAX_SCENE_OBJECTS]
        return value

    @property
    def image_url(self) -> str:
        """The panorama as a ``data:`` URL."""
        return self.image.data_url
