"""Pydantic models for dream session data.

Model output is loosely structured; these models are where bounds and
defaults are enforced on ingestion.
"""

from dreamplayground.models.analysis import (
    DreamAnalysis,
    DreamSymbolInsight,
    DreamTheme,
)
from dreamplayground.models.clarify import ClarifyingQuestion, QAEntry
from dreamplayground.models.dream import GeneratedDream
from dreamplayground.models.scene import (
    ANIMATION_TYPES,
    PRIMITIVE_TYPES,
    AnimationType,
    PrimitiveType,
    SceneObject,
)

__all__ = [
    "ANIMATION_TYPES",
    "PRIMITIVE_TYPES",
    "AnimationType",
    "ClarifyingQuestion",
    "DreamAnalysis",
    "DreamSymbolInsight",
    "DreamTheme",
    "GeneratedDream",
    "PrimitiveType",
    "QAEntry",
    "SceneObject",
]
