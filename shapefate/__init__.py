"""shapefate: silhouette tracing and puzzle piece generation for level authoring.

Segments a subject from its background, traces and simplifies its
outline, and cuts the outline into area-balanced pieces that tile it.
"""
from shapefate.types import (
    Point,
    BoundingBox,
    Piece,
    MaskConfig,
    PipelineConfig,
    DecompositionResult,
    LevelEditorError,
    NoSubjectDetected,
    NoClosedLoop,
    ImageLoadError,
)

__version__ = "0.1.0"
__all__ = [
    "Point",
    "BoundingBox",
    "Piece",
    "MaskConfig",
    "PipelineConfig",
    "DecompositionResult",
    "LevelEditorError",
    "NoSubjectDetected",
    "NoClosedLoop",
    "ImageLoadError",
]
