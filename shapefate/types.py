"""Core types for the silhouette and piece generation pipeline."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import math

import numpy as np

# Type aliases
Raster = np.ndarray  # (H, W, 4) uint8 RGBA
Mask = np.ndarray    # (H, W) bool


@dataclass(frozen=True)
class Point:
    """2D point with float coordinates."""
    x: float
    y: float


Polygon = List[Point]


@dataclass
class BoundingBox:
    """Axis-aligned bounds of a point set."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    @property
    def center(self) -> Point:
        return Point((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)


@dataclass
class MaskConfig:
    """Configuration for subject mask extraction."""
    # 0-100 slider; 50 adds no adjustment to the adaptive threshold
    background_tolerance: float = 50.0
    use_interior_sampling: bool = True
    dilation_radius: int = 2

    def __post_init__(self):
        if not 0 <= self.background_tolerance <= 100:
            raise ValueError(
                f"background_tolerance must be in [0, 100], got {self.background_tolerance}"
            )
        if self.dilation_radius < 0:
            raise ValueError(f"dilation_radius must be >= 0, got {self.dilation_radius}")


@dataclass
class PipelineConfig:
    """Configuration for the level generation pipeline."""
    mask: MaskConfig = field(default_factory=MaskConfig)

    # Raster is downscaled to fit this before tracing
    max_dimension: int = 600
    mask_max_dimension: int = 800

    # Douglas-Peucker tolerance in normalized units
    simplify_tolerance: float = 0.0025

    # Decomposition
    piece_count: int = 5
    seed: Optional[int] = None

    def __post_init__(self):
        if self.piece_count < 1:
            raise ValueError(f"piece_count must be >= 1, got {self.piece_count}")


@dataclass
class Piece:
    """A puzzle piece ready for rendering and export."""
    id: str
    vertices: Polygon
    color: str
    start_pos: Point


@dataclass
class DecompositionResult:
    """Polygons produced by one decomposition run."""
    pieces: List[Polygon]
    achieved_count: int
    target_count: int

    @property
    def degraded(self) -> bool:
        """True when attempts ran out before the target count was reached."""
        return self.achieved_count < self.target_count


@dataclass
class SplitResult:
    """Two halves of a polygon cut by a line."""
    front: Polygon
    back: Polygon
    chord: Tuple[Point, Point]


class LevelEditorError(Exception):
    """Base exception for silhouette and piece generation errors."""
    pass


class NoSubjectDetected(LevelEditorError):
    """No foreground pixels were found in the raster or imported mask."""
    pass


class NoClosedLoop(LevelEditorError):
    """Marching squares produced no loop with at least 3 points."""
    pass


class ImageLoadError(LevelEditorError):
    """An image file could not be decoded."""
    pass
