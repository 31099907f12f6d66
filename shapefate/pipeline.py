"""Level generation pipeline: trace a silhouette, then cut it into pieces."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import logging
import time

import numpy as np

from shapefate.contour import trace_contour
from shapefate.decompose import decompose
from shapefate.level import LevelMetadata, build_pieces, export_piece_images, save_level
from shapefate.mask import extract_mask, mask_from_image
from shapefate.raster_ingest import load_raster, open_image
from shapefate.regions import extract_largest_region
from shapefate.simplify import simplify_path
from shapefate.types import Mask, Piece, PipelineConfig, Polygon, Raster

logger = logging.getLogger(__name__)


@dataclass
class LevelResult:
    """Output of a full quick-generate run."""
    silhouette: Polygon
    pieces: List[Piece] = field(default_factory=list)
    target_count: int = 0
    output_path: Optional[Path] = None
    piece_image_paths: List[Path] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return len(self.pieces) < self.target_count


class LevelPipeline:
    """Trace a silhouette from an image and decompose it into pieces."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        """
        Initialize pipeline.

        Args:
            config: Pipeline configuration. Uses defaults if None.
        """
        self.config = config or PipelineConfig()

    def _rng(self, rng: Optional[np.random.Generator]) -> np.random.Generator:
        return rng if rng is not None else np.random.default_rng(self.config.seed)

    def _trace(self, mask: Mask) -> Polygon:
        region = extract_largest_region(mask)
        contour = trace_contour(region)
        silhouette = simplify_path(contour, self.config.simplify_tolerance)
        logger.info(f"Silhouette: {len(contour)} traced points, {len(silhouette)} after simplify")
        return silhouette

    def trace_silhouette(self, raster: Raster) -> Polygon:
        """
        Detect the subject in a raster and return its simplified outline.

        Raises:
            NoSubjectDetected: If no foreground is found
            NoClosedLoop: If the mask boundary cannot be traced
        """
        mask = extract_mask(raster, self.config.mask)
        return self._trace(mask)

    def import_mask(self, raster: Raster) -> Polygon:
        """
        Trace the outline of a user-supplied mask image.

        Raises:
            NoSubjectDetected: If the mask image has no opaque pixels
            NoClosedLoop: If the mask boundary cannot be traced
        """
        mask = mask_from_image(raster)
        return self._trace(mask)

    def split(
        self,
        silhouette: Polygon,
        rng: Optional[np.random.Generator] = None
    ) -> List[Piece]:
        """Decompose a silhouette into the configured number of pieces."""
        rng = self._rng(rng)
        result = decompose(silhouette, self.config.piece_count, rng)
        pieces = build_pieces(result.pieces, rng)
        logger.info(f"Created {len(pieces)} pieces (target {result.target_count})")
        return pieces

    def process(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        mask_path: Optional[Union[str, Path]] = None,
        metadata: Optional[LevelMetadata] = None,
        pieces_dir: Optional[Union[str, Path]] = None
    ) -> LevelResult:
        """
        Quick-generate a level from an image.

        Args:
            input_path: Source image
            output_path: Optional path for the level JSON
            mask_path: Optional mask image traced instead of the source
            metadata: Level identity for export
            pieces_dir: Optional directory for per-piece PNG crops

        Returns:
            LevelResult

        Raises:
            FileNotFoundError: If an input file doesn't exist
            LevelEditorError: If tracing fails or an image cannot be loaded
        """
        start_time = time.time()
        metadata = metadata or LevelMetadata()

        if mask_path is not None:
            # Transparent mask pixels keep their stored color for the brightness test
            raster = load_raster(
                mask_path, self.config.mask_max_dimension, clear_transparent=False
            )
            logger.info(f"Mask image: {raster.shape[1]}x{raster.shape[0]}")
            silhouette = self.import_mask(raster)
        else:
            raster = load_raster(input_path, self.config.max_dimension)
            logger.info(f"Image: {raster.shape[1]}x{raster.shape[0]}")
            silhouette = self.trace_silhouette(raster)

        pieces = self.split(silhouette)
        result = LevelResult(
            silhouette=silhouette,
            pieces=pieces,
            target_count=self.config.piece_count,
        )

        if output_path is not None:
            result.output_path = save_level(output_path, silhouette, pieces, metadata)

        if pieces_dir is not None:
            image = open_image(input_path)
            result.piece_image_paths = export_piece_images(
                image, pieces, pieces_dir, metadata.level_id
            )

        logger.info(f"Level generated in {time.time() - start_time:.2f}s")
        return result


def generate_level(
    image_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    config: Optional[PipelineConfig] = None
) -> LevelResult:
    """
    Convenience function for one-off level generation.

    Example:
        >>> result = generate_level("cat.png", "level_016.json")
        >>> result = generate_level("cat.png", config=PipelineConfig(piece_count=8))
    """
    return LevelPipeline(config).process(image_path, output_path)
