"""Level assembly: piece records, JSON export and piece image crops."""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
import json
import logging
import math
import re

import numpy as np
from PIL import Image, ImageDraw

from shapefate.geometry import bounding_box, order_points_by_angle, to_raster
from shapefate.types import Piece, Point, Polygon

logger = logging.getLogger(__name__)

PIECE_COLORS = ['#99CCFF', '#FFADAD', '#B3F2B3', '#FFE699', '#E6B3FF', '#FFB366']

FORMAT_VERSION = "1.0"
COORD_DECIMALS = 3
REQUIRED_COVERAGE = 0.95
SNAP_THRESHOLD = 0.05


@dataclass
class LevelMetadata:
    """Level identity shown in the exported document."""
    level_id: str = "level_016"
    world: int = 1
    difficulty: str = "easy"
    image_mode: bool = False

    @property
    def level_number(self) -> Optional[int]:
        """Leading integer of the id once the first "level_" is removed."""
        match = re.match(r'\s*([+-]?\d+)', self.level_id.replace('level_', '', 1))
        return int(match.group(1)) if match else None

    @property
    def theme(self) -> str:
        return "nature_warm" if self.world == 2 else "pastel_blue"


def random_start_position(rng: np.random.Generator) -> Point:
    """Scatter position in the tray area below the silhouette."""
    return Point(0.1 + rng.random() * 0.8, 0.75 + rng.random() * 0.15)


def build_pieces(polygons: Sequence[Polygon], rng: np.random.Generator) -> List[Piece]:
    """Wrap decomposed polygons as pieces with ids, palette colors and start positions."""
    return [
        Piece(
            id=f"piece_{index + 1}",
            vertices=list(vertices),
            color=PIECE_COLORS[index % len(PIECE_COLORS)],
            start_pos=random_start_position(rng),
        )
        for index, vertices in enumerate(polygons)
    ]


def polygon_center(vertices: Sequence[Point]) -> Point:
    """Bounding box center; (0.5, 0.5) for an empty polygon."""
    if not vertices:
        return Point(0.5, 0.5)
    return bounding_box(vertices).center


def _r(value: float) -> float:
    return round(float(value), COORD_DECIMALS)


def _pair(point: Point) -> List[float]:
    return [_r(point.x), _r(point.y)]


def piece_to_dict(piece: Piece, image_mode: bool = False) -> Dict[str, Any]:
    center = polygon_center(piece.vertices)
    data = {
        'id': piece.id,
        'vertices': [_pair(v) for v in piece.vertices],
        'startPos': _pair(piece.start_pos),
        'startRotation': 0,
        'correctPos': _pair(center),
        'correctRotation': 0,
    }

    if image_mode:
        bounds = bounding_box(piece.vertices)
        data['imageRect'] = [
            _r(bounds.min_x), _r(bounds.min_y), _r(bounds.width), _r(bounds.height)
        ]

    return data


def level_to_dict(
    silhouette: Sequence[Point],
    pieces: Sequence[Piece],
    metadata: Optional[LevelMetadata] = None
) -> Dict[str, Any]:
    """
    Build the level document.

    Without a traced silhouette, the piece vertices are pooled and ordered
    around their centroid as an approximate outline.
    """
    metadata = metadata or LevelMetadata()

    outline = list(silhouette)
    if not outline and pieces:
        outline = order_points_by_angle([v for p in pieces for v in p.vertices])

    meta = {
        'world': metadata.world,
        'levelNumber': metadata.level_number,
        'difficulty': metadata.difficulty,
        'theme': metadata.theme,
    }
    if metadata.image_mode:
        meta['imageName'] = metadata.level_id

    return {
        'version': FORMAT_VERSION,
        'id': metadata.level_id,
        'metadata': meta,
        'silhouette': {
            'type': 'polygon',
            'points': [_pair(p) for p in outline],
        },
        'pieces': [piece_to_dict(p, metadata.image_mode) for p in pieces],
        'winConditions': {
            'requiredCoverage': REQUIRED_COVERAGE,
            'snapThreshold': SNAP_THRESHOLD,
        },
    }


def level_to_json(
    silhouette: Sequence[Point],
    pieces: Sequence[Piece],
    metadata: Optional[LevelMetadata] = None
) -> str:
    return json.dumps(level_to_dict(silhouette, pieces, metadata), indent=2)


def save_level(
    path: Union[str, Path],
    silhouette: Sequence[Point],
    pieces: Sequence[Piece],
    metadata: Optional[LevelMetadata] = None
) -> Path:
    """Write the level document as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(level_to_json(silhouette, pieces, metadata), encoding='utf-8')
    logger.info(f"Level saved: {path}")
    return path


def crop_piece_image(image: Image.Image, vertices: Sequence[Point]) -> Image.Image:
    """
    Cut one piece out of the source image.

    Normalized vertices are mapped to pixel bounds (floor of the minimum,
    ceil of the maximum); pixels outside the polygon become transparent.

    Args:
        image: Full-resolution source image
        vertices: Piece polygon in normalized coordinates

    Returns:
        RGBA crop covering the piece bounds
    """
    pixels = to_raster(vertices, image.width, image.height)
    bounds = bounding_box(pixels)
    left = max(0, math.floor(bounds.min_x))
    top = max(0, math.floor(bounds.min_y))
    right = min(image.width, math.ceil(bounds.max_x))
    bottom = min(image.height, math.ceil(bounds.max_y))
    size = (max(1, right - left), max(1, bottom - top))

    outline = [(p.x - left, p.y - top) for p in pixels]
    clip = Image.new('L', size, 0)
    ImageDraw.Draw(clip).polygon(outline, fill=255)

    crop = image.convert('RGBA').crop((left, top, left + size[0], top + size[1]))
    piece = Image.new('RGBA', size, (0, 0, 0, 0))
    piece.paste(crop, (0, 0), mask=clip)
    return piece


def export_piece_images(
    image: Image.Image,
    pieces: Sequence[Piece],
    output_dir: Union[str, Path],
    level_id: str = "level_016"
) -> List[Path]:
    """Save each piece crop as <level_id>_piece_<n>.png."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for index, piece in enumerate(pieces):
        path = output_dir / f"{level_id}_piece_{index + 1}.png"
        crop_piece_image(image, piece.vertices).save(path)
        paths.append(path)

    logger.info(f"Exported {len(paths)} piece images to {output_dir}")
    return paths
