"""Subject mask extraction by background sampling and border flood fill."""
from typing import Optional, Tuple
import logging
import math

import numpy as np
from scipy import ndimage
from skimage.color import rgb2hsv

from shapefate.types import Mask, MaskConfig, NoSubjectDetected, Raster

logger = logging.getLogger(__name__)

# Threshold used when the border yields no samples at all
FALLBACK_THRESHOLD = 40.0
MIN_THRESHOLD = 10.0
MAX_THRESHOLD = 200.0

# Interior pass
INTERIOR_MARGIN = 0.05
MIN_SATURATION = 0.28
MIN_VALUE = 0.1
MAX_VALUE = 0.98

# Manual mask import
IMPORT_MIN_ALPHA = 40
IMPORT_MAX_BRIGHTNESS = 240

Color = Tuple[float, float, float]


def _rgb(raster: Raster) -> np.ndarray:
    return raster[..., :3].astype(np.float64)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def color_distance(raster: Raster, color: Color) -> np.ndarray:
    """Per-pixel Euclidean RGB distance to a color, shape (H, W)."""
    diff = _rgb(raster) - np.asarray(color, dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def sample_background_color(raster: Raster) -> Color:
    """
    Estimate the background color from 12 points on the raster border.

    Samples the four corners plus the quarter points of every edge.

    Args:
        raster: (H, W, 3|4) image

    Returns:
        Mean (r, g, b) of the samples
    """
    height, width = raster.shape[:2]
    qx1, qx3 = int(width * 0.25), int(width * 0.75)
    qy1, qy3 = int(height * 0.25), int(height * 0.75)
    right, bottom = width - 1, height - 1

    samples = [
        (0, 0), (right, 0), (0, bottom), (right, bottom),
        (qx1, 0), (qx3, 0), (qx1, bottom), (qx3, bottom),
        (0, qy1), (0, qy3), (right, qy1), (right, qy3),
    ]
    xs = np.array([s[0] for s in samples])
    ys = np.array([s[1] for s in samples])

    mean = _rgb(raster)[ys, xs].mean(axis=0)
    return (float(mean[0]), float(mean[1]), float(mean[2]))


def compute_background_threshold(
    raster: Raster,
    background: Color,
    tolerance: float = 50.0
) -> float:
    """
    Adaptive color-distance threshold separating background from subject.

    Samples a coarse grid along all four edges, then takes
    mean + 1.5 * std + 10, shifted by the tolerance slider and clamped.

    Args:
        raster: (H, W, 3|4) image
        background: Estimated background color
        tolerance: 0-100 sensitivity slider (50 = neutral)

    Returns:
        Threshold in RGB distance units
    """
    height, width = raster.shape[:2]
    if width == 0 or height == 0:
        return FALLBACK_THRESHOLD

    step_x = max(1, _round_half_up(width / 24))
    step_y = max(1, _round_half_up(height / 24))

    distance = color_distance(raster, background)
    xs = np.arange(0, width, step_x)
    ys = np.arange(0, height, step_y)
    diffs = np.concatenate([
        distance[0, xs],
        distance[height - 1, xs],
        distance[ys, 0],
        distance[ys, width - 1],
    ])

    if diffs.size == 0:
        return FALLBACK_THRESHOLD

    mean = float(diffs.mean())
    std = float(diffs.std())

    base = mean + std * 1.5 + 10
    adjustment = (tolerance - 50) * 1.5
    return min(MAX_THRESHOLD, max(MIN_THRESHOLD, base + adjustment))


def flood_fill_background(distance: np.ndarray, threshold: float) -> np.ndarray:
    """
    Mark background reachable from the border.

    A pixel is background when it is within threshold of the background
    color and 4-connected, through such pixels, to a border pixel that is
    also within threshold.

    Args:
        distance: (H, W) color distance to the background estimate
        threshold: Maximum distance for background pixels

    Returns:
        (H, W) bool array, True for background
    """
    candidate = distance <= threshold
    labels, num = ndimage.label(candidate)
    if num == 0:
        return np.zeros_like(candidate)

    border = np.concatenate([
        labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]
    ])
    seeds = np.unique(border[border > 0])
    return np.isin(labels, seeds)


def extract_interior_mask(
    raster: Raster,
    background: Color,
    threshold: float
) -> Optional[np.ndarray]:
    """
    Recover subject pixels that are colored but close to the background.

    Within a 5% margin-trimmed interior, a pixel is kept when it is far
    from the background color or clearly saturated. The pass is rejected
    as noise when it selects too few pixels.

    Returns:
        (H, W) bool array, or None if the pass was rejected
    """
    height, width = raster.shape[:2]
    total = width * height
    mask = np.zeros((height, width), dtype=bool)

    margin_x = max(2, int(width * INTERIOR_MARGIN))
    margin_y = max(2, int(height * INTERIOR_MARGIN))
    if width - 2 * margin_x <= 0 or height - 2 * margin_y <= 0:
        return None

    inner = raster[margin_y:height - margin_y, margin_x:width - margin_x]
    extra = max(15.0, threshold + 15.0)
    far = color_distance(inner, background) >= extra

    hsv = rgb2hsv(_rgb(inner) / 255.0)
    saturation = hsv[..., 1]
    value = hsv[..., 2]
    colored = (saturation >= MIN_SATURATION) & (value >= MIN_VALUE) & (value <= MAX_VALUE)

    mask[margin_y:height - margin_y, margin_x:width - margin_x] = far | colored
    count = int(mask.sum())

    if count < max(100, total // 100):
        logger.warning(f"Interior pass discarded: {count} pixels")
        return None

    return mask


def dilate_mask(mask: np.ndarray, radius: int = 2) -> np.ndarray:
    """Grow the mask by a square (Chebyshev) radius."""
    if radius <= 0:
        return mask.copy()
    structure = np.ones((2 * radius + 1, 2 * radius + 1), dtype=bool)
    return ndimage.binary_dilation(mask, structure=structure)


def _freeze(mask: np.ndarray) -> Mask:
    mask = np.ascontiguousarray(mask, dtype=bool)
    mask.flags.writeable = False
    return mask


def extract_mask(raster: Raster, config: Optional[MaskConfig] = None) -> Mask:
    """
    Build a binary subject mask from a raster.

    Args:
        raster: (H, W, 3|4) image
        config: Mask extraction settings (defaults if None)

    Returns:
        (H, W) read-only bool mask, True for subject

    Raises:
        NoSubjectDetected: If the raster is empty or the border flood
            fill reached every pixel
    """
    config = config or MaskConfig()

    if raster.shape[0] == 0 or raster.shape[1] == 0:
        raise NoSubjectDetected("Could not detect a subject in an empty image.")

    background = sample_background_color(raster)
    threshold = compute_background_threshold(
        raster, background, config.background_tolerance
    )
    logger.debug(
        f"Background color {tuple(round(c, 1) for c in background)}, "
        f"threshold {threshold:.1f}"
    )

    distance = color_distance(raster, background)
    subject = ~flood_fill_background(distance, threshold)

    subject_pixels = int(subject.sum())
    if subject_pixels == 0:
        raise NoSubjectDetected(
            "Could not detect a subject. Try a simpler background or higher contrast."
        )

    if config.use_interior_sampling:
        interior = extract_interior_mask(raster, background, threshold)
        if interior is not None:
            subject |= interior

    mask = dilate_mask(subject, config.dilation_radius)
    logger.info(f"Subject mask: {int(mask.sum())} of {mask.size} pixels")
    return _freeze(mask)


def mask_from_image(raster: Raster) -> Mask:
    """
    Threshold a user-supplied mask image.

    A pixel is subject if it is visibly opaque or darker than near-white.

    Raises:
        NoSubjectDetected: If no pixel qualifies
    """
    if raster.ndim == 3 and raster.shape[2] == 4:
        alpha = raster[..., 3].astype(np.int32)
    else:
        alpha = np.full(raster.shape[:2], 255, dtype=np.int32)

    brightness = _rgb(raster).mean(axis=-1)
    mask = (alpha > IMPORT_MIN_ALPHA) | (brightness < IMPORT_MAX_BRIGHTNESS)

    if not mask.any():
        raise NoSubjectDetected("Mask image did not contain any opaque pixels.")

    return _freeze(mask)
