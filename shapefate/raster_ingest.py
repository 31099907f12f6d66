"""Raster image loading for silhouette tracing."""
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image
from PIL import ImageOps

from shapefate.types import ImageLoadError, Raster

# Rasters are never shrunk below this many pixels per side
MIN_DIMENSION = 32


def fit_size(width: int, height: int, max_dimension: int) -> tuple:
    """
    Target size for tracing: longest side fits max_dimension, never upscaled.

    Returns:
        (width, height) with each side at least MIN_DIMENSION
    """
    scale = min(max_dimension / width, max_dimension / height, 1.0)
    return (
        max(MIN_DIMENSION, int(round(width * scale))),
        max(MIN_DIMENSION, int(round(height * scale))),
    )


def open_image(path: Union[str, Path]) -> Image.Image:
    """
    Open an image file as RGBA.

    Raises:
        FileNotFoundError: If file doesn't exist
        ImageLoadError: If file cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise ImageLoadError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)
            return img.convert('RGBA')
    except (IOError, OSError) as e:
        raise ImageLoadError(f"Failed to load image {path}: {e}") from e


def load_raster(
    path: Union[str, Path],
    max_dimension: int = 600,
    clear_transparent: bool = True
) -> Raster:
    """
    Load an image file as an RGBA raster sized for tracing.

    Args:
        path: Path to image file
        max_dimension: Longest side after downscaling
        clear_transparent: Zero the color of fully transparent pixels, so
            hidden RGB in a cut-out never reads as background color

    Returns:
        (H, W, 4) uint8 array
    """
    img = open_image(path)
    size = fit_size(img.width, img.height, max_dimension)
    if size != img.size:
        img = img.resize(size, Image.BILINEAR)

    raster = np.array(img, dtype=np.uint8)
    if clear_transparent:
        raster[raster[..., 3] == 0] = 0
    return raster


def raster_from_array(image: np.ndarray) -> Raster:
    """
    Convert an in-memory image to an RGBA uint8 raster.

    Accepts grayscale (H, W), RGB or RGBA arrays, either uint8 or float
    in [0, 1]. Missing alpha is filled as fully opaque.

    Raises:
        ImageLoadError: If the array shape is not an image
    """
    image = np.asarray(image)

    if image.ndim == 2:
        # Grayscale - convert to RGB
        image = np.stack([image] * 3, axis=-1)

    if image.ndim != 3:
        raise ImageLoadError(f"Expected 3D array, got {image.ndim}D")

    if image.shape[2] not in (3, 4):
        raise ImageLoadError(f"Expected 3 or 4 channels, got {image.shape[2]}")

    if np.issubdtype(image.dtype, np.floating) and image.size and image.max() <= 1.0:
        image = image * 255.0
    image = np.clip(image, 0, 255).astype(np.uint8)

    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=-1)

    return image
