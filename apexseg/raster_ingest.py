"""Loading images into pixel buffers and writing results back."""
from pathlib import Path
from typing import Union
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from apexseg.buffers import labels_to_rgb
from apexseg.types import ImageIOError

logger = logging.getLogger(__name__)


def _open_image(path: Union[str, Path], mode: str) -> np.ndarray:
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise ImageIOError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)
            if img.mode != mode:
                img = img.convert(mode)
            return np.array(img, dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise ImageIOError(f"Failed to load image {path}: {e}") from e


def load_scalar_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image as a single-channel buffer.

    Args:
        path: Path to image file

    Returns:
        (H, W) uint8 array

    Raises:
        FileNotFoundError: If file doesn't exist
        ImageIOError: If file cannot be loaded
    """
    return _open_image(path, "L")


def load_rgb_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image as an RGB buffer. Alpha, if present, is dropped.

    Returns:
        (H, W, 3) uint8 array
    """
    return _open_image(path, "RGB")


def save_rgb_image(image: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Write an (H, W, 3) image as PNG, whatever the file suffix says.

    Returns:
        The path written
    """
    path = Path(path)
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ImageIOError(f"Expected (H, W, 3) image, got shape {image.shape}")
    if 0 in image.shape[:2]:
        raise ImageIOError(f"Cannot write an empty {image.shape[1]}x{image.shape[0]} image")

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        Image.fromarray(image.astype(np.uint8)).save(path, format="PNG")
    except OSError as e:
        raise ImageIOError(f"Saving image {path} failed: {e}") from e

    logger.info(f"Saved {image.shape[1]}x{image.shape[0]} image to {path}")
    return path


def save_label_image(labels: np.ndarray, path: Union[str, Path]) -> Path:
    """False-color a label buffer and write it as PNG."""
    return save_rgb_image(labels_to_rgb(labels), path)
