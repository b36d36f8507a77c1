"""Optional preprocessing that turns color images into clean binary buffers."""
from typing import Callable, Dict, Optional
import logging

import numpy as np
from scipy import ndimage
from skimage.filters import (
    threshold_isodata,
    threshold_li,
    threshold_mean,
    threshold_otsu,
    threshold_triangle,
    threshold_yen,
)

from apexseg.types import SegmentationConfig

logger = logging.getLogger(__name__)

THRESHOLD_METHODS: Dict[str, Callable[[np.ndarray], float]] = {
    "otsu": threshold_otsu,
    "li": threshold_li,
    "yen": threshold_yen,
    "isodata": threshold_isodata,
    "triangle": threshold_triangle,
    "mean": threshold_mean,
}

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert an RGB(A) image to 8-bit luminance.

    Args:
        image: (H, W), (H, W, 1), (H, W, 3) or (H, W, 4) array

    Returns:
        (H, W) uint8 array
    """
    image = np.asarray(image)
    if image.ndim == 3 and image.shape[2] == 1:
        image = image[..., 0]
    if image.ndim == 2:
        return image.astype(np.uint8)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Cannot convert shape {image.shape} to grey")

    gray = image[..., :3].astype(np.float64) @ LUMA_WEIGHTS
    return np.clip(np.round(gray), 0, 255).astype(np.uint8)


def binarize(gray: np.ndarray, method: str = "otsu") -> np.ndarray:
    """
    Threshold a grey image using a histogram method.

    Args:
        gray: (H, W) grey image
        method: One of THRESHOLD_METHODS

    Returns:
        (H, W) uint8 image holding 0 and 255 only

    Raises:
        ValueError: For an unknown method name
    """
    key = method.lower()
    if key not in THRESHOLD_METHODS:
        raise ValueError(
            f"Unknown thresholding method '{method}'. "
            f"Supported: {list(THRESHOLD_METHODS.keys())}"
        )

    gray = np.asarray(gray)
    binary = np.zeros(gray.shape, dtype=np.uint8)
    # A flat histogram has no threshold to find
    if gray.size == 0 or gray.min() == gray.max():
        return binary

    threshold = THRESHOLD_METHODS[key](gray)
    logger.debug(f"{key} threshold = {threshold:.2f}")
    binary[gray > threshold] = 255
    return binary


def clean_binary(binary: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """
    Remove salt-and-pepper noise and small regions from a binary image.

    Applies a closing followed by an opening with a square structuring
    element.

    Args:
        binary: (H, W) image, non-zero is foreground
        kernel_size: Side of the square structuring element

    Returns:
        (H, W) uint8 image holding 0 and 255 only
    """
    if kernel_size < 1:
        raise ValueError(f"kernel_size must be >= 1, got {kernel_size}")

    mask = np.asarray(binary) > 0
    if mask.size == 0:
        return mask.astype(np.uint8)

    structure = np.ones((kernel_size, kernel_size), dtype=bool)
    # Border pixels would otherwise be eroded by the implicit zero padding
    pad = kernel_size
    padded = np.pad(mask, pad, mode="edge")
    padded = ndimage.binary_closing(padded, structure=structure)
    padded = ndimage.binary_opening(padded, structure=structure)
    cleaned = padded[pad:-pad, pad:-pad]

    return cleaned.astype(np.uint8) * 255


def preprocess_for_segmentation(
    image: np.ndarray,
    config: Optional[SegmentationConfig] = None
) -> np.ndarray:
    """
    Prepare an image for region growing: grey, then binary, then cleaned.

    Args:
        image: Grey or color image
        config: Preprocessing options (defaults if None)

    Returns:
        (H, W) uint8 buffer
    """
    config = config or SegmentationConfig(preprocess=True)
    gray = to_grayscale(image)
    binary = binarize(gray, config.threshold_method)
    if config.clean:
        binary = clean_binary(binary, config.kernel_size)
    logger.info(
        f"Preprocessed {gray.shape[1]}x{gray.shape[0]} image "
        f"({config.threshold_method} threshold, clean={config.clean})"
    )
    return binary
