"""Pixel buffer helpers shared by the segmenter and the quantizer."""
from typing import Dict, List, Tuple
import numpy as np
from skimage.color import label2rgb

# Marker for "not yet labeled / assigned"
UNLABELED = -1

OPAQUE_ALPHA = 0xFF000000


def as_scalar_buffer(buffer) -> np.ndarray:
    """
    Coerce input to a 2-D scalar pixel buffer.

    Args:
        buffer: Array-like of shape (H, W) or (H, W, 1)

    Returns:
        A private (H, W) copy of the buffer

    Raises:
        ValueError: If the buffer is not a single-channel 2-D grid
    """
    arr = np.array(buffer, copy=True)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[..., 0]
    if arr.ndim != 2:
        raise ValueError(
            f"Expected a 2-D scalar buffer, got shape {arr.shape}. "
            "Convert color images to grey first."
        )
    return arr


def as_rgb_buffer(image) -> np.ndarray:
    """
    Coerce input to an (H, W, 3) uint8 RGB buffer.

    Accepts (H, W, 3) or (H, W, 4) arrays (alpha is dropped) and 2-D arrays
    of packed 0xAARRGGBB values in 32-bit or wider integers (alpha is
    ignored). Float images with values in [0, 1] are scaled to 0-255.

    Raises:
        ValueError: If the shape or dtype is not understood, or channel
            values fall outside 0-255
    """
    arr = np.asarray(image)
    if arr.ndim == 2:
        if arr.size and not np.issubdtype(arr.dtype, np.integer):
            raise ValueError(f"Packed RGB buffers must be integer, got {arr.dtype}")
        if np.issubdtype(arr.dtype, np.integer) and arr.dtype.itemsize < 4:
            raise ValueError(
                f"Packed RGB buffers need 32-bit integers, got {arr.dtype}. "
                "Pass grey images as (H, W, 3) RGB."
            )
        return unpack_rgb(arr)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3), (H, W, 4) or packed (H, W) buffer, got shape {arr.shape}")

    rgb = arr[..., :3]
    if rgb.size:
        if np.issubdtype(rgb.dtype, np.floating):
            if not np.all(np.isfinite(rgb)):
                raise ValueError("RGB image contains NaN or infinite values")
            # Normalized [0, 1] input
            if rgb.max() <= 1.0:
                rgb = np.round(rgb * 255)
        if rgb.min() < 0 or rgb.max() > 255:
            raise ValueError(
                f"RGB values must be in 0-255, got range [{rgb.min()}, {rgb.max()}]"
            )
    return np.array(rgb, dtype=np.uint8, copy=True)


def pack_rgb(rgb: np.ndarray) -> np.ndarray:
    """Pack an (H, W, 3) image into (H, W) uint32 values with opaque alpha."""
    rgb = np.asarray(rgb, dtype=np.uint32)
    return (OPAQUE_ALPHA | (rgb[..., 0] << 16) | (rgb[..., 1] << 8) | rgb[..., 2]).astype(np.uint32)


def unpack_rgb(packed: np.ndarray) -> np.ndarray:
    """Split packed 0xAARRGGBB values into an (H, W, 3) uint8 image."""
    packed = np.asarray(packed).astype(np.int64)
    out = np.empty(packed.shape + (3,), dtype=np.uint8)
    out[..., 0] = (packed >> 16) & 0xFF
    out[..., 1] = (packed >> 8) & 0xFF
    out[..., 2] = packed & 0xFF
    return out


def largest_regions(region_sizes: Dict[int, int], n: int = 5) -> List[Tuple[int, int]]:
    """Return up to n (label, size) pairs, largest first, ties by label."""
    ordered = sorted(region_sizes.items(), key=lambda item: (-item[1], item[0]))
    return ordered[:max(n, 0)]


def labels_to_rgb(labels: np.ndarray) -> np.ndarray:
    """
    False-color a label buffer for display.

    Unlabeled pixels are drawn black.

    Returns:
        (H, W, 3) uint8 image
    """
    labels = np.asarray(labels)
    if labels.size == 0:
        return np.zeros(labels.shape + (3,), dtype=np.uint8)
    shown = np.where(labels == UNLABELED, 0, labels)
    colored = label2rgb(shown, bg_label=0, bg_color=(0, 0, 0))
    return (np.clip(colored, 0, 1) * 255).round().astype(np.uint8)
