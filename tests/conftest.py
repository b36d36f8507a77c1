"""Pytest configuration and fixtures."""
import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def center_dot():
    """3x3 buffer of zeros with a single 1 in the middle."""
    buffer = np.zeros((3, 3), dtype=np.uint8)
    buffer[1, 1] = 1
    return buffer


@pytest.fixture
def quadrant_image():
    """32x32 RGB image with four solid color quadrants."""
    image = np.zeros((32, 32, 3), dtype=np.uint8)
    image[:16, :16] = [255, 0, 0]    # Red
    image[:16, 16:] = [0, 255, 0]    # Green
    image[16:, :16] = [0, 0, 255]    # Blue
    image[16:, 16:] = [255, 255, 0]  # Yellow
    return image


@pytest.fixture
def quadrant_png(tmp_path, quadrant_image):
    """Path to the quadrant image saved as PNG."""
    path = tmp_path / "quadrants.png"
    Image.fromarray(quadrant_image).save(path)
    return path


@pytest.fixture
def noisy_image():
    """Reproducible random RGB image."""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, (12, 16, 3), dtype=np.uint8)
