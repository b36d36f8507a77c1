"""Tests for image loading and saving."""
import numpy as np
import pytest
from PIL import Image

from apexseg.raster_ingest import (
    load_rgb_image,
    load_scalar_image,
    save_label_image,
    save_rgb_image,
)
from apexseg.types import ImageIOError


class TestLoading:
    """Test reading images into buffers."""

    def test_load_rgb(self, quadrant_png, quadrant_image):
        """PNG pixels come back unchanged."""
        image = load_rgb_image(quadrant_png)

        assert image.dtype == np.uint8
        np.testing.assert_array_equal(image, quadrant_image)

    def test_load_scalar(self, quadrant_png):
        """Scalar loading yields one channel."""
        gray = load_scalar_image(quadrant_png)

        assert gray.shape == (32, 32)
        assert len(np.unique(gray)) == 4

    def test_rgba_drops_alpha(self, tmp_path):
        """Alpha is ignored on read."""
        rgba = np.zeros((4, 4, 4), dtype=np.uint8)
        rgba[..., 0] = 200
        path = tmp_path / "alpha.png"
        Image.fromarray(rgba).save(path)

        image = load_rgb_image(path)

        assert image.shape == (4, 4, 3)
        assert np.all(image[..., 0] == 200)

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_rgb_image(tmp_path / "nope.png")

    def test_directory(self, tmp_path):
        """Directories are not images."""
        with pytest.raises(ImageIOError, match="not a file"):
            load_rgb_image(tmp_path)

    def test_corrupt_file(self, tmp_path):
        """Undecodable files raise ImageIOError."""
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        with pytest.raises(ImageIOError, match="Failed to load"):
            load_scalar_image(path)


class TestSaving:
    """Test writing result buffers."""

    def test_always_png(self, tmp_path, quadrant_image):
        """Output is PNG whatever the suffix."""
        path = save_rgb_image(quadrant_image, tmp_path / "out" / "result.jpg")

        assert path.exists()
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
        np.testing.assert_array_equal(load_rgb_image(path), quadrant_image)

    def test_wrong_shape(self, tmp_path):
        """Only (H, W, 3) images can be written."""
        with pytest.raises(ImageIOError):
            save_rgb_image(np.zeros((4, 4)), tmp_path / "x.png")

    def test_empty_image(self, tmp_path):
        """Empty images cannot be written."""
        with pytest.raises(ImageIOError, match="empty"):
            save_rgb_image(np.zeros((0, 0, 3), dtype=np.uint8), tmp_path / "x.png")

    def test_save_labels(self, tmp_path):
        """Label buffers are written false-colored."""
        labels = np.array([[1, 1, 2], [3, 3, 2]], dtype=np.int32)
        path = save_label_image(labels, tmp_path / "labels.png")

        image = load_rgb_image(path)
        assert image.shape == (2, 3, 3)
        assert len({tuple(p) for p in image.reshape(-1, 3)}) == 3
