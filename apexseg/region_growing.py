"""Region growing segmentation by 8-connected flood fill."""
from typing import Dict
import logging

import numpy as np

from apexseg.buffers import UNLABELED, as_scalar_buffer
from apexseg.progress import ProgressableTask, run_task
from apexseg.types import SegmentationResult

logger = logging.getLogger(__name__)

# 3x3 block around a pixel, excluding the pixel itself
NEIGHBOR_OFFSETS = tuple(
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
)


class RegionGrowingSegmenter(ProgressableTask):
    """
    Label connected regions of equal-valued pixels.

    Pixels are scanned in row-major order. Every unlabeled pixel seeds a new
    region, which is grown with an explicit stack: each popped pixel labels
    its unlabeled 8-neighbors that carry exactly the same value. Region ids
    start at 1 and follow first-encounter order, so output is deterministic.

    The task size is width * height; the position advances by one per
    scanned pixel.
    """

    def __init__(self, buffer):
        """
        Args:
            buffer: 2-D scalar pixel buffer (H, W). Equality of values, not
                closeness, decides region membership.
        """
        pixels = as_scalar_buffer(buffer)
        self._height, self._width = pixels.shape
        super().__init__(self._width * self._height)

        # Flat row-major lists keep the inner loop in plain Python objects
        self._pixels = pixels.ravel().tolist()
        self._labels = [UNLABELED] * (self._width * self._height)
        self._counts: Dict[int, int] = {}
        self._n_regions = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def number_of_regions(self) -> int:
        """Regions found so far; partial while the task is running."""
        return self._n_regions

    def pixel_count(self, region: int) -> int:
        """Pixel count of a region, or -1 for an unknown region id."""
        return self._counts.get(region, -1)

    @property
    def region_sizes(self) -> Dict[int, int]:
        return dict(self._counts)

    @property
    def labels(self) -> np.ndarray:
        """Read-only (H, W) snapshot of the label buffer."""
        labels = np.array(self._labels, dtype=np.int32).reshape(self._height, self._width)
        labels.flags.writeable = False
        return labels

    def result(self) -> SegmentationResult:
        return SegmentationResult(
            labels=self.labels,
            region_sizes=self.region_sizes,
            n_regions=self._n_regions,
        )

    def _execute(self) -> None:
        width, height = self._width, self._height
        pixels, labels, counts = self._pixels, self._labels, self._counts
        stack = []

        for y in range(height):
            for x in range(width):
                self._state.advance()
                index = y * width + x
                if labels[index] != UNLABELED:
                    continue

                self._n_regions += 1
                region = self._n_regions
                labels[index] = region
                counts[region] = 1
                stack.append((y, x))

                while stack:
                    cy, cx = stack.pop()
                    value = pixels[cy * width + cx]
                    for dy, dx in NEIGHBOR_OFFSETS:
                        ny, nx = cy + dy, cx + dx
                        if ny < 0 or nx < 0 or ny >= height or nx >= width:
                            continue
                        neighbor = ny * width + nx
                        if labels[neighbor] == UNLABELED and pixels[neighbor] == value:
                            labels[neighbor] = region
                            counts[region] += 1
                            stack.append((ny, nx))

        self._state.complete(position=width * height)
        logger.info(f"Region growing found {self._n_regions} regions in {width}x{height} buffer")


def segment_regions(buffer) -> SegmentationResult:
    """
    Segment a scalar buffer into connected equal-valued regions.

    Args:
        buffer: 2-D scalar pixel buffer

    Returns:
        SegmentationResult with labels numbered from 1
    """
    segmenter = RegionGrowingSegmenter(buffer)
    run_task(segmenter)
    return segmenter.result()
