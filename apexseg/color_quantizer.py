"""Deterministic centroid-based color quantization."""
from dataclasses import dataclass
from typing import List, Tuple, Union
import logging
import time

import numpy as np

from apexseg.buffers import UNLABELED, as_rgb_buffer, pack_rgb
from apexseg.progress import ProgressableTask, run_task
from apexseg.types import QuantizationError, QuantizationResult, QuantizeMode

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


@dataclass
class Centroid:
    """
    Running color statistics for one cluster.

    The mean is the truncated integer sum / count. When the last member is
    removed the previous mean is kept, so the centroid stays usable for
    distance tests until it gains members again.
    """
    id: int
    red: int = 0
    green: int = 0
    blue: int = 0
    red_sum: int = 0
    green_sum: int = 0
    blue_sum: int = 0
    count: int = 0

    @classmethod
    def seeded(cls, cluster_id: int, color: Color) -> "Centroid":
        """Create a centroid holding a single sample of ``color``."""
        centroid = cls(cluster_id, *color)
        centroid.add(color)
        return centroid

    @property
    def mean(self) -> Color:
        return (self.red, self.green, self.blue)

    @property
    def empty(self) -> bool:
        return self.count == 0

    def add(self, color: Color) -> None:
        r, g, b = color
        self.red_sum += r
        self.green_sum += g
        self.blue_sum += b
        self.count += 1
        self._update_mean()

    def remove(self, color: Color) -> None:
        if self.count == 0:
            raise QuantizationError(f"Cannot remove a pixel from empty centroid {self.id}")
        r, g, b = color
        self.red_sum -= r
        self.green_sum -= g
        self.blue_sum -= b
        self.count -= 1
        if self.count == 0:
            logger.warning(f"Centroid {self.id} lost its last member; keeping mean {self.mean}")
            return
        self._update_mean()

    def clear(self) -> None:
        """Drop all members. The last mean is kept until a member is added."""
        self.red_sum = self.green_sum = self.blue_sum = 0
        self.count = 0

    def distance(self, color: Color) -> int:
        """Mean absolute channel difference, truncated."""
        r, g, b = color
        return (abs(self.red - r) + abs(self.green - g) + abs(self.blue - b)) // 3

    def _update_mean(self) -> None:
        self.red = self.red_sum // self.count
        self.green = self.green_sum // self.count
        self.blue = self.blue_sum // self.count


class ColorQuantizer(ProgressableTask):
    """
    Partition pixels into a fixed number of color clusters.

    Centroids are seeded from pixels sampled along the image diagonal with
    step (W // K, H // K), so identical inputs always give identical results.
    Each pass assigns every pixel to its nearest centroid (first minimum in
    centroid order wins); the loop stops after a pass with no reassignment.

    In CONTINUOUS mode a reassigned pixel immediately moves its color from the
    old centroid to the new one, so later pixels in the same pass already see
    the updated means. In ITERATIVE mode centroids are untouched during a
    pass and recomputed from scratch after it.

    Progress size is W * H. The position follows the first assignment pass;
    ``finished`` is set once the clustering has converged.
    """

    def __init__(
        self,
        image,
        n_clusters: int,
        mode: Union[QuantizeMode, str] = QuantizeMode.CONTINUOUS
    ):
        """
        Args:
            image: (H, W, 3|4) array in 0-255 (floats in [0, 1] are scaled)
                or (H, W) packed 0xAARRGGBB array of 32-bit integers
            n_clusters: Number of clusters (>= 1)
            mode: QuantizeMode or its value ("continuous" / "iterative")

        Raises:
            QuantizationError: If n_clusters < 1
            ValueError: If the image or mode is not understood
        """
        if n_clusters < 1:
            raise QuantizationError(f"n_clusters must be >= 1, got {n_clusters}")

        rgb = as_rgb_buffer(image)
        self._height, self._width = rgb.shape[:2]
        super().__init__(self._width * self._height)

        self.mode = QuantizeMode(mode.lower()) if isinstance(mode, str) else mode
        self.n_clusters = n_clusters
        self._colors: List[Color] = [tuple(p) for p in rgb.reshape(-1, 3).tolist()]
        self._assignments = [UNLABELED] * len(self._colors)
        self._centroids = self._create_centroids(rgb, n_clusters) if self._colors else []
        self._passes = 0
        self._changes_per_pass: List[int] = []
        self.elapsed_ms = 0

    @staticmethod
    def _create_centroids(rgb: np.ndarray, n_clusters: int) -> List[Centroid]:
        height, width = rgb.shape[:2]
        dx = width // n_clusters
        dy = height // n_clusters
        x = y = 0
        centroids = []
        for i in range(n_clusters):
            centroids.append(Centroid.seeded(i, tuple(int(c) for c in rgb[y, x])))
            x += dx
            y += dy
        return centroids

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def centroids(self) -> Tuple[Centroid, ...]:
        return tuple(self._centroids)

    @property
    def passes(self) -> int:
        """Outer passes run so far, including the final pass with no changes."""
        return self._passes

    @property
    def changes_per_pass(self) -> List[int]:
        return list(self._changes_per_pass)

    @property
    def assignments(self) -> np.ndarray:
        """Read-only (H, W) cluster ids; -1 where a pixel is not assigned yet."""
        out = np.array(self._assignments, dtype=np.int32).reshape(self._height, self._width)
        out.flags.writeable = False
        return out

    @property
    def palette(self) -> np.ndarray:
        """(K, 3) uint8 mean colors in cluster id order."""
        if not self._centroids:
            return np.zeros((0, 3), dtype=np.uint8)
        return np.array([c.mean for c in self._centroids], dtype=np.uint8)

    def quantized(self) -> np.ndarray:
        """Every pixel replaced by its cluster's mean color, (H, W, 3) uint8."""
        assignments = self.assignments
        out = np.zeros((self._height, self._width, 3), dtype=np.uint8)
        assigned = assignments != UNLABELED
        out[assigned] = self.palette[assignments[assigned]]
        return out

    def packed_output(self) -> np.ndarray:
        """Quantized image as (H, W) uint32 0xAARRGGBB with opaque alpha."""
        return pack_rgb(self.quantized())

    def result(self) -> QuantizationResult:
        return QuantizationResult(
            assignments=self.assignments,
            palette=self.palette,
            quantized=self.quantized(),
            passes=self._passes,
            mode=self.mode,
        )

    def _nearest(self, color: Color) -> Centroid:
        best = None
        best_distance = None
        for centroid in self._centroids:
            d = centroid.distance(color)
            if best_distance is None or d < best_distance:
                best_distance = d
                best = centroid
        return best

    def _assignment_pass(self, track_position: bool) -> int:
        continuous = self.mode is QuantizeMode.CONTINUOUS
        assignments = self._assignments
        changes = 0
        for index, color in enumerate(self._colors):
            if track_position:
                self._state.advance()
            nearest = self._nearest(color)
            previous = assignments[index]
            if previous == nearest.id:
                continue
            if continuous:
                if previous != UNLABELED:
                    self._centroids[previous].remove(color)
                nearest.add(color)
            assignments[index] = nearest.id
            changes += 1
        return changes

    def _recompute_centroids(self) -> None:
        for centroid in self._centroids:
            centroid.clear()
        for color, cluster_id in zip(self._colors, self._assignments):
            self._centroids[cluster_id].add(color)
        for centroid in self._centroids:
            if centroid.empty:
                logger.debug(f"Centroid {centroid.id} has no members after recompute")

    def _execute(self) -> None:
        start = time.time()
        if not self._centroids:
            self._state.complete()
            logger.info("Empty image, nothing to quantize")
            return

        changed = True
        while changed:
            changes = self._assignment_pass(track_position=self._passes == 0)
            self._passes += 1
            self._changes_per_pass.append(changes)
            changed = changes > 0
            if self.mode is QuantizeMode.ITERATIVE:
                self._recompute_centroids()
            logger.debug(f"Pass {self._passes}: {changes} pixels changed cluster")

        self._state.complete(position=self.size)
        self.elapsed_ms = int((time.time() - start) * 1000)
        logger.info(
            f"Clustered to {self.n_clusters} clusters in {self._passes} passes "
            f"({self.mode.value}, {self.elapsed_ms} ms)"
        )


def quantize_colors(
    image,
    n_clusters: int,
    mode: Union[QuantizeMode, str] = QuantizeMode.CONTINUOUS
) -> QuantizationResult:
    """
    Quantize an image to ``n_clusters`` colors.

    Args:
        image: (H, W, 3|4) uint8 array or (H, W) packed RGB array
        n_clusters: Number of clusters (>= 1)
        mode: CONTINUOUS or ITERATIVE centroid updates

    Returns:
        QuantizationResult with assignments, palette and quantized image

    Raises:
        QuantizationError: If n_clusters < 1
    """
    quantizer = ColorQuantizer(image, n_clusters, mode)
    run_task(quantizer)
    return quantizer.result()
