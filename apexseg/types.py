"""Core types for segmentation and quantization."""
from dataclasses import dataclass, field
from typing import Dict
from enum import Enum
import warnings

import numpy as np


class QuantizeMode(Enum):
    """How centroid statistics are refreshed during clustering."""
    CONTINUOUS = "continuous"  # update after every single reassignment
    ITERATIVE = "iterative"    # batch recompute after each full pass


@dataclass(frozen=True)
class Progress:
    """Snapshot of a task's progress."""
    size: int
    position: int
    finished: bool

    @property
    def fraction(self) -> float:
        if self.size <= 0:
            return 1.0 if self.finished else 0.0
        return min(self.position / self.size, 1.0)


@dataclass
class SegmentationConfig:
    """Configuration for the region growing pipeline."""
    # Preprocessing (grey -> binary -> morphological cleaning)
    preprocess: bool = False
    threshold_method: str = "otsu"
    clean: bool = True
    kernel_size: int = 3

    def __post_init__(self):
        if self.kernel_size < 1:
            raise ValueError(f"kernel_size must be >= 1, got {self.kernel_size}")
        if self.kernel_size % 2 == 0:
            warnings.warn(
                f"Even kernel_size {self.kernel_size} shifts the morphology "
                "by half a pixel. Consider an odd size."
            )


@dataclass
class QuantizationConfig:
    """Configuration for the color quantization pipeline."""
    n_clusters: int = 8
    mode: QuantizeMode = QuantizeMode.CONTINUOUS

    def __post_init__(self):
        if isinstance(self.mode, str):
            self.mode = QuantizeMode(self.mode.lower())
        if self.n_clusters > 255:
            warnings.warn(
                f"n_clusters={self.n_clusters} exceeds the usual 0-255 range; "
                "clustering will be slow and the palette may contain empty clusters."
            )


@dataclass
class SegmentationResult:
    """Output of a completed region growing run."""
    labels: np.ndarray  # (H, W) int32, regions numbered from 1
    region_sizes: Dict[int, int] = field(default_factory=dict)
    n_regions: int = 0

    @property
    def total_pixels(self) -> int:
        return sum(self.region_sizes.values())


@dataclass
class QuantizationResult:
    """Output of a converged color quantization run."""
    assignments: np.ndarray  # (H, W) int32 cluster ids 0..K-1
    palette: np.ndarray      # (K, 3) uint8 mean colors
    quantized: np.ndarray    # (H, W, 3) uint8
    passes: int = 0
    mode: QuantizeMode = QuantizeMode.CONTINUOUS


class ProcessingError(Exception):
    """Base exception for apexseg errors."""
    pass


class QuantizationError(ProcessingError):
    """Exception raised during color quantization."""
    pass


class TaskStateError(ProcessingError):
    """Exception raised when a task is run more than once."""
    pass


class ImageIOError(ProcessingError):
    """Exception raised when an image cannot be read or written."""
    pass
