"""Region growing segmentation and color quantization package."""
from apexseg.types import (
    Progress,
    QuantizeMode,
    SegmentationConfig,
    QuantizationConfig,
    SegmentationResult,
    QuantizationResult,
    ProcessingError,
    QuantizationError,
    TaskStateError,
    ImageIOError,
)
from apexseg.progress import ProgressableTask, run_task, submit_task
from apexseg.region_growing import RegionGrowingSegmenter, segment_regions
from apexseg.color_quantizer import Centroid, ColorQuantizer, quantize_colors

__version__ = "0.1.0"

__all__ = [
    "Progress",
    "QuantizeMode",
    "SegmentationConfig",
    "QuantizationConfig",
    "SegmentationResult",
    "QuantizationResult",
    "ProcessingError",
    "QuantizationError",
    "TaskStateError",
    "ImageIOError",
    "ProgressableTask",
    "run_task",
    "submit_task",
    "RegionGrowingSegmenter",
    "segment_regions",
    "Centroid",
    "ColorQuantizer",
    "quantize_colors",
]
