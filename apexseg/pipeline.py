"""End-to-end pipelines: load an image, run a task, write the result."""
from pathlib import Path
from typing import Optional, Union
import logging
import time

from apexseg.color_quantizer import ColorQuantizer
from apexseg.preprocess import preprocess_for_segmentation
from apexseg.progress import ProgressableTask, run_task, submit_task, wait_with_progress
from apexseg.raster_ingest import (
    load_rgb_image,
    load_scalar_image,
    save_label_image,
    save_rgb_image,
)
from apexseg.region_growing import RegionGrowingSegmenter
from apexseg.types import (
    QuantizationConfig,
    QuantizationResult,
    SegmentationConfig,
    SegmentationResult,
)

logger = logging.getLogger(__name__)


def _execute(task: ProgressableTask, show_progress: bool, desc: str) -> None:
    if show_progress:
        wait_with_progress(task, submit_task(task), desc=desc)
    else:
        run_task(task)


class SegmentationPipeline:
    """Region growing segmentation of an image file."""

    def __init__(self, config: Optional[SegmentationConfig] = None):
        self.config = config or SegmentationConfig()

    def process(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        show_progress: bool = False
    ) -> SegmentationResult:
        """
        Segment an image and optionally write a false-color label image.

        Args:
            input_path: Path to input image
            output_path: Optional path for the PNG label image
            show_progress: Run on a worker thread and show a progress bar

        Returns:
            SegmentationResult
        """
        start_time = time.time()
        input_path = Path(input_path)

        if self.config.preprocess:
            buffer = preprocess_for_segmentation(load_rgb_image(input_path), self.config)
        else:
            buffer = load_scalar_image(input_path)
        logger.info(f"Loaded {input_path} ({buffer.shape[1]}x{buffer.shape[0]})")

        segmenter = RegionGrowingSegmenter(buffer)
        _execute(segmenter, show_progress, desc="Region growing")
        result = segmenter.result()

        if output_path is not None:
            save_label_image(result.labels, output_path)

        elapsed = time.time() - start_time
        logger.info(f"Segmented into {result.n_regions} regions in {elapsed:.2f}s")
        return result


class QuantizationPipeline:
    """Color quantization of an image file."""

    def __init__(self, config: Optional[QuantizationConfig] = None):
        self.config = config or QuantizationConfig()

    def process(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        show_progress: bool = False
    ) -> QuantizationResult:
        """
        Quantize an image and optionally write the result as PNG.

        Args:
            input_path: Path to input image
            output_path: Optional path for the quantized PNG
            show_progress: Run on a worker thread and show a progress bar

        Returns:
            QuantizationResult

        Raises:
            QuantizationError: If the configured cluster count is below 1
        """
        start_time = time.time()
        input_path = Path(input_path)
        image = load_rgb_image(input_path)

        quantizer = ColorQuantizer(image, self.config.n_clusters, self.config.mode)
        _execute(quantizer, show_progress, desc="Quantizing")
        result = quantizer.result()

        if output_path is not None:
            save_rgb_image(result.quantized, output_path)

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"DONE in {elapsed_ms}ms! Clustered to {self.config.n_clusters} clusters "
            f"in {result.passes} passes"
        )
        return result
