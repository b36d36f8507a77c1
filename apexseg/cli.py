"""Command line interface for apexseg."""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from apexseg.buffers import largest_regions
from apexseg.pipeline import QuantizationPipeline, SegmentationPipeline
from apexseg.preprocess import THRESHOLD_METHODS
from apexseg.types import (
    ProcessingError,
    QuantizationConfig,
    QuantizeMode,
    SegmentationConfig,
)

MODE_ALIASES = {
    "continuous": QuantizeMode.CONTINUOUS,
    "c": QuantizeMode.CONTINUOUS,
    "iterative": QuantizeMode.ITERATIVE,
    "i": QuantizeMode.ITERATIVE,
}


def cluster_count(value: str) -> int:
    """argparse type for the cluster count: an integer in 0-255."""
    try:
        count = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid cluster count '{value}', please enter an integer"
        )
    if not 0 <= count <= 255:
        raise argparse.ArgumentTypeError(f"cluster count should be in the interval 0-255, got {count}")
    return count


def resolve_mode(value: Optional[str]) -> QuantizeMode:
    """Map a mode name to QuantizeMode, falling back to continuous with a warning."""
    if value is None:
        return QuantizeMode.CONTINUOUS
    mode = MODE_ALIASES.get(value.lower().lstrip("-"))
    if mode is None:
        print(
            f"Warning: Unknown mode '{value}', using default (continuous)",
            file=sys.stderr,
        )
        return QuantizeMode.CONTINUOUS
    return mode


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="apexseg",
        description="Region growing segmentation and color quantization of raster images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quantize to 8 colors, continuous centroid updates
  apexseg quantize -c 8 input.png output.png

  # Quantize to 16 colors, batch (iterative) updates, with a progress bar
  apexseg quantize -i 16 input.png output.png --progress

  # Segment a binarized version of a photo
  apexseg segment input.jpg regions.png --preprocess --threshold otsu
        """,
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    quantize = subparsers.add_parser(
        "quantize",
        help="Reduce an image to a fixed number of colors",
    )
    mode = quantize.add_mutually_exclusive_group()
    mode.add_argument(
        "-c", "--continuous",
        dest="mode",
        action="store_const",
        const="continuous",
        help="Update cluster means after every reassignment (default)",
    )
    mode.add_argument(
        "-i", "--iterative",
        dest="mode",
        action="store_const",
        const="iterative",
        help="Recompute cluster means after each full pass",
    )
    mode.add_argument(
        "--mode",
        dest="mode",
        type=str,
        help="Mode by name: continuous or iterative. Unknown modes, also given "
        "as flags such as -x, fall back to continuous with a warning",
    )
    quantize.add_argument("clusters", type=cluster_count, help="Cluster count (0-255)")
    quantize.add_argument("input", type=str, help="Input image path")
    quantize.add_argument("output", type=str, help="Output PNG path")
    quantize.add_argument(
        "--progress", action="store_true", help="Show a progress bar"
    )

    segment = subparsers.add_parser(
        "segment",
        help="Label connected regions of equal pixel values",
    )
    segment.add_argument("input", type=str, help="Input image path")
    segment.add_argument("output", type=str, help="Output PNG path for the false-color labels")
    segment.add_argument(
        "--preprocess",
        action="store_true",
        help="Convert to grey, binarize and clean the image before segmenting",
    )
    segment.add_argument(
        "--threshold",
        choices=sorted(THRESHOLD_METHODS),
        default="otsu",
        help="Thresholding method for --preprocess (default: otsu)",
    )
    segment.add_argument(
        "--kernel-size",
        type=int,
        default=3,
        help="Structuring element size for --preprocess cleaning (default: 3)",
    )
    segment.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of largest regions to report (default: 5)",
    )
    segment.add_argument(
        "--progress", action="store_true", help="Show a progress bar"
    )

    return parser


def _run_quantize(parsed: argparse.Namespace) -> int:
    mode = resolve_mode(parsed.mode)
    config = QuantizationConfig(n_clusters=parsed.clusters, mode=mode)

    print(f"Processing: {parsed.input}")
    print(f"  Mode: {mode.value}")
    print(f"  Clusters: {config.n_clusters}")

    result = QuantizationPipeline(config).process(
        parsed.input, parsed.output, show_progress=parsed.progress
    )
    print(f"  Converged in {result.passes} passes")
    print(f"  Output saved: {parsed.output}")
    return 0


def _run_segment(parsed: argparse.Namespace) -> int:
    config = SegmentationConfig(
        preprocess=parsed.preprocess,
        threshold_method=parsed.threshold,
        kernel_size=parsed.kernel_size,
    )

    print(f"Processing: {parsed.input}")
    result = SegmentationPipeline(config).process(
        parsed.input, parsed.output, show_progress=parsed.progress
    )

    print(f"  Regions: {result.n_regions}")
    for label, size in largest_regions(result.region_sizes, parsed.top):
        print(f"    region {label}: {size} px")
    print(f"  Output saved: {parsed.output}")
    return 0


def main(args=None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    parsed, extras = parser.parse_known_args(args)
    if extras:
        # A single unknown flag in quantize is a mode name, as with --mode
        flag = extras[0]
        if (parsed.command != "quantize" or parsed.mode is not None
                or len(extras) > 1 or not flag.startswith("-")):
            parser.error(f"unrecognized arguments: {' '.join(extras)}")
        parsed.mode = flag

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(parsed.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    try:
        if parsed.command == "quantize":
            return _run_quantize(parsed)
        return _run_segment(parsed)
    except (ProcessingError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
