"""
Command-Line Interface for BoxCloud

Usage:
    boxcloud shape.txt
    boxcloud voxels.txt --input-format voxels --stats
    boxcloud shape.txt -o out/shape --format report obj glb

"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import BoxCloudError
from .logging_config import setup_logging
from .mesh import CoordinateSystem
from .pipeline import BoxCloud

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="boxcloud",
        description="Decompose a voxelized solid into axis-aligned boxes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  boxcloud shape.txt
      Print the box report for a slice file

  boxcloud voxels.txt --input-format voxels --stats
      Decompose a voxel list and print statistics

  boxcloud shape.txt -o build/shape --format report obj glb
      Write shape.txt, shape.obj and shape.glb under build/

  boxcloud big.txt --chunk 32 32 32 --workers 4
      Decompose 32^3 sub-volumes on 4 threads

Input formats:
  slices  - cellSize numSlices {zIndex numPoints {x y}...}...
  voxels  - cellSize gridW gridH gridD numVoxels {x y z}...
        """
    )

    parser.add_argument(
        "input",
        help="Shape file"
    )

    parser.add_argument(
        "-i", "--input-format",
        choices=["slices", "voxels"],
        default="slices",
        help="Input file format (default: slices)"
    )

    parser.add_argument(
        "-o", "--output",
        help="Output base path; extensions are added per format"
    )

    parser.add_argument(
        "-f", "--format",
        nargs="+",
        choices=["report", "obj", "glb"],
        default=["report"],
        help="Output format(s) (default: report)"
    )

    parser.add_argument(
        "--coordinate-system",
        choices=["internal", "gltf"],
        default=None,
        help="Mesh axes: internal (Z-up) or gltf (Y-up). "
             "Default: internal for OBJ, gltf for GLB"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker threads for rasterization and chunked decomposition (default: 1)"
    )

    parser.add_argument(
        "--chunk",
        type=int,
        nargs=3,
        metavar=("W", "H", "D"),
        help="Decompose independent sub-volumes of this size"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print decomposition statistics"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with debug logging"
    )

    parser.add_argument(
        "--log-file",
        help="Also write log records to this file"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def print_stats(stats: dict):
    print("\nDecomposition Statistics:")
    print(f"  Voxels: {stats['voxel_count']}")
    print(f"  Components: {stats['components']}")
    print(f"  Grid size: {stats['grid_size']}")
    print(f"  Cell size: {stats['cell_size']:g}")
    print(f"  Boxes: {stats['greedy_boxes']}")
    print(f"  Largest box: {stats['largest_box_volume']} voxels")
    print(f"  Mean box: {stats['mean_box_volume']:.2f} voxels")
    print(f"  Box reduction: {stats['box_reduction_percent']:.1f}%")


def export_outputs(cloud: BoxCloud, args) -> None:
    """Write every requested format, or print the report to stdout."""
    if not args.output:
        if args.format != ["report"]:
            raise ValueError("--output is required for obj/glb formats")
        sys.stdout.write(cloud.report())
        return

    output_base = Path(args.output)
    output_base.parent.mkdir(parents=True, exist_ok=True)

    system = (
        CoordinateSystem(args.coordinate_system) if args.coordinate_system else None
    )

    for fmt in args.format:
        if fmt == "report":
            output_path = output_base.with_suffix(".txt")
            cloud.export_report(output_path)
        elif fmt == "obj":
            output_path = output_base.with_suffix(".obj")
            cloud.export_obj(output_path, system or CoordinateSystem.INTERNAL)
        else:
            output_path = output_base.with_suffix(".glb")
            cloud.export_glb(output_path, system or CoordinateSystem.GLTF)
        logger.info("Exported %s", output_path)
        if args.verbose:
            print(f"Exported: {output_path}")


def run(args) -> int:
    """Process one shape file."""
    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    start_time = time.time()

    try:
        cloud = BoxCloud(
            workers=args.workers,
            chunk_shape=tuple(args.chunk) if args.chunk else None
        )

        if args.verbose:
            print(f"Loading: {input_path} ({args.input_format})")
        cloud.load_file(input_path, args.input_format)

        if args.verbose:
            print(f"Decomposing {cloud.voxel_count} voxels...")
        cloud.decompose()

        export_outputs(cloud, args)

        if args.stats or args.verbose:
            print_stats(cloud.get_stats())

        if args.verbose:
            print(f"\nCompleted in {time.time() - start_time:.2f}s")

        return 0

    except (BoxCloudError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("Run failed", exc_info=True)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=args.log_file
    )

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
