#!/usr/bin/env python3
"""
BoxCloud Demo Script

This script demonstrates the full decomposition pipeline by:
1. Creating synthetic shapes (no input files needed)
2. Building occupancy grids from slices and voxel lists
3. Decomposing them into boxes and exporting all formats
4. Printing statistics and comparisons

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import math
import time
import numpy as np

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from boxcloud import BoxCloud, Slice, OccupancyGrid
from boxcloud.decomposer import (
    ChunkedBoxDecomposer,
    GreedyBoxDecomposer,
    NaiveDecomposer,
    compare_box_stats,
)


def circle_polygon(radius: float, segments: int = 32) -> np.ndarray:
    """Regular polygon approximating a circle centered at the origin."""
    angles = np.linspace(0, 2 * math.pi, segments, endpoint=False)
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])


def create_sphere_slices(radius: int = 10) -> list:
    """
    Stack of circular cross-sections approximating a sphere.

    Returns:
        List of Slice objects
    """
    slices = []
    for z in range(-radius + 1, radius):
        r = math.sqrt(radius * radius - z * z)
        slices.append(Slice(z, circle_polygon(r)))
    return slices


def create_tower_slices(height: int = 12) -> list:
    """
    Square tower that tapers every few levels, with a notch cut into it.

    Returns:
        List of Slice objects
    """
    slices = []
    for z in range(height):
        half = 8 - z // 4 * 2
        outline = [
            (-half, -half), (half, -half), (half, half),
            (1, half), (1, 2), (-1, 2), (-1, half),
            (-half, half),
        ]
        slices.append(Slice(z, outline))
    return slices


def create_stairs_voxels(steps: int = 10, width: int = 6) -> tuple:
    """
    Staircase given as explicit voxels.

    Returns:
        Tuple of (shape, voxels) with shape (width, height, depth)
    """
    voxels = [
        (x, y, z)
        for x in range(steps)
        for y in range(width)
        for z in range(x + 1)
    ]
    return (steps, width, steps), voxels


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("BoxCloud - Demo")
    print("=" * 60)
    print()

    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    total_start = time.time()

    shapes = [
        ("sphere", "slices", create_sphere_slices(10), 0.5),
        ("tower", "slices", create_tower_slices(12), 1.0),
        ("stairs", "voxels", create_stairs_voxels(), 0.25),
    ]

    for name, kind, data, cell_size in shapes:
        print(f"\n--- Processing: {name} ({kind}) ---")

        shape_start = time.time()
        cloud = BoxCloud()

        if kind == "slices":
            cloud.load_slices(data, cell_size)
        else:
            shape, voxels = data
            cloud.load_voxels(shape, voxels, cell_size)

        grid = cloud.grid
        print(f"  Grid: {grid.width}x{grid.height}x{grid.depth} cells of {cell_size:g}")
        print(f"  Voxels: {cloud.voxel_count}")

        decompose_start = time.time()
        cloud.decompose()
        decompose_time = time.time() - decompose_start

        stats = cloud.get_stats()
        print(f"  Decomposition: {decompose_time*1000:.1f}ms")
        print(f"  Boxes: {stats['greedy_boxes']}")
        print(f"  Box reduction: {stats['box_reduction_percent']:.1f}%")
        print(f"  Largest box: {stats['largest_box_volume']} voxels")

        print("\n  Exporting...")
        for path in cloud.export_all(output_dir / name):
            print(f"    Saved: {path}")

        print(f"    Total time: {(time.time() - shape_start)*1000:.1f}ms")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_decomposition():
    """Benchmark greedy, chunked and naive decomposition."""
    print("\n--- Box Decomposition Benchmark ---\n")

    rng = np.random.default_rng(7)

    for size in [16, 32, 64, 128]:
        # Mostly solid block with random holes
        grid = OccupancyGrid.from_array(rng.random((size, size, size)) < 0.95)

        start = time.time()
        greedy_boxes = GreedyBoxDecomposer(copy=True).decompose(grid)
        greedy_time = time.time() - start

        start = time.time()
        chunked_boxes = ChunkedBoxDecomposer((32, 32, 32), workers=4, copy=True).decompose(grid)
        chunked_time = time.time() - start

        naive_boxes = NaiveDecomposer(copy=True).decompose(grid)
        stats = compare_box_stats(greedy_boxes, naive_boxes)

        print(f"Grid size: {size}x{size}x{size}")
        print(f"  Greedy:  {greedy_time*1000:.1f}ms, {len(greedy_boxes)} boxes")
        print(f"  Chunked: {chunked_time*1000:.1f}ms, {len(chunked_boxes)} boxes")
        print(f"  Naive:   {len(naive_boxes)} boxes")
        print(f"  Reduction: {stats['box_reduction_percent']:.1f}%")
        print()


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_decomposition()
