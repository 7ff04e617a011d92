"""
Occupancy Grid Construction

Builds a dense OccupancyGrid from either input representation:
- Slice mode: stack rasterized polygon cross-sections at integer z levels
- Voxel-list mode: mark an explicit list of (x, y, z) cells

All validation happens here, so a grid that reaches the decomposer is
always well-formed.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Sequence, Tuple
import logging
import math
import numpy as np

from .errors import ParameterError, RangeError
from .grid import OccupancyGrid
from .rasterizer import PolygonRasterizer
from .shapes import Slice

logger = logging.getLogger(__name__)


def slice_bounds(
    slices: Sequence[Slice]
) -> Tuple[float, float, float, float, int, int]:
    """
    Scan all polygon vertices and z indices.

    Returns:
        (min_x, min_y, max_x, max_y, min_z, max_z)
    """
    if not slices:
        raise ParameterError("At least one slice required")

    bounds = np.array([s.bounds for s in slices])
    z_indices = [s.z_index for s in slices]
    min_x, min_y = bounds[:, :2].min(axis=0)
    max_x, max_y = bounds[:, 2:].max(axis=0)
    return (
        float(min_x), float(min_y), float(max_x), float(max_y),
        min(z_indices), max(z_indices),
    )


class OccupancyGridBuilder:
    """
    Assembles occupancy grids from slices or voxel lists.

    Slice rasterization has no data dependency between slices, so it can
    run on a thread pool. Each worker produces an independent mask and the
    masks are written to their layers in input order.
    """

    def __init__(self, cell_size: float = 1.0, workers: int = 1):
        """
        Initialize the builder.

        Args:
            cell_size: World-space edge length of one voxel (> 0)
            workers: Number of threads used to rasterize slices
        """
        if not cell_size > 0:
            raise ParameterError(f"Cell size must be positive, got {cell_size}")
        if workers < 1:
            raise ParameterError(f"Worker count must be positive, got {workers}")

        self.cell_size = float(cell_size)
        self.workers = workers
        self.rasterizer = PolygonRasterizer(self.cell_size)

    def from_slices(self, slices: Iterable[Slice]) -> OccupancyGrid:
        """
        Build a grid by stacking rasterized slices.

        The grid spans the vertex bounding box in x/y and [min_z, max_z]
        in z. Levels without a slice stay empty. When two slices share a
        z index the later one replaces the earlier layer.

        Args:
            slices: Slices to stack

        Returns:
            OccupancyGrid with origin (min_x, min_y, min_z * cell_size)
        """
        slices = list(slices)
        min_x, min_y, max_x, max_y, min_z, max_z = slice_bounds(slices)

        width = math.ceil((max_x - min_x) / self.cell_size)
        height = math.ceil((max_y - min_y) / self.cell_size)
        depth = max_z - min_z + 1

        if width <= 0 or height <= 0 or depth <= 0:
            raise ParameterError(
                f"Invalid grid dimensions {width}x{height}x{depth} "
                f"(bounds x=[{min_x}, {max_x}], y=[{min_y}, {max_y}])"
            )

        grid = OccupancyGrid(
            width, height, depth,
            cell_size=self.cell_size,
            origin=(min_x, min_y, min_z * self.cell_size),
        )
        logger.info(
            "Building %dx%dx%d grid from %d slices", width, height, depth, len(slices)
        )

        def rasterize(s: Slice) -> np.ndarray:
            return self.rasterizer.rasterize(s.polygon, width, height, (min_x, min_y))

        if self.workers > 1 and len(slices) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                masks = list(pool.map(rasterize, slices))
        else:
            masks = [rasterize(s) for s in slices]

        for s, mask in zip(slices, masks):
            grid.data[s.z_index - min_z] = mask

        return grid

    def from_voxels(
        self,
        width: int,
        height: int,
        depth: int,
        voxels: Iterable[Sequence[int]]
    ) -> OccupancyGrid:
        """
        Build a grid from explicit voxel indices.

        Args:
            width, height, depth: Grid dimensions
            voxels: (x, y, z) index triples, or an (N, 3) array

        Returns:
            OccupancyGrid with origin (0, 0, 0)
        """
        grid = OccupancyGrid(width, height, depth, cell_size=self.cell_size)

        coords = np.asarray(voxels if isinstance(voxels, np.ndarray) else list(voxels))
        if coords.size == 0:
            raise ParameterError("Voxel count must be positive")
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ParameterError(f"Voxels must have shape (N, 3), got {coords.shape}")
        if not np.issubdtype(coords.dtype, np.integer):
            raise ParameterError("Voxel indices must be integers")

        bounds = np.array([grid.width, grid.height, grid.depth])
        bad = np.any((coords < 0) | (coords >= bounds), axis=1)
        if bad.any():
            x, y, z = (int(v) for v in coords[np.argmax(bad)])
            raise RangeError(
                f"Voxel ({x}, {y}, {z}) outside grid {width}x{height}x{depth}"
            )

        grid.data[coords[:, 2], coords[:, 1], coords[:, 0]] = 1
        logger.info(
            "Built %dx%dx%d grid from %d voxels", width, height, depth, len(coords)
        )
        return grid


def build_from_slices(
    slices: Iterable[Slice],
    cell_size: float = 1.0,
    workers: int = 1
) -> OccupancyGrid:
    """Convenience wrapper for OccupancyGridBuilder.from_slices."""
    return OccupancyGridBuilder(cell_size, workers).from_slices(slices)


def build_from_voxels(
    shape: Tuple[int, int, int],
    voxels: Iterable[Sequence[int]],
    cell_size: float = 1.0
) -> OccupancyGrid:
    """
    Convenience wrapper for OccupancyGridBuilder.from_voxels.

    Args:
        shape: Grid dimensions (width, height, depth)
        voxels: (x, y, z) index triples
        cell_size: World-space edge length of one voxel
    """
    width, height, depth = shape
    return OccupancyGridBuilder(cell_size).from_voxels(width, height, depth, voxels)
