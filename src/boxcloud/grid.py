"""
Occupancy Grid

Dense 3D binary grid indexed [z, y, x]. Cells are exactly 0 (empty) or
1 (filled). The grid is the single mutable structure of the pipeline: the
decomposer clears cells in place as it covers them.

Memory consideration: one byte per cell, so a 256³ grid is 16 MB.
"""

from dataclasses import dataclass, field
from typing import Iterator, Tuple
import numpy as np

from .errors import ParameterError, RangeError


@dataclass
class OccupancyGrid:
    """
    Dense binary voxel grid with world placement.

    The backing array is C-contiguous with shape (depth, height, width),
    so cell (x, y, z) lives at flat offset (z * height + y) * width + x.

    Coordinate system: X-right, Y-back, Z-up. Grid cell (0, 0, 0) has its
    lower corner at `origin` in world units.
    """

    width: int
    height: int
    depth: int
    cell_size: float = 1.0
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    _data: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0 or self.depth <= 0:
            raise ParameterError(
                f"Grid dimensions must be positive, got "
                f"{self.width}x{self.height}x{self.depth}"
            )
        if not self.cell_size > 0:
            raise ParameterError(f"Cell size must be positive, got {self.cell_size}")

        self.width = int(self.width)
        self.height = int(self.height)
        self.depth = int(self.depth)
        self.cell_size = float(self.cell_size)
        self.origin = tuple(float(v) for v in self.origin)
        self._data = np.zeros((self.depth, self.height, self.width), dtype=np.uint8)

    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        cell_size: float = 1.0,
        origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    ) -> "OccupancyGrid":
        """
        Wrap an existing [z, y, x] array. Any nonzero value counts as filled.

        Args:
            array: 3D array of shape (depth, height, width)
            cell_size: World-space edge length of one cell
            origin: World position of cell (0, 0, 0)
        """
        array = np.asarray(array)
        if array.ndim != 3:
            raise ParameterError(f"Grid array must be 3D, got {array.ndim}D")

        depth, height, width = array.shape
        grid = cls(width, height, depth, cell_size, origin)
        grid._data[...] = array != 0
        return grid

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Get array dimensions (depth, height, width)."""
        return (self.depth, self.height, self.width)

    @property
    def data(self) -> np.ndarray:
        """Get the raw uint8 [z, y, x] array."""
        return self._data

    @property
    def occupancy(self) -> np.ndarray:
        """Get boolean occupancy mask."""
        return self._data != 0

    @property
    def occupied_bounds(self) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
        """Get tight (x, y, z) bounds around filled cells, upper exclusive."""
        filled = np.argwhere(self._data)
        if len(filled) == 0:
            return ((0, 0, 0), (0, 0, 0))
        z0, y0, x0 = filled.min(axis=0)
        z1, y1, x1 = filled.max(axis=0) + 1
        return ((int(x0), int(y0), int(z0)), (int(x1), int(y1), int(z1)))

    def in_bounds(self, x: int, y: int, z: int) -> bool:
        return (
            0 <= x < self.width and
            0 <= y < self.height and
            0 <= z < self.depth
        )

    def is_filled(self, x: int, y: int, z: int) -> bool:
        """Check a cell. Out-of-bounds cells read as empty."""
        if not self.in_bounds(x, y, z):
            return False
        return bool(self._data[z, y, x])

    def set_filled(self, x: int, y: int, z: int):
        """Mark a cell as filled."""
        if not self.in_bounds(x, y, z):
            raise RangeError(
                f"Voxel ({x}, {y}, {z}) outside grid "
                f"{self.width}x{self.height}x{self.depth}"
            )
        self._data[z, y, x] = 1

    def clear(self):
        """Empty every cell."""
        self._data.fill(0)

    def count_filled(self) -> int:
        """Count the number of filled cells."""
        return int(np.count_nonzero(self._data))

    def is_empty(self) -> bool:
        return not self._data.any()

    def iterate_voxels(self) -> Iterator[Tuple[int, int, int]]:
        """
        Iterate over filled cells in scan order (z, then y, then x).

        Yields:
            (x, y, z) tuples
        """
        for z, y, x in np.argwhere(self._data):
            yield (int(x), int(y), int(z))

    def to_sparse(self) -> np.ndarray:
        """
        Get filled cells as an (N, 3) array of (x, y, z) indices in scan order.
        """
        return np.argwhere(self._data)[:, ::-1].copy()

    def grid_to_world(self, x: float, y: float, z: float) -> Tuple[float, float, float]:
        """Convert grid coordinates to world coordinates."""
        ox, oy, oz = self.origin
        return (
            ox + x * self.cell_size,
            oy + y * self.cell_size,
            oz + z * self.cell_size,
        )

    def copy(self) -> "OccupancyGrid":
        """Create an independent copy of the grid."""
        duplicate = OccupancyGrid(
            self.width, self.height, self.depth, self.cell_size, self.origin
        )
        duplicate._data[...] = self._data
        return duplicate
