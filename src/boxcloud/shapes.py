"""
Shape Primitives

This module provides the small value types shared by the pipeline:
- Point2D: a 2D vertex in world units
- Slice: a polygon cross-section placed at an integer z level
- Box: a half-open axis-aligned box in grid-cell units

Polygons are stored as (N, 2) float64 numpy arrays so they can be handed
straight to the Numba rasterization kernels.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Sequence, Tuple, Union
import numpy as np

from .errors import GeometryError


class Point2D(NamedTuple):
    """A 2D point in world units."""
    x: float
    y: float


PolygonLike = Union[np.ndarray, Sequence[Sequence[float]]]


def as_polygon(points: PolygonLike) -> np.ndarray:
    """
    Convert a sequence of points to a polygon array.

    Args:
        points: Sequence of (x, y) pairs or an (N, 2) array

    Returns:
        Contiguous float64 array of shape (N, 2)

    Raises:
        GeometryError: If the points are not finite 2D pairs or fewer than 3 are given
    """
    polygon = np.ascontiguousarray(points, dtype=np.float64)
    if polygon.ndim != 2 or polygon.shape[1] != 2:
        raise GeometryError(
            f"Polygon must have shape (N, 2), got {polygon.shape}"
        )
    if polygon.shape[0] < 3:
        raise GeometryError(
            f"Polygon needs at least 3 vertices, got {polygon.shape[0]}"
        )
    if not np.all(np.isfinite(polygon)):
        raise GeometryError("Polygon vertices must be finite")
    return polygon


@dataclass(frozen=True, eq=False)
class Slice:
    """
    One polygon cross-section of the solid.

    The slice lies at world height z_index * cell_size.
    """

    z_index: int
    polygon: np.ndarray = field(repr=False)

    def __post_init__(self):
        object.__setattr__(self, "z_index", int(self.z_index))
        object.__setattr__(self, "polygon", as_polygon(self.polygon))

    @property
    def num_points(self) -> int:
        return self.polygon.shape[0]

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Get (min_x, min_y, max_x, max_y) of the polygon vertices."""
        mins = self.polygon.min(axis=0)
        maxs = self.polygon.max(axis=0)
        return (float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))


class Box(NamedTuple):
    """
    Axis-aligned box in grid cells.

    Upper bounds are exclusive, so width = x1 - x0.
    """
    x0: int
    y0: int
    z0: int
    x1: int
    y1: int
    z1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def depth(self) -> int:
        return self.z1 - self.z0

    @property
    def volume(self) -> int:
        """Number of grid cells covered by the box."""
        return self.width * self.height * self.depth

    @property
    def cells(self) -> Tuple[slice, slice, slice]:
        """Index expression selecting the box from a [z, y, x] array."""
        return (
            slice(self.z0, self.z1),
            slice(self.y0, self.y1),
            slice(self.x0, self.x1),
        )

    def translate(self, dx: int, dy: int, dz: int) -> "Box":
        return Box(
            self.x0 + dx, self.y0 + dy, self.z0 + dz,
            self.x1 + dx, self.y1 + dy, self.z1 + dz,
        )

    def intersects(self, other: "Box") -> bool:
        """Check whether two boxes share at least one cell."""
        return (
            self.x0 < other.x1 and other.x0 < self.x1 and
            self.y0 < other.y1 and other.y0 < self.y1 and
            self.z0 < other.z1 and other.z0 < self.z1
        )

    def to_world(
        self,
        cell_size: float,
        origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    ) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
        """
        Get the world-space corners of the box.

        Args:
            cell_size: Edge length of one voxel
            origin: World position of grid cell (0, 0, 0)

        Returns:
            ((x0, y0, z0), (x1, y1, z1)) in world units
        """
        ox, oy, oz = origin
        lower = (
            ox + self.x0 * cell_size,
            oy + self.y0 * cell_size,
            oz + self.z0 * cell_size,
        )
        upper = (
            ox + self.x1 * cell_size,
            oy + self.y1 * cell_size,
            oz + self.z1 * cell_size,
        )
        return lower, upper
