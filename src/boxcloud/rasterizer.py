"""
Polygon Rasterization with Numba JIT Compilation

Turns one 2D polygon cross-section into a binary occupancy mask over a
regular grid. A cell is filled iff its center point lies inside the polygon
under the even-odd (ray casting) rule.

The kernels release the GIL, so independent slices can be rasterized on
worker threads.
"""

from typing import Tuple
import logging
import numpy as np
from numba import njit

from .errors import ParameterError
from .shapes import PolygonLike, as_polygon

logger = logging.getLogger(__name__)

# Added to each edge's vertical extent so horizontal edges never divide by zero.
EDGE_EPSILON = 1e-6


@njit(cache=True, nogil=True)
def _point_in_polygon(polygon: np.ndarray, px: float, py: float) -> bool:
    """
    Even-odd ray casting test against an implicitly closed polygon.

    An edge counts as a crossing when exactly one endpoint is strictly
    above py and the edge's x-intercept at py lies to the right of px.
    """
    inside = False
    n = polygon.shape[0]
    j = n - 1
    for i in range(n):
        xi = polygon[i, 0]
        yi = polygon[i, 1]
        xj = polygon[j, 0]
        yj = polygon[j, 1]
        if (yi > py) != (yj > py):
            x_cross = (xj - xi) * (py - yi) / (yj - yi + EDGE_EPSILON) + xi
            if px < x_cross:
                inside = not inside
        j = i
    return inside


@njit(cache=True, nogil=True)
def _rasterize_kernel(
    polygon: np.ndarray,
    width: int,
    height: int,
    min_x: float,
    min_y: float,
    cell_size: float
) -> np.ndarray:
    """
    Sample the polygon at every cell center.

    Returns:
        uint8 mask of shape (height, width)
    """
    mask = np.zeros((height, width), dtype=np.uint8)
    for y in range(height):
        py = min_y + (y + 0.5) * cell_size
        for x in range(width):
            px = min_x + (x + 0.5) * cell_size
            if _point_in_polygon(polygon, px, py):
                mask[y, x] = 1
    return mask


def point_in_polygon(polygon: PolygonLike, x: float, y: float) -> bool:
    """Check whether (x, y) lies inside the polygon."""
    return bool(_point_in_polygon(as_polygon(polygon), float(x), float(y)))


class PolygonRasterizer:
    """
    Rasterizes polygon cross-sections at a fixed cell size.

    The rasterizer is stateless apart from its cell size and performs no
    validation of self-intersecting outlines.
    """

    def __init__(self, cell_size: float = 1.0):
        """
        Initialize the rasterizer.

        Args:
            cell_size: World-space edge length of one grid cell (> 0)
        """
        if not cell_size > 0:
            raise ParameterError(f"Cell size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)

    def rasterize(
        self,
        polygon: PolygonLike,
        width: int,
        height: int,
        origin: Tuple[float, float] = (0.0, 0.0)
    ) -> np.ndarray:
        """
        Rasterize a polygon into a binary mask.

        Args:
            polygon: (N, 2) vertices, N >= 3
            width: Mask width in cells
            height: Mask height in cells
            origin: World position (min_x, min_y) of the mask's corner

        Returns:
            uint8 array of shape (height, width), 1 where the cell center
            is inside the polygon
        """
        if width <= 0 or height <= 0:
            raise ParameterError(
                f"Mask dimensions must be positive, got {width}x{height}"
            )

        min_x, min_y = origin
        mask = _rasterize_kernel(
            as_polygon(polygon),
            int(width),
            int(height),
            float(min_x),
            float(min_y),
            self.cell_size,
        )
        logger.debug(
            "Rasterized %d-vertex polygon into %dx%d mask (%d cells filled)",
            len(polygon), width, height, int(mask.sum())
        )
        return mask
