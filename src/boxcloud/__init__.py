"""
BoxCloud
========

Voxel-to-box decomposition for simplified proxy geometry.

This package converts a solid, given either as stacked 2D polygon
cross-sections or as an explicit list of filled voxels, into a compact set
of axis-aligned boxes whose union is exactly the set of filled voxels.

Key Features:
- Even-odd polygon rasterization at cell centers with Numba JIT kernels
- Dense occupancy grids from slice stacks or voxel lists
- Deterministic greedy maximal-extent box covering (x, then y, then z)
- Optional chunked decomposition across worker threads
- Export to a plain-text report, glTF 2.0 (.glb) and Wavefront (.obj)

Example Usage:
    from boxcloud import BoxCloud

    cloud = BoxCloud()
    cloud.load_slice_file("shape.txt")
    cloud.decompose()
    print(cloud.report())
"""

__version__ = "1.0.0"
__author__ = "BoxCloud Team"

from .errors import BoxCloudError, ParameterError, GeometryError, RangeError, FormatError
from .shapes import Point2D, Slice, Box
from .rasterizer import PolygonRasterizer, point_in_polygon
from .grid import OccupancyGrid
from .builder import OccupancyGridBuilder
from .decomposer import GreedyBoxDecomposer, ChunkedBoxDecomposer, NaiveDecomposer
from .pipeline import BoxCloud

__all__ = [
    "BoxCloud",
    "BoxCloudError",
    "ParameterError",
    "GeometryError",
    "RangeError",
    "FormatError",
    "Point2D",
    "Slice",
    "Box",
    "PolygonRasterizer",
    "point_in_polygon",
    "OccupancyGrid",
    "OccupancyGridBuilder",
    "GreedyBoxDecomposer",
    "ChunkedBoxDecomposer",
    "NaiveDecomposer",
]
