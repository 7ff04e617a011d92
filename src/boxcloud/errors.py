"""
Exception types raised while reading shapes and building occupancy grids.

Every error is detected eagerly, before decomposition starts. The greedy
decomposer itself never raises.
"""


class BoxCloudError(ValueError):
    """Base class for invalid shape input."""


class ParameterError(BoxCloudError):
    """Non-positive cell size, slice/voxel count or grid dimension."""


class GeometryError(BoxCloudError):
    """A slice polygon with fewer than 3 vertices."""


class RangeError(BoxCloudError):
    """A voxel coordinate outside [0, bound) on some axis."""


class FormatError(BoxCloudError):
    """Malformed or truncated text input."""
