"""
Shape File Readers

This module parses the two whitespace-separated text formats:

Slice format:
    cellSize
    numSlices
    zIndex numPoints        (repeated numSlices times)
    x y                     (repeated numPoints times)

Voxel-list format:
    cellSize
    gridW gridH gridD
    numVoxels
    x y z                   (repeated numVoxels times)

Tokens may be split across lines arbitrarily; only their order matters.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple, Union
import logging
import numpy as np

from .errors import FormatError, GeometryError, ParameterError, RangeError
from .shapes import Slice

logger = logging.getLogger(__name__)


@dataclass
class SliceInput:
    """Parsed slice file."""
    cell_size: float
    slices: List[Slice] = field(default_factory=list)


@dataclass
class VoxelInput:
    """Parsed voxel-list file. `shape` is (width, height, depth)."""
    cell_size: float
    shape: Tuple[int, int, int]
    voxels: np.ndarray = field(repr=False)


class TokenReader:
    """Sequential reader over the whitespace-separated tokens of a text."""

    def __init__(self, text: str, source: str = "<string>"):
        self.source = source
        self._tokens = text.split()
        self._pos = 0

    def _next(self, what: str) -> str:
        if self._pos >= len(self._tokens):
            raise FormatError(f"{self.source}: unexpected end of input reading {what}")
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def read_float(self, what: str) -> float:
        token = self._next(what)
        try:
            return float(token)
        except ValueError:
            raise FormatError(
                f"{self.source}: expected number for {what}, got {token!r}"
            ) from None

    def read_int(self, what: str) -> int:
        token = self._next(what)
        try:
            return int(token)
        except ValueError:
            raise FormatError(
                f"{self.source}: expected integer for {what}, got {token!r}"
            ) from None

    @property
    def remaining(self) -> int:
        return len(self._tokens) - self._pos


def _read_cell_size(reader: TokenReader) -> float:
    cell_size = reader.read_float("cell size")
    if not cell_size > 0:
        raise ParameterError(f"{reader.source}: cell size must be positive, got {cell_size}")
    return cell_size


def parse_slices(text: str, source: str = "<string>") -> SliceInput:
    """
    Parse the slice text format.

    Args:
        text: File contents
        source: Name used in error messages

    Returns:
        SliceInput with slices in file order
    """
    reader = TokenReader(text, source)
    cell_size = _read_cell_size(reader)
    num_slices = reader.read_int("slice count")
    if num_slices <= 0:
        raise ParameterError(f"{source}: slice count must be positive, got {num_slices}")

    slices = []
    for s in range(num_slices):
        z_index = reader.read_int(f"z index of slice {s}")
        num_points = reader.read_int(f"point count of slice {s}")
        if num_points < 3:
            raise GeometryError(
                f"{source}: slice {s} has {num_points} points, at least 3 required"
            )

        points = np.empty((num_points, 2), dtype=np.float64)
        for i in range(num_points):
            points[i, 0] = reader.read_float(f"x of point {i} in slice {s}")
            points[i, 1] = reader.read_float(f"y of point {i} in slice {s}")
        slices.append(Slice(z_index, points))

    if reader.remaining:
        logger.warning("%s: ignoring %d trailing tokens", source, reader.remaining)

    logger.debug("Parsed %d slices from %s (cell size %g)", len(slices), source, cell_size)
    return SliceInput(cell_size, slices)


def parse_voxels(text: str, source: str = "<string>") -> VoxelInput:
    """
    Parse the voxel-list text format.

    Args:
        text: File contents
        source: Name used in error messages

    Returns:
        VoxelInput with an (N, 3) int64 array of (x, y, z) indices
    """
    reader = TokenReader(text, source)
    cell_size = _read_cell_size(reader)
    width = reader.read_int("grid width")
    height = reader.read_int("grid height")
    depth = reader.read_int("grid depth")
    if width <= 0 or height <= 0 or depth <= 0:
        raise ParameterError(
            f"{source}: grid dimensions must be positive, got {width}x{height}x{depth}"
        )

    num_voxels = reader.read_int("voxel count")
    if num_voxels <= 0:
        raise ParameterError(f"{source}: voxel count must be positive, got {num_voxels}")

    bounds = (width, height, depth)
    voxels = np.empty((num_voxels, 3), dtype=np.int64)
    for i in range(num_voxels):
        for axis, name in enumerate("xyz"):
            value = reader.read_int(f"{name} of voxel {i}")
            if not 0 <= value < bounds[axis]:
                raise RangeError(
                    f"{source}: voxel {i} {name}={value} outside [0, {bounds[axis]})"
                )
            voxels[i, axis] = value

    if reader.remaining:
        logger.warning("%s: ignoring %d trailing tokens", source, reader.remaining)

    logger.debug("Parsed %d voxels from %s (cell size %g)", num_voxels, source, cell_size)
    return VoxelInput(cell_size, bounds, voxels)


def _read_text(path: Union[str, Path]) -> Tuple[str, str]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Shape file not found: {path}")
    return path.read_text(), str(path)


def read_slice_file(path: Union[str, Path]) -> SliceInput:
    """Read a slice-format shape file."""
    text, source = _read_text(path)
    return parse_slices(text, source)


def read_voxel_file(path: Union[str, Path]) -> VoxelInput:
    """Read a voxel-list shape file."""
    text, source = _read_text(path)
    return parse_voxels(text, source)
