"""
Box Proxy Meshes

Converts a box list into triangle geometry for export. Every box becomes
a closed cuboid of 6 quads (24 vertices, 12 triangles) with flat normals
and a single color.
"""

from enum import Enum
from typing import NamedTuple, Optional, Sequence, Tuple
import numpy as np

from .color import box_palette
from .shapes import Box


class CoordinateSystem(Enum):
    """Target coordinate system for export."""
    INTERNAL = "internal"  # Z-up, right-handed (grid convention)
    GLTF = "gltf"          # Y-up, right-handed (glTF, Godot, three.js)


class MeshData(NamedTuple):
    """Container for mesh geometry data."""
    vertices: np.ndarray     # (N, 3) float32 positions
    normals: np.ndarray      # (N, 3) float32 normals
    colors: np.ndarray       # (N, 4) uint8 RGBA colors
    indices: np.ndarray      # (M,) uint32 triangle indices

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3


# Unit cube corners per face, counter-clockwise seen from outside.
# Order: -X, +X, -Y, +Y, -Z, +Z
_CUBE_FACES = np.array([
    [[0, 0, 0], [0, 0, 1], [0, 1, 1], [0, 1, 0]],
    [[1, 0, 0], [1, 1, 0], [1, 1, 1], [1, 0, 1]],
    [[0, 0, 0], [1, 0, 0], [1, 0, 1], [0, 0, 1]],
    [[0, 1, 0], [0, 1, 1], [1, 1, 1], [1, 1, 0]],
    [[0, 0, 0], [0, 1, 0], [1, 1, 0], [1, 0, 0]],
    [[0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1]],
], dtype=np.float32)

_FACE_NORMALS = np.array([
    [-1, 0, 0],
    [1, 0, 0],
    [0, -1, 0],
    [0, 1, 0],
    [0, 0, -1],
    [0, 0, 1],
], dtype=np.float32)

_CUBE_VERTICES = _CUBE_FACES.reshape(24, 3)
_CUBE_NORMALS = np.repeat(_FACE_NORMALS, 4, axis=0)
_CUBE_INDICES = np.array(
    [[f * 4, f * 4 + 1, f * 4 + 2, f * 4, f * 4 + 2, f * 4 + 3] for f in range(6)],
    dtype=np.uint32
).ravel()


def empty_mesh() -> MeshData:
    return MeshData(
        vertices=np.zeros((0, 3), dtype=np.float32),
        normals=np.zeros((0, 3), dtype=np.float32),
        colors=np.zeros((0, 4), dtype=np.uint8),
        indices=np.zeros((0,), dtype=np.uint32)
    )


def boxes_to_mesh(
    boxes: Sequence[Box],
    cell_size: float = 1.0,
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    colors: Optional[np.ndarray] = None
) -> MeshData:
    """
    Build a triangle mesh with one cuboid per box.

    Args:
        boxes: Boxes in grid coordinates
        cell_size: Edge length of one voxel
        origin: World position of grid cell (0, 0, 0)
        colors: Optional (len(boxes), 4) uint8 colors; defaults to
            box_palette()

    Returns:
        MeshData in world units, Z-up
    """
    if len(boxes) == 0:
        return empty_mesh()

    rows = np.asarray(boxes, dtype=np.float64)
    lower = np.asarray(origin, dtype=np.float64) + rows[:, :3] * cell_size
    size = (rows[:, 3:] - rows[:, :3]) * cell_size

    count = len(rows)
    vertices = lower[:, None, :] + _CUBE_VERTICES[None, :, :] * size[:, None, :]
    normals = np.broadcast_to(_CUBE_NORMALS, (count, 24, 3))

    if colors is None:
        colors = box_palette(count)
    vertex_colors = np.repeat(np.asarray(colors, dtype=np.uint8), 24, axis=0)

    offsets = (np.arange(count, dtype=np.uint32) * 24)[:, None]
    indices = (_CUBE_INDICES[None, :] + offsets).ravel()

    return MeshData(
        vertices=vertices.reshape(-1, 3).astype(np.float32),
        normals=normals.reshape(-1, 3).astype(np.float32),
        colors=vertex_colors,
        indices=indices.astype(np.uint32)
    )


def get_coordinate_transform(
    source: CoordinateSystem,
    target: CoordinateSystem
) -> np.ndarray:
    """
    Get the 3x3 rotation matrix between coordinate systems.

    Z-up to Y-up is a -90 degree rotation about X: (x, y, z) -> (x, z, -y).
    """
    if source == target:
        return np.eye(3, dtype=np.float64)

    z_up_to_y_up = np.array([
        [1, 0, 0],
        [0, 0, 1],
        [0, -1, 0]
    ], dtype=np.float64)

    if source == CoordinateSystem.INTERNAL and target == CoordinateSystem.GLTF:
        return z_up_to_y_up
    return z_up_to_y_up.T


def transform_vertices(
    vertices: np.ndarray,
    source: CoordinateSystem,
    target: CoordinateSystem
) -> np.ndarray:
    """
    Transform an array of vertices between coordinate systems.

    Args:
        vertices: Array of shape (N, 3)
        source: Source coordinate system
        target: Target coordinate system

    Returns:
        Transformed array of shape (N, 3)
    """
    matrix = get_coordinate_transform(source, target)
    return (matrix @ vertices.T).T


def oriented_geometry(
    mesh: MeshData,
    target: CoordinateSystem
) -> Tuple[np.ndarray, np.ndarray]:
    """Get (vertices, normals) of a mesh as float64, rotated into `target` axes."""
    vertices = mesh.vertices.astype(np.float64)
    normals = mesh.normals.astype(np.float64)
    if target == CoordinateSystem.INTERNAL:
        return vertices, normals
    return (
        transform_vertices(vertices, CoordinateSystem.INTERNAL, target),
        transform_vertices(normals, CoordinateSystem.INTERNAL, target),
    )
