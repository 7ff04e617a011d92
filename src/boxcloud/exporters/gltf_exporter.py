"""
glTF 2.0 Exporter (.glb binary format)

Packs the box proxy mesh into a single self-contained binary glTF file
that web viewers and engines load directly. The file holds one node, one
mesh and one material; geometry lives in a single binary buffer with one
4-byte aligned view per attribute, in this order:

  indices (uint16 or uint32) | POSITION (float32 vec3) |
  NORMAL (float32 vec3) | COLOR_0 (uint8 vec4, normalized)
"""

from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union
import json
import struct
import numpy as np

from ..color import srgb_to_linear
from ..mesh import MeshData, CoordinateSystem, oriented_geometry


GLTF_VERSION = "2.0"
GENERATOR = "BoxCloud"

# Accessor component types
UNSIGNED_BYTE = 5121
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

COMPONENT_TYPES = {
    np.dtype(np.uint8): UNSIGNED_BYTE,
    np.dtype(np.uint16): UNSIGNED_SHORT,
    np.dtype(np.uint32): UNSIGNED_INT,
    np.dtype(np.float32): FLOAT,
}

ACCESSOR_TYPES = {1: "SCALAR", 3: "VEC3", 4: "VEC4"}

# Buffer view targets
ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

TRIANGLES = 4

GLB_MAGIC = 0x46546C67
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942


def _pad4(length: int) -> int:
    return (4 - length % 4) % 4


class _Attribute(NamedTuple):
    """One typed array stored in its own buffer view."""
    name: Optional[str]
    array: np.ndarray
    target: int
    normalized: bool = False

    @property
    def components(self) -> int:
        return 1 if self.array.ndim == 1 else self.array.shape[1]


class GLTFExporter:
    """
    Export box meshes to glTF 2.0 binary format (.glb).

    Features:
    - Vertex colors with sRGB to Linear conversion
    - Flat per-face normals
    - Z-up to Y-up conversion
    """

    def __init__(
        self,
        convert_colors: bool = True,
        coordinate_system: CoordinateSystem = CoordinateSystem.GLTF
    ):
        """
        Args:
            convert_colors: Convert the sRGB box palette to linear space,
                as glTF vertex colors are linear
            coordinate_system: Axis convention of the written positions
        """
        self.convert_colors = convert_colors
        self.coordinate_system = coordinate_system

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        name: str = "BoxCloud"
    ):
        """
        Write the mesh as a .glb file.

        Args:
            mesh: MeshData from boxes_to_mesh
            output_path: Destination path
            name: Node and mesh name
        """
        if len(mesh.vertices) == 0:
            raise ValueError("Cannot export empty mesh")

        attributes = self._prepare_attributes(mesh)
        buffer_data, views = self._pack(attributes)
        gltf = self._build_gltf(attributes, views, len(buffer_data), name)
        self._write_glb(Path(output_path), gltf, buffer_data)

    def _prepare_attributes(self, mesh: MeshData) -> List[_Attribute]:
        """Convert mesh arrays to the axes and dtypes stored in the file."""
        vertices, normals = oriented_geometry(mesh, self.coordinate_system)

        if self.convert_colors:
            colors = (srgb_to_linear(mesh.colors) * 255).round().astype(np.uint8)
        else:
            colors = mesh.colors.astype(np.uint8)

        index_dtype = np.uint16 if mesh.indices.max() < 65536 else np.uint32

        return [
            _Attribute(None, mesh.indices.astype(index_dtype), ELEMENT_ARRAY_BUFFER),
            _Attribute("POSITION", vertices.astype(np.float32), ARRAY_BUFFER),
            _Attribute("NORMAL", normals.astype(np.float32), ARRAY_BUFFER),
            _Attribute("COLOR_0", colors, ARRAY_BUFFER, normalized=True),
        ]

    def _pack(self, attributes: List[_Attribute]) -> Tuple[bytes, List[Dict[str, Any]]]:
        """Concatenate the arrays into one buffer, each view 4-byte aligned."""
        parts = []
        views = []
        offset = 0
        for attribute in attributes:
            data = np.ascontiguousarray(attribute.array).tobytes()
            views.append({
                "buffer": 0,
                "byteOffset": offset,
                "byteLength": len(data),
                "target": attribute.target,
            })
            padding = b"\x00" * _pad4(len(data))
            parts.extend([data, padding])
            offset += len(data) + len(padding)
        return b"".join(parts), views

    def _build_gltf(
        self,
        attributes: List[_Attribute],
        views: List[Dict[str, Any]],
        buffer_length: int,
        name: str
    ) -> Dict[str, Any]:
        accessors = []
        for view_index, attribute in enumerate(attributes):
            accessor = {
                "bufferView": view_index,
                "componentType": COMPONENT_TYPES[attribute.array.dtype],
                "count": len(attribute.array),
                "type": ACCESSOR_TYPES[attribute.components],
            }
            if attribute.normalized:
                accessor["normalized"] = True
            # POSITION must carry bounds
            if attribute.name == "POSITION":
                accessor["min"] = attribute.array.min(axis=0).tolist()
                accessor["max"] = attribute.array.max(axis=0).tolist()
            accessors.append(accessor)

        primitive = {
            "attributes": {
                attribute.name: i
                for i, attribute in enumerate(attributes)
                if attribute.name is not None
            },
            "indices": 0,
            "material": 0,
            "mode": TRIANGLES,
        }

        return {
            "asset": {"version": GLTF_VERSION, "generator": GENERATOR},
            "scene": 0,
            "scenes": [{"nodes": [0]}],
            "nodes": [{"mesh": 0, "name": name}],
            "meshes": [{"name": name, "primitives": [primitive]}],
            "materials": [{
                "name": "BoxMaterial",
                "pbrMetallicRoughness": {
                    "baseColorFactor": [1.0, 1.0, 1.0, 1.0],
                    "metallicFactor": 0.0,
                    "roughnessFactor": 0.9,
                },
            }],
            "accessors": accessors,
            "bufferViews": views,
            "buffers": [{"byteLength": buffer_length}],
        }

    def _write_glb(self, output_path: Path, gltf: Dict[str, Any], buffer_data: bytes):
        """Write header, JSON chunk and BIN chunk."""
        json_bytes = json.dumps(gltf, separators=(",", ":")).encode("utf-8")
        json_bytes += b" " * _pad4(len(json_bytes))

        chunks = [(CHUNK_JSON, json_bytes), (CHUNK_BIN, buffer_data)]
        total_length = 12 + sum(8 + len(payload) for _, payload in chunks)

        with open(output_path, "wb") as f:
            f.write(struct.pack("<III", GLB_MAGIC, GLB_VERSION, total_length))
            for chunk_type, payload in chunks:
                f.write(struct.pack("<II", len(payload), chunk_type))
                f.write(payload)
