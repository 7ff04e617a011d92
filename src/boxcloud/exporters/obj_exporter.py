"""
Wavefront OBJ Format Exporter

OBJ is a universal text-based format supported by virtually all 3D software.
Each box is written as its own object with six quad faces, so editors can
select and inspect boxes individually. Vertex colors use the common
extended form (v x y z r g b).
"""

from pathlib import Path
from typing import List, Union
import numpy as np

from ..mesh import MeshData, CoordinateSystem, oriented_geometry

# Layout produced by boxes_to_mesh: 6 faces of 4 vertices per box.
FACES_PER_BOX = 6
VERTICES_PER_FACE = 4
VERTICES_PER_BOX = FACES_PER_BOX * VERTICES_PER_FACE


class OBJExporter:
    """
    Export box meshes to Wavefront OBJ format.

    Expects the fixed per-box vertex layout of boxes_to_mesh; faces are
    written as quads rather than from the triangle index buffer.
    """

    def __init__(
        self,
        coordinate_system: CoordinateSystem = CoordinateSystem.INTERNAL,
        include_normals: bool = True,
        vertex_colors: bool = True
    ):
        """
        Args:
            coordinate_system: Axis convention of the written vertices
            include_normals: Write one vn per face direction
            vertex_colors: Append r g b to each vertex line
        """
        self.coordinate_system = coordinate_system
        self.include_normals = include_normals
        self.vertex_colors = vertex_colors

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        model_name: str = "box_cloud"
    ):
        """
        Write the mesh as an .obj file.

        Args:
            mesh: MeshData from boxes_to_mesh
            output_path: Destination path
            model_name: Prefix of the per-box object names
        """
        if len(mesh.vertices) == 0:
            raise ValueError("Cannot export empty mesh")

        vertices, normals = oriented_geometry(mesh, self.coordinate_system)
        box_count = len(vertices) // VERTICES_PER_BOX

        lines: List[str] = [
            "# BoxCloud OBJ Export",
            f"# Boxes: {box_count}",
            f"# Vertices: {len(vertices)}",
            "",
        ]

        if self.include_normals:
            # Every box shares the same six face directions
            for n in normals[:VERTICES_PER_BOX:VERTICES_PER_FACE]:
                lines.append(f"vn {n[0]:.6f} {n[1]:.6f} {n[2]:.6f}")
            lines.append("")

        colors = mesh.colors[:, :3] / 255.0
        for b in range(box_count):
            lines.append(f"o {model_name}_{b}")
            start = b * VERTICES_PER_BOX
            for i in range(start, start + VERTICES_PER_BOX):
                v = vertices[i]
                line = f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}"
                if self.vertex_colors:
                    r, g, bl = colors[i]
                    line += f" {r:.4f} {g:.4f} {bl:.4f}"
                lines.append(line)

            for face in range(FACES_PER_BOX):
                # OBJ indices are 1-based
                first = start + face * VERTICES_PER_FACE + 1
                corners = range(first, first + VERTICES_PER_FACE)
                if self.include_normals:
                    lines.append("f " + " ".join(f"{c}//{face + 1}" for c in corners))
                else:
                    lines.append("f " + " ".join(str(c) for c in corners))

        with open(output_path, "w") as f:
            f.write("\n".join(lines) + "\n")
