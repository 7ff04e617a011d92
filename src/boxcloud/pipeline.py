"""
Main BoxCloud Class

This is the primary interface for the box decomposition pipeline.
It orchestrates:
1. Shape loading (slice files, voxel-list files, or in-memory data)
2. Occupancy grid construction
3. Greedy box decomposition
4. Export (text report, .obj, .glb)

Example Usage:
    cloud = BoxCloud()
    cloud.load_slice_file("shape.txt")
    cloud.decompose()
    cloud.export_report("boxes.txt")
    cloud.export_glb("boxes.glb")
"""

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union
import numpy as np
from scipy import ndimage

from .builder import OccupancyGridBuilder
from .decomposer import NaiveDecomposer, compare_box_stats, decompose
from .exporters import GLTFExporter, OBJExporter, ReportExporter, render_report
from .grid import OccupancyGrid
from .mesh import CoordinateSystem, MeshData, boxes_to_mesh
from .readers import read_slice_file, read_voxel_file
from .shapes import Box, Slice

WorldBox = Tuple[Tuple[float, float, float], Tuple[float, float, float]]


class BoxCloud:
    """
    High-level interface for voxel-to-box decomposition.

    The pipeline keeps the freshly built grid untouched and hands a
    working copy to the decomposer, so statistics can still be computed
    after decomposition.

    Attributes:
        grid: The occupancy grid as built from the input
        boxes: The boxes from the last decomposition
    """

    def __init__(
        self,
        workers: int = 1,
        chunk_shape: Optional[Tuple[int, int, int]] = None
    ):
        """
        Initialize the pipeline.

        Args:
            workers: Threads used for slice rasterization and chunked
                decomposition
            chunk_shape: If given, decompose independent sub-volumes of
                this size (width, height, depth)
        """
        self.workers = workers
        self.chunk_shape = chunk_shape

        self._grid: Optional[OccupancyGrid] = None
        self._boxes: Optional[List[Box]] = None
        self._mesh: Optional[MeshData] = None

    def load_slices(
        self,
        slices: Iterable[Slice],
        cell_size: float = 1.0
    ) -> "BoxCloud":
        """
        Build the grid from polygon cross-sections.

        Args:
            slices: Slices to stack
            cell_size: Edge length of one voxel

        Returns:
            self for method chaining
        """
        builder = OccupancyGridBuilder(cell_size, self.workers)
        return self._set_grid(builder.from_slices(slices))

    def load_voxels(
        self,
        shape: Tuple[int, int, int],
        voxels: Union[np.ndarray, Iterable[Sequence[int]]],
        cell_size: float = 1.0
    ) -> "BoxCloud":
        """
        Build the grid from explicit voxel indices.

        Args:
            shape: Grid dimensions (width, height, depth)
            voxels: (x, y, z) index triples
            cell_size: Edge length of one voxel

        Returns:
            self for method chaining
        """
        width, height, depth = shape
        builder = OccupancyGridBuilder(cell_size)
        return self._set_grid(builder.from_voxels(width, height, depth, voxels))

    def load_grid(self, grid: OccupancyGrid) -> "BoxCloud":
        """Use an existing grid. The pipeline keeps its own copy."""
        return self._set_grid(grid.copy())

    def load_slice_file(self, path: Union[str, Path]) -> "BoxCloud":
        """Load a slice-format shape file."""
        parsed = read_slice_file(path)
        return self.load_slices(parsed.slices, parsed.cell_size)

    def load_voxel_file(self, path: Union[str, Path]) -> "BoxCloud":
        """Load a voxel-list shape file."""
        parsed = read_voxel_file(path)
        return self.load_voxels(parsed.shape, parsed.voxels, parsed.cell_size)

    def load_file(self, path: Union[str, Path], input_format: str = "slices") -> "BoxCloud":
        """
        Load a shape file in the given format.

        Args:
            path: Shape file path
            input_format: "slices" or "voxels"
        """
        if input_format == "slices":
            return self.load_slice_file(path)
        if input_format == "voxels":
            return self.load_voxel_file(path)
        raise ValueError(f"Unknown input format: {input_format}")

    def _set_grid(self, grid: OccupancyGrid) -> "BoxCloud":
        self._grid = grid
        self._boxes = None
        self._mesh = None
        return self

    def decompose(self) -> "BoxCloud":
        """
        Cover the grid with boxes.

        Returns:
            self for method chaining
        """
        if self._grid is None:
            raise RuntimeError("No shape loaded. Call load_slices() or load_voxels() first.")

        self._boxes = decompose(
            self._grid.copy(),
            chunk_shape=self.chunk_shape,
            workers=self.workers,
        )
        self._mesh = None
        return self

    def _require_boxes(self) -> List[Box]:
        if self._boxes is None:
            raise RuntimeError("No boxes. Call decompose() first.")
        return self._boxes

    def build_mesh(self) -> MeshData:
        """Get the proxy mesh of the boxes in world units."""
        boxes = self._require_boxes()
        if self._mesh is None:
            self._mesh = boxes_to_mesh(boxes, self._grid.cell_size, self._grid.origin)
        return self._mesh

    def report(self) -> str:
        """Render the text report."""
        boxes = self._require_boxes()
        return render_report(boxes, self._grid.cell_size, self._grid.origin)

    def export_report(self, output_path: Union[str, Path]):
        """Write the text report."""
        boxes = self._require_boxes()
        ReportExporter().export(
            boxes, output_path, self._grid.cell_size, self._grid.origin
        )

    def export_obj(
        self,
        output_path: Union[str, Path],
        coordinate_system: CoordinateSystem = CoordinateSystem.INTERNAL
    ):
        """Export the proxy mesh to Wavefront OBJ."""
        OBJExporter(coordinate_system=coordinate_system).export(
            self.build_mesh(), output_path
        )

    def export_glb(
        self,
        output_path: Union[str, Path],
        coordinate_system: CoordinateSystem = CoordinateSystem.GLTF
    ):
        """Export the proxy mesh to binary glTF."""
        GLTFExporter(coordinate_system=coordinate_system).export(
            self.build_mesh(), output_path
        )

    def export_all(
        self,
        base_path: Union[str, Path],
        formats: Optional[List[str]] = None
    ) -> List[Path]:
        """
        Export to multiple formats at once.

        Args:
            base_path: Base file path (without extension)
            formats: Any of "report", "obj", "glb" (default: all)

        Returns:
            Paths written
        """
        base_path = Path(base_path)
        formats = formats or ["report", "obj", "glb"]
        written = []

        if "report" in formats:
            written.append(base_path.with_suffix(".txt"))
            self.export_report(written[-1])

        if "obj" in formats:
            written.append(base_path.with_suffix(".obj"))
            self.export_obj(written[-1])

        if "glb" in formats:
            written.append(base_path.with_suffix(".glb"))
            self.export_glb(written[-1])

        return written

    @property
    def grid(self) -> Optional[OccupancyGrid]:
        """Get the grid as built from the input."""
        return self._grid

    @property
    def boxes(self) -> Optional[List[Box]]:
        """Get the boxes in creation order."""
        return self._boxes

    @property
    def world_boxes(self) -> List[WorldBox]:
        """Get box corners in world units."""
        return [
            box.to_world(self._grid.cell_size, self._grid.origin)
            for box in self._require_boxes()
        ]

    @property
    def voxel_count(self) -> int:
        if self._grid is None:
            return 0
        return self._grid.count_filled()

    @property
    def box_count(self) -> int:
        if self._boxes is None:
            return 0
        return len(self._boxes)

    def get_stats(self) -> dict:
        """
        Get decomposition statistics including the saving over one box
        per voxel.

        Returns:
            Dictionary with decomposition statistics
        """
        boxes = self._require_boxes()
        naive = NaiveDecomposer(copy=True).decompose(self._grid)

        stats = compare_box_stats(boxes, naive)
        _, components = ndimage.label(self._grid.occupancy)
        stats["voxel_count"] = self._grid.count_filled()
        stats["components"] = int(components)
        stats["grid_size"] = (self._grid.width, self._grid.height, self._grid.depth)
        stats["cell_size"] = self._grid.cell_size
        stats["origin"] = self._grid.origin
        return stats
