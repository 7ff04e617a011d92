"""
Unit tests for rasterization, grid construction and box decomposition.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from boxcloud.builder import OccupancyGridBuilder, build_from_slices, build_from_voxels
from boxcloud.decomposer import (
    ChunkedBoxDecomposer,
    GreedyBoxDecomposer,
    NaiveDecomposer,
    compare_box_stats,
    coverage_counts,
    decompose,
    iter_chunks,
)
from boxcloud.errors import GeometryError, ParameterError, RangeError
from boxcloud.grid import OccupancyGrid
from boxcloud.rasterizer import PolygonRasterizer, point_in_polygon
from boxcloud.shapes import Box, Slice


SQUARE_2 = [(0, 0), (2, 0), (2, 2), (0, 2)]


def random_grid(seed: int, shape=(6, 7, 8), density: float = 0.6) -> OccupancyGrid:
    rng = np.random.default_rng(seed)
    return OccupancyGrid.from_array(rng.random(shape) < density)


class TestPolygonRasterizer(unittest.TestCase):
    """Tests for PolygonRasterizer."""

    def test_bounding_rectangle_fills_every_cell(self):
        """Rasterizing the grid's own bounding rectangle fills the mask."""
        mask = PolygonRasterizer(1.0).rasterize([(0, 0), (4, 0), (4, 3), (0, 3)], 4, 3)

        assert mask.shape == (3, 4)
        assert mask.dtype == np.uint8
        assert np.all(mask == 1)

    def test_origin_and_cell_size(self):
        """Cell centers are offset by the origin and scaled by cell size."""
        polygon = [(10, 20), (12, 20), (12, 21), (10, 21)]
        mask = PolygonRasterizer(0.5).rasterize(polygon, 4, 2, origin=(10, 20))

        assert np.all(mask == 1)

    def test_zero_area_polygon_fills_nothing(self):
        """A degenerate polygon has no interior."""
        mask = PolygonRasterizer(1.0).rasterize([(0, 0), (2, 0), (4, 0)], 4, 2)

        assert mask.shape == (2, 4)
        assert not mask.any()

    def test_non_convex_polygon(self):
        """An L-shaped outline fills only the cells whose centers are inside."""
        outline = [(0, 0), (3, 0), (3, 1), (1, 1), (1, 3), (0, 3)]
        mask = PolygonRasterizer(1.0).rasterize(outline, 3, 3)

        expected = np.array([
            [1, 1, 1],
            [1, 0, 0],
            [1, 0, 0],
        ], dtype=np.uint8)
        assert np.array_equal(mask, expected)

    def test_partial_coverage(self):
        """A polygon smaller than the mask leaves outer cells empty."""
        mask = PolygonRasterizer(1.0).rasterize([(1, 1), (3, 1), (3, 3), (1, 3)], 4, 4)

        assert mask.sum() == 4
        assert np.all(mask[1:3, 1:3] == 1)

    def test_point_in_polygon(self):
        """Even-odd rule for single points."""
        assert point_in_polygon(SQUARE_2, 1.0, 1.0)
        assert not point_in_polygon(SQUARE_2, 3.0, 1.0)
        assert not point_in_polygon(SQUARE_2, 1.0, -0.5)

    def test_invalid_parameters(self):
        """Non-positive cell size or mask size is rejected."""
        with self.assertRaises(ParameterError):
            PolygonRasterizer(0.0)
        with self.assertRaises(ParameterError):
            PolygonRasterizer(1.0).rasterize(SQUARE_2, 0, 2)


class TestOccupancyGrid(unittest.TestCase):
    """Tests for OccupancyGrid."""

    def test_create_grid(self):
        grid = OccupancyGrid(4, 3, 2)
        assert grid.shape == (2, 3, 4)
        assert grid.count_filled() == 0
        assert grid.is_empty()

    def test_invalid_dimensions(self):
        with self.assertRaises(ParameterError):
            OccupancyGrid(0, 3, 2)
        with self.assertRaises(ParameterError):
            OccupancyGrid(1, 1, 1, cell_size=-1.0)

    def test_set_and_query(self):
        grid = OccupancyGrid(4, 4, 4)
        grid.set_filled(1, 2, 3)

        assert grid.is_filled(1, 2, 3)
        assert grid.data[3, 2, 1] == 1
        assert not grid.is_filled(3, 2, 1)
        assert not grid.is_filled(100, 0, 0)

        with self.assertRaises(RangeError):
            grid.set_filled(4, 0, 0)

    def test_from_array_binarizes(self):
        array = np.zeros((2, 2, 3), dtype=np.int32)
        array[1, 0, 2] = 7
        grid = OccupancyGrid.from_array(array)

        assert grid.width == 3 and grid.height == 2 and grid.depth == 2
        assert grid.data[1, 0, 2] == 1
        assert grid.count_filled() == 1

    def test_sparse_and_bounds(self):
        grid = OccupancyGrid(8, 8, 8)
        grid.set_filled(5, 1, 0)
        grid.set_filled(2, 3, 4)

        assert grid.to_sparse().tolist() == [[5, 1, 0], [2, 3, 4]]
        assert list(grid.iterate_voxels()) == [(5, 1, 0), (2, 3, 4)]
        assert grid.occupied_bounds == ((2, 1, 0), (6, 4, 5))

    def test_copy_is_independent(self):
        grid = OccupancyGrid(2, 2, 2, cell_size=0.5, origin=(1, 2, 3))
        grid.set_filled(0, 0, 0)
        duplicate = grid.copy()
        duplicate.clear()

        assert grid.count_filled() == 1
        assert duplicate.cell_size == 0.5
        assert duplicate.origin == (1.0, 2.0, 3.0)

    def test_grid_to_world(self):
        grid = OccupancyGrid(2, 2, 2, cell_size=0.5, origin=(-1, -1, 2))
        assert grid.grid_to_world(2, 1, 1) == (0.0, -0.5, 2.5)


class TestOccupancyGridBuilder(unittest.TestCase):
    """Tests for slice and voxel-list grid construction."""

    def test_single_square_slice(self):
        """A unit-cell 2x2 square becomes a full 2x2x1 grid."""
        grid = build_from_slices([Slice(0, SQUARE_2)], cell_size=1.0)

        assert grid.shape == (1, 2, 2)
        assert grid.count_filled() == 4
        assert grid.origin == (0.0, 0.0, 0.0)

    def test_missing_levels_stay_empty(self):
        """The grid spans [min_z, max_z] and skipped levels are empty."""
        grid = build_from_slices([Slice(2, SQUARE_2), Slice(5, SQUARE_2)], cell_size=1.0)

        assert grid.depth == 4
        assert grid.data[0].all() and grid.data[3].all()
        assert not grid.data[1].any() and not grid.data[2].any()
        assert grid.origin == (0.0, 0.0, 2.0)

    def test_world_origin_from_bounds(self):
        """Negative coordinates shift the origin, cell size scales dimensions."""
        square = [(-1, -1), (1, -1), (1, 1), (-1, 1)]
        grid = build_from_slices([Slice(-3, square)], cell_size=0.5)

        assert (grid.width, grid.height, grid.depth) == (4, 4, 1)
        assert grid.origin == (-1.0, -1.0, -1.5)
        assert grid.count_filled() == 16

    def test_fractional_extent_rounds_up(self):
        grid = build_from_slices([Slice(0, [(0, 0), (2.5, 0), (2.5, 1), (0, 1)])])

        assert (grid.width, grid.height) == (3, 1)

    def test_shared_level_later_slice_wins(self):
        """Two slices on one level: the later mask replaces the earlier one."""
        big = [(0, 0), (4, 0), (4, 4), (0, 4)]
        grid = build_from_slices([Slice(0, big), Slice(0, SQUARE_2)])

        assert grid.shape == (1, 4, 4)
        assert grid.count_filled() == 4

    def test_parallel_rasterization_matches_sequential(self):
        slices = [
            Slice(z, [(0, 0), (6 - z, 0), (6 - z, 5), (0, 5 - z)])
            for z in range(5)
        ]
        sequential = OccupancyGridBuilder(1.0, workers=1).from_slices(slices)
        parallel = OccupancyGridBuilder(1.0, workers=3).from_slices(slices)

        assert np.array_equal(sequential.data, parallel.data)

    def test_slice_bounds(self):
        """Grid extent comes from the vertex bounds of every slice."""
        tall = Slice(1, [(1, -2), (3, 0), (2, 4)])
        wide = Slice(0, [(-1, 0), (5, 0), (5, 1)])

        assert tall.bounds == (1.0, -2.0, 3.0, 4.0)
        grid = build_from_slices([tall, wide])
        assert (grid.width, grid.height, grid.depth) == (6, 6, 2)
        assert grid.origin == (-1.0, -2.0, 0.0)

    def test_slice_with_too_few_points(self):
        with self.assertRaises(GeometryError):
            Slice(0, [(0, 0), (1, 1)])

    def test_non_positive_dimensions(self):
        """A slice stack with zero extent in y is rejected."""
        with self.assertRaises(ParameterError):
            build_from_slices([Slice(0, [(0, 0), (2, 0), (1, 0)])])
        with self.assertRaises(ParameterError):
            build_from_slices([])
        with self.assertRaises(ParameterError):
            OccupancyGridBuilder(cell_size=0)

    def test_voxel_list(self):
        grid = build_from_voxels((3, 1, 1), [(0, 0, 0), (2, 0, 0)])

        assert grid.shape == (1, 1, 3)
        assert grid.data.tolist() == [[[1, 0, 1]]]
        assert grid.origin == (0.0, 0.0, 0.0)

    def test_voxel_list_accepts_array_and_duplicates(self):
        voxels = np.array([[1, 1, 1], [1, 1, 1], [0, 2, 3]])
        grid = build_from_voxels((2, 3, 4), voxels, cell_size=0.25)

        assert grid.count_filled() == 2
        assert grid.cell_size == 0.25

    def test_voxel_out_of_range(self):
        with self.assertRaises(RangeError):
            build_from_voxels((3, 1, 1), [(3, 0, 0)])
        with self.assertRaises(RangeError):
            build_from_voxels((3, 1, 1), [(0, -1, 0)])

    def test_voxel_count_and_dimensions(self):
        with self.assertRaises(ParameterError):
            build_from_voxels((3, 1, 1), [])
        with self.assertRaises(ParameterError):
            build_from_voxels((0, 1, 1), [(0, 0, 0)])


class TestGreedyBoxDecomposer(unittest.TestCase):
    """Tests for the greedy maximal-extent covering."""

    def test_empty_grid(self):
        assert GreedyBoxDecomposer().decompose(OccupancyGrid(4, 4, 4)) == []

    def test_single_voxel(self):
        grid = OccupancyGrid(4, 4, 4)
        grid.set_filled(2, 1, 3)

        assert GreedyBoxDecomposer().decompose(grid) == [Box(2, 1, 3, 3, 2, 4)]

    def test_full_grid(self):
        """A completely filled W x H x D grid is one box."""
        grid = OccupancyGrid.from_array(np.ones((5, 4, 3), dtype=np.uint8))

        assert GreedyBoxDecomposer().decompose(grid) == [Box(0, 0, 0, 3, 4, 5)]

    def test_slice_scenario(self):
        grid = build_from_slices([Slice(0, SQUARE_2)], cell_size=1.0)

        assert GreedyBoxDecomposer().decompose(grid) == [Box(0, 0, 0, 2, 2, 1)]

    def test_non_adjacent_voxels(self):
        grid = build_from_voxels((3, 1, 1), [(0, 0, 0), (2, 0, 0)])

        assert GreedyBoxDecomposer().decompose(grid) == [
            Box(0, 0, 0, 1, 1, 1),
            Box(2, 0, 0, 3, 1, 1),
        ]

    def test_x_grows_before_y(self):
        """The x-run is fixed first, so a missing corner splits along y."""
        grid = OccupancyGrid.from_array(np.array([[[1, 1], [1, 0]]]))

        assert GreedyBoxDecomposer().decompose(grid) == [
            Box(0, 0, 0, 2, 1, 1),
            Box(0, 1, 0, 1, 2, 1),
        ]

    def test_z_growth_needs_full_rectangle(self):
        data = np.ones((2, 2, 2), dtype=np.uint8)
        data[1, 1, 1] = 0
        grid = OccupancyGrid.from_array(data)

        assert GreedyBoxDecomposer().decompose(grid) == [
            Box(0, 0, 0, 2, 2, 1),
            Box(0, 0, 1, 2, 1, 2),
            Box(0, 1, 1, 1, 2, 2),
        ]

    def test_column_grows_along_z(self):
        data = np.zeros((4, 3, 3), dtype=np.uint8)
        data[:, 1, 1] = 1
        grid = OccupancyGrid.from_array(data)

        assert GreedyBoxDecomposer().decompose(grid) == [Box(1, 1, 0, 2, 2, 4)]

    def test_exact_disjoint_cover(self):
        """Boxes cover every filled cell exactly once and nothing else."""
        for seed in range(5):
            for density in (0.2, 0.6, 0.95):
                grid = random_grid(seed, density=density)
                expected = grid.data.astype(np.int32)

                boxes = GreedyBoxDecomposer().decompose(grid)
                counts = coverage_counts(boxes, expected.shape)

                assert np.array_equal(counts, expected)
                assert all(b.width >= 1 and b.height >= 1 and b.depth >= 1 for b in boxes)

    def test_boxes_in_scan_order(self):
        boxes = GreedyBoxDecomposer().decompose(random_grid(11))
        anchors = [(b.z0, b.y0, b.x0) for b in boxes]

        assert anchors == sorted(anchors)

    def test_pairwise_disjoint(self):
        boxes = GreedyBoxDecomposer().decompose(random_grid(3, shape=(4, 4, 4)))

        for i, a in enumerate(boxes):
            for b in boxes[i + 1:]:
                assert not a.intersects(b)

    def test_second_pass_is_empty(self):
        """Decomposition consumes the grid."""
        grid = random_grid(5)
        first = GreedyBoxDecomposer().decompose(grid)

        assert first
        assert grid.is_empty()
        assert GreedyBoxDecomposer().decompose(grid) == []

    def test_strided_view_is_consumed(self):
        """A non-contiguous array is cleared like a contiguous one."""
        base = np.ones((2, 2, 4), dtype=np.uint8)
        view = base[:, :, ::2]
        decomposer = GreedyBoxDecomposer()

        rows = decomposer.decompose_array(view)
        assert rows.tolist() == [[0, 0, 0, 2, 2, 2]]
        assert not view.any()
        assert np.all(base[:, :, 1::2] == 1)
        assert len(decomposer.decompose_array(view)) == 0

    def test_strided_view_kept_with_copy(self):
        view = np.ones((2, 2, 4), dtype=np.uint8)[:, :, ::2]
        GreedyBoxDecomposer(copy=True).decompose_array(view)

        assert view.all()

    def test_copy_leaves_grid_intact(self):
        grid = random_grid(9)
        before = grid.data.copy()
        boxes = GreedyBoxDecomposer(copy=True).decompose(grid)

        assert np.array_equal(grid.data, before)
        assert boxes == GreedyBoxDecomposer().decompose(grid.copy())

    def test_deterministic(self):
        a = GreedyBoxDecomposer().decompose(random_grid(21))
        b = GreedyBoxDecomposer().decompose(random_grid(21))

        assert a == b


class TestChunkedDecomposition(unittest.TestCase):
    """Tests for sub-volume decomposition."""

    def test_iter_chunks(self):
        chunks = iter_chunks((3, 4, 5), (2, 2, 2))

        assert len(chunks) == 12
        assert chunks[0] == (0, 0, 0, 2, 2, 2)
        assert chunks[-1] == (2, 2, 4, 3, 4, 5)

    def test_iter_chunks_axis_order(self):
        """Grid size and chunk size are both (width, height, depth)."""
        chunks = iter_chunks((4, 2, 1), (2, 2, 1))

        assert chunks == [(0, 0, 0, 2, 2, 1), (2, 0, 0, 4, 2, 1)]

    def test_invalid_chunk(self):
        with self.assertRaises(ParameterError):
            iter_chunks((4, 4, 4), (0, 2, 2))
        with self.assertRaises(ParameterError):
            ChunkedBoxDecomposer((4, -1, 4))

    def test_exact_cover_across_chunks(self):
        for workers in (1, 3):
            grid = random_grid(13, shape=(7, 9, 10), density=0.8)
            expected = grid.data.astype(np.int32)

            boxes = ChunkedBoxDecomposer((4, 3, 3), workers=workers).decompose(grid)

            assert np.array_equal(coverage_counts(boxes, expected.shape), expected)
            assert grid.is_empty()

    def test_boxes_stay_inside_chunks(self):
        grid = OccupancyGrid.from_array(np.ones((4, 4, 4), dtype=np.uint8))
        boxes = ChunkedBoxDecomposer((2, 2, 2)).decompose(grid)

        assert len(boxes) == 8
        assert all(b.volume == 8 for b in boxes)

    def test_single_chunk_matches_greedy(self):
        grid = random_grid(17)
        expected = GreedyBoxDecomposer(copy=True).decompose(grid)

        assert decompose(grid, chunk_shape=(8, 7, 6), copy=True) == expected


class TestBoxStats(unittest.TestCase):
    """Tests for the naive baseline and statistics."""

    def test_naive_one_box_per_voxel(self):
        grid = random_grid(2)
        filled = grid.count_filled()
        boxes = NaiveDecomposer(copy=True).decompose(grid)

        assert len(boxes) == filled
        assert all(b.volume == 1 for b in boxes)
        assert grid.count_filled() == filled

    def test_compare_box_stats(self):
        grid = OccupancyGrid.from_array(np.ones((2, 2, 2), dtype=np.uint8))
        naive = NaiveDecomposer(copy=True).decompose(grid)
        greedy = GreedyBoxDecomposer().decompose(grid)

        stats = compare_box_stats(greedy, naive)
        assert stats["greedy_boxes"] == 1
        assert stats["naive_boxes"] == 8
        assert stats["box_reduction_percent"] == 87.5
        assert stats["largest_box_volume"] == 8

    def test_box_geometry(self):
        box = Box(1, 2, 3, 4, 6, 8)

        assert (box.width, box.height, box.depth, box.volume) == (3, 4, 5, 60)
        assert box.translate(1, 1, 1) == Box(2, 3, 4, 5, 7, 9)
        assert box.to_world(0.5, (10, 0, -1)) == ((10.5, 1.0, 0.5), (12.0, 3.0, 3.0))
        assert box.intersects(Box(3, 5, 7, 9, 9, 9))
        assert not box.intersects(Box(4, 2, 3, 5, 6, 8))


if __name__ == "__main__":
    unittest.main(verbosity=2)
