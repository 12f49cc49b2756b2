"""
Unit tests for the tile splitter and assembler.
Checks the offset arithmetic, both tile layouts and the round-trip law.
"""

import unittest
import os
import numpy as np
import sys

# Add the parent directory to the path so we can import the tilechol module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tilechol.core import DenseMatrix
from tilechol.errors import DimensionMismatch
from tilechol.tiles import (
    TileGrid, TileLayout, assemble_tiles, compute_tile_size, owning_tile,
    split_into_tiles, tile_origin
)


class TestTileIndexing(unittest.TestCase):
    """Test cases for the index helpers."""

    def test_compute_tile_size(self):
        self.assertEqual(compute_tile_size(12, 3), 4)
        self.assertEqual(compute_tile_size(5, 1), 5)
        self.assertEqual(compute_tile_size(5, 5), 1)

    def test_compute_tile_size_rejects_remainder(self):
        with self.assertRaises(DimensionMismatch):
            compute_tile_size(10, 3)

    def test_compute_tile_size_rejects_non_positive(self):
        for size, num_tiles in [(0, 1), (4, 0), (-4, 2)]:
            with self.subTest(size=size, num_tiles=num_tiles):
                with self.assertRaises(DimensionMismatch):
                    compute_tile_size(size, num_tiles)

    def test_tile_origin_row_layout(self):
        # 4x4 matrix, 2x2 tiles of size 2
        self.assertEqual([tile_origin(t, 2, 2, True) for t in range(4)], [0, 2, 8, 10])

    def test_tile_origin_column_layout(self):
        self.assertEqual([tile_origin(t, 2, 2, False) for t in range(4)], [0, 8, 2, 10])

    def test_owning_tile_agrees_with_tile_origin(self):
        num_tiles, tile_size = 3, 2
        size = num_tiles * tile_size
        for lay_row in (True, False):
            for i in range(size):
                for j in range(size):
                    with self.subTest(lay_row=lay_row, i=i, j=j):
                        tile, local = owning_tile(i, j, num_tiles, tile_size, lay_row)
                        i_local, j_local = divmod(local, tile_size)
                        origin = tile_origin(tile, num_tiles, tile_size, lay_row)
                        self.assertEqual(origin + i_local * size + j_local, i * size + j)

    def test_layout_from_flag(self):
        self.assertIs(TileLayout.from_flag(True), TileLayout.ROW)
        self.assertIs(TileLayout.from_flag(False), TileLayout.COLUMN)
        self.assertIs(TileLayout.from_flag(TileLayout.COLUMN), TileLayout.COLUMN)
        self.assertTrue(TileLayout.ROW.lay_row)
        self.assertFalse(TileLayout.COLUMN.lay_row)


class TestTileGrid(unittest.TestCase):
    """Test cases for the TileGrid arena."""

    def test_grid_allocates_independent_tiles(self):
        grid = TileGrid(3, 4)
        self.assertEqual(len(grid), 9)
        self.assertEqual(grid.total_size, 12)
        for tile in grid:
            self.assertEqual(tile.shape, (16,))
        self.assertFalse(grid.tiles_share_memory())

    def test_writing_one_tile_leaves_others_untouched(self):
        grid = TileGrid(2, 2)
        grid[1][:] = 5.0
        self.assertFalse(grid[0].any())
        self.assertFalse(grid[2].any())
        self.assertTrue((grid[1] == 5.0).all())

    def test_setitem_copies_values(self):
        grid = TileGrid(2, 2)
        values = np.array([1.0, 2.0, 3.0, 4.0])
        grid[3] = values
        values[0] = 99.0
        np.testing.assert_array_equal(grid[3], [1.0, 2.0, 3.0, 4.0])
        self.assertFalse(np.shares_memory(grid[3], values))

    def test_setitem_rejects_wrong_length(self):
        grid = TileGrid(2, 2)
        with self.assertRaises(DimensionMismatch):
            grid[0] = np.zeros(3)

    def test_tile_2d_is_a_view(self):
        grid = TileGrid(1, 3)
        grid.tile_2d(0)[2, 1] = 8.0
        self.assertEqual(grid[0][7], 8.0)

    def test_grid_rejects_non_positive_dimensions(self):
        with self.assertRaises(DimensionMismatch):
            TileGrid(0, 2)


class TestSplitAndAssemble(unittest.TestCase):
    """Test cases for split_into_tiles and assemble_tiles."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.matrix = DenseMatrix.from_array(np.arange(1, 17, dtype=np.float64))

    def test_split_row_layout_concrete_example(self):
        grid = split_into_tiles(self.matrix, 2, lay_row=True)
        expected = [[1, 2, 5, 6], [3, 4, 7, 8], [9, 10, 13, 14], [11, 12, 15, 16]]
        for t, tile in enumerate(expected):
            with self.subTest(tile=t):
                np.testing.assert_array_equal(grid[t], tile)

    def test_split_column_layout_concrete_example(self):
        grid = split_into_tiles(self.matrix, 2, lay_row=False)
        expected = [[1, 2, 5, 6], [9, 10, 13, 14], [3, 4, 7, 8], [11, 12, 15, 16]]
        for t, tile in enumerate(expected):
            with self.subTest(tile=t):
                np.testing.assert_array_equal(grid[t], tile)

    def test_assemble_concrete_example(self):
        grid = TileGrid(2, 2)
        for t, tile in enumerate([[1, 2, 5, 6], [3, 4, 7, 8], [9, 10, 13, 14], [11, 12, 15, 16]]):
            grid[t] = tile
        result = assemble_tiles(grid, lay_row=True)
        np.testing.assert_array_equal(result.data, np.arange(1, 17))

    def test_layout_enum_matches_boolean_flag(self):
        for layout in TileLayout:
            with self.subTest(layout=layout):
                by_enum = split_into_tiles(self.matrix, 2, layout)
                by_flag = split_into_tiles(self.matrix, 2, layout.lay_row)
                for t in range(4):
                    np.testing.assert_array_equal(by_enum[t], by_flag[t])

    def test_round_trip_is_exact(self):
        rng = np.random.default_rng(7)
        for size, num_tiles in [(1, 1), (6, 1), (6, 2), (6, 3), (6, 6), (12, 4), (20, 5)]:
            matrix = DenseMatrix.from_array(rng.standard_normal(size * size))
            for lay_row in (True, False):
                with self.subTest(size=size, num_tiles=num_tiles, lay_row=lay_row):
                    grid = split_into_tiles(matrix, num_tiles, lay_row)
                    self.assertEqual(assemble_tiles(grid, lay_row), matrix)

    def test_tiles_match_element_mapping(self):
        size, num_tiles = 12, 3
        tile_size = size // num_tiles
        matrix = DenseMatrix.from_array(np.arange(size * size, dtype=np.float64))
        for lay_row in (True, False):
            grid = split_into_tiles(matrix, num_tiles, lay_row)
            for i in range(size):
                for j in range(size):
                    tile, local = owning_tile(i, j, num_tiles, tile_size, lay_row)
                    self.assertEqual(grid[tile][local], matrix.element(i, j))

    def test_every_source_element_lands_in_exactly_one_tile(self):
        matrix = DenseMatrix.from_array(np.arange(36, dtype=np.float64))
        grid = split_into_tiles(matrix, 3, lay_row=False)
        gathered = np.sort(np.concatenate(list(grid)))
        np.testing.assert_array_equal(gathered, matrix.data)

    def test_split_does_not_modify_source(self):
        before = self.matrix.copy()
        grid = split_into_tiles(self.matrix, 2)
        grid[0][:] = -1.0
        self.assertEqual(self.matrix, before)

    def test_split_fills_preallocated_grid(self):
        grid = TileGrid(2, 2)
        returned = split_into_tiles(self.matrix, 2, out=grid)
        self.assertIs(returned, grid)
        np.testing.assert_array_equal(grid[3], [11, 12, 15, 16])

    def test_split_rejects_mismatched_grid(self):
        with self.assertRaises(DimensionMismatch):
            split_into_tiles(self.matrix, 2, out=TileGrid(2, 3))
        with self.assertRaises(DimensionMismatch):
            split_into_tiles(self.matrix, 2, out=TileGrid(4, 1))

    def test_split_rejects_indivisible_size(self):
        with self.assertRaises(DimensionMismatch):
            split_into_tiles(self.matrix, 3)

    def test_assemble_into_preallocated_matrix(self):
        grid = split_into_tiles(self.matrix, 4, lay_row=False)
        out = DenseMatrix(4)
        returned = assemble_tiles(grid, lay_row=False, out=out)
        self.assertIs(returned, out)
        self.assertEqual(out, self.matrix)

    def test_assemble_rejects_wrong_output_size(self):
        grid = split_into_tiles(self.matrix, 2)
        with self.assertRaises(DimensionMismatch):
            assemble_tiles(grid, out=DenseMatrix(5))

    def test_mismatched_layouts_permute_off_diagonal_tiles(self):
        grid = split_into_tiles(self.matrix, 2, lay_row=True)
        transposed_blocks = assemble_tiles(grid, lay_row=False).as_2d()
        original = self.matrix.as_2d()
        np.testing.assert_array_equal(transposed_blocks[0:2, 2:4], original[2:4, 0:2])
        np.testing.assert_array_equal(transposed_blocks[2:4, 0:2], original[0:2, 2:4])
        np.testing.assert_array_equal(transposed_blocks[0:2, 0:2], original[0:2, 0:2])

    def test_split_accepts_plain_arrays(self):
        grid = split_into_tiles(np.arange(1, 17, dtype=np.float64).reshape(4, 4), 2)
        np.testing.assert_array_equal(grid[2], [9, 10, 13, 14])

    def test_threaded_split_and_assemble_match_serial(self):
        rng = np.random.default_rng(11)
        matrix = DenseMatrix.from_array(rng.random(48 * 48))
        for lay_row in (True, False):
            with self.subTest(lay_row=lay_row):
                serial = split_into_tiles(matrix, 6, lay_row)
                threaded = split_into_tiles(matrix, 6, lay_row, max_workers=4)
                for t in range(len(serial)):
                    np.testing.assert_array_equal(serial[t], threaded[t])
                self.assertEqual(assemble_tiles(threaded, lay_row, max_workers=4), matrix)


if __name__ == '__main__':
    unittest.main()
