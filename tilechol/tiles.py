# --- Purpose: Partitions dense matrices into square tiles and reassembles them. ---

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Iterator, Tuple, Union

import numpy as np

from .core import DenseMatrix, allocate
from .errors import DimensionMismatch

logger = logging.getLogger(__name__)


class TileLayout(Enum):
    """
    Order in which linear tile indices walk the tile grid.
    ROW: tile t is at tile-row t // num_tiles, tile-column t % num_tiles.
    COLUMN: tile t is at tile-row t % num_tiles, tile-column t // num_tiles.
    """
    ROW = "row"
    COLUMN = "column"

    @property
    def lay_row(self) -> bool:
        return self is TileLayout.ROW

    @classmethod
    def from_flag(cls, lay_row: Union[bool, 'TileLayout']) -> 'TileLayout':
        """Accepts either a TileLayout or the boolean `lay_row` flag."""
        if isinstance(lay_row, TileLayout):
            return lay_row
        return cls.ROW if lay_row else cls.COLUMN


class TileGrid:
    """
    An owned arena of num_tiles * num_tiles independent tile buffers.
    Each tile is a contiguous row-major buffer of tile_size * tile_size
    elements and no two tiles share memory.
    """
    def __init__(self, num_tiles: int, tile_size: int):
        if num_tiles <= 0 or tile_size <= 0:
            raise DimensionMismatch(
                f"Tile grid needs positive dimensions, got num_tiles={num_tiles}, tile_size={tile_size}."
            )
        self.num_tiles = num_tiles
        self.tile_size = tile_size
        self._tiles = [allocate(tile_size * tile_size) for _ in range(num_tiles * num_tiles)]

    @property
    def total_size(self) -> int:
        """Dimension of the matrix this grid covers."""
        return self.num_tiles * self.tile_size

    def tile_2d(self, tile_index: int) -> np.ndarray:
        """Row-major 2-D view of one tile."""
        return self._tiles[tile_index].reshape(self.tile_size, self.tile_size)

    def tiles_share_memory(self) -> bool:
        for a in range(len(self._tiles)):
            for b in range(a + 1, len(self._tiles)):
                if np.shares_memory(self._tiles[a], self._tiles[b]):
                    return True
        return False

    def __len__(self):
        return len(self._tiles)

    def __getitem__(self, tile_index: int) -> np.ndarray:
        return self._tiles[tile_index]

    def __setitem__(self, tile_index: int, values):
        # Copy into the existing buffer so ownership stays with the grid.
        values = np.asarray(values).reshape(-1)
        if values.shape[0] != self.tile_size * self.tile_size:
            raise DimensionMismatch(
                f"Tile {tile_index} holds {self.tile_size * self.tile_size} elements, got {values.shape[0]}."
            )
        self._tiles[tile_index][:] = values

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._tiles)

    def __repr__(self):
        return f"TileGrid(num_tiles={self.num_tiles}, tile_size={self.tile_size})"


def compute_tile_size(size: int, num_tiles: int) -> int:
    """Returns size // num_tiles, failing fast when the division is not exact."""
    if size <= 0 or num_tiles <= 0:
        raise DimensionMismatch(f"Matrix size and tile count must be positive, got {size} and {num_tiles}.")
    if size % num_tiles != 0:
        raise DimensionMismatch(
            f"Matrix size {size} is not divisible by the number of tiles {num_tiles}."
        )
    return size // num_tiles


def tile_origin(tile_index: int, num_tiles: int, tile_size: int, lay_row: bool) -> int:
    """Offset in the flat source matrix of element (0, 0) of tile `tile_index`."""
    block = num_tiles * tile_size * tile_size  # One full row of tiles
    if lay_row:
        return (tile_index // num_tiles) * block + (tile_index % num_tiles) * tile_size
    return (tile_index % num_tiles) * block + (tile_index // num_tiles) * tile_size


def owning_tile(i: int, j: int, num_tiles: int, tile_size: int, lay_row: bool) -> Tuple[int, int]:
    """Maps matrix element (i, j) to (tile index, offset inside that tile)."""
    i_tile, i_local = divmod(i, tile_size)
    j_tile, j_local = divmod(j, tile_size)
    if lay_row:
        tile = i_tile * num_tiles + j_tile
    else:
        tile = j_tile * num_tiles + i_tile
    return tile, i_local * tile_size + j_local


def _gather_tile(source: np.ndarray, tile: np.ndarray, origin: int, size: int, tile_size: int):
    """Copies one tile out of the flat source, one tile row at a time."""
    for i in range(tile_size):
        start = origin + i * size
        tile[i * tile_size:(i + 1) * tile_size] = source[start:start + tile_size]


def _gather_row_band(grid: TileGrid, dest: np.ndarray, i_tile: int, lay_row: bool):
    """Fills the tile_size destination rows that belong to tile-row `i_tile`."""
    num_tiles, tile_size = grid.num_tiles, grid.tile_size
    size = grid.total_size
    for i_local in range(tile_size):
        i = i_tile * tile_size + i_local
        for j_tile in range(num_tiles):
            tile = i_tile * num_tiles + j_tile if lay_row else j_tile * num_tiles + i_tile
            start = i * size + j_tile * tile_size
            dest[start:start + tile_size] = grid[tile][i_local * tile_size:(i_local + 1) * tile_size]


def _run(task, items, max_workers: int):
    """Runs `task` over `items`, on a thread pool when more than one worker is requested."""
    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(task, item) for item in items]
            for future in futures:
                # Re-raises any worker exception in the caller.
                future.result()
    else:
        for item in items:
            task(item)


def split_into_tiles(matrix: DenseMatrix, num_tiles: int, lay_row: Union[bool, TileLayout] = True,
                     out: TileGrid = None, max_workers: int = 1) -> TileGrid:
    """
    Partitions `matrix` into a num_tiles x num_tiles grid of square tiles.

    Args:
        matrix: Source matrix; it is only read.
        num_tiles: Tiles per matrix row and column; must divide matrix.size.
        lay_row: TileLayout or boolean flag (True = ROW) for the tile order.
        out: Optional pre-allocated grid to fill in place.
        max_workers: Number of threads copying tiles concurrently.

    Returns:
        The filled TileGrid.
    """
    if not isinstance(matrix, DenseMatrix):
        matrix = DenseMatrix.from_array(matrix)
    layout = TileLayout.from_flag(lay_row)
    tile_size = compute_tile_size(matrix.size, num_tiles)

    if out is None:
        out = TileGrid(num_tiles, tile_size)
    elif out.num_tiles != num_tiles or out.tile_size != tile_size:
        raise DimensionMismatch(
            f"{out!r} does not match num_tiles={num_tiles}, tile_size={tile_size}."
        )

    logger.debug(f"Splitting {matrix!r} into {num_tiles}x{num_tiles} tiles of {tile_size} ({layout.value} layout)")
    source = matrix.data

    def copy_tile(tile_index):
        origin = tile_origin(tile_index, num_tiles, tile_size, layout.lay_row)
        _gather_tile(source, out[tile_index], origin, matrix.size, tile_size)

    _run(copy_tile, range(num_tiles * num_tiles), max_workers)
    return out


def assemble_tiles(grid: TileGrid, lay_row: Union[bool, TileLayout] = True,
                   out: DenseMatrix = None, max_workers: int = 1) -> DenseMatrix:
    """
    Rebuilds the flat matrix from a tile grid; the inverse of split_into_tiles
    for the same layout.

    Args:
        grid: Source tiles; they are only read.
        lay_row: TileLayout or boolean flag (True = ROW) the grid was split with.
        out: Optional pre-allocated matrix of size grid.total_size.
        max_workers: Number of threads filling row bands concurrently.
    """
    layout = TileLayout.from_flag(lay_row)
    size = grid.total_size
    compute_tile_size(size, grid.num_tiles)

    if out is None:
        out = DenseMatrix(size)
    elif out.size != size:
        raise DimensionMismatch(f"{out!r} cannot hold the {size}x{size} matrix covered by {grid!r}.")

    logger.debug(f"Assembling {grid!r} into {out!r} ({layout.value} layout)")

    def copy_band(i_tile):
        _gather_row_band(grid, out.data, i_tile, layout.lay_row)

    _run(copy_band, range(grid.num_tiles), max_workers)
    return out
