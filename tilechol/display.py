# --- Purpose: Plain-text renderings of matrices and tile grids for the driver. ---

from .core import DenseMatrix
from .tiles import TileGrid


def _format_value(value: float) -> str:
    # Shortest round-trip form, without a trailing ".0" on whole numbers.
    value = float(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def format_lower_results(matrix: DenseMatrix) -> str:
    """The lower triangle, one tab-terminated entry per element and one line per row."""
    lines = []
    for row in range(matrix.size):
        entries = (matrix.data[row * matrix.size + col] for col in range(row + 1))
        lines.append("".join(f"{_format_value(v)}\t" for v in entries))
    return "\n".join(lines) + "\n"


def format_tiles(grid: TileGrid) -> str:
    """Every tile under a 'Block {t}:' header, rows space separated."""
    chunks = []
    for tile_index, tile in enumerate(grid):
        lines = [f"Block {tile_index}:"]
        for i in range(grid.tile_size):
            row = tile[i * grid.tile_size:(i + 1) * grid.tile_size]
            lines.append("".join(f"{_format_value(v)} " for v in row))
        chunks.append("\n".join(lines) + "\n")
    return "\n".join(chunks) + "\n"
