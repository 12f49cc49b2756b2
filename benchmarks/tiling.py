# benchmarks/tiling.py
import argparse
import os
import shutil
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tilechol.config import DEFAULT_MAX_WORKERS
from tilechol.tiles import TileLayout, assemble_tiles, split_into_tiles
from benchmarks.utils import Benchmark, load_or_create_spd_matrix

# --- Benchmark Configuration ---
BENCHMARK_DATA_DIR = "benchmark_data"
MATRIX_SIZE = 4096
TILE_COUNTS = (4, 8, 16)


def run_benchmark(size=MATRIX_SIZE, tile_counts=TILE_COUNTS, workers=1, keep_data=False):
    """
    Times split and assemble for both tile layouts and every tile count,
    and checks each round trip reproduces the input exactly.
    """
    os.makedirs(BENCHMARK_DATA_DIR, exist_ok=True)
    matrix = load_or_create_spd_matrix(os.path.join(BENCHMARK_DATA_DIR, f"spd_{size}.bin"), size)

    results = []
    for num_tiles in tile_counts:
        for layout in TileLayout:
            with Benchmark(f"split {size}x{size} into {num_tiles}x{num_tiles} ({layout.value})") as split_b:
                grid = split_into_tiles(matrix, num_tiles, layout, max_workers=workers)
            with Benchmark(f"assemble {num_tiles}x{num_tiles} ({layout.value})") as assemble_b:
                rebuilt = assemble_tiles(grid, layout, max_workers=workers)
            if rebuilt != matrix:
                raise RuntimeError(f"Round trip failed for num_tiles={num_tiles}, layout={layout.value}")
            results.append((num_tiles, layout.value, split_b.elapsed, assemble_b.elapsed, assemble_b.peak_mem))

    print("\n" + "=" * 70)
    print(f"{'Tiles':>6} {'Layout':>8} {'Split (s)':>12} {'Assemble (s)':>14} {'Peak MB':>10}")
    print("-" * 70)
    for num_tiles, layout, split_s, assemble_s, peak in results:
        print(f"{num_tiles:>6} {layout:>8} {split_s:>12.4f} {assemble_s:>14.4f} {peak:>10.1f}")
    print("=" * 70)

    if not keep_data:
        shutil.rmtree(BENCHMARK_DATA_DIR)
    return results


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Benchmark tile split/assemble.")
    parser.add_argument("--size", type=int, default=MATRIX_SIZE)
    parser.add_argument("--workers", type=int, default=DEFAULT_MAX_WORKERS)
    parser.add_argument("--keep-data", action="store_true")
    args = parser.parse_args()
    run_benchmark(size=args.size, workers=args.workers, keep_data=args.keep_data)
