#!/usr/bin/env python
"""
Benchmark driver: generate an SPD matrix, run it through the tile
splitter and assembler, and verify the reassembled matrix factorizes to
the same Cholesky factor as the original.

Usage:
    python -m tilechol.cli --mat_size 1024 --num_tiles 8 --layout column

Exit Status:
    0: Completed (verification passed or was not requested)
    1: Verification failed and --strict was given
    2: Invalid arguments
"""

import argparse
import logging
import sys

from .backend import lower_triangle, reference_cholesky, upper_triangle
from .config import DEFAULT_MAT_SIZE, DEFAULT_MAX_WORKERS, DEFAULT_NUM_TILES
from .display import format_lower_results, format_tiles
from .errors import DimensionMismatch, VerificationError
from .generator import generate_spd_matrix
from .observability import StageProfiler, configure_logging
from .tiles import TileLayout, assemble_tiles, compute_tile_size, split_into_tiles
from .verify import find_first_mismatch

logger = logging.getLogger(__name__)


def _str2bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"Expected a boolean, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilechol",
        description="Prepare and verify tiled matrices for the blocked Cholesky benchmark."
    )
    parser.add_argument("--mat_size", type=int, default=DEFAULT_MAT_SIZE,
                        help="size of input matrix_size")
    parser.add_argument("--num_tiles", type=int, default=DEFAULT_NUM_TILES,
                        help="number of tiles")
    parser.add_argument("--verifycorrectness", type=int, default=1,
                        help="verify the tiled results against the reference Cholesky factorization")
    parser.add_argument("--lower_matrix", type=_str2bool, default=True,
                        help="compare the lower (true) or upper (false) triangular factor")
    parser.add_argument("-t", "--time", type=_str2bool, default=True,
                        help="print time")
    parser.add_argument("--layout", choices=[layout.value for layout in TileLayout], default=TileLayout.ROW.value,
                        help="tile traversal order")
    parser.add_argument("--seed", type=int, default=None,
                        help="random seed for the generated matrix (default: mat_size)")
    parser.add_argument("--workers", type=int, default=1,
                        help=f"threads used for splitting and assembling (the benchmarks use {DEFAULT_MAX_WORKERS})")
    parser.add_argument("--print", dest="print_results", action="store_true",
                        help="print the tiles and the lower triangular factor")
    parser.add_argument("--strict", action="store_true",
                        help="exit with status 1 when verification fails")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-file", default=None,
                        help="also write DEBUG-level logs to this file")
    return parser


def run(args: argparse.Namespace) -> bool:
    """
    Runs the pipeline once. Returns the verification outcome (True when
    verification is disabled). Raises VerificationError on failure when
    args.strict is set.
    """
    layout = TileLayout(args.layout)
    tile_size = compute_tile_size(args.mat_size, args.num_tiles)
    logger.info(f"mat_size={args.mat_size} num_tiles={args.num_tiles} tile_size={tile_size} layout={layout.value}")

    profiler = StageProfiler()

    with profiler.stage("generate"):
        matrix = generate_spd_matrix(args.mat_size, seed=args.seed)

    with profiler.stage("split", num_tiles=args.num_tiles):
        grid = split_into_tiles(matrix, args.num_tiles, layout, max_workers=args.workers)

    if args.print_results:
        print(format_tiles(grid), end="")

    with profiler.stage("assemble", num_tiles=args.num_tiles):
        result = assemble_tiles(grid, layout, max_workers=args.workers)
    del grid

    passed = True
    if args.verifycorrectness:
        with profiler.stage("reference"):
            reference = reference_cholesky(matrix, lower=args.lower_matrix)
            factor = reference_cholesky(result, lower=args.lower_matrix)
            # Only the requested triangle of the factor is compared.
            candidate = lower_triangle(factor) if args.lower_matrix else upper_triangle(factor)

        with profiler.stage("verify"):
            mismatch = find_first_mismatch(candidate, reference)

        if mismatch is None:
            logger.info("Verification passed")
        else:
            passed = False
            logger.error(str(mismatch))
            if args.strict:
                raise VerificationError(mismatch)

        if args.print_results:
            shown = candidate if args.lower_matrix else reference_cholesky(result, lower=True)
            print(format_lower_results(shown), end="")

    if args.time:
        print(profiler.format_summary())

    return passed


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, log_file=args.log_file)

    if args.workers < 1:
        parser.error("--workers must be at least 1")
    try:
        compute_tile_size(args.mat_size, args.num_tiles)
    except DimensionMismatch as exc:
        parser.error(str(exc))

    try:
        run(args)
    except VerificationError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
