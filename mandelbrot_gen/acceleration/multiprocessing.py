"""
Multiprocessing backend for parallel fractal computation.

This module splits the pixel grid into horizontal bands of rows ("tiles") and
evaluates them in a process pool with the reference escape-time engine. Tiles
finish in any order; they are placed back by their row offset, so the
assembled grid is always in output order.
"""

import numpy as np
from typing import List, Optional, Tuple
import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
import logging
import time

from ..core.fractal_types import FractalType, JuliaParameters
from ..core.math_functions import EscapeTimeEngine, IterationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileSpec:
    """A band of consecutive output rows."""
    tile_id: int
    row_start: int
    row_end: int

    @property
    def height(self) -> int:
        return self.row_end - self.row_start


@dataclass
class TileResult:
    """Result from processing a single tile."""
    tile_id: int
    row_start: int
    iterations: np.ndarray
    final_real: np.ndarray
    final_imag: np.ndarray
    processing_time: float


def create_tile_grid(height: int, tile_rows: int = 16) -> List[TileSpec]:
    """
    Split the image rows into bands for parallel processing.

    Args:
        height: Total image height
        tile_rows: Rows per band

    Returns:
        List of TileSpec objects covering every row exactly once
    """
    if tile_rows < 1:
        raise ValueError("tile_rows must be >= 1")

    tiles = []
    for tile_id, row_start in enumerate(range(0, height, tile_rows)):
        tiles.append(TileSpec(tile_id, row_start, min(row_start + tile_rows, height)))

    logger.debug(f"Created {len(tiles)} tiles of {tile_rows} rows")
    return tiles


def process_fractal_tile(args: Tuple) -> TileResult:
    """
    Process a single tile in a worker process.

    Args:
        args: Tuple of (fractal, julia, max_iter, escape_radius, tile, real_axis, imag_axis)

    Returns:
        TileResult object
    """
    fractal, julia, max_iter, escape_radius, tile, real_axis, imag_axis = args
    start_time = time.time()

    engine = EscapeTimeEngine(fractal, max_iter, escape_radius, julia)
    result = engine.iterate_grid(real_axis, imag_axis)

    return TileResult(
        tile_id=tile.tile_id,
        row_start=tile.row_start,
        iterations=result.iterations,
        final_real=result.final_real,
        final_imag=result.final_imag,
        processing_time=time.time() - start_time,
    )


def assemble_tiles(tile_results: List[TileResult], width: int, height: int,
                   max_iter: int) -> IterationResult:
    """
    Assemble tile results into a complete grid.

    Args:
        tile_results: Results in any order
        width: Total image width
        height: Total image height
        max_iter: Iteration cap of the render

    Returns:
        Complete IterationResult
    """
    iterations = np.zeros((height, width), dtype=np.int64)
    final_real = np.zeros((height, width), dtype=np.float64)
    final_imag = np.zeros((height, width), dtype=np.float64)

    for tile_result in tile_results:
        rows = slice(tile_result.row_start, tile_result.row_start + tile_result.iterations.shape[0])
        iterations[rows] = tile_result.iterations
        final_real[rows] = tile_result.final_real
        final_imag[rows] = tile_result.final_imag

    return IterationResult(iterations, final_real, final_imag, max_iter)


class MultiprocessingAccelerator:
    """Multiprocessing-based parallel fractal computation."""

    def __init__(self, num_processes: Optional[int] = None, tile_rows: int = 16):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Number of worker processes (None for CPU count)
            tile_rows: Rows per tile
        """
        if num_processes is None:
            self.num_processes = get_optimal_process_count()
        else:
            self.num_processes = max(1, num_processes)

        self.tile_rows = tile_rows
        logger.debug(f"Multiprocessing accelerator: {self.num_processes} processes, {tile_rows}-row tiles")

    def iterate_grid(self, fractal: FractalType, real_axis: np.ndarray, imag_axis: np.ndarray,
                     max_iter: int, escape_radius: float,
                     julia: Optional[JuliaParameters] = None) -> IterationResult:
        """
        Iterate a grid using parallel tile-based processing.

        Args:
            fractal: Variant to iterate
            real_axis: Column coordinates
            imag_axis: Row coordinates, in output order
            max_iter: Maximum iterations
            escape_radius: Escape radius
            julia: Julia constant, or None

        Returns:
            Complete fractal computation result
        """
        start_time = time.time()
        height, width = len(imag_axis), len(real_axis)
        tiles = create_tile_grid(height, self.tile_rows)

        tile_args = [(fractal, julia, max_iter, escape_radius, tile,
                      real_axis, imag_axis[tile.row_start:tile.row_end])
                     for tile in tiles]

        logger.info(f"Processing {len(tiles)} tiles with {self.num_processes} processes")

        tile_results = []
        with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
            futures = [executor.submit(process_fractal_tile, args) for args in tile_args]

            for completed, future in enumerate(as_completed(futures), start=1):
                tile_results.append(future.result())
                if completed % max(1, len(tiles) // 10) == 0:
                    progress = (completed / len(tiles)) * 100
                    logger.debug(f"Completed {completed}/{len(tiles)} tiles ({progress:.1f}%)")

        result = assemble_tiles(tile_results, width, height, max_iter)

        total_time = time.time() - start_time
        total_processing_time = sum(tr.processing_time for tr in tile_results)
        logger.info(f"Parallel iteration complete: {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")

        return result


def get_optimal_process_count() -> int:
    """Get optimal number of processes for fractal computation."""
    # Leave one core for the emitting process
    return max(1, mp.cpu_count() - 1)
