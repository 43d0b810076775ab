"""
Main API classes for fractal generation.

This module provides the high-level interface: a validated render
configuration, and a renderer that builds the palette, evaluates every pixel
with the selected backend, and hands the colors to the caller's callbacks in
output order (rows bottom to top, columns left to right).
"""

import math
import numpy as np
from typing import Callable, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, asdict
import logging
import time

from .core.fractal_types import FractalType, FractalRegistry, JuliaParameters
from .core.math_functions import EscapePoint, EscapeTimeEngine, IterationResult, Viewport, derive_pixel_height
from .rendering.coloring import ColorLike, ColoringEngine, Palette, to_color
from .rendering.image_output import RenderMetadata

logger = logging.getLogger(__name__)

BACKENDS = ('auto', 'numba', 'multiprocessing', 'python')

DimensionsCallback = Callable[[int, int], None]
PixelCallback = Callable[[int, int, int], None]


@dataclass
class RenderConfig:
    """Configuration for fractal rendering."""

    # Image parameters
    width: int = 640
    center: Tuple[float, float] = (0.0, 0.0)
    dimensions: Tuple[float, float] = (4.0, 4.0)

    # Fractal parameters
    max_iterations: int = 128
    escape_radius: float = 2.0
    fractal: Union[int, str] = 0
    julia: Optional[Tuple[float, float]] = None

    # Coloring
    smooth: bool = False
    palette: Union[str, Sequence[ColorLike]] = '000/fff'
    inside_color: ColorLike = '000'

    # Performance
    backend: str = 'auto'
    num_processes: Optional[int] = None
    tile_rows: int = 16

    @property
    def pixel_height(self) -> int:
        return derive_pixel_height(self.dimensions[0], self.dimensions[1], self.width)

    def viewport(self) -> Viewport:
        return Viewport(self.center, self.dimensions, self.width)

    def fractal_type(self) -> FractalType:
        return FractalRegistry.resolve(self.fractal)

    def julia_parameters(self) -> Optional[JuliaParameters]:
        if self.julia is None:
            return None
        return JuliaParameters(float(self.julia[0]), float(self.julia[1]))

    def build_palette(self) -> Palette:
        """Build a fresh palette for one render."""
        if isinstance(self.palette, str):
            return Palette.from_string(self.palette, self.inside_color)
        return Palette(self.palette, self.inside_color)

    def validate(self):
        """Validate configuration parameters."""
        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width <= 0:
            raise ValueError("width must be a positive integer")

        if len(self.center) != 2 or len(self.dimensions) != 2:
            raise ValueError("center and dimensions must be (x, y) pairs")

        if not all(math.isfinite(v) for v in (*self.center, *self.dimensions)):
            raise ValueError("center and dimensions must be finite")

        w, h = self.dimensions
        if w <= 0 or h <= 0:
            raise ValueError("Region dimensions must be positive")

        if self.pixel_height < 1:
            raise ValueError(f"Region {w}x{h} at width {self.width} gives an image less than one pixel high")

        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int) \
                or self.max_iterations <= 0:
            raise ValueError("max_iterations must be a positive integer")

        if not self.escape_radius > 0:
            raise ValueError("escape_radius must be positive")

        if self.julia is not None and len(self.julia) != 2:
            raise ValueError("julia must be a (real, imag) pair")

        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}'. Available: {', '.join(BACKENDS)}")

        if self.num_processes is not None and self.num_processes < 1:
            raise ValueError("num_processes must be >= 1")

        if self.tile_rows < 1:
            raise ValueError("tile_rows must be >= 1")

        self.fractal_type()
        to_color(self.inside_color)
        self.build_palette()

    def to_dict(self) -> dict:
        return asdict(self)


class FractalRenderer:
    """Main fractal rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.coloring_engine = ColoringEngine()
        self.coloring = self.coloring_engine.for_smoothing(self.config.smooth)
        self.fractal = self.config.fractal_type()
        self.julia = self.config.julia_parameters()
        self.viewport = self.config.viewport()
        self.engine = EscapeTimeEngine(self.fractal, self.config.max_iterations,
                                       self.config.escape_radius, self.julia)
        self.last_render_time = 0.0

        logger.debug(f"FractalRenderer initialized: {self.viewport}, {self.fractal!r}, "
                     f"julia={self.julia}, backend={self.config.backend}")

    def iterate_point(self, cr: float, ci: float) -> EscapePoint:
        """Run the reference engine on one complex coordinate."""
        return self.engine.iterate(cr, ci)

    def compute(self) -> IterationResult:
        """
        Evaluate every pixel of the viewport.

        Returns:
            IterationResult with rows in output order
        """
        real_axis = self.viewport.real_axis()
        imag_axis = self.viewport.imag_axis()
        backend = self.config.backend
        if backend == 'auto':
            backend = 'numba'

        logger.info(f"Iterating {self.viewport.pixel_width}x{self.viewport.pixel_height} "
                    f"{self.fractal.name} grid with the {backend} backend")

        if backend == 'numba':
            from .acceleration.numba_backend import get_numba_accelerator
            return get_numba_accelerator().iterate_grid(
                self.fractal, real_axis, imag_axis,
                self.config.max_iterations, self.config.escape_radius, self.julia)

        if backend == 'multiprocessing':
            from .acceleration.multiprocessing import MultiprocessingAccelerator
            accelerator = MultiprocessingAccelerator(self.config.num_processes, self.config.tile_rows)
            return accelerator.iterate_grid(
                self.fractal, real_axis, imag_axis,
                self.config.max_iterations, self.config.escape_radius, self.julia)

        return self.engine.iterate_grid(real_axis, imag_axis)

    def render_array(self, palette: Optional[Palette] = None) -> np.ndarray:
        """
        Render the fractal to an RGB array.

        Args:
            palette: Prebuilt palette (built from the config if None)

        Returns:
            uint8 array of shape (pixel_height, pixel_width, 3)
        """
        if palette is None:
            palette = self.config.build_palette()

        start_time = time.time()
        result = self.compute()
        image = self.coloring.apply(result, palette, math.log(self.config.escape_radius))
        self.last_render_time = time.time() - start_time

        logger.info(f"Render complete: {self.last_render_time:.2f}s")
        return image

    def render(self, emit_dimensions: DimensionsCallback, emit_pixel: PixelCallback,
               palette: Optional[Palette] = None) -> None:
        """
        Render the fractal through the output callbacks.

        Args:
            emit_dimensions: Called once with (pixel_width, pixel_height)
                before any pixel
            emit_pixel: Called with (r, g, b) for every pixel, top row first,
                left to right
            palette: Prebuilt palette (built from the config if None)
        """
        if palette is None:
            palette = self.config.build_palette()

        emit_dimensions(self.viewport.pixel_width, self.viewport.pixel_height)

        image = self.render_array(palette)
        for row in image.tolist():
            for r, g, b in row:
                emit_pixel(r, g, b)

    def metadata(self) -> RenderMetadata:
        """Describe the last render."""
        return RenderMetadata(
            fractal_type=self.fractal.get_description(),
            selector=self.fractal.selector,
            center=tuple(self.config.center),
            dimensions=tuple(self.config.dimensions),
            resolution=(self.viewport.pixel_width, self.viewport.pixel_height),
            max_iterations=self.config.max_iterations,
            escape_radius=self.config.escape_radius,
            julia=self.julia.to_tuple() if self.julia is not None else None,
            smooth=self.config.smooth,
            palette=self.config.build_palette().to_string(),
            inside_color=to_color(self.config.inside_color).to_hex(),
            backend=self.config.backend,
            render_time_seconds=self.last_render_time,
        )


def render(config: RenderConfig, emit_dimensions: DimensionsCallback, emit_pixel: PixelCallback,
           palette: Optional[Palette] = None) -> None:
    """Render one frame of config through the two output callbacks."""
    FractalRenderer(config).render(emit_dimensions, emit_pixel, palette)
