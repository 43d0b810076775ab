"""
Core mathematical functions for fractal iteration.

This module provides the viewport-to-pixel coordinate mapping and the
reference escape-time iteration engine. The engine evaluates one complex
point at a time; the accelerated backends reproduce its arithmetic exactly.
"""

import math
import numpy as np
from typing import NamedTuple, Optional, Tuple
import logging

from .fractal_types import FractalType, JuliaParameters

logger = logging.getLogger(__name__)


class Viewport:
    """Represents a complex plane region and its pixel grid."""

    def __init__(self, center: Tuple[float, float], size: Tuple[float, float], pixel_width: int):
        """
        Initialize viewport.

        Args:
            center: (cx, cy) center of the region
            size: (w, h) width and height of the region in complex-plane units
            pixel_width: Output image width in pixels

        The pixel height is derived from the aspect ratio of the region.
        Degenerate sizes are not rejected here; RenderConfig.validate() does.
        """
        self.cx, self.cy = center
        self.w, self.h = size
        self.pixel_width = pixel_width
        self.pixel_height = derive_pixel_height(self.w, self.h, pixel_width)

        self.xmin = self.cx - self.w / 2
        self.ymin = self.cy - self.h / 2
        self.dx = self.w / self.pixel_width
        self.dy = self.h / self.pixel_height

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width) of the pixel grid."""
        return self.pixel_height, self.pixel_width

    def pixel_to_complex(self, x: int, y: int) -> Tuple[float, float]:
        """Convert pixel coordinates to (cr, ci); y counts up from the bottom row."""
        return self.xmin + self.dx * x, self.ymin + self.dy * y

    def real_axis(self) -> np.ndarray:
        """Real coordinates of the columns, left to right."""
        return self.xmin + self.dx * np.arange(self.pixel_width, dtype=np.float64)

    def imag_axis(self) -> np.ndarray:
        """Imaginary coordinates of the rows in emission order (top row first)."""
        ys = np.arange(self.pixel_height - 1, -1, -1, dtype=np.float64)
        return self.ymin + self.dy * ys

    def __repr__(self) -> str:
        return (f"Viewport(center=({self.cx}, {self.cy}), size=({self.w}, {self.h}), "
                f"pixels={self.pixel_width}x{self.pixel_height})")


def derive_pixel_height(w: float, h: float, pixel_width: int) -> int:
    """Pixel height that preserves the aspect ratio of a w x h region, rounded half up."""
    return int(math.floor(h * pixel_width / w + 0.5))


class EscapePoint(NamedTuple):
    """Iteration count and final orbit value for one point."""
    n: int
    zr: float
    zi: float


class IterationResult:
    """Container for a grid of iteration results in emission order."""

    def __init__(self, iterations: np.ndarray, final_real: np.ndarray,
                 final_imag: np.ndarray, max_iter: int):
        """
        Initialize iteration result.

        Args:
            iterations: Array of iteration counts, shape (height, width)
            final_real: Real part of the orbit at escape or at the cap
            final_imag: Imaginary part of the orbit at escape or at the cap
            max_iter: Iteration cap used for the render
        """
        self.iterations = iterations
        self.final_real = final_real
        self.final_imag = final_imag
        self.max_iter = max_iter
        self.shape = iterations.shape

    @property
    def escaped(self) -> np.ndarray:
        """Boolean array of points that diverged before the cap."""
        return self.iterations < self.max_iter

    def point(self, row: int, col: int) -> EscapePoint:
        return EscapePoint(int(self.iterations[row, col]),
                           float(self.final_real[row, col]),
                           float(self.final_imag[row, col]))


def in_main_cardioid(zr: float, zi: float) -> bool:
    """Check membership in the main cardioid of the Mandelbrot set."""
    qt1 = zr - 0.25
    qt2 = zi * zi
    q = qt1 * qt1 + qt2
    return q * (q + qt1) < qt2 * 0.25


def in_period2_bulb(zr: float, zi: float) -> bool:
    """Check membership in the period-2 bulb of the Mandelbrot set."""
    q = zr + 1.0
    return q * q + zi * zi < 0.0625


class EscapeTimeEngine:
    """Reference per-point escape-time iteration."""

    def __init__(self, fractal: FractalType, max_iter: int = 128, escape_radius: float = 2.0,
                 julia: Optional[JuliaParameters] = None):
        """
        Initialize escape-time engine.

        Args:
            fractal: Variant strategy, chosen once for the whole render
            max_iter: Maximum number of iterations
            escape_radius: Radius for escape condition
            julia: Fixed additive constant; enables Julia mode when given
        """
        self.fractal = fractal
        self.max_iter = max_iter
        self.escape_radius = escape_radius
        self.escape_radius_sq = escape_radius * escape_radius
        self.julia = julia
        self.use_interior_test = fractal.supports_interior_test and julia is None

        # Resolved once per render.
        self._transform = fractal.transform
        self._multiplications = fractal.power - 1

    def iterate(self, cr: float, ci: float) -> EscapePoint:
        """
        Iterate a single point.

        Args:
            cr, ci: Pixel coordinate; seeds z, and is the additive constant
                outside Julia mode

        Returns:
            EscapePoint(n, zr, zi)
        """
        max_iter = self.max_iter
        r2 = self.escape_radius_sq
        transform = self._transform
        multiplications = self._multiplications
        if self.julia is not None:
            ar, ai = self.julia.c_real, self.julia.c_imag
        else:
            ar, ai = cr, ci

        zr, zi = cr, ci
        n = 0
        if self.use_interior_test and (in_main_cardioid(zr, zi) or in_period2_bulb(zr, zi)):
            n = max_iter

        while n < max_iter:
            zr, zi = transform(zr, zi)
            zro, zio = zr, zi
            for _ in range(multiplications):
                t = zr * zro - zi * zio
                zi = zr * zio + zi * zro
                zr = t
            zr += ar
            zi += ai
            if zr * zr + zi * zi > r2:
                break
            n += 1

        return EscapePoint(n, zr, zi)

    def iterate_grid(self, real_axis: np.ndarray, imag_axis: np.ndarray) -> IterationResult:
        """
        Iterate every point of a grid.

        Args:
            real_axis: Column coordinates
            imag_axis: Row coordinates, in output order

        Returns:
            IterationResult of shape (len(imag_axis), len(real_axis))
        """
        shape = (len(imag_axis), len(real_axis))
        iterations = np.zeros(shape, dtype=np.int64)
        final_real = np.zeros(shape, dtype=np.float64)
        final_imag = np.zeros(shape, dtype=np.float64)

        xs = [float(x) for x in real_axis]
        for row, ci in enumerate(imag_axis):
            ci = float(ci)
            for col, cr in enumerate(xs):
                n, zr, zi = self.iterate(cr, ci)
                iterations[row, col] = n
                final_real[row, col] = zr
                final_imag[row, col] = zi

        return IterationResult(iterations, final_real, final_imag, self.max_iter)
