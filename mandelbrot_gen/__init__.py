"""
Escape-time fractal rasterizer.

This library renders the Mandelbrot set and its relatives (Mandelbar,
Burning Ship, Multibrot of any integer degree), each optionally in Julia
mode, into a stream of RGB pixels.

Key Features:
- Banded or smooth (normalized iteration count) coloring over a keyframe palette
- Numba-compiled, multiprocessing and pure Python backends with identical results
- PPM streaming output, or PNG/TIFF/JPEG/BMP with embedded render metadata
- YAML/JSON configuration files and a command-line tool

Example usage:
    >>> from mandelbrot_gen import RenderConfig, FractalRenderer
    >>> renderer = FractalRenderer(RenderConfig(width=320, fractal='burning_ship'))
    >>> image = renderer.render_array()
"""

__version__ = "1.0.0"
__author__ = "Fractal Generator Team"

from mandelbrot_gen.core.fractal_types import (
    FractalType, MandelbrotSet, Mandelbar, BurningShip, Multibrot,
    JuliaParameters, FractalRegistry, JULIA_PRESETS,
)
from mandelbrot_gen.core.math_functions import EscapeTimeEngine, Viewport
from mandelbrot_gen.rendering.coloring import ColorRGB, ColoringEngine, Palette, make_palette, PALETTE_PRESETS
from mandelbrot_gen.rendering.image_output import ImageExporter, PPMStreamWriter, RenderMetadata
from mandelbrot_gen.io.config import ConfigManager

# Main API classes
from mandelbrot_gen.api import FractalRenderer, RenderConfig, render

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "render",
    "FractalType",
    "MandelbrotSet",
    "Mandelbar",
    "BurningShip",
    "Multibrot",
    "JuliaParameters",
    "FractalRegistry",
    "JULIA_PRESETS",
    "EscapeTimeEngine",
    "Viewport",
    "ColorRGB",
    "ColoringEngine",
    "Palette",
    "make_palette",
    "PALETTE_PRESETS",
    "ImageExporter",
    "PPMStreamWriter",
    "RenderMetadata",
    "ConfigManager",
]
