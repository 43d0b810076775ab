"""
Command-line interface for fractal generation.

Renders one escape-time fractal image and writes it to FILE: a binary PPM
stream for '-' (stdout), '.ppm' or unknown suffixes, or a Pillow image for
'.png', '.tif', '.jpg' and '.bmp' with the render parameters embedded.
"""

import click
import io
import sys
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .. import __version__
from ..api import BACKENDS, FractalRenderer, RenderConfig
from ..core.fractal_types import FractalRegistry, JULIA_PRESETS
from ..io.config import load_config_from_args
from ..rendering.coloring import ColoringEngine, PALETTE_PRESETS, parse_colors
from ..rendering.image_output import ImageBuffer, ImageExporter, PPMStreamWriter, PPM_SUFFIXES

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


def setup_logging(verbose: bool, quiet: bool) -> None:
    # Logs go to stderr; stdout may carry the image.
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING,
                            format='%(levelname)s: %(message)s')


def resolve_palette_option(value: Optional[str]) -> Optional[str]:
    """
    Interpret the --palette option.

    A single keyframe is not a usable gradient on the command line; it falls
    back to the default two-color palette.
    """
    if value is None:
        return None
    if value.strip().lower() in PALETTE_PRESETS:
        return value.strip().lower()
    if len(parse_colors(value)) == 1:
        default = RenderConfig.palette
        logger.warning(f"Palette '{value}' has a single color, using '{default}'")
        return default
    return value


def print_listing() -> None:
    """Print the available fractal variants, presets and coloring modes."""
    click.echo("Fractal types (-s NAME, NAME:POWER or selector):")
    for name, description in FractalRegistry.list_fractals().items():
        click.echo(f"  {name}: {description}")
    click.echo("  selectors: 0 mandelbrot, 1 mandelbar, 2 burning_ship, 3+ multibrot of that degree")

    click.echo("\nJulia presets (-j NAME):")
    for name, params in JULIA_PRESETS.items():
        click.echo(f"  {name}: c = {params.c}")

    engine = ColoringEngine()
    click.echo("\nPalettes (-p NAME):")
    for name in engine.list_palettes():
        click.echo(f"  {name}: {PALETTE_PRESETS[name]}")

    click.echo("\nColoring algorithms:")
    for name in engine.list_algorithms():
        click.echo(f"  {name}")


def write_ppm(renderer: FractalRenderer, stream) -> None:
    writer = PPMStreamWriter(stream)
    renderer.render(writer.write_header, writer.write_pixel)
    writer.finish()


def write_output(renderer: FractalRenderer, output: str) -> None:
    """Send the rendered pixels to stdout or a file, choosing the sink by suffix."""
    if output == '-':
        write_ppm(renderer, click.get_binary_stream('stdout'))
        return

    path = Path(output)
    exporter = ImageExporter()
    if path.suffix.lower() in PPM_SUFFIXES or not exporter.supports(path):
        # The file is only created once the whole image exists.
        stream = io.BytesIO()
        write_ppm(renderer, stream)
        path.write_bytes(stream.getvalue())
        logger.info(f"Saved image: {path}")
        return

    buffer = ImageBuffer()
    renderer.render(buffer.set_dimensions, buffer.add_pixel)
    exporter.save_image(buffer.image, path, renderer.metadata())


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument('output', metavar='FILE', default='-',
                type=click.Path(dir_okay=False, allow_dash=True))
@click.option('--width', '-w', type=int, help='Image width in pixels [640]')
@click.option('--center', '-c', metavar='X/Y', help='Center of the region [0/0]')
@click.option('--dim', '-d', metavar='W/H', help='Width and height of the region [4/4]')
@click.option('--iterations', '-i', type=int, help='Maximum iterations [128]')
@click.option('--radius', '-r', type=float, help='Escape radius [2]')
@click.option('--set', '-s', 'fractal', metavar='SET',
              help='Fractal: 0 mandelbrot, 1 mandelbar, 2 burning ship, 3+ multibrot, or a name')
@click.option('--julia', '-j', metavar='JR/JI', help='Render the Julia set for this constant or preset')
@click.option('--normalize', '-n', is_flag=True, help='Smooth (normalized) coloring')
@click.option('--color', '-e', 'inside_color', metavar='RGB',
              help='Color of points inside the set [000]')
@click.option('--palette', '-p', metavar='RGB/RGB/...',
              help='Palette keyframes or preset name [000/fff]')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path (YAML or JSON)')
@click.option('--backend', type=click.Choice(BACKENDS), help='Computation backend [auto]')
@click.option('--processes', type=int, help='Number of processes for the multiprocessing backend')
@click.option('--list', 'list_only', is_flag=True, help='List fractal types, presets and palettes')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.option('--version', is_flag=True, help='Show version information')
def main(output, width, center, dim, iterations, radius, fractal, julia, normalize,
         inside_color, palette, config_file, backend, processes, list_only,
         verbose, quiet, version):
    """
    Render an escape-time fractal to FILE (default '-', stdout as PPM).

    Colors are hex RGB values, 'fff' or 'ffffff'.
    """
    setup_logging(verbose, quiet)

    if version:
        import numba
        click.echo(f"mandelbrot-gen v{__version__}")
        click.echo(f"Python: {sys.version}")
        click.echo(f"Numba: {numba.__version__}")
        return

    if list_only:
        print_listing()
        return

    try:
        overrides: Dict[str, Any] = {
            'width': width,
            'center': center,
            'dimensions': dim,
            'max_iterations': iterations,
            'escape_radius': radius,
            'fractal': fractal,
            'julia': julia,
            'smooth': True if normalize else None,
            'inside_color': inside_color,
            'palette': resolve_palette_option(palette),
            'backend': backend,
            'num_processes': processes,
        }
        config = load_config_from_args(config_file, overrides)
        renderer = FractalRenderer(config)

        logger.info(f"Rendering {renderer.fractal.get_description()} "
                    f"{renderer.viewport.pixel_width}x{renderer.viewport.pixel_height} to {output}")
        write_output(renderer, output)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
