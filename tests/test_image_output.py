"""
Tests for the PPM stream, the pixel buffer and image export
"""

import io
import json

import numpy as np
import pytest
from PIL import Image

from mandelbrot_gen.api import FractalRenderer
from mandelbrot_gen.rendering.image_output import (
    ImageBuffer, ImageExporter, PPMStreamWriter, RenderMetadata,
)


def test_ppm_stream_layout():
    stream = io.BytesIO()
    writer = PPMStreamWriter(stream)
    writer.write_header(2, 1)
    writer.write_pixel(255, 0, 0)
    writer.write_pixel(0, 16, 255)
    writer.finish()

    assert stream.getvalue() == b"P6\n2 1\n255\n" + bytes([255, 0, 0, 0, 16, 255])


def test_ppm_render(python_config):
    stream = io.BytesIO()
    writer = PPMStreamWriter(stream)
    FractalRenderer(python_config()).render(writer.write_header, writer.write_pixel)
    writer.finish()
    data = stream.getvalue()

    assert data.startswith(b"P6\n4 4\n255\n")
    assert len(data) == len(b"P6\n4 4\n255\n") + 4 * 4 * 3
    assert writer.pixels_written == 16


def test_image_buffer(python_config):
    buffer = ImageBuffer()
    renderer = FractalRenderer(python_config())
    renderer.render(buffer.set_dimensions, buffer.add_pixel)

    assert buffer.complete
    np.testing.assert_array_equal(buffer.image, renderer.render_array())


def test_image_buffer_needs_dimensions():
    with pytest.raises(RuntimeError):
        ImageBuffer().add_pixel(0, 0, 0)


def _render_with_metadata(config):
    renderer = FractalRenderer(config)
    image = renderer.render_array()
    return image, renderer.metadata()


def test_png_metadata_round_trip(tmp_path, python_config):
    image, metadata = _render_with_metadata(python_config(width=8, julia=(-0.8, 0.156), palette='ocean'))
    path = tmp_path / 'julia.png'
    exporter = ImageExporter()
    exporter.save_image(image, path, metadata)

    with Image.open(path) as saved:
        assert saved.size == (8, 8)
        np.testing.assert_array_equal(np.asarray(saved), image)

    restored = exporter.extract_metadata_from_image(path)
    assert restored == metadata
    assert restored.center == (0.0, 0.0)
    assert restored.julia == (-0.8, 0.156)


def test_jpeg_writes_companion_metadata(tmp_path, python_config):
    image, metadata = _render_with_metadata(python_config(width=8))
    path = tmp_path / 'view.jpg'
    exporter = ImageExporter()
    exporter.save_image(image, path, metadata)

    assert path.exists()
    assert json.loads(path.with_suffix('.json').read_text())['max_iterations'] == 128
    assert exporter.extract_metadata_from_image(path) == metadata


@pytest.mark.parametrize('suffix', ['.tiff', '.bmp'])
def test_other_formats(tmp_path, python_config, suffix):
    image, metadata = _render_with_metadata(python_config(width=6))
    path = tmp_path / f'view{suffix}'
    ImageExporter().save_image(image, path, metadata)

    with Image.open(path) as saved:
        assert saved.size == (6, 6)


def test_unsupported_format(tmp_path):
    with pytest.raises(ValueError):
        ImageExporter().save_image(np.zeros((2, 2, 3), dtype=np.uint8), tmp_path / 'x.gif')


def test_wrong_array_shape(tmp_path):
    with pytest.raises(ValueError):
        ImageExporter().save_image(np.zeros((2, 2), dtype=np.uint8), tmp_path / 'x.png')


def test_metadata_json_round_trip():
    metadata = RenderMetadata(fractal_type='Mandelbrot', selector=0, center=(0.5, -0.25),
                              dimensions=(4.0, 4.0), resolution=(640, 640), max_iterations=128,
                              escape_radius=2.0)

    assert metadata.timestamp
    assert metadata.software_version == '1.0.0'
    assert RenderMetadata.from_json(metadata.to_json()) == metadata
