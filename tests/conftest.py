import pytest

from mandelbrot_gen.api import RenderConfig


class PixelRecorder:
    """Collects the two render callbacks in call order."""

    def __init__(self):
        self.events = []
        self.dimensions = None
        self.pixels = []

    def emit_dimensions(self, width, height):
        self.events.append('dimensions')
        self.dimensions = (width, height)

    def emit_pixel(self, r, g, b):
        self.events.append('pixel')
        self.pixels.append((r, g, b))


@pytest.fixture
def recorder():
    return PixelRecorder()


@pytest.fixture
def python_config():
    """Factory for small configs on the reference backend."""
    def make(**overrides):
        settings = dict(width=4, backend='python')
        settings.update(overrides)
        return RenderConfig(**settings)
    return make
