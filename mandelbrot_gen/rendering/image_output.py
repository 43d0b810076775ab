"""
Image output sinks for fractal rendering.

The renderer only knows two callbacks: one for the image dimensions and one
per pixel. The sinks here turn that stream into a concrete container: a
binary PPM written as the pixels arrive, or a buffered array saved with
Pillow (PNG, TIFF, JPEG, BMP), with the render parameters embedded as PNG
text metadata.
"""

import numpy as np
from typing import Any, BinaryIO, Dict, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

logger = logging.getLogger(__name__)

PPM_SUFFIXES = ('.ppm', '.pnm')
METADATA_KEY = "FractalMetadata"


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    # Fractal parameters
    fractal_type: str
    selector: int
    center: Tuple[float, float]
    dimensions: Tuple[float, float]
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    escape_radius: float
    julia: Optional[Tuple[float, float]] = None

    # Coloring
    smooth: bool = False
    palette: str = ""
    inside_color: str = ""

    # Timing and generation info
    backend: str = "auto"
    render_time_seconds: float = 0.0
    timestamp: str = ""
    software_version: str = ""

    def __post_init__(self):
        """Set default timestamp and version if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        if not self.software_version:
            from .. import __version__
            self.software_version = __version__

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        for key in ('center', 'dimensions', 'resolution', 'julia'):
            if data.get(key) is not None:
                data[key] = tuple(data[key])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class PPMStreamWriter:
    """Writes the pixel stream as a binary PPM (P6) image."""

    def __init__(self, stream: BinaryIO):
        """
        Args:
            stream: Binary file object; not closed by the writer
        """
        self.stream = stream
        self.width = 0
        self.height = 0
        self.pixels_written = 0

    def write_header(self, width: int, height: int) -> None:
        self.width, self.height = width, height
        self.stream.write(f"P6\n{width} {height}\n255\n".encode('ascii'))

    def write_pixel(self, r: int, g: int, b: int) -> None:
        self.stream.write(bytes((r, g, b)))
        self.pixels_written += 1

    def finish(self) -> None:
        expected = self.width * self.height
        if self.pixels_written != expected:
            logger.warning(f"PPM stream has {self.pixels_written} pixels, expected {expected}")
        self.stream.flush()


class ImageBuffer:
    """Collects the pixel stream into an (height, width, 3) uint8 array."""

    def __init__(self):
        self.image: Optional[np.ndarray] = None
        self._flat: Optional[np.ndarray] = None
        self._cursor = 0

    def set_dimensions(self, width: int, height: int) -> None:
        self.image = np.zeros((height, width, 3), dtype=np.uint8)
        self._flat = self.image.reshape(-1, 3)
        self._cursor = 0

    def add_pixel(self, r: int, g: int, b: int) -> None:
        if self._flat is None:
            raise RuntimeError("Pixel received before image dimensions")
        self._flat[self._cursor] = (r, g, b)
        self._cursor += 1

    @property
    def complete(self) -> bool:
        return self._flat is not None and self._cursor == len(self._flat)


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
            '.bmp': self._save_bmp,
        }

    def supports(self, filepath: Path) -> bool:
        return Path(filepath).suffix.lower() in self.supported_formats

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None, quality: int = 95) -> None:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: RGB image array (height, width, 3), uint8
            filepath: Output file path
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        pil_image = Image.fromarray(np.ascontiguousarray(image_array, dtype=np.uint8))
        self.supported_formats[suffix](pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", f"Fractal: {metadata.fractal_type}")
            pnginfo.add_text("Software", f"mandelbrot-gen v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as LZW-compressed TIFF."""
        save_kwargs = {'format': 'TIFF', 'compression': 'tiff_lzw'}
        if metadata:
            save_kwargs['description'] = metadata.to_json()
        pil_image.save(filepath, **save_kwargs)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG; metadata goes to a companion JSON file."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)

        if metadata:
            json_path = filepath.with_suffix('.json')
            json_path.write_text(metadata.to_json())
            logger.info(f"Saved metadata: {json_path}")

    def _save_bmp(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        pil_image.save(filepath, "BMP")

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract fractal metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None
        """
        filepath = Path(filepath)

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if METADATA_KEY in text:
                return RenderMetadata.from_json(text[METADATA_KEY])

        if filepath.suffix.lower() in ('.jpg', '.jpeg'):
            json_path = filepath.with_suffix('.json')
            if json_path.exists():
                return RenderMetadata.from_json(json_path.read_text())

        return None
