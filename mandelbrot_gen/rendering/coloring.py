"""
Palette construction and color index selection for fractal rendering.

A palette is a dense gradient generated from a few keyframe colors: every
consecutive pair of keyframes contributes as many steps as its largest channel
difference, so the gradient never skips an 8-bit value on its dominant
channel. The last entry is reserved for points that never escape.

Two coloring algorithms map an iteration result to a palette index: banded
(integer iteration count) and smooth (normalized, continuous count).
"""

import math
import numpy as np
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
from abc import ABC, abstractmethod
import logging

from ..core.math_functions import IterationResult

logger = logging.getLogger(__name__)

LOG2 = math.log(2.0)


@dataclass(frozen=True)
class ColorRGB:
    """8-bit RGB color."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        """Validate RGB values."""
        for component in (self.r, self.g, self.b):
            if not 0 <= component <= 255:
                raise ValueError(f"RGB components must be between 0 and 255, got {component}")

    def to_tuple(self) -> Tuple[int, int, int]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return f"{self.r:02x}{self.g:02x}{self.b:02x}"

    @classmethod
    def from_hex(cls, token: str) -> 'ColorRGB':
        """
        Parse a 'RRGGBB' or 'RGB' hex color.

        Args:
            token: Hex digits, optionally prefixed with '#'

        Returns:
            Parsed color
        """
        digits = token.strip().lstrip('#')
        if len(digits) == 3:
            digits = ''.join(ch * 2 for ch in digits)
        if len(digits) != 6:
            raise ValueError(f"Invalid color '{token}': expected RRGGBB or RGB")
        try:
            return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
        except ValueError:
            raise ValueError(f"Invalid color '{token}': not a hex value") from None


ColorLike = Union[ColorRGB, Tuple[int, int, int], str]


def to_color(color: ColorLike) -> ColorRGB:
    """Coerce a ColorRGB, an (r, g, b) tuple or a hex string to ColorRGB."""
    if isinstance(color, ColorRGB):
        return color
    if isinstance(color, str):
        return ColorRGB.from_hex(color)
    if isinstance(color, (tuple, list)) and len(color) == 3:
        return ColorRGB(*(int(c) for c in color))
    raise ValueError(f"Invalid color format: {color!r}")


def parse_color(token: str) -> ColorRGB:
    return ColorRGB.from_hex(token)


def parse_colors(text: str) -> List[ColorRGB]:
    """Parse a '/'-separated list of hex colors, e.g. '000/fff'."""
    tokens = [token for token in text.split('/') if token.strip()]
    if not tokens:
        raise ValueError(f"No colors found in '{text}'")
    return [parse_color(token) for token in tokens]


def make_palette(keyframes: Sequence[ColorLike],
                 inside_color: Optional[ColorLike] = None) -> Tuple[Tuple[ColorRGB, ...], int]:
    """
    Build the gradient for a list of keyframe colors.

    Args:
        keyframes: Ordered gradient stops, at least one
        inside_color: Color for points that never escape (black if None)

    Returns:
        Tuple of (colors, total) where colors[total] is the inside color
    """
    stops = [to_color(c) for c in keyframes]
    if not stops:
        raise ValueError("Palette needs at least one keyframe color")
    inside = to_color(inside_color) if inside_color is not None else ColorRGB(0, 0, 0)

    colors = [stops[0]]
    for prev, nxt in zip(stops, stops[1:]):
        dr = nxt.r - prev.r
        dg = nxt.g - prev.g
        db = nxt.b - prev.b
        maxd = max(abs(dr), abs(dg), abs(db))
        for d in range(1, maxd + 1):
            # int() truncates toward zero
            colors.append(ColorRGB(int(prev.r + dr * d / maxd),
                                   int(prev.g + dg * d / maxd),
                                   int(prev.b + db * d / maxd)))
    colors.append(inside)

    return tuple(colors), len(colors) - 1


class Palette:
    """Immutable color gradient built from keyframes."""

    def __init__(self, keyframes: Sequence[ColorLike], inside_color: Optional[ColorLike] = None,
                 name: str = "Custom"):
        """
        Initialize color palette.

        Args:
            keyframes: Gradient stops in the order the gradient walks them
            inside_color: Color for points inside the set
            name: Human-readable name for the palette
        """
        self.name = name
        self.keyframes = tuple(to_color(c) for c in keyframes)
        self.colors, self.total = make_palette(self.keyframes, inside_color)
        self.inside_color = self.colors[self.total]
        self._array = None

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> ColorRGB:
        return self.colors[index]

    def __iter__(self) -> Iterator[ColorRGB]:
        return iter(self.colors)

    def to_array(self) -> np.ndarray:
        """Read-only (total + 1, 3) uint8 lookup table."""
        if self._array is None:
            array = np.array([c.to_tuple() for c in self.colors], dtype=np.uint8)
            array.setflags(write=False)
            self._array = array
        return self._array

    def to_string(self) -> str:
        """Keyframes in '/'-separated hex form."""
        return '/'.join(c.to_hex() for c in self.keyframes)

    @classmethod
    def from_string(cls, text: str, inside_color: Optional[ColorLike] = None) -> 'Palette':
        """Create a palette from a preset name or a '/'-separated hex list."""
        key = text.strip().lower()
        if key in PALETTE_PRESETS:
            return cls(parse_colors(PALETTE_PRESETS[key]), inside_color, name=key)
        return cls(parse_colors(text), inside_color)

    def __repr__(self) -> str:
        return f"Palette(name={self.name!r}, keyframes={self.to_string()!r}, total={self.total})"


def banded_color_indices(iterations: np.ndarray, total: int, max_iter: int) -> np.ndarray:
    """Vectorized banded mapping: n * total // max_iter."""
    return np.asarray(iterations, dtype=np.int64) * total // max_iter


def smooth_color_indices(iterations: np.ndarray, final_real: np.ndarray, final_imag: np.ndarray,
                         total: int, max_iter: int, log_radius: float) -> np.ndarray:
    """
    Vectorized normalized-iteration-count mapping.

    Args:
        iterations: Iteration counts
        final_real, final_imag: Orbit value at escape
        total: Index of the inside color
        max_iter: Iteration cap
        log_radius: Natural log of the escape radius

    Returns:
        Palette indices; points at the cap get total, escaped points land in
        [0, total - 1]
    """
    iterations = np.asarray(iterations, dtype=np.int64)
    final_real = np.asarray(final_real, dtype=np.float64)
    final_imag = np.asarray(final_imag, dtype=np.float64)

    # Degenerate radii or orbits produce NaN/inf here; they are clamped below.
    with np.errstate(all='ignore'):
        modulus = np.sqrt(final_real * final_real + final_imag * final_imag)
        mu = iterations - np.log(np.log(modulus) / log_radius) / LOG2
        scaled = np.floor(mu * total / max_iter)

    scaled = np.nan_to_num(scaled, nan=0.0, posinf=float(total - 1), neginf=0.0)
    indices = np.clip(scaled, 0, total - 1).astype(np.int64)
    return np.where(iterations == max_iter, total, indices)


def banded_color_index(total: int, n: int, max_iter: int, zr: float = 0.0, zi: float = 0.0,
                       log_radius: float = 0.0) -> int:
    """Palette index from the raw iteration count."""
    return n * total // max_iter


def smooth_color_index(total: int, n: int, max_iter: int, zr: float, zi: float,
                       log_radius: float) -> int:
    """Palette index from the normalized iteration count."""
    index = smooth_color_indices(np.array([n]), np.array([zr]), np.array([zi]),
                                 total, max_iter, log_radius)
    return int(index[0])


class ColoringAlgorithm(ABC):
    """Abstract base class for coloring algorithms."""

    name = "abstract"

    @abstractmethod
    def indices(self, result: IterationResult, total: int, log_radius: float) -> np.ndarray:
        """
        Map an iteration grid to palette indices.

        Args:
            result: Fractal iteration result
            total: Index of the inside color
            log_radius: Natural log of the escape radius

        Returns:
            Integer array with the shape of the result
        """
        pass

    @abstractmethod
    def index(self, total: int, n: int, max_iter: int, zr: float, zi: float,
              log_radius: float) -> int:
        """Map a single point to a palette index."""
        pass

    def apply(self, result: IterationResult, palette: Palette, log_radius: float) -> np.ndarray:
        """
        Apply the coloring to an iteration result.

        Returns:
            RGB image array (height, width, 3), uint8
        """
        return palette.to_array()[self.indices(result, palette.total, log_radius)]


class EscapeTimeColoring(ColoringAlgorithm):
    """Banded coloring from the integer iteration count."""

    name = "banded"

    def indices(self, result: IterationResult, total: int, log_radius: float) -> np.ndarray:
        return banded_color_indices(result.iterations, total, result.max_iter)

    def index(self, total, n, max_iter, zr, zi, log_radius):
        return banded_color_index(total, n, max_iter, zr, zi, log_radius)


class SmoothColoring(ColoringAlgorithm):
    """Smooth coloring from the normalized iteration count."""

    name = "smooth"

    def indices(self, result: IterationResult, total: int, log_radius: float) -> np.ndarray:
        return smooth_color_indices(result.iterations, result.final_real, result.final_imag,
                                    total, result.max_iter, log_radius)

    def index(self, total, n, max_iter, zr, zi, log_radius):
        return smooth_color_index(total, n, max_iter, zr, zi, log_radius)


# Named keyframe lists accepted wherever a palette string is.
PALETTE_PRESETS: Dict[str, str] = {
    'gray': '000/fff',
    'hot': '000/f00/ff0/fff',
    'cool': '000/00f/0ff/fff',
    'fire': '000/800000/f00/ff8000/ff0/fff',
    'ocean': '000033/0000cc/0080ff/0ff/80ffff/fff',
    'rainbow': 'f00/ff8000/ff0/0f0/0ff/00f/8000ff',
}


class ColoringEngine:
    """Lookup for coloring algorithms and palette presets."""

    def __init__(self):
        """Initialize coloring engine with built-in algorithms."""
        self.algorithms: Dict[str, ColoringAlgorithm] = {
            'banded': EscapeTimeColoring(),
            'smooth': SmoothColoring(),
        }

    def get_algorithm(self, name: str) -> ColoringAlgorithm:
        """Get coloring algorithm by name."""
        if name not in self.algorithms:
            available = ', '.join(self.algorithms.keys())
            raise ValueError(f"Unknown coloring algorithm '{name}'. Available: {available}")
        return self.algorithms[name]

    def for_smoothing(self, smooth: bool) -> ColoringAlgorithm:
        return self.algorithms['smooth' if smooth else 'banded']

    def get_palette(self, name: str, inside_color: Optional[ColorLike] = None) -> Palette:
        """Build a preset palette by name."""
        if name not in PALETTE_PRESETS:
            available = ', '.join(PALETTE_PRESETS.keys())
            raise ValueError(f"Unknown color palette '{name}'. Available: {available}")
        return Palette(parse_colors(PALETTE_PRESETS[name]), inside_color, name=name)

    def list_algorithms(self) -> List[str]:
        """Get list of available coloring algorithms."""
        return list(self.algorithms.keys())

    def list_palettes(self) -> List[str]:
        """Get list of available color palettes."""
        return list(PALETTE_PRESETS.keys())
