"""
Fractal variant definitions and selector management.

Each escape-time family differs from the plain Mandelbrot recurrence only in a
transform applied to z before it is raised to a power. The variants are a
closed set of strategy classes, picked once per render from the integer
selector (or a name) and then reused for every pixel.
"""

from typing import Dict, Optional, Tuple, Union
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

SET_MANDELBROT = 0
SET_MANDELBAR = 1
SET_BURNING_SHIP = 2


class FractalType(ABC):
    """Abstract base class for escape-time fractal variants."""

    # Only the plain Mandelbrot set may use the cardioid/bulb membership test.
    supports_interior_test = False

    def __init__(self, name: str, selector: int, power: int = 2):
        """
        Initialize fractal variant.

        Args:
            name: Human-readable name for the fractal
            selector: Integer selector this variant answers to
            power: Exponent of the recurrence
        """
        self.name = name
        self.selector = selector
        self.power = power

    @abstractmethod
    def transform(self, zr: float, zi: float) -> Tuple[float, float]:
        """Transform the orbit value before it is raised to the power."""
        pass

    def get_description(self) -> str:
        """Get a description of this fractal variant."""
        return f"{self.name} fractal"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(selector={self.selector}, power={self.power})"


class MandelbrotSet(FractalType):
    """Mandelbrot set: z = z^2 + c."""

    supports_interior_test = True

    def __init__(self):
        super().__init__("Mandelbrot", SET_MANDELBROT)

    def transform(self, zr: float, zi: float) -> Tuple[float, float]:
        return zr, zi

    def get_description(self) -> str:
        return "Mandelbrot set: z_{n+1} = z_n^2 + c"


class Mandelbar(FractalType):
    """Mandelbar (Tricorn): the conjugate of z is squared."""

    def __init__(self):
        super().__init__("Mandelbar", SET_MANDELBAR)

    def transform(self, zr: float, zi: float) -> Tuple[float, float]:
        return zr, -zi

    def get_description(self) -> str:
        return "Mandelbar: z_{n+1} = conj(z_n)^2 + c"


class BurningShip(FractalType):
    """Burning Ship: absolute values of both components are squared."""

    def __init__(self):
        super().__init__("Burning Ship", SET_BURNING_SHIP)

    def transform(self, zr: float, zi: float) -> Tuple[float, float]:
        # Im(z) is folded onto the negative half plane.
        return (-zr if zr < 0 else zr), (zi if zi < 0 else -zi)

    def get_description(self) -> str:
        return "Burning Ship: z_{n+1} = (|Re(z_n)| - i|Im(z_n)|)^2 + c"


class Multibrot(FractalType):
    """Multibrot of integer degree p >= 3."""

    def __init__(self, power: int = 3):
        """
        Initialize Multibrot fractal.

        Args:
            power: Integer degree of the recurrence, at least 3
        """
        if not isinstance(power, int) or isinstance(power, bool):
            raise ValueError("power must be an integer")
        if power < 3:
            raise ValueError("Multibrot power must be >= 3")
        super().__init__("Multibrot", power, power)

    def transform(self, zr: float, zi: float) -> Tuple[float, float]:
        return zr, zi

    def get_description(self) -> str:
        return f"Multibrot: z_{{n+1}} = z_n^{self.power} + c"


@dataclass(frozen=True)
class JuliaParameters:
    """Fixed additive constant used when rendering a Julia set."""

    c_real: float = -0.75
    c_imag: float = 0.1

    @property
    def c(self) -> complex:
        """Get the Julia constant as a complex number."""
        return complex(self.c_real, self.c_imag)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.c_real, self.c_imag)


class FractalRegistry:
    """Registry mapping selectors and names to fractal variants."""

    _fractals: Dict[str, type] = {
        'mandelbrot': MandelbrotSet,
        'mandelbar': Mandelbar,
        'tricorn': Mandelbar,
        'burning_ship': BurningShip,
        'multibrot': Multibrot,
    }

    @classmethod
    def from_selector(cls, selector: int) -> FractalType:
        """
        Create the variant for an integer selector.

        Args:
            selector: 0 Mandelbrot, 1 Mandelbar, 2 Burning Ship, p >= 3 Multibrot

        Returns:
            Configured fractal instance
        """
        if selector < 0:
            raise ValueError(f"Fractal selector must be >= 0, got {selector}")
        if selector == SET_MANDELBROT:
            return MandelbrotSet()
        if selector == SET_MANDELBAR:
            return Mandelbar()
        if selector == SET_BURNING_SHIP:
            return BurningShip()
        return Multibrot(selector)

    @classmethod
    def get(cls, name: str) -> type:
        """Get a fractal class by name."""
        fractal_class = cls._fractals.get(name.lower().replace('-', '_'))
        if fractal_class is None:
            available = ', '.join(cls._fractals.keys())
            raise ValueError(f"Unknown fractal type '{name}'. Available: {available}")
        return fractal_class

    @classmethod
    def create_fractal(cls, name: str, power: Optional[int] = None) -> FractalType:
        """
        Create a fractal instance by name.

        Args:
            name: Fractal type name
            power: Degree, only meaningful for 'multibrot'

        Returns:
            Configured fractal instance
        """
        fractal_class = cls.get(name)
        if fractal_class is Multibrot:
            return Multibrot(3 if power is None else power)
        if power is not None and power != 2:
            raise ValueError(f"'{name}' has a fixed power of 2")
        return fractal_class()

    @classmethod
    def resolve(cls, value: Union[int, str, FractalType]) -> FractalType:
        """Resolve an integer selector, a numeric string or a name to a variant."""
        if isinstance(value, FractalType):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_selector(value)
        text = str(value).strip()
        if text.lstrip('-').isdigit():
            return cls.from_selector(int(text))
        if ':' in text:
            name, power = text.split(':', 1)
            return cls.create_fractal(name, int(power))
        return cls.create_fractal(text)

    @classmethod
    def list_fractals(cls) -> Dict[str, str]:
        """Get a dictionary of available fractals and their descriptions."""
        return {name: fractal_class().get_description()
                for name, fractal_class in cls._fractals.items()}


# Predefined interesting Julia set constants
JULIA_PRESETS = {
    'dragon': JuliaParameters(c_real=-0.75, c_imag=0.1),
    'spiral': JuliaParameters(c_real=-0.4, c_imag=0.6),
    'dendrite': JuliaParameters(c_real=-0.235125, c_imag=0.827215),
    'lightning': JuliaParameters(c_real=-0.8, c_imag=0.156),
    'rabbit': JuliaParameters(c_real=-0.123, c_imag=0.745),
    'airplane': JuliaParameters(c_real=-1.25, c_imag=0.0),
    'san_marco': JuliaParameters(c_real=-0.75, c_imag=0.0),
    'siegel_disk': JuliaParameters(c_real=-0.391, c_imag=-0.587),
}
