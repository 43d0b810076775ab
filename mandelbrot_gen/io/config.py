"""
Configuration loading and parsing.

Render settings come from three layers, later ones winning: the RenderConfig
defaults, an optional YAML or JSON file, and command-line overrides. This
module turns the loosely typed values of the outer layers ('0/0' strings,
lists, preset names) into a validated RenderConfig.
"""

import json
import logging
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from ..api import RenderConfig
from ..core.fractal_types import JULIA_PRESETS

logger = logging.getLogger(__name__)

# Short names used by the command line, accepted in files as well.
KEY_ALIASES = {
    'iterations': 'max_iterations',
    'radius': 'escape_radius',
    'set': 'fractal',
    'dim': 'dimensions',
    'color': 'inside_color',
    'normalize': 'smooth',
    'processes': 'num_processes',
}

PAIR_KEYS = ('center', 'dimensions')


def parse_pair(text: Union[str, Tuple, list], name: str = "value") -> Tuple[float, float]:
    """
    Parse an 'X/Y' pair of floats.

    Args:
        text: 'X/Y' string, or a two-element sequence
        name: Option name used in error messages

    Returns:
        (x, y) tuple of floats
    """
    parts = text.split('/') if isinstance(text, str) else list(text)
    if len(parts) != 2:
        raise ValueError(f"Invalid {name} '{text}': expected X/Y")
    try:
        return float(parts[0]), float(parts[1])
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {name} '{text}': expected two numbers") from None


def parse_julia(value: Union[str, Tuple, list]) -> Tuple[float, float]:
    """Parse a Julia constant given as 'JR/JI', a pair, or a preset name."""
    if isinstance(value, str) and value.strip().lower() in JULIA_PRESETS:
        return JULIA_PRESETS[value.strip().lower()].to_tuple()
    return parse_pair(value, "Julia constant")


def normalize_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map aliases to RenderConfig field names and coerce values.

    Raises:
        ValueError: on unknown keys or unparsable values
    """
    valid = {f.name for f in fields(RenderConfig)}
    settings = {}
    for key, value in data.items():
        name = KEY_ALIASES.get(key, key).replace('-', '_')
        if name not in valid:
            raise ValueError(f"Unknown configuration key '{key}'")
        if value is None:
            continue
        if name in PAIR_KEYS:
            value = parse_pair(value, name)
        elif name == 'julia':
            value = parse_julia(value)
        elif name == 'palette' and isinstance(value, list):
            value = '/'.join(str(v) for v in value)
        elif name == 'inside_color':
            # A list given for the inside color uses its first entry.
            if isinstance(value, str):
                value = value.split('/')[0]
            elif isinstance(value, list) and value and isinstance(value[0], str):
                value = value[0]
        settings[name] = value
    return settings


class ConfigManager:
    """Loads render configuration files."""

    def load_config(self, filepath: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a YAML or JSON configuration file.

        Args:
            filepath: Path to a .json, .yaml or .yml file

        Returns:
            The settings mapping (the 'render' section if the file has one)
        """
        filepath = Path(filepath)
        text = filepath.read_text(encoding='utf-8')

        if filepath.suffix.lower() == '.json':
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {filepath} must contain a mapping")
        if 'render' in data:
            data = data['render']

        logger.debug(f"Loaded configuration from {filepath}: {data}")
        return data

    def create_render_config(self, data: Dict[str, Any],
                             base: Optional[RenderConfig] = None) -> RenderConfig:
        """
        Create a RenderConfig from loose settings.

        Args:
            data: Settings mapping, aliases allowed
            base: Configuration to override (defaults if None)

        Returns:
            Validated RenderConfig
        """
        config = replace(base or RenderConfig(), **normalize_settings(data))
        config.validate()
        return config


def load_config_from_args(config_file: Optional[Union[str, Path]],
                          overrides: Optional[Dict[str, Any]] = None) -> RenderConfig:
    """
    Build the effective configuration: defaults, then file, then overrides.

    Args:
        config_file: Optional configuration file path
        overrides: Command-line values; None entries are ignored

    Returns:
        Validated RenderConfig
    """
    manager = ConfigManager()
    settings: Dict[str, Any] = {}

    if config_file:
        settings.update(normalize_settings(manager.load_config(config_file)))

    if overrides:
        settings.update(normalize_settings({k: v for k, v in overrides.items() if v is not None}))

    return manager.create_render_config(settings)
