"""
Tests for configuration files and value parsing
"""

import json

import pytest

from mandelbrot_gen.api import RenderConfig
from mandelbrot_gen.io.config import (
    ConfigManager, load_config_from_args, normalize_settings, parse_julia, parse_pair,
)


def test_parse_pair():
    assert parse_pair('1.5/-2') == (1.5, -2.0)
    assert parse_pair(' -0.75 / 0.1 ') == (-0.75, 0.1)
    assert parse_pair([3, 4]) == (3.0, 4.0)


@pytest.mark.parametrize('text', ['1', '1/2/3', 'a/b', ''])
def test_parse_pair_rejects(text):
    with pytest.raises(ValueError):
        parse_pair(text)


def test_parse_julia_preset_or_pair():
    assert parse_julia('dragon') == (-0.75, 0.1)
    assert parse_julia('Rabbit') == (-0.123, 0.745)
    assert parse_julia('0.3/-0.01') == (0.3, -0.01)
    with pytest.raises(ValueError):
        parse_julia('unknown')


def test_normalize_aliases():
    settings = normalize_settings({
        'iterations': 256,
        'radius': 4,
        'set': 'burning_ship',
        'dim': '3/2',
        'color': 'f00/0f0',
        'normalize': True,
        'palette': ['000', 'fff'],
    })

    assert settings == {
        'max_iterations': 256,
        'escape_radius': 4,
        'fractal': 'burning_ship',
        'dimensions': (3.0, 2.0),
        'inside_color': 'f00',
        'smooth': True,
        'palette': '000/fff',
    }


def test_inside_color_list_uses_first_entry(tmp_path):
    path = tmp_path / 'view.yaml'
    path.write_text("color: [f00, 0f0]\n")
    config = load_config_from_args(path)

    assert config.inside_color == 'f00'
    assert config.build_palette().inside_color.to_tuple() == (255, 0, 0)


def test_inside_color_rgb_list_kept():
    assert normalize_settings({'inside_color': [0, 128, 255]}) == {'inside_color': [0, 128, 255]}


def test_unknown_key_rejected():
    with pytest.raises(ValueError, match='zoom'):
        normalize_settings({'zoom': 2})


def test_load_yaml_with_render_section(tmp_path):
    path = tmp_path / 'view.yaml'
    path.write_text(
        "render:\n"
        "  width: 320\n"
        "  center: -0.75/0.1\n"
        "  dimensions: [0.5, 0.25]\n"
        "  max_iterations: 500\n"
        "  smooth: true\n"
        "  palette: fire\n"
    )
    config = ConfigManager().create_render_config(ConfigManager().load_config(path))

    assert config.width == 320
    assert config.center == (-0.75, 0.1)
    assert config.dimensions == (0.5, 0.25)
    assert config.pixel_height == 160
    assert config.max_iterations == 500
    assert config.smooth
    assert config.build_palette().name == 'fire'


def test_load_json(tmp_path):
    path = tmp_path / 'view.json'
    path.write_text(json.dumps({'width': 10, 'julia': 'spiral', 'set': 1}))
    config = load_config_from_args(path)

    assert config.width == 10
    assert config.julia == (-0.4, 0.6)
    assert config.fractal == 1


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / 'empty.yml'
    path.write_text('')

    assert load_config_from_args(path) == RenderConfig()


def test_non_mapping_file_rejected(tmp_path):
    path = tmp_path / 'list.yaml'
    path.write_text('- 1\n- 2\n')

    with pytest.raises(ValueError):
        ConfigManager().load_config(path)


def test_overrides_win_over_file(tmp_path):
    path = tmp_path / 'view.yaml'
    path.write_text("width: 100\ncenter: 1/1\n")
    config = load_config_from_args(path, {'width': 50, 'center': None, 'iterations': 64})

    assert config.width == 50
    assert config.center == (1.0, 1.0)
    assert config.max_iterations == 64


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        load_config_from_args(None, {'width': -1})
    with pytest.raises(ValueError):
        load_config_from_args(None, {'center': 'nowhere'})


def test_create_render_config_keeps_base():
    base = RenderConfig(width=32, smooth=True)
    config = ConfigManager().create_render_config({'radius': 3.0}, base)

    assert config.width == 32
    assert config.smooth
    assert config.escape_radius == 3.0
    assert base.escape_radius == 2.0
