"""
Tests for configuration management.
"""

import json
import logging

import pytest

from ImageAlignment.config import (
    AlignmentConfig,
    DEFAULT_CONFIG,
    PRESET_CONFIGS,
    create_config_from_preset,
    get_default_config,
    load_config,
    merge_configs,
    print_config,
    save_config,
    validate_config
)


def test_default_config_is_valid():
    result = validate_config(get_default_config())
    assert result['errors'] == []
    assert result['warnings'] == []


def test_default_config_is_a_copy():
    config = get_default_config()
    config['eps'] = 99.0
    assert DEFAULT_CONFIG['eps'] != 99.0


def test_dataclass_matches_defaults():
    assert AlignmentConfig().to_dict() == DEFAULT_CONFIG


@pytest.mark.parametrize("preset", list(PRESET_CONFIGS.keys()))
def test_presets_are_valid(preset):
    config = AlignmentConfig.from_preset(preset).validate()
    assert config.method == PRESET_CONFIGS[preset]['method']


def test_unknown_preset():
    with pytest.raises(ValueError):
        create_config_from_preset('turbo')


def test_merge_configs_nested():
    merged = merge_configs({'a': 1, 'b': {'c': 2, 'd': 3}}, {'b': {'c': 5}, 'e': 6})
    assert merged == {'a': 1, 'b': {'c': 5, 'd': 3}, 'e': 6}


@pytest.mark.parametrize("override", [
    {'method': 'esm'},
    {'pyramid_levels': 2.5},
    {'max_iterations': -1},
    {'eps': -0.1},
    {'border': -1},
    {'border': 0},
    {'eps': True},
])
def test_invalid_values(override):
    config = merge_configs(get_default_config(), override)
    assert validate_config(config)['errors']

    with pytest.raises(ValueError):
        AlignmentConfig.from_dict(config).validate()


def test_missing_field():
    config = get_default_config()
    del config['eps']
    assert any('eps' in e for e in validate_config(config)['errors'])


def test_budget_warning():
    config = merge_configs(get_default_config(), {'pyramid_levels': 4, 'max_iterations': 3})
    result = validate_config(config)
    assert result['errors'] == []
    assert result['warnings']


def test_from_dict_ignores_unknown_keys():
    config = AlignmentConfig.from_dict({'eps': 0.5, 'unused': 1})
    assert config.eps == 0.5


def test_save_and_load(tmp_path):
    path = tmp_path / "alignment.json"
    config = AlignmentConfig(method='ic', pyramid_levels=2, max_iterations=10, eps=0.01)

    save_config(config.to_dict(), str(path))
    assert json.loads(path.read_text())['method'] == 'ic'

    loaded = AlignmentConfig.from_dict(load_config(str(path)))
    assert loaded == config


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.json"))


def test_print_config(caplog):
    with caplog.at_level(logging.INFO, logger="ImageAlignment"):
        print_config(get_default_config(), title="Alignment configuration")

    assert "Alignment configuration" in caplog.text
    assert "method: forward_additive" in caplog.text
