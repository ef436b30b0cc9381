import json

import pytest

from mark2pdf.config import (
    DEFAULT_CONFIG,
    ConfigError,
    apply_overrides,
    build_config,
    deep_merge,
    dump_config,
    merge_configs,
)


def test_deep_merge_nested_and_none() -> None:
    base = {"options": {"concurrent": 3, "format": "A4"}, "input": {"extensions": [".md", ".txt"]}}
    override = {"options": {"concurrent": 5, "format": None}, "input": {"extensions": [".html"]}}
    merged = deep_merge(base, override)
    assert merged == {"options": {"concurrent": 5, "format": "A4"}, "input": {"extensions": [".html"]}}
    assert base["options"]["concurrent"] == 3


def test_defaults_build() -> None:
    config = build_config(DEFAULT_CONFIG)
    assert config.input.path == "./public/md"
    assert config.input.extensions == (".md",)
    assert config.output.path == "./dist/pdf"
    assert config.options.concurrent == 3
    assert config.options.timeout == 30000
    assert config.features.retry == 2
    assert config.features.incremental is True


def test_unknown_key_is_rejected() -> None:
    with pytest.raises(ConfigError) as exc:
        build_config({"options": {"pageNumbers": True}})
    assert exc.value.code == "INVALID_CONFIG"


def test_out_of_range_values_are_rejected() -> None:
    with pytest.raises(ConfigError):
        build_config({"options": {"concurrent": 11}})
    with pytest.raises(ConfigError):
        build_config({"features": {"retry": 6}})
    with pytest.raises(ConfigError):
        build_config({"options": {"watermark": {"text": "x", "opacity": 1.5}}})


def test_camel_and_snake_case_keys_are_equivalent() -> None:
    camel = build_config({"output": {"createDirIfNotExist": False, "maintainDirStructure": False}})
    snake = build_config({"output": {"create_dir_if_not_exist": False, "maintain_dir_structure": False}})
    assert camel == snake
    assert camel.output.create_dir_if_not_exist is False


def test_invalid_filter_regex_is_rejected() -> None:
    with pytest.raises(ConfigError):
        build_config({"input": {"filters": {"include": ["("]}}})


def test_merge_configs_later_partials_win() -> None:
    merged = merge_configs([DEFAULT_CONFIG, {"options": {"concurrent": 4}}, {}, {"options": {"timeout": 10}}])
    config = build_config(merged)
    assert config.options.concurrent == 4
    assert config.options.timeout == 10
    assert config.options.format == "A4"


def test_apply_overrides_returns_new_config() -> None:
    config = build_config(DEFAULT_CONFIG)
    updated = apply_overrides(config, {"options": {"overwrite": True}})
    assert updated.options.overwrite is True
    assert config.options.overwrite is False


def test_dump_config_uses_camel_case() -> None:
    data = json.loads(dump_config(build_config(DEFAULT_CONFIG)))
    assert data["output"]["createDirIfNotExist"] is True
    assert data["options"]["concurrent"] == 3
    assert build_config(data) == build_config(DEFAULT_CONFIG)
