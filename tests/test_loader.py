import json
import logging
from pathlib import Path

import pytest

from mark2pdf.config import ConfigError
from mark2pdf.loader import ConfigLoader


def write_json(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def build_loader(tmp_path: Path) -> ConfigLoader:
    return ConfigLoader(home=tmp_path / "home", cwd=tmp_path)


def test_defaults_when_no_sources(tmp_path: Path) -> None:
    config = build_loader(tmp_path).load()
    assert config.input.path == "./public/md"
    assert config.output.path == "./dist/pdf"
    assert config.options.concurrent == 3


def test_priority_command_over_env_over_file(tmp_path: Path, monkeypatch) -> None:
    write_json(tmp_path / "mark2pdf.config.json", {"options": {"concurrent": 3, "timeout": 1000}})
    monkeypatch.setenv("MARK2PDF_CONCURRENT", "5")
    loader = build_loader(tmp_path)

    assert loader.load({"options": {"concurrent": 10}}).options.concurrent == 10
    config = loader.load()
    assert config.options.concurrent == 5
    assert config.options.timeout == 1000


def test_project_file_overrides_user_file(tmp_path: Path) -> None:
    write_json(tmp_path / "home" / ".mark2pdf" / "config.json", {"options": {"format": "Letter", "timeout": 500}})
    write_json(tmp_path / "mark2pdf.config.json", {"options": {"format": "A5"}})
    config = build_loader(tmp_path).load()
    assert config.options.format == "A5"
    assert config.options.timeout == 500


def test_json_project_file_wins_over_yaml(tmp_path: Path) -> None:
    write_json(tmp_path / "mark2pdf.config.json", {"options": {"format": "A3"}})
    (tmp_path / "mark2pdf.config.yaml").write_text("options:\n  format: Letter\n", encoding="utf-8")
    assert build_loader(tmp_path).load().options.format == "A3"


def test_yaml_project_file_with_camel_case(tmp_path: Path) -> None:
    (tmp_path / "mark2pdf.config.yml").write_text(
        "output:\n  maintainDirStructure: false\n  renamePattern: 'doc-{name}'\n",
        encoding="utf-8",
    )
    config = build_loader(tmp_path).load()
    assert config.output.maintain_dir_structure is False
    assert config.output.rename_pattern == "doc-{name}"


def test_toml_project_file(tmp_path: Path) -> None:
    (tmp_path / "mark2pdf.config.toml").write_text("[features]\nretry = 0\n", encoding="utf-8")
    assert build_loader(tmp_path).load().features.retry == 0


def test_explicit_config_path(tmp_path: Path) -> None:
    write_json(tmp_path / "mark2pdf.config.json", {"options": {"format": "A3"}})
    custom = write_json(tmp_path / "custom" / "settings.json", {"options": {"format": "Letter"}})
    assert build_loader(tmp_path).load(config_path=custom).options.format == "Letter"


def test_missing_explicit_config_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc:
        build_loader(tmp_path).load(config_path=tmp_path / "missing.json")
    assert exc.value.code == "CONFIG_NOT_FOUND"


def test_unparsable_file_is_ignored(tmp_path: Path, caplog) -> None:
    (tmp_path / "mark2pdf.config.json").write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="mark2pdf"):
        config = build_loader(tmp_path).load()
    assert config.options.concurrent == 3
    assert "Ignoring config file" in caplog.text


def test_undefined_and_invalid_env_values_are_unset(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("MARK2PDF_INPUT_PATH", "undefined")
    monkeypatch.setenv("MARK2PDF_TIMEOUT", "soon")
    monkeypatch.setenv("MARK2PDF_OUTPUT_PATH", "./build/pdf")
    config = build_loader(tmp_path).load()
    assert config.input.path == "./public/md"
    assert config.options.timeout == 30000
    assert config.output.path == "./build/pdf"


def test_out_of_range_env_value_is_an_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("MARK2PDF_CONCURRENT", "50")
    with pytest.raises(ConfigError) as exc:
        build_loader(tmp_path).load()
    assert exc.value.code == "INVALID_CONFIG"


def test_invalid_paths_are_rejected(tmp_path: Path) -> None:
    loader = build_loader(tmp_path)
    with pytest.raises(ConfigError) as exc:
        loader.load({"input": {"path": "bad|path"}})
    assert exc.value.code == "INVALID_PATH"
    with pytest.raises(ConfigError) as exc:
        loader.load({"output": {"path": "/etc/pdf"}})
    assert exc.value.code == "INVALID_PATH"


def test_invalid_extensions_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc:
        build_loader(tmp_path).load({"input": {"extensions": ["md"]}})
    assert exc.value.code == "INVALID_EXTENSIONS"


def test_project_file_with_css_path(tmp_path: Path) -> None:
    write_json(tmp_path / "mark2pdf.config.json", {"options": {"cssPath": "./style.css"}})
    config = build_loader(tmp_path).load()
    assert config.options.css_path == "./style.css"
