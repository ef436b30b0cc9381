from __future__ import annotations

import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .config import DEFAULT_CONFIG, AppConfig, ConfigError, build_config, merge_configs
from .constraint import PROJECT_CONFIG_FILES, USER_CONFIG_DIR, USER_CONFIG_FILE
from .context import RunContext
from .settings import env_overrides
from .validation import validate_extensions, validate_input, validate_output


def parse_config_text(content: str, suffix: str) -> Mapping[str, Any]:
    if suffix == ".json":
        data = json.loads(content)
    elif suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(content)
    elif suffix == ".toml":
        data = tomllib.loads(content)
    else:
        raise ValueError(f"Unsupported config file format: {suffix or '<none>'}")
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("Top-level config value must be a mapping")
    return data


class ConfigLoader:
    """Resolve the effective configuration from every supported source.

    Sources are folded lowest priority first: built-in defaults, the user
    file, the project file, environment variables, command-line overrides.
    """

    def __init__(
        self,
        *,
        home: Path | None = None,
        cwd: Path | None = None,
        context: RunContext | None = None,
    ) -> None:
        self._home = home
        self._cwd = cwd
        self._context = context or RunContext.create()

    @property
    def user_config_path(self) -> Path:
        home = self._home if self._home is not None else Path.home()
        return home / USER_CONFIG_DIR / USER_CONFIG_FILE

    def project_config_candidates(self) -> list[Path]:
        base = self._cwd if self._cwd is not None else Path(".")
        return [base / name for name in PROJECT_CONFIG_FILES]

    def load(
        self,
        command_overrides: Mapping[str, Any] | None = None,
        *,
        config_path: Path | None = None,
    ) -> AppConfig:
        partials: list[Mapping[str, Any]] = [
            DEFAULT_CONFIG,
            self._load_user_config(),
            self._load_file_config(config_path),
            env_overrides(),
            command_overrides or {},
        ]
        config = build_config(merge_configs(partials))
        self._validate_paths(config)
        return config

    def _load_user_config(self) -> Mapping[str, Any]:
        path = self.user_config_path
        if not path.is_file():
            return {}
        return self._read_file(path)

    def _load_file_config(self, config_path: Path | None) -> Mapping[str, Any]:
        if config_path is not None:
            if not config_path.is_file():
                raise ConfigError("CONFIG_NOT_FOUND", f"Config file does not exist: {config_path}")
            return self._read_file(config_path)
        for candidate in self.project_config_candidates():
            if candidate.is_file():
                return self._read_file(candidate)
        return {}

    def _read_file(self, path: Path) -> Mapping[str, Any]:
        try:
            content = path.read_text(encoding="utf-8")
            data = parse_config_text(content, path.suffix.lower())
        except (OSError, ValueError, yaml.YAMLError) as exc:
            self._context.logger.warning("Ignoring config file %s: %s", path, exc)
            return {}
        self._context.logger.debug("Loaded config file %s", path)
        return data

    def _validate_paths(self, config: AppConfig) -> None:
        if not validate_input(config.input.path):
            raise ConfigError("INVALID_PATH", f"Invalid input path: {config.input.path}")
        if not validate_output(config.output.path):
            raise ConfigError("INVALID_PATH", f"Invalid output path: {config.output.path}")
        if not validate_extensions(list(config.input.extensions)):
            raise ConfigError(
                "INVALID_EXTENSIONS",
                f"Invalid extensions configuration: {json.dumps(list(config.input.extensions))}",
            )


def load_config(
    command_overrides: Mapping[str, Any] | None = None,
    *,
    config_path: Path | None = None,
    context: RunContext | None = None,
) -> AppConfig:
    return ConfigLoader(context=context).load(command_overrides, config_path=config_path)


__all__ = ["ConfigLoader", "load_config", "parse_config_text"]
