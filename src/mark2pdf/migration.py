"""Validate config files and rewrite legacy ones into the current schema."""

from __future__ import annotations

import shutil
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from .config import (
    DEFAULT_CONFIG,
    AppConfig,
    ConfigError,
    FeaturesConfig,
    InputConfig,
    OptionsConfig,
    OutputConfig,
    build_config,
    config_errors,
    config_to_dict,
    deep_merge,
    dump_config,
    normalize_keys,
)
from .constraint import PROJECT_CONFIG_FILES
from .context import RunContext
from .loader import parse_config_text
from .utils import atomic_write_bytes

MERGE_CONFIG_FILE = "merge.config.json"
SECTIONS: dict[str, type[BaseModel]] = {
    "input": InputConfig,
    "output": OutputConfig,
    "options": OptionsConfig,
    "features": FeaturesConfig,
}


@dataclass(slots=True)
class ConfigValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class MigrationReport:
    migrated: list[Path] = field(default_factory=list)
    failed: list[tuple[Path, str]] = field(default_factory=list)


def read_config_file(path: Path) -> Mapping[str, Any]:
    try:
        return parse_config_text(path.read_text(encoding="utf-8"), path.suffix.lower())
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError("READ_FAILED", f"Cannot read config file {path}: {exc}") from exc


def validate_config_file(path: Path) -> ConfigValidation:
    try:
        data = read_config_file(path)
    except ConfigError as exc:
        return ConfigValidation(valid=False, errors=[str(exc)])
    errors = config_errors(data)
    return ConfigValidation(valid=not errors, errors=errors)


def needs_migration(path: Path) -> bool:
    """True when *path* parses but does not validate; unreadable files are left alone."""

    try:
        data = read_config_file(path)
    except ConfigError:
        return False
    return bool(config_errors(data))


def transform_legacy(data: Mapping[str, Any], context: RunContext | None = None) -> AppConfig:
    """Keep the known fields of *data*, fill the rest from the defaults and validate."""

    logger = (context or RunContext.create()).logger
    kept: dict[str, Any] = {}
    for section, value in normalize_keys(data).items():
        model = SECTIONS.get(section)
        if model is None or not isinstance(value, Mapping):
            logger.warning("Dropping unsupported config entry %r", section)
            continue
        kept[section] = {}
        for key, item in value.items():
            if key in model.model_fields:
                kept[section][key] = item
            else:
                logger.warning("Dropping unsupported config entry %r", f"{section}.{key}")
    try:
        return build_config(deep_merge(DEFAULT_CONFIG, kept))
    except ConfigError as exc:
        raise ConfigError("MIGRATION_FAILED", str(exc)) from exc


def _serialize(config: AppConfig, suffix: str) -> str:
    if suffix == ".json":
        return dump_config(config) + "\n"
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_dump(config_to_dict(config, by_alias=True), sort_keys=False)
    raise ConfigError("UNSUPPORTED_FORMAT", f"Cannot write {suffix or '<none>'} config files")


def backup_path(path: Path) -> Path:
    return path.with_name(f"{path.name}.backup.{int(time.time() * 1000)}")


def migrate_config(path: Path, *, backup: bool = True, context: RunContext | None = None) -> AppConfig:
    """Rewrite *path* in the current schema, keeping a timestamped copy of the old file."""

    logger = (context or RunContext.create()).logger
    config = transform_legacy(read_config_file(path), context)
    content = _serialize(config, path.suffix.lower())
    if backup:
        copy = backup_path(path)
        shutil.copy2(path, copy)
        logger.info("Backed up %s to %s", path, copy)
    atomic_write_bytes(path, content.encode("utf-8"))
    logger.info("Migrated %s", path)
    return config


def migrate_all(directory: Path, *, backup: bool = True, context: RunContext | None = None) -> MigrationReport:
    """Migrate every known config file in *directory* that fails validation."""

    context = context or RunContext.create()
    report = MigrationReport()
    for name in (*PROJECT_CONFIG_FILES, MERGE_CONFIG_FILE):
        path = directory / name
        if not path.is_file() or not needs_migration(path):
            continue
        try:
            migrate_config(path, backup=backup, context=context)
        except (ConfigError, OSError) as exc:
            context.logger.error("Failed to migrate %s: %s", path, exc)
            report.failed.append((path, str(exc)))
        else:
            report.migrated.append(path)
    return report


__all__ = [
    "ConfigValidation",
    "MERGE_CONFIG_FILE",
    "MigrationReport",
    "backup_path",
    "migrate_all",
    "migrate_config",
    "needs_migration",
    "read_config_file",
    "transform_legacy",
    "validate_config_file",
]
