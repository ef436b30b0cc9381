from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel, to_snake

PageFormat = Literal["A4", "Letter", "A3", "A5"]
Orientation = Literal["portrait", "landscape"]
SortMethod = Literal["name", "date", "size"]
SortDirection = Literal["asc", "desc"]
CompressionQuality = Literal["high", "medium", "low"]


class ConfigError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FiltersConfig(_ConfigModel):
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    @field_validator("include", "exclude")
    @classmethod
    def _compile_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid regular expression {pattern!r}: {exc}") from exc
        return value


class InputConfig(_ConfigModel):
    path: str = "./public/md"
    extensions: tuple[str, ...] = (".md",)
    filters: FiltersConfig | None = None


class OutputConfig(_ConfigModel):
    path: str = "./dist/pdf"
    create_dir_if_not_exist: bool = True
    maintain_dir_structure: bool = True
    rename_pattern: str | None = None


class WatermarkConfig(_ConfigModel):
    text: str | None = None
    opacity: float | None = Field(default=None, ge=0, le=1)


class CompressionConfig(_ConfigModel):
    enabled: bool = False
    quality: CompressionQuality = "medium"


class SortConfig(_ConfigModel):
    enabled: bool = False
    method: SortMethod = "name"
    direction: SortDirection = "asc"


class OptionsConfig(_ConfigModel):
    concurrent: int = Field(default=3, ge=1, le=10)
    timeout: int = Field(default=30000, ge=0)
    format: PageFormat = "A4"
    orientation: Orientation = "portrait"
    theme: str | None = None
    toc: bool = False
    css_path: str | None = None
    watermark: WatermarkConfig | None = None
    compression: CompressionConfig = Field(default_factory=CompressionConfig)
    sort: SortConfig = Field(default_factory=SortConfig)
    overwrite: bool = False


class FeaturesConfig(_ConfigModel):
    incremental: bool = True
    retry: int = Field(default=2, ge=0, le=5)
    cache: bool = True


class AppConfig(_ConfigModel):
    input: InputConfig = Field(default_factory=InputConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    options: OptionsConfig = Field(default_factory=OptionsConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)


DEFAULT_CONFIG: dict[str, Any] = {
    "input": {"path": "./public/md", "extensions": [".md"]},
    "output": {
        "path": "./dist/pdf",
        "create_dir_if_not_exist": True,
        "maintain_dir_structure": True,
    },
    "options": {
        "concurrent": 3,
        "timeout": 30000,
        "format": "A4",
        "orientation": "portrait",
        "toc": False,
        "overwrite": False,
    },
    "features": {"incremental": True, "retry": 2, "cache": True},
}


def normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with every mapping key converted to snake_case."""

    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            value = normalize_keys(value)
        normalized[to_snake(str(key))] = value
    return normalized


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into a copy of *base*.

    Nested mappings merge key by key. Any other value from *override*
    replaces the one in *base* unless it is ``None``; lists are replaced
    as a whole.
    """

    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping):
            current = result.get(key)
            result[key] = deep_merge(current if isinstance(current, Mapping) else {}, value)
        elif value is not None:
            result[key] = value
    return result


def merge_configs(partials: list[Mapping[str, Any]]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for partial in partials:
        if not partial:
            continue
        merged = deep_merge(merged, normalize_keys(partial))
    return merged


def validation_errors(exc: ValidationError) -> list[str]:
    """One ``"dotted.field: message"`` line per problem in *exc*."""

    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        problems.append(f"{location}: {error['msg']}")
    return problems


def _format_validation_error(exc: ValidationError) -> str:
    return "; ".join(validation_errors(exc))


def config_errors(data: Mapping[str, Any]) -> list[str]:
    try:
        AppConfig.model_validate(normalize_keys(data))
    except ValidationError as exc:
        return validation_errors(exc)
    return []


def build_config(data: Mapping[str, Any]) -> AppConfig:
    try:
        return AppConfig.model_validate(normalize_keys(data))
    except ValidationError as exc:
        raise ConfigError("INVALID_CONFIG", f"Invalid configuration: {_format_validation_error(exc)}") from exc


def config_to_dict(config: AppConfig, *, by_alias: bool = False) -> dict[str, Any]:
    return config.model_dump(mode="json", by_alias=by_alias, exclude_none=True)


def apply_overrides(config: AppConfig, overrides: Mapping[str, Any]) -> AppConfig:
    """Return a new validated config with *overrides* deep-merged on top of *config*."""

    merged = deep_merge(config_to_dict(config), normalize_keys(overrides))
    return build_config(merged)


def dump_config(config: AppConfig) -> str:
    return json.dumps(config_to_dict(config, by_alias=True), indent=2)


__all__ = [
    "AppConfig",
    "CompressionConfig",
    "ConfigError",
    "DEFAULT_CONFIG",
    "FeaturesConfig",
    "FiltersConfig",
    "InputConfig",
    "OptionsConfig",
    "OutputConfig",
    "SortConfig",
    "WatermarkConfig",
    "apply_overrides",
    "build_config",
    "config_errors",
    "config_to_dict",
    "deep_merge",
    "dump_config",
    "merge_configs",
    "normalize_keys",
    "validation_errors",
]
