from __future__ import annotations

from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constraint import ENV_PREFIX, UNSET_ENV_VALUE


class EnvSettings(BaseSettings):
    """Raw configuration overrides sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    input_path: str | None = None
    output_path: str | None = None
    concurrent: str | None = None
    timeout: str | None = None
    format: str | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped or stripped == UNSET_ENV_VALUE:
        return None
    return stripped


def _parse_int(value: str | None) -> int | None:
    cleaned = _clean(value)
    if cleaned is None:
        return None
    try:
        return int(cleaned)
    except ValueError:
        return None


def read_env_settings() -> EnvSettings:
    return EnvSettings()


def env_overrides(settings: EnvSettings | None = None) -> dict[str, Any]:
    """Translate environment settings into a partial configuration mapping."""

    settings = settings or read_env_settings()
    overrides: dict[str, Any] = {}
    input_path = _clean(settings.input_path)
    if input_path is not None:
        overrides["input"] = {"path": input_path}
    output_path = _clean(settings.output_path)
    if output_path is not None:
        overrides["output"] = {"path": output_path}

    options: dict[str, Any] = {}
    concurrent = _parse_int(settings.concurrent)
    if concurrent is not None:
        options["concurrent"] = concurrent
    timeout = _parse_int(settings.timeout)
    if timeout is not None:
        options["timeout"] = timeout
    page_format = _clean(settings.format)
    if page_format is not None:
        options["format"] = page_format
    if options:
        overrides["options"] = options
    return overrides


__all__ = ["EnvSettings", "env_overrides", "read_env_settings"]
