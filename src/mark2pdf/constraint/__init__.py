from __future__ import annotations

from pathlib import Path

TOOL_NAME = "mark2pdf"
ENV_PREFIX = "MARK2PDF_"
USER_CONFIG_DIR = Path(f".{TOOL_NAME}")
USER_CONFIG_FILE = "config.json"
PROJECT_CONFIG_FILES: tuple[str, ...] = (
    f"{TOOL_NAME}.config.json",
    f"{TOOL_NAME}.config.yaml",
    f"{TOOL_NAME}.config.yml",
    f"{TOOL_NAME}.config.toml",
    "config.json",
)
UNSET_ENV_VALUE = "undefined"

__all__ = [
    "ENV_PREFIX",
    "PROJECT_CONFIG_FILES",
    "TOOL_NAME",
    "UNSET_ENV_VALUE",
    "USER_CONFIG_DIR",
    "USER_CONFIG_FILE",
]
