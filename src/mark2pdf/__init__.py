"""Batch Markdown/HTML to PDF conversion and per-directory PDF merging."""

from .config import AppConfig, ConfigError
from .context import EventSink, RunContext
from .converter import ConverterService
from .loader import ConfigLoader, load_config
from .merger import MergerService, PdfMerger
from .models import Summary, TaskResult

__all__ = [
    "AppConfig",
    "ConfigError",
    "ConfigLoader",
    "load_config",
    "ConverterService",
    "EventSink",
    "MergerService",
    "PdfMerger",
    "RunContext",
    "Summary",
    "TaskResult",
]
