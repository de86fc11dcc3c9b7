"""Core types shared by every layer: Result, exit codes, configuration."""

from tagsync.core.config import Config, ConfigError, load_config, load_config_or_default
from tagsync.core.errors import ErrorCode
from tagsync.core.result import Err, Ok, Result

__all__ = [
    "Config",
    "ConfigError",
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "load_config",
    "load_config_or_default",
]
