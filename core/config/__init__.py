"""
Runtime Configuration Module

Provides configuration loading and management for distribution builds.
"""

from .runtime import (
    DEFAULT_TOKEN_ADDRESSES,
    TokenConfig,
    InputConfig,
    TreeConfig,
    OutputConfig,
    LoggingConfig,
    RuntimeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "DEFAULT_TOKEN_ADDRESSES",
    "TokenConfig",
    "InputConfig",
    "TreeConfig",
    "OutputConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "get_default_config",
    "set_default_config",
]
