# src/psbundler/config/__init__.py

"""Configuration handling for psbundler.

This module provides configuration loading, validation, and resolution.
"""

from .config_loader import find_config, load_and_validate_config, load_config
from .config_resolve import resolve_config
from .config_types import (
    BuildConfig,
    BuildConfigResolved,
    MetaBuildConfigResolved,
    OriginType,
)
from .config_validate import ValidationSummary, validate_config


__all__ = [  # noqa: RUF022
    # config_loader
    "find_config",
    "load_and_validate_config",
    "load_config",
    # config_resolve
    "resolve_config",
    # config_types
    "BuildConfig",
    "BuildConfigResolved",
    "MetaBuildConfigResolved",
    "OriginType",
    # config_validate
    "ValidationSummary",
    "validate_config",
]
