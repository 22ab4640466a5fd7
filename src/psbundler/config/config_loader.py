# src/psbundler/config/config_loader.py


import argparse
from pathlib import Path
from typing import Any

from psbundler.errors import ConfigError
from psbundler.logs import get_app_logger
from psbundler.meta import PROGRAM_CONFIG
from psbundler.utils import (
    cast_hint,
    load_jsonc,
    load_toml,
    plural,
    remove_path_in_error_message,
)

from .config_types import BuildConfig
from .config_validate import ValidationSummary, validate_config


# Preferred first when several exist in the same directory
CONFIG_SUFFIX_PRIORITY = {".jsonc": 0, ".json": 1, ".toml": 2}


def find_config(
    args: argparse.Namespace,
    cwd: Path,
    *,
    missing_level: str = "debug",
) -> Path | None:
    """Locate a configuration file.

    missing_level: log-level for failing to find a configuration file.

    Search order:
      1. Explicit path from CLI (--config)
      2. Default candidates in the current working directory and its
         parents: .{PROGRAM_CONFIG}.jsonc, .{PROGRAM_CONFIG}.json,
         .{PROGRAM_CONFIG}.toml

    Returns the first matching path, or None if no config was found.
    """
    # NOTE: We only have early no-config Log-Level
    logger = get_app_logger()

    level = logger.resolve_level_name(missing_level)
    if level is None:
        logger.error("Invalid log level name in find_config(): %s", missing_level)
        missing_level = "error"

    # --- 1. Explicit config path ---
    if getattr(args, "config", None):
        config = Path(args.config).expanduser().resolve()
        logger.trace(f"[find_config] Checking explicit path: {config}")
        if not config.exists():
            # Explicit path → hard failure
            xmsg = f"Specified config file not found: {config}"
            raise FileNotFoundError(xmsg)
        if config.is_dir():
            xmsg = f"Specified config path is a directory, not a file: {config}"
            raise ValueError(xmsg)
        return config

    # --- 2. Default candidate files (search current dir and parents) ---
    current = cwd
    candidate_names = [
        f".{PROGRAM_CONFIG}{suffix}" for suffix in CONFIG_SUFFIX_PRIORITY
    ]
    found: list[Path] = []
    while True:
        found = [
            current / name for name in candidate_names if (current / name).is_file()
        ]
        if found:
            break
        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    if not found:
        # Expected absence: soft failure, continue
        logger.log_dynamic(missing_level, f"No config file found in {cwd} or parents")
        return None

    # --- 3. Handle multiple matches at same level ---
    if len(found) > 1:
        found_sorted = sorted(found, key=lambda p: CONFIG_SUFFIX_PRIORITY[p.suffix])
        names = ", ".join(p.name for p in found_sorted)
        logger.warning(
            "Multiple config files detected (%s); using %s.",
            names,
            found_sorted[0].name,
        )
        return found_sorted[0]
    return found[0]


def load_config(config_path: Path) -> dict[str, Any] | None:
    """Load configuration data from a JSON, JSONC or TOML file.

    Returns:
        The raw mapping, or None for an intentionally empty config.

    Raises:
        ValueError: If the file cannot be parsed.
        TypeError: If the top-level value is not an object/table.
    """
    logger = get_app_logger()
    logger.trace(f"[load_config] Loading from {config_path} ({config_path.suffix})")

    try:
        if config_path.suffix == ".toml":
            raw: Any = load_toml(config_path)
        else:
            raw = load_jsonc(config_path)
    except ValueError as e:
        clean_msg = remove_path_in_error_message(str(e), config_path)
        xmsg = (
            f"Error while loading configuration file '{config_path.name}': {clean_msg}"
        )
        raise ValueError(xmsg) from e

    if not raw:
        return None
    if not isinstance(raw, dict):
        xmsg = (
            f"Invalid top-level value in {config_path.name}:"
            f" {type(raw).__name__} (expected an object)"
        )
        raise TypeError(xmsg)
    return raw


def _validation_summary(
    summary: ValidationSummary,
    config_path: Path,
) -> None:
    """Pretty-print a validation summary using the standard log() interface."""
    logger = get_app_logger()
    mode = "strict mode" if summary.strict else "lenient mode"

    # --- Build concise counts line ---
    counts: list[str] = []
    if summary.errors:
        counts.append(f"{len(summary.errors)} error{plural(summary.errors)}")
    if summary.strict_warnings:
        counts.append(
            f"{len(summary.strict_warnings)} strict warning"
            f"{plural(summary.strict_warnings)}",
        )
    if summary.warnings:
        counts.append(
            f"{len(summary.warnings)} normal warning{plural(summary.warnings)}",
        )
    counts_msg = f"\nFound {', '.join(counts)}." if counts else ""

    # --- Header (single icon) ---
    if not summary.valid:
        logger.error(
            "Failed to validate configuration file %s (%s).%s",
            config_path.name,
            mode,
            counts_msg,
        )
    elif counts:
        logger.warning(
            "Validated configuration file %s (%s) with warnings.%s",
            config_path.name,
            mode,
            counts_msg,
        )
    else:
        logger.debug("Validated %s (%s) successfully.", config_path.name, mode)

    # --- Detailed sections ---
    if summary.errors:
        msg_summary = "\n  • ".join(summary.errors)
        logger.error("\nErrors:\n  • %s", msg_summary)
    if summary.strict_warnings:
        msg_summary = "\n  • ".join(summary.strict_warnings)
        logger.error("\nStrict warnings (treated as errors):\n  • %s", msg_summary)
    if summary.warnings:
        msg_summary = "\n  • ".join(summary.warnings)
        logger.warning("\nWarnings (non-fatal):\n  • %s", msg_summary)


def load_and_validate_config(
    args: argparse.Namespace,
    cwd: Path | None = None,
) -> tuple[Path, BuildConfig, ValidationSummary] | None:
    """Find, load and validate the user's configuration.

    Also determines the effective log level (from CLI/env/config/default)
    early, so logging can initialize as soon as possible.

    Returns:
        (config_path, build_cfg, validation_summary) if a config file was
        found and valid, or None if no config was found.

    Raises:
        ConfigError: If the configuration fails validation.
    """
    logger = get_app_logger()
    cwd = (cwd or Path.cwd()).resolve()

    # --- Find config file ---
    missing_level = "debug" if getattr(args, "source", None) else "warning"
    config_path = find_config(args, cwd, missing_level=missing_level)
    if config_path is None:
        return None

    # --- Load the raw config ---
    raw_config = load_config(config_path)
    if raw_config is None:
        logger.debug("Configuration file %s is empty.", config_path.name)
        return None

    # --- Early peek for log_level ---
    raw_log_level = raw_config.get("log_level")
    if isinstance(raw_log_level, str) and raw_log_level:
        logger.setLevel(
            logger.determine_log_level(args=args, root_log_level=raw_log_level)
        )

    # --- Validate schema ---
    validation_result = validate_config(raw_config)
    _validation_summary(validation_result, config_path)
    if not validation_result.valid:
        xmsg = f"Configuration file {config_path.name} contains validation errors."
        exception = ConfigError(xmsg)
        exception.silent = True  # type: ignore[attr-defined]
        exception.data = validation_result  # type: ignore[attr-defined]
        raise exception

    # --- Upgrade to BuildConfig type ---
    build_cfg: BuildConfig = cast_hint(BuildConfig, raw_config)
    return config_path, build_cfg, validation_result
