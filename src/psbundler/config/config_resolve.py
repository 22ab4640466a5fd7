# src/psbundler/config/config_resolve.py


import argparse
import os
import re
from pathlib import Path
from typing import Any

from psbundler.constants import (
    DEFAULT_DRY_RUN,
    DEFAULT_ENV_WATCH_INTERVAL,
    DEFAULT_EXCLUDE,
    DEFAULT_MIN_POWERSHELL_VERSION,
    DEFAULT_PREAMBLE_NAME,
    DEFAULT_PRIVATE_DIR,
    DEFAULT_SCRIPT_EXTENSION,
    DEFAULT_STRICT_CONFIG,
    DEFAULT_WATCH_INTERVAL,
)
from psbundler.errors import ConfigError
from psbundler.logs import get_app_logger
from psbundler.meta import PROGRAM_ENV
from psbundler.utils import cast_hint
from psbundler.versions import format_version, parse_version

from .config_types import BuildConfig, BuildConfigResolved, OriginType


# ModuleVersion must be a System.Version: two to four numeric parts
_MODULE_VERSION_RE = re.compile(r"^\d+(\.\d+){1,3}$")
_INVALID_NAME_CHARS = set('<>:"/\\|?*')


def _resolve_path(raw: str, base: Path) -> Path:
    return (base / Path(raw).expanduser()).resolve()


def _resolve_source(
    build_cfg: BuildConfig,
    *,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
) -> tuple[Path, OriginType]:
    if getattr(args, "source", None):
        # CLI → relative to cwd
        return _resolve_path(args.source, cwd), "cli"
    if build_cfg.get("source"):
        # From config → relative to config_dir
        return _resolve_path(build_cfg["source"], config_dir), "config"
    xmsg = (
        "No source directory given."
        " Pass --source or set 'source' in the configuration file."
    )
    raise ConfigError(xmsg)


def _resolve_target(
    build_cfg: BuildConfig,
    *,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
    source: Path,
) -> Path:
    if getattr(args, "target", None):
        return _resolve_path(args.target, cwd)
    if build_cfg.get("target"):
        return _resolve_path(build_cfg["target"], config_dir)
    return source


def _resolve_name(
    build_cfg: BuildConfig, *, args: argparse.Namespace, source: Path
) -> str:
    name = getattr(args, "name", None) or build_cfg.get("name") or source.name
    if not name or name in (".", "..") or _INVALID_NAME_CHARS & set(name):
        xmsg = f"Invalid module name: {name!r}"
        raise ConfigError(xmsg)
    return name


def _resolve_notes(build_cfg: BuildConfig, *, args: argparse.Namespace) -> list[str]:
    cli_notes: list[str] | None = getattr(args, "notes", None)
    if cli_notes:
        return [str(n) for n in cli_notes]
    cfg_notes = build_cfg.get("notes")
    if cfg_notes is None:
        return []
    if isinstance(cfg_notes, str):
        return [cfg_notes] if cfg_notes else []
    return [str(n) for n in cfg_notes]


def _resolve_excludes(
    build_cfg: BuildConfig, *, args: argparse.Namespace
) -> list[str]:
    logger = get_app_logger()

    if getattr(args, "exclude", None):
        # Full override
        excludes = list(args.exclude)
    elif "exclude" in build_cfg:
        excludes = list(build_cfg["exclude"])
    else:
        excludes = list(DEFAULT_EXCLUDE)

    # Add-on excludes (extend, not override)
    excludes.extend(build_cfg.get("add_exclude", []))
    excludes.extend(getattr(args, "add_exclude", None) or [])

    # unique, order-preserving
    unique = list(dict.fromkeys(excludes))
    logger.trace(f"[resolve_excludes] {len(unique)} exclude pattern(s): {unique}")
    return unique


def _resolve_min_version(
    build_cfg: BuildConfig, *, args: argparse.Namespace
) -> str:
    raw: Any = getattr(args, "min_version", None)
    if raw is None:
        raw = build_cfg.get("min_powershell_version", DEFAULT_MIN_POWERSHELL_VERSION)
    try:
        return format_version(parse_version(raw))
    except ValueError as e:
        xmsg = f"Invalid minimum PowerShell version {raw!r}"
        raise ConfigError(xmsg) from e


def _resolve_module_version(
    build_cfg: BuildConfig, *, args: argparse.Namespace
) -> str | None:
    raw = getattr(args, "module_version", None) or build_cfg.get("module_version")
    if raw is None:
        return None
    if not _MODULE_VERSION_RE.match(str(raw)):
        xmsg = (
            f"Invalid module version {raw!r}"
            " (expected two to four numeric parts, e.g. 1.2.0)"
        )
        raise ConfigError(xmsg)
    return str(raw)


def _resolve_watch_interval(
    build_cfg: BuildConfig, *, args: argparse.Namespace
) -> float:
    logger = get_app_logger()
    env_name = f"{PROGRAM_ENV}_{DEFAULT_ENV_WATCH_INTERVAL}"
    env_watch = os.getenv(env_name)
    if getattr(args, "watch", None) is not None:
        return float(args.watch)
    if env_watch is not None:
        try:
            return float(env_watch)
        except ValueError:
            logger.warning("Invalid %s=%r, using default.", env_name, env_watch)
            return DEFAULT_WATCH_INTERVAL
    return float(build_cfg.get("watch_interval", DEFAULT_WATCH_INTERVAL))


def _normalize_extension(ext: str) -> str:
    ext = ext.strip()
    if not ext or ext == ".":
        xmsg = "script_extension must not be empty"
        raise ConfigError(xmsg)
    return ext if ext.startswith(".") else f".{ext}"


def resolve_config(
    build_input: BuildConfig | None,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
    *,
    config_path: Path | None = None,
) -> BuildConfigResolved:
    """Fully resolve a loaded BuildConfig into a ready-to-run BuildConfigResolved.

    Precedence is CLI > config file > defaults. Paths given on the CLI are
    relative to *cwd*; paths from the config file are relative to
    *config_dir*.

    If invoked standalone, ensures the global logger reflects the resolved
    log level. If called after load_and_validate_config(), this is a
    harmless no-op re-sync.

    Raises:
        ConfigError: If no source is given or a value is invalid.
    """
    logger = get_app_logger()
    build_cfg = cast_hint(BuildConfig, dict(build_input or {}))
    logger.trace(f"[resolve_config] Resolving config with {len(build_cfg)} key(s)")

    # ------------------------------
    # Log level
    # ------------------------------
    #  log_level: arg -> env -> config -> default
    log_level = logger.determine_log_level(
        args=args, root_log_level=build_cfg.get("log_level")
    )
    # --- sync runtime ---
    logger.setLevel(log_level)

    # ------------------------------
    # Paths
    # ------------------------------
    source, source_origin = _resolve_source(
        build_cfg, args=args, config_dir=config_dir, cwd=cwd
    )
    target = _resolve_target(
        build_cfg, args=args, config_dir=config_dir, cwd=cwd, source=source
    )

    resolved: BuildConfigResolved = {
        "source": source,
        "target": target,
        "name": _resolve_name(build_cfg, args=args, source=source),
        "notes": _resolve_notes(build_cfg, args=args),
        "exclude": _resolve_excludes(build_cfg, args=args),
        "script_extension": _normalize_extension(
            build_cfg.get("script_extension", DEFAULT_SCRIPT_EXTENSION)
        ),
        "preamble": build_cfg.get("preamble", DEFAULT_PREAMBLE_NAME),
        "private_dir": build_cfg.get("private_dir", DEFAULT_PRIVATE_DIR),
        "min_powershell_version": _resolve_min_version(build_cfg, args=args),
        "module_version": _resolve_module_version(build_cfg, args=args),
        "log_level": log_level,
        "strict_config": build_cfg.get("strict_config", DEFAULT_STRICT_CONFIG),
        "watch_interval": _resolve_watch_interval(build_cfg, args=args),
        "dry_run": bool(getattr(args, "dry_run", DEFAULT_DRY_RUN)),
        "__meta__": {
            "cli_root": cwd,
            "config_root": config_dir,
            "config_path": config_path,
            "source_origin": source_origin,
        },
    }

    logger.trace(
        f"[resolve_config] source={source} ({source_origin}) target={target}"
        f" name={resolved['name']}"
    )
    return resolved
