# src/psbundler/cli.py

import argparse
import json
import platform
import sys
from dataclasses import dataclass
from difflib import get_close_matches
from pathlib import Path

from .actions import watch_for_changes
from .build import BuildResult, run_build
from .config import (
    BuildConfig,
    BuildConfigResolved,
    load_and_validate_config,
    resolve_config,
)
from .constants import DEFAULT_WATCH_INTERVAL
from .logs import get_app_logger
from .meta import PROGRAM_DISPLAY, PROGRAM_SCRIPT, get_metadata
from .utils_logs import LEVEL_ORDER, safe_log


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        # Build known option strings: ["-v", "--verbose", "--log-level", ...]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # Argparse message for bad flags is typically
        # "unrecognized arguments: --sourse ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(arg, known_opts, n=1, cutoff=0.6)
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        # Print usage + the original error
        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(
        prog=PROGRAM_SCRIPT,
        description=(
            "Bundle a directory of PowerShell scripts into a script module"
            " (.psm1) and create or update its manifest (.psd1)."
        ),
    )

    # --- Build inputs ---
    parser.add_argument(
        "--source",
        metavar="DIR",
        help="Directory to scan for script files (or 'source' in the config).",
    )
    parser.add_argument(
        "--target",
        metavar="DIR",
        help="Output directory for the module files (default: the source dir).",
    )
    parser.add_argument(
        "--name",
        help="Module name (default: the source directory's name).",
    )
    parser.add_argument(
        "--notes",
        nargs="+",
        metavar="TEXT",
        help="Release notes to prepend to the manifest's existing notes.",
    )
    parser.add_argument(
        "--emit-summary",
        action="store_true",
        help="Print a JSON summary of the build to stdout when done.",
    )
    parser.add_argument("-c", "--config", help="Path to build config file.")

    parser.add_argument("--exclude", nargs="+", help="Override exclude patterns.")
    parser.add_argument(
        "--add-exclude",
        nargs="+",
        help="Additional exclude patterns. Extends config excludes.",
    )
    parser.add_argument(
        "--module-version",
        metavar="VERSION",
        help="Set ModuleVersion in the manifest (e.g. 1.2.0).",
    )
    parser.add_argument(
        "--min-version",
        metavar="VERSION",
        help="Baseline minimum PowerShell version (default: 2.0).",
    )

    parser.add_argument(
        "--watch",
        nargs="?",
        type=float,
        metavar="SECONDS",
        default=None,
        help=(
            "Rebuild automatically on changes. "
            "Optionally specify interval in seconds"
            f" (default config or: {DEFAULT_WATCH_INTERVAL}). "
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate everything without writing any files.",
    )

    # --- Color ---
    color = parser.add_mutually_exclusive_group()
    color.add_argument(
        "--no-color",
        dest="use_color",
        action="store_const",
        const=False,
        help="Disable ANSI color output.",
    )
    color.add_argument(
        "--color",
        dest="use_color",
        action="store_const",
        const=True,
        help="Force-enable ANSI color output (overrides auto-detect).",
    )
    color.set_defaults(use_color=None)

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LEVEL_ORDER,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    return parser


# --------------------------------------------------------------------------- #
# Main entry helpers
# --------------------------------------------------------------------------- #


@dataclass
class _LoadedConfig:
    """Container for loaded and resolved configuration data."""

    config_path: Path | None
    resolved: BuildConfigResolved
    config_dir: Path
    cwd: Path


def _initialize_logger(args: argparse.Namespace) -> None:
    """Initialize logger with CLI args, env vars, and defaults."""
    logger = get_app_logger()
    log_level = logger.determine_log_level(args=args)
    logger.setLevel(log_level)
    use_color = getattr(args, "use_color", None)
    logger.enable_color = (
        use_color if use_color is not None else logger.determine_color_enabled()
    )
    # handlers pick up the color setting when rebuilt
    logger.handlers.clear()
    logger.trace("[BOOT] log-level initialized: %s", logger.level_name)

    logger.debug(
        "Runtime: Python %s (%s)\n    %s",
        platform.python_version(),
        platform.python_implementation(),
        sys.version.replace("\n", " "),
    )


def _handle_early_exits(args: argparse.Namespace) -> int | None:
    """Handle early exit conditions (version).

    Returns exit code if we should exit early, None otherwise.
    """
    logger = get_app_logger()

    # --- Version flag ---
    if getattr(args, "version", None):
        meta = get_metadata()
        logger.info("%s %s (%s)", PROGRAM_DISPLAY, meta.version, meta.commit)
        return 0

    return None


def _load_and_resolve_config(args: argparse.Namespace) -> _LoadedConfig:
    """Load config and resolve final configuration."""
    logger = get_app_logger()
    cwd = Path.cwd().resolve()

    # --- Load configuration ---
    config_path: Path | None = None
    build_cfg: BuildConfig | None = None
    config_result = load_and_validate_config(args, cwd)
    if config_result is not None:
        config_path, build_cfg, _validation_summary = config_result

    logger.trace("[CONFIG] log-level re-resolved from config: %s", logger.level_name)

    config_dir = config_path.parent if config_path else cwd

    # --- Resolve config with args and defaults ---
    resolved = resolve_config(build_cfg, args, config_dir, cwd, config_path=config_path)

    return _LoadedConfig(
        config_path=config_path,
        resolved=resolved,
        config_dir=config_dir,
        cwd=cwd,
    )


def _emit_summary(result: BuildResult) -> None:
    print(json.dumps(result.as_dict(), indent=2))  # noqa: T201


def _execute_build(
    resolved: BuildConfigResolved,
    args: argparse.Namespace,
    argv: list[str] | None,
) -> None:
    """Execute build either in watch mode or one-time mode."""
    watch_enabled = getattr(args, "watch", None) is not None or (
        "--watch" in (argv if argv is not None else sys.argv[1:])
    )
    emit_summary = bool(getattr(args, "emit_summary", False))

    def _build_once() -> BuildResult:
        result = run_build(resolved)
        if emit_summary:
            _emit_summary(result)
        return result

    if watch_enabled:
        watch_for_changes(
            _build_once,
            resolved,
            interval=resolved["watch_interval"],
        )
    else:
        _build_once()


# --------------------------------------------------------------------------- #
# Main entry
# --------------------------------------------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    logger = get_app_logger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)

        # --- Early runtime init (use CLI + env + defaults) ---
        _initialize_logger(args)

        # --- Handle early exits (version) ---
        early_exit_code = _handle_early_exits(args)
        if early_exit_code is not None:
            return early_exit_code

        # --- Load and resolve configuration ---
        config = _load_and_resolve_config(args)

        # --- Dry-run notice ---
        if config.resolved["dry_run"]:
            logger.info("🧪 Dry-run mode: no files will be written.\n")

        # --- Config summary ---
        if config.config_path:
            logger.debug("🔧 Using config: %s", config.config_path)
        else:
            logger.debug("🔧 Running in CLI-only mode (no config file).")
        logger.debug("📂 Invoked from: %s", config.cwd)

        # --- Execute build ---
        _execute_build(config.resolved, args, argv)

    except (FileNotFoundError, ValueError, TypeError, RuntimeError) as e:
        # controlled termination
        silent = getattr(e, "silent", False)
        if not silent:
            try:
                logger.error_if_not_debug(str(e))
            except Exception:  # noqa: BLE001
                safe_log(f"[FATAL] Logging failed while reporting: {e}")
        return getattr(e, "code", 1)

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            logger.critical_if_not_debug("Unexpected internal error: %s", e)
        except Exception:  # noqa: BLE001
            safe_log(f"[FATAL] Logging failed while reporting: {e}")

        return getattr(e, "code", 1)

    else:
        return 0
