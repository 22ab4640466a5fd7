# src/psbundler/actions.py
import time
from collections.abc import Callable
from pathlib import Path

from .build import output_paths
from .collect import find_source_paths
from .config import BuildConfigResolved
from .constants import DEFAULT_WATCH_INTERVAL
from .errors import PathNotFoundError
from .logs import get_app_logger


def _watched_files(resolved: BuildConfigResolved) -> list[Path]:
    """Every file the next build would read. Empty if the source is gone."""
    try:
        preamble, scripts = find_source_paths(
            resolved["source"],
            script_extension=resolved["script_extension"],
            preamble_name=resolved["preamble"],
            exclude=resolved["exclude"],
            skip=output_paths(resolved),
        )
    except PathNotFoundError:
        return []
    return preamble + scripts


def _snapshot(files: list[Path]) -> dict[Path, float]:
    mtimes: dict[Path, float] = {}
    for f in files:
        try:
            mtimes[f] = f.stat().st_mtime
        except FileNotFoundError:
            continue  # removed between listing and stat
    return mtimes


def _safe_rebuild(rebuild_func: Callable[[], object]) -> None:
    """Run one rebuild; a failed build is reported and watching continues."""
    logger = get_app_logger()
    try:
        rebuild_func()
    except (FileNotFoundError, ValueError, TypeError, RuntimeError) as e:
        logger.error_if_not_debug(str(e))


def watch_for_changes(
    rebuild_func: Callable[[], object],
    resolved: BuildConfigResolved,
    interval: float = DEFAULT_WATCH_INTERVAL,
    *,
    max_cycles: int | None = None,
) -> None:
    """Poll file modification times and rebuild when changes are detected.

    Features:
    - Ignores the bundle and manifest the build itself writes.
    - Re-lists the source tree every loop to detect new and removed files.
    - Polling interval defaults to 1 second (tune 0.5–2.0 for balance).
    Stops on KeyboardInterrupt, or after *max_cycles* polls when given.
    """
    logger = get_app_logger()
    logger.info(
        "👀 Watching for changes (interval=%.2fs)... Press Ctrl+C to stop.", interval
    )

    mtimes = _snapshot(_watched_files(resolved))
    _safe_rebuild(rebuild_func)  # initial build

    cycles = 0
    try:
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            time.sleep(interval)

            # 🔁 re-list every tick so new/removed files are tracked
            current = _snapshot(_watched_files(resolved))
            logger.trace(f"[watch] Checking {len(current)} files for changes")

            changed = [
                f for f, m in current.items() if mtimes.get(f) is None or m > mtimes[f]
            ]
            removed = [f for f in mtimes if f not in current]
            if changed or removed:
                logger.info(
                    "\n🔁 Detected %d changed file(s). Rebuilding...",
                    len(changed) + len(removed),
                )
                _safe_rebuild(rebuild_func)
            mtimes = current
    except KeyboardInterrupt:
        logger.info("\n🛑 Watch stopped.")
