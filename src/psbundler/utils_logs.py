# src/psbundler/utils_logs.py
"""CLI logger shared by every psbundler module.

Extends the stdlib ``logging`` module with TRACE and SILENT levels, tagged
output and a handler that splits stdout/stderr by severity.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Generator
from contextlib import contextmanager, suppress
from typing import Any, TextIO, cast


# --- Constants ---------------------------------------------------------------

RESET = "\033[0m"
CYAN = "\033[36m"
YELLOW = "\033[93m"
RED = "\033[91m"
GREEN = "\033[92m"
GRAY = "\033[90m"

TRACE_LEVEL = logging.DEBUG - 5
SILENT_LEVEL = logging.CRITICAL + 1

LEVEL_ORDER = [
    "trace",
    "debug",
    "info",
    "warning",
    "error",
    "critical",
    "silent",  # disables all logging
]

TAG_STYLES = {
    "TRACE": (GRAY, "[TRACE]"),
    "DEBUG": (CYAN, "[DEBUG]"),
    "WARNING": ("", "⚠️ "),
    "ERROR": ("", "❌ "),
    "CRITICAL": ("", "💥 "),
}

# sanity check
assert set(TAG_STYLES.keys()) <= {lvl.upper() for lvl in LEVEL_ORDER}, (  # noqa: S101
    "TAG_STYLES contains unknown levels"
)

# --- registry -----------------------------------------------------------------

_registered_env_vars: list[str] = ["LOG_LEVEL"]
_registered_default_level: str = "info"


def register_log_level_env_vars(env_vars: list[str]) -> None:
    """Set the environment variables consulted (in order) for the log level."""
    global _registered_env_vars  # noqa: PLW0603
    _registered_env_vars = list(env_vars)


def register_default_log_level(default_level: str) -> None:
    """Set the level used when neither CLI, env nor config provide one."""
    global _registered_default_level  # noqa: PLW0603
    _registered_default_level = default_level


# --- Logging that bypasses streams -------------------------------------------


def safe_log(msg: str) -> None:
    """Emergency logger that never fails."""
    stream = cast("TextIO", sys.__stderr__)
    try:
        print(msg, file=stream)
    except Exception:  # noqa: BLE001
        # last resort while already reporting a failure
        with suppress(Exception):
            stream.write(f"[INTERNAL] {msg}\n")


# --- Logger -------------------------------------------------------------------


class CLILogger(logging.Logger):
    """Logger with trace/silent levels and color-aware tagged output."""

    enable_color: bool = False

    _logging_module_extended: bool = False
    _last_streams: tuple[TextIO, TextIO] | None = None

    def __init__(
        self,
        name: str,
        level: int = logging.NOTSET,
        *,
        enable_color: bool | None = None,
    ) -> None:
        super().__init__(name, level)
        if self.level == logging.NOTSET:
            self.setLevel(self.determine_log_level())
        self.enable_color = (
            enable_color
            if enable_color is not None
            else type(self).determine_color_enabled()
        )
        self.propagate = False

    @classmethod
    def extend_logging_module(cls) -> bool:
        """Install this class and the extra level names. Returns False if done."""
        if cls._logging_module_extended:
            return False
        cls._logging_module_extended = True

        logging.setLoggerClass(cls)
        logging.addLevelName(TRACE_LEVEL, "TRACE")
        logging.addLevelName(SILENT_LEVEL, "SILENT")
        logging.TRACE = TRACE_LEVEL  # type: ignore[attr-defined]
        logging.SILENT = SILENT_LEVEL  # type: ignore[attr-defined]
        return True

    @classmethod
    def determine_color_enabled(cls) -> bool:
        """Return True if colored output should be enabled."""
        if "NO_COLOR" in os.environ:
            return False
        if os.getenv("FORCE_COLOR", "").lower() in {"1", "true", "yes"}:
            return True
        return sys.stdout.isatty()

    def determine_log_level(
        self,
        *,
        args: argparse.Namespace | None = None,
        root_log_level: str | None = None,
    ) -> str:
        """Resolve log level from CLI → env → config → default."""
        args_level = getattr(args, "log_level", None)
        if args_level is not None:
            return cast("str", args_level).upper()

        for env_var in _registered_env_vars:
            env_level = os.getenv(env_var)
            if env_level:
                return env_level.upper()

        if root_log_level:
            return root_log_level.upper()

        return _registered_default_level.upper()

    def ensure_handlers(self) -> None:
        # stdout/stderr may have been swapped (capsys, capture_output)
        streams = (sys.stdout, sys.stderr)
        if self.handlers and self._last_streams == streams:
            return
        self.handlers.clear()
        handler = DualStreamHandler()
        handler.setFormatter(TagFormatter("%(message)s"))
        handler.enable_color = self.enable_color
        self.addHandler(handler)
        self._last_streams = streams

    def _log(  # type: ignore[override]
        self, level: int, msg: str, args: tuple[Any, ...], **kwargs: Any
    ) -> None:
        self.ensure_handlers()
        super()._log(level, msg, args, **kwargs)

    def setLevel(self, level: int | str) -> None:  # noqa: N802
        """Case insensitive version"""
        if isinstance(level, str):
            level = level.upper()
        super().setLevel(level)

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.getEffectiveLevel())

    def resolve_level_name(self, level_name: str) -> int | None:
        value = logging.getLevelName(level_name.upper())
        return value if isinstance(value, int) else None

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, msg, args, **kwargs)

    def log_dynamic(
        self, level: str | int, msg: str, *args: Any, **kwargs: Any
    ) -> None:
        level_no = self.resolve_level_name(level) if isinstance(level, str) else level
        if level_no is None:
            self.error("Unknown log level: %r", level)
            return
        if self.isEnabledFor(level_no):
            self._log(level_no, msg, args, **kwargs)

    def error_if_not_debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an error; include the traceback only at debug or lower."""
        exc_info = kwargs.pop("exc_info", True)
        stacklevel = kwargs.pop("stacklevel", 2)
        if self.isEnabledFor(logging.DEBUG):
            self.exception(msg, *args, exc_info=exc_info, stacklevel=stacklevel)
        else:
            self.error(msg, *args)

    def critical_if_not_debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a critical error; include the traceback only at debug or lower."""
        exc_info = kwargs.pop("exc_info", True)
        stacklevel = kwargs.pop("stacklevel", 2)
        if self.isEnabledFor(logging.DEBUG):
            self.exception(msg, *args, exc_info=exc_info, stacklevel=stacklevel)
        else:
            self.critical(msg, *args)

    def colorize(
        self, text: str, color: str, *, enable_color: bool | None = None
    ) -> str:
        if enable_color is None:
            enable_color = self.enable_color
        return f"{color}{text}{RESET}" if enable_color else text

    @contextmanager
    def use_level(
        self, level: str | int, *, minimum: bool = False
    ) -> Generator[None, None, None]:
        """Temporarily log at a different level.

        With ``minimum=True`` the level is only changed when it is more
        verbose than the current one.
        """
        prev_level = self.level
        level_no = self.resolve_level_name(level) if isinstance(level, str) else level
        if level_no is None:
            self.error("Unknown log level: %r", level)
            yield
            return

        if not minimum or level_no < prev_level:
            self.setLevel(level_no)
        try:
            yield
        finally:
            self.setLevel(prev_level)


# --- Formatting and output -----------------------------------------------------


class TagFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        tag_color, tag_text = TAG_STYLES.get(record.levelname, ("", ""))
        msg = super().format(record)
        if not tag_text:
            return msg
        if getattr(record, "enable_color", False) and tag_color:
            return f"{tag_color}{tag_text}{RESET} {msg}"
        return f"{tag_text} {msg}"


class DualStreamHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Send info/debug/trace to stdout, warnings and errors to stderr."""

    enable_color: bool = False

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.WARNING:
            self.stream = sys.stderr
        else:
            self.stream = sys.stdout
        record.enable_color = self.enable_color
        super().emit(record)
