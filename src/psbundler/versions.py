# src/psbundler/versions.py
"""Minimum PowerShell version tracking."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .constants import DEFAULT_MIN_POWERSHELL_VERSION
from .logs import get_app_logger


_VERSION_RE = re.compile(r"^\s*v?(\d+(?:\.\d+){0,3})\s*$")

Version = tuple[int, ...]


def parse_version(raw: str | float | int) -> Version:
    """Parse ``"5.1"`` / ``"7.2.0"`` / ``5.1`` into a comparable tuple.

    Trailing zero components are dropped so ``"5.1"`` and ``"5.1.0"`` compare
    equal. The result always has at least two parts.

    Raises:
        ValueError: If *raw* is not a dotted numeric version.
    """
    match = _VERSION_RE.match(str(raw))
    if match is None:
        xmsg = f"Invalid version: {raw!r}"
        raise ValueError(xmsg)
    parts = [int(p) for p in match.group(1).split(".")]
    while len(parts) > 2 and parts[-1] == 0:  # noqa: PLR2004
        parts.pop()
    if len(parts) == 1:
        parts.append(0)
    return tuple(parts)


def format_version(version: Version) -> str:
    """Format as ``major.minor``, the form module manifests declare."""
    return f"{version[0]}.{version[1]}"


@dataclass
class VersionFloor:
    """Running maximum of every minimum-version requirement seen.

    The floor only ever moves up; ``observe()`` with a lower version is a
    no-op.
    """

    value: Version = field(
        default_factory=lambda: parse_version(DEFAULT_MIN_POWERSHELL_VERSION)
    )
    source: str = "default"

    @classmethod
    def starting_at(cls, baseline: str) -> VersionFloor:
        return cls(parse_version(baseline), "baseline")

    def observe(self, version: str | float | Version | None, source: str = "") -> bool:
        """Raise the floor to *version* if higher. Returns True if it moved."""
        if version is None:
            return False
        candidate = version if isinstance(version, tuple) else parse_version(version)
        if candidate <= self.value:
            return False

        logger = get_app_logger()
        logger.debug(
            "Minimum PowerShell version raised %s → %s%s",
            format_version(self.value),
            format_version(candidate),
            f" by {source}" if source else "",
        )
        self.value = candidate
        self.source = source or self.source
        return True

    def __str__(self) -> str:
        return format_version(self.value)
