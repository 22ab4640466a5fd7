# src/psbundler/meta.py
"""Program identity and version metadata."""

import re
import subprocess
from contextlib import suppress
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import NamedTuple


PROGRAM_DISPLAY = "PSBundler"
PROGRAM_SCRIPT = "psbundler"
PROGRAM_PACKAGE = "psbundler"
PROGRAM_CONFIG = "psbundler"
PROGRAM_ENV = "PSBUNDLER"


class Metadata(NamedTuple):
    version: str
    commit: str


def _version_from_pyproject(root: Path) -> str | None:
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return None
    text = pyproject.read_text(encoding="utf-8")
    match = re.search(r'(?m)^\s*version\s*=\s*["\']([^"\']+)["\']', text)
    return match.group(1) if match else None


def get_metadata() -> Metadata:
    """Return (version, commit) for this tool.

    Prefers a source checkout's pyproject.toml, then the installed
    distribution metadata. The commit is only known inside a git checkout.
    """
    root = Path(__file__).resolve().parents[2]

    version = _version_from_pyproject(root)
    if version is None:
        try:
            version = importlib_metadata.version(PROGRAM_PACKAGE)
        except importlib_metadata.PackageNotFoundError:
            version = "unknown"

    commit = "unknown"
    with suppress(OSError, subprocess.CalledProcessError):
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
        commit = result.stdout.strip() or "unknown"

    return Metadata(version, commit)
