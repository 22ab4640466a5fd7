# src/psbundler/utils/utils_files.py

import json
import re
from pathlib import Path
from typing import Any, cast

from psbundler.logs import get_app_logger


def load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file.

    Uses ``tomllib`` on Python 3.11+ and ``tomli`` on older interpreters.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file cannot be parsed
    """
    if not path.exists():
        xmsg = f"TOML file not found: {path}"
        raise FileNotFoundError(xmsg)

    try:
        import tomllib  # type: ignore[import-not-found,unused-ignore]  # noqa: PLC0415
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef,unused-ignore]  # noqa: PLC0415

    with path.open("rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            xmsg = f"Invalid TOML syntax in {path}: {e}"
            raise ValueError(xmsg) from e


def _strip_jsonc_comments(text: str) -> str:  # noqa: PLR0912
    """Strip //, # and /* */ comments from JSONC, leaving strings untouched."""
    result: list[str] = []
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if in_string:
            result.append(ch)
            if ch == "\\" and i + 1 < n:
                result.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            result.append(ch)
            i += 1
            continue

        if ch == "#" or (ch == "/" and text[i + 1 : i + 2] == "/"):
            while i < n and text[i] != "\n":
                i += 1
            continue

        if ch == "/" and text[i + 1 : i + 2] == "*":
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue

        result.append(ch)
        i += 1

    return "".join(result)


def load_jsonc(path: Path) -> dict[str, Any] | list[Any] | None:
    """Load JSONC (JSON with comments and trailing commas).

    Returns None for a file that is empty or holds only comments.
    """
    logger = get_app_logger()
    logger.trace(f"[load_jsonc] Loading from {path}")

    if not path.exists():
        xmsg = f"JSONC file not found: {path}"
        raise FileNotFoundError(xmsg)
    if not path.is_file():
        xmsg = f"Expected a file: {path}"
        raise ValueError(xmsg)

    text = _strip_jsonc_comments(path.read_text(encoding="utf-8"))
    text = re.sub(r",(?=\s*[}\]])", "", text).strip()
    if not text:
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        xmsg = (
            f"Invalid JSONC syntax in {path}:"
            f" {e.msg} (line {e.lineno}, column {e.colno})"
        )
        raise ValueError(xmsg) from e

    if not isinstance(data, (dict, list)):
        xmsg = f"Invalid JSONC root type: {type(data).__name__}"
        raise ValueError(xmsg)  # noqa: TRY004

    return cast("dict[str, Any] | list[Any]", data)


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write *text* to a sibling temp file, then replace *path* with it.

    Line endings are written exactly as given. On failure the temp file is
    removed and any previous *path* is left untouched.

    Raises:
        OSError: If the file cannot be written.
    """
    logger = get_app_logger()
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        with tmp.open("w", encoding=encoding, newline="") as f:
            f.write(text)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.trace(f"[write_text_atomic] Wrote {len(text)} chars to {path}")
