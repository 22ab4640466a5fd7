# src/psbundler/utils/utils_text.py

import re
from pathlib import Path
from typing import Any


def plural(obj: Any) -> str:
    """Return 's' if obj represents a plural count.

    Accepts ints, floats, and any object implementing __len__().
    """
    count: int | float
    try:
        count = len(obj)
    except TypeError:
        count = obj if isinstance(obj, (int, float)) else 0
    return "s" if count != 1 else ""


def remove_path_in_error_message(inner_msg: str, path: Path) -> str:
    """Remove mentions of *path* from a lower-level error message.

    Example:
        "Invalid JSONC syntax in /abs/.psbundler.jsonc: Expecting value"
        → "Invalid JSONC syntax: Expecting value"
    """
    candidates = [
        f"in {path}",
        f"in '{path}'",
        f"in {path.name}",
        str(path),
        path.name,
    ]
    clean_msg = inner_msg
    for pattern in candidates:
        clean_msg = clean_msg.replace(pattern, "").strip(": ").strip()
    clean_msg = re.sub(r"\s{2,}", " ", clean_msg)
    return re.sub(r"\s*:\s*", ": ", clean_msg)


def flatten_notes(
    notes: str | list[str] | tuple[str, ...] | None, sep: str
) -> str | None:
    """Join release notes into one string. Empty input gives None."""
    if notes is None:
        return None
    if isinstance(notes, str):
        return notes or None
    joined = sep.join(str(n) for n in notes if str(n))
    return joined or None
