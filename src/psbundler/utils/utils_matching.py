# src/psbundler/utils/utils_matching.py

import re
from functools import lru_cache
from pathlib import Path

from psbundler.logs import get_app_logger


@lru_cache(maxsize=512)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an exclude pattern as a case-insensitive regex.

    Plain keywords ("tests") are valid regexes that match as substrings.
    A pattern that is not a valid regex is matched literally.
    """
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(pattern), re.IGNORECASE)


def relative_posix(path: Path, root: Path) -> str:
    """Return *path* relative to *root* with forward slashes.

    Falls back to the full path when *path* lies outside *root*.
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        rel = path
    return str(rel).replace("\\", "/")


def is_excluded_raw(
    path: Path | str, exclude_patterns: list[str], root: Path | str
) -> bool:
    """Return True if any pattern matches *path* relative to *root*.

    Matching is case-insensitive and unanchored, so a keyword matches
    anywhere in the relative path.
    """
    logger = get_app_logger()
    rel = relative_posix(Path(path), Path(root))
    for pattern in exclude_patterns:
        if _compile_pattern(pattern).search(rel):
            logger.trace(f"[is_excluded_raw] {rel} MATCHED pattern {pattern!r}")
            return True
    return False


def has_path_segment(path: Path | str, segment: str, root: Path | str) -> bool:
    """Return True if any directory of *path* below *root* is named *segment*.

    Comparison is case-insensitive; the file name itself is not considered.
    """
    rel = relative_posix(Path(path), Path(root))
    wanted = segment.casefold()
    return any(part.casefold() == wanted for part in rel.split("/")[:-1])
