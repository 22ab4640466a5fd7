# src/psbundler/bundle.py
"""Bundle Writer: concatenate collected files into ``<name>.psm1``."""

from collections.abc import Sequence
from pathlib import Path

from .collect import SourceFile
from .constants import OUTPUT_ENCODING
from .errors import BundlerError, DescriptorWriteError, ParseError
from .extract import top_level_functions
from .logs import get_app_logger
from .ps_parser import ScriptSyntaxError, parse_script
from .utils import write_text_atomic


def render_bundle(files: Sequence[SourceFile]) -> str:
    """Concatenate file contents in the given order.

    Contents are copied verbatim. A newline is inserted after a file that
    does not end with one, so its last line cannot run into the next file.
    """
    parts: list[str] = []
    for f in files:
        parts.append(f.text)
        if f.text and not f.text.endswith(("\n", "\r")):
            parts.append("\n")
    return "".join(parts)


def verify_bundle(
    text: str, expected_names: Sequence[str], bundle_path: Path
) -> None:
    """Re-parse the rendered bundle and compare its top-level functions.

    Raises:
        ParseError: If the bundle text no longer parses.
        BundlerError: If the functions found differ from *expected_names*.
    """
    logger = get_app_logger()
    try:
        tree = parse_script(text)
    except ScriptSyntaxError as e:
        raise ParseError(
            bundle_path, e.message, line=e.line, column=e.column
        ) from e

    found = [fn.name for fn in top_level_functions(tree)]
    if [n.casefold() for n in found] != [n.casefold() for n in expected_names]:
        missing = [n for n in expected_names if n not in found]
        extra = [n for n in found if n not in expected_names]
        xmsg = (
            f"Bundle verification failed for {bundle_path}:"
            f" expected {len(expected_names)} top-level functions,"
            f" found {len(found)} (missing: {missing or 'none'},"
            f" unexpected: {extra or 'none'})"
        )
        raise BundlerError(xmsg)
    logger.trace(f"[BUNDLE] Verified {len(found)} top-level functions")


def write_bundle(text: str, path: Path) -> None:
    """Create or overwrite the bundle at *path*.

    Raises:
        DescriptorWriteError: On any I/O failure.
    """
    logger = get_app_logger()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text_atomic(path, text, encoding=OUTPUT_ENCODING)
    except OSError as e:
        raise DescriptorWriteError(path, e.strerror or str(e)) from e
    logger.debug("[BUNDLE] Wrote %s", path)
