# src/psbundler/collect.py
"""Source Collector: find the script files that make up a module."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    DEFAULT_EXCLUDE,
    DEFAULT_PREAMBLE_NAME,
    DEFAULT_PRIVATE_DIR,
    DEFAULT_SCRIPT_EXTENSION,
)
from .errors import ParseError, PathNotFoundError
from .logs import get_app_logger
from .utils import has_path_segment, is_excluded_raw, plural, relative_posix


@dataclass(frozen=True)
class SourceFile:
    """One script file, read once and never modified."""

    path: Path
    text: str
    rel_path: str
    is_private: bool


@dataclass(frozen=True)
class SourceSet:
    root: Path
    preamble: tuple[SourceFile, ...]
    scripts: tuple[SourceFile, ...]

    @property
    def files(self) -> tuple[SourceFile, ...]:
        """Preamble first, then scripts: the single order used everywhere."""
        return self.preamble + self.scripts

    def paths(self) -> list[Path]:
        return [f.path for f in self.files]


def sort_key(path: Path) -> str:
    """Ordinal order of the full posix path, identical on every OS."""
    return path.as_posix()


def read_source_file(path: Path, root: Path, private_dir: str) -> SourceFile:
    """Read *path* verbatim (line endings untouched, BOM dropped)."""
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ParseError(path, f"not valid UTF-8 text ({e.reason})") from e
    return SourceFile(
        path=path,
        text=text,
        rel_path=relative_posix(path, root),
        is_private=has_path_segment(path, private_dir, root),
    )


def find_source_paths(
    root: Path,
    *,
    script_extension: str = DEFAULT_SCRIPT_EXTENSION,
    preamble_name: str = DEFAULT_PREAMBLE_NAME,
    exclude: list[str] | None = None,
    skip: Iterable[Path] = (),
) -> tuple[list[Path], list[Path]]:
    """Return sorted (preamble paths, script paths) under *root* without
    reading them.

    Raises:
        PathNotFoundError: If *root* does not exist or is not a directory.
    """
    logger = get_app_logger()
    root = Path(root).resolve()
    if not root.is_dir():
        raise PathNotFoundError(root, "Source directory")

    patterns = list(DEFAULT_EXCLUDE if exclude is None else exclude)
    skipped = {Path(p).resolve() for p in skip}
    extension = script_extension.casefold()
    preamble_key = preamble_name.casefold()

    preamble_paths: list[Path] = []
    script_paths: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file() or path.resolve() in skipped:
            continue
        is_preamble = path.name.casefold() == preamble_key
        if not is_preamble and not path.name.casefold().endswith(extension):
            continue
        if is_excluded_raw(path, patterns, root):
            logger.trace(f"[COLLECT] Excluded {relative_posix(path, root)}")
            continue
        (preamble_paths if is_preamble else script_paths).append(path)

    return sorted(preamble_paths, key=sort_key), sorted(script_paths, key=sort_key)


def collect_sources(  # noqa: PLR0913
    root: Path,
    *,
    script_extension: str = DEFAULT_SCRIPT_EXTENSION,
    preamble_name: str = DEFAULT_PREAMBLE_NAME,
    exclude: list[str] | None = None,
    private_dir: str = DEFAULT_PRIVATE_DIR,
    skip: Iterable[Path] = (),
) -> SourceSet:
    """Walk *root* and return its preamble and script files, sorted by path.

    A file named *preamble_name* (case-insensitive) is a preamble file and is
    never also returned as a script. Exclude patterns apply to both lists and
    are matched against the path relative to *root*. Paths in *skip* (build
    outputs living inside the source tree) are ignored.

    Raises:
        PathNotFoundError: If *root* does not exist or is not a directory.
        ParseError: If a collected file is not valid UTF-8.
    """
    logger = get_app_logger()
    root = Path(root).resolve()
    preamble_paths, script_paths = find_source_paths(
        root,
        script_extension=script_extension,
        preamble_name=preamble_name,
        exclude=exclude,
        skip=skip,
    )
    preamble = tuple(read_source_file(p, root, private_dir) for p in preamble_paths)
    scripts = tuple(read_source_file(p, root, private_dir) for p in script_paths)

    logger.debug(
        "[COLLECT] %d script file%s, %d preamble file%s under %s",
        len(scripts),
        plural(scripts),
        len(preamble),
        plural(preamble),
        root,
    )
    for f in (*preamble, *scripts):
        logger.trace(
            f"[COLLECT]   {f.rel_path}{' (private)' if f.is_private else ''}"
        )
    return SourceSet(root=root, preamble=preamble, scripts=scripts)
