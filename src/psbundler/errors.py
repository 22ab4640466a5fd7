# src/psbundler/errors.py
"""Fatal build errors.

Every error aborts the whole run. ``cli.main()`` turns them into a logged
message and a non-zero exit code.
"""

from pathlib import Path


class BundlerError(RuntimeError):
    """Base class for all controlled build failures."""

    code: int = 1


class PathNotFoundError(BundlerError):
    def __init__(self, path: Path | str, what: str = "Source path") -> None:
        self.path = Path(path)
        super().__init__(f"{what} not found: {self.path}")


class ParseError(BundlerError):
    """A script file could not be parsed."""

    def __init__(
        self,
        path: Path | str,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.path = Path(path)
        self.message = message
        self.line = line
        self.column = column
        where = f"{self.path}:{line}:{column}" if line is not None else str(self.path)
        super().__init__(f"Failed to parse {where}: {message}")


class DuplicateDeclarationError(BundlerError):
    """Two files declare a function with the same name."""

    def __init__(
        self, name: str, path: Path | str, first_path: Path | str | None = None
    ) -> None:
        self.name = name
        self.path = Path(path)
        self.first_path = Path(first_path) if first_path is not None else None
        msg = f"Duplicate function name {name!r} in {self.path}"
        if self.first_path is not None:
            msg += f" (already declared in {self.first_path})"
        super().__init__(msg)


class DescriptorLoadError(BundlerError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Could not load module manifest {self.path}: {reason}")


class DescriptorWriteError(BundlerError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Could not write {self.path}: {reason}")


class ConfigError(BundlerError, ValueError):
    """The configuration file or resolved settings are invalid."""
