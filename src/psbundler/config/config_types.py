# src/psbundler/config/config_types.py


from pathlib import Path
from typing import Literal, TypedDict

from typing_extensions import NotRequired


OriginType = Literal["cli", "config", "default", "code", "test"]


class BuildConfig(TypedDict, total=False):
    """Raw settings as written in a config file. Every key is optional."""

    source: str
    target: str
    name: str
    notes: str | list[str]
    exclude: list[str]  # replaces the default exclusions
    add_exclude: list[str]  # extends them
    script_extension: str
    preamble: str
    private_dir: str
    min_powershell_version: str | float
    module_version: str
    log_level: str
    strict_config: bool
    watch_interval: float


class MetaBuildConfigResolved(TypedDict):
    # sources of parameters
    cli_root: Path
    config_root: Path
    config_path: Path | None
    source_origin: OriginType


# Resolved types - all fields are guaranteed to be present with final values
class BuildConfigResolved(TypedDict):
    source: Path
    target: Path
    name: str
    notes: list[str]
    exclude: list[str]
    script_extension: str
    preamble: str
    private_dir: str
    min_powershell_version: str
    module_version: str | None  # None keeps whatever the manifest has
    log_level: str
    strict_config: bool
    watch_interval: float
    dry_run: bool

    # meta only
    __meta__: NotRequired[MetaBuildConfigResolved]
