# src/psbundler/__init__.py

"""PSBundler: bundle PowerShell scripts into a script module.

Full developer API
==================
This package re-exports the public symbols of its submodules, making it
suitable for programmatic use and custom integrations. Anything prefixed
with "_" is considered internal and may change.

Highlights:
    - main()                  → CLI entrypoint
    - run_build()             → Execute a resolved build configuration
    - resolve_config()        → Merge CLI args with config files
    - collect_sources()       → Find and read a module's script files
    - extract_declarations()  → Top-level functions of one file
    - reconcile_manifest()    → Create or merge the module manifest
"""

from .actions import watch_for_changes
from .build import BuildResult, run_build
from .bundle import render_bundle, verify_bundle, write_bundle
from .cli import main
from .collect import SourceFile, SourceSet, collect_sources, find_source_paths
from .config import (
    BuildConfig,
    BuildConfigResolved,
    find_config,
    load_and_validate_config,
    load_config,
    resolve_config,
    validate_config,
)
from .errors import (
    BundlerError,
    ConfigError,
    DescriptorLoadError,
    DescriptorWriteError,
    DuplicateDeclarationError,
    ParseError,
    PathNotFoundError,
)
from .extract import Declaration, Extraction, extract_declarations
from .logs import get_app_logger
from .manifest import ManifestStore, ManifestUpdate, reconcile_manifest
from .meta import PROGRAM_DISPLAY, PROGRAM_PACKAGE, Metadata, get_metadata
from .ps_parser import ScriptSyntaxError, parse_script
from .registry import NameRegistry
from .versions import VersionFloor, format_version, parse_version


__all__ = [  # noqa: RUF022
    # actions
    "watch_for_changes",
    # build
    "BuildResult",
    "run_build",
    # bundle
    "render_bundle",
    "verify_bundle",
    "write_bundle",
    # cli
    "main",
    # collect
    "SourceFile",
    "SourceSet",
    "collect_sources",
    "find_source_paths",
    # config
    "BuildConfig",
    "BuildConfigResolved",
    "find_config",
    "load_and_validate_config",
    "load_config",
    "resolve_config",
    "validate_config",
    # errors
    "BundlerError",
    "ConfigError",
    "DescriptorLoadError",
    "DescriptorWriteError",
    "DuplicateDeclarationError",
    "ParseError",
    "PathNotFoundError",
    # extract
    "Declaration",
    "Extraction",
    "extract_declarations",
    # logs
    "get_app_logger",
    # manifest
    "ManifestStore",
    "ManifestUpdate",
    "reconcile_manifest",
    # meta
    "PROGRAM_DISPLAY",
    "PROGRAM_PACKAGE",
    "Metadata",
    "get_metadata",
    # ps_parser
    "ScriptSyntaxError",
    "parse_script",
    # registry
    "NameRegistry",
    # versions
    "VersionFloor",
    "format_version",
    "parse_version",
]
