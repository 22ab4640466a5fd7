# src/psbundler/build.py

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .bundle import render_bundle, verify_bundle, write_bundle
from .collect import SourceSet, collect_sources
from .config import BuildConfigResolved
from .constants import (
    DEFAULT_BUNDLE_EXTENSION,
    DEFAULT_DRY_RUN,
    DEFAULT_MANIFEST_EXTENSION,
    RELEASE_NOTES_SEPARATOR,
)
from .extract import extract_declarations
from .logs import get_app_logger
from .manifest import ManifestStore, ManifestUpdate, reconcile_manifest
from .registry import NameRegistry
from .utils import flatten_notes, plural
from .versions import VersionFloor


@dataclass
class BuildResult:
    """What a build produced (or, on a dry run, would have produced)."""

    name: str
    source: Path
    target: Path
    bundle_path: Path
    manifest_path: Path
    powershell_version: str
    public_names: list[str]
    private_names: list[str]
    release_notes: str | None
    files: list[Path] = field(default_factory=list)
    manifest_created: bool = False
    dry_run: bool = False

    def as_dict(self) -> dict[str, Any]:
        """JSON-serializable summary, as printed by ``--emit-summary``."""
        return {
            "name": self.name,
            "source": str(self.source),
            "target": str(self.target),
            "manifest": str(self.manifest_path),
            "bundle": str(self.bundle_path),
            "powershell_version": self.powershell_version,
            "public_functions": list(self.public_names),
            "private_functions": list(self.private_names),
            "release_notes": self.release_notes,
            "files": [str(p) for p in self.files],
            "manifest_created": self.manifest_created,
            "dry_run": self.dry_run,
        }


def output_paths(resolved: BuildConfigResolved) -> tuple[Path, Path]:
    """Return (bundle path, manifest path) for a resolved config."""
    target = resolved["target"]
    name = resolved["name"]
    return (
        target / f"{name}{DEFAULT_BUNDLE_EXTENSION}",
        target / f"{name}{DEFAULT_MANIFEST_EXTENSION}",
    )


def _register_sources(
    sources: SourceSet, floor: VersionFloor, registry: NameRegistry
) -> list[str]:
    """Parse every file in bundle order, feeding the registry and the floor.

    Returns the names the rendered bundle must define at top level, in
    order. Preamble functions claim their names in the registry but are
    never exported.
    """
    logger = get_app_logger()
    expected: list[str] = []
    preamble_ids = {id(f) for f in sources.preamble}
    for source_file in sources.files:
        extraction = extract_declarations(source_file)
        floor.observe(extraction.required_version, source=source_file.rel_path)
        names = [d.name for d in extraction.declarations]
        expected.extend(names)
        if id(source_file) in preamble_ids:
            registry.register_all(extraction.declarations, preamble=True)
            logger.debug(
                "Preamble %s parsed (%d function%s, not exported)",
                source_file.rel_path,
                len(names),
                plural(names),
            )
            continue
        registry.register_all(extraction.declarations)
    return expected


def run_build(build_cfg: BuildConfigResolved) -> BuildResult:
    """Execute a build using a fully resolved config.

    Every file is parsed and registered and the manifest is reconciled
    before anything is written, so a parse error, duplicate name or
    unreadable manifest leaves the target untouched.
    """
    logger = get_app_logger()
    dry_run = build_cfg.get("dry_run", DEFAULT_DRY_RUN)
    name = build_cfg["name"]
    source = build_cfg["source"]
    target = build_cfg["target"]
    bundle_path, manifest_path = output_paths(build_cfg)

    logger.info("📦 Building module %s from %s", name, source)

    # --- collect ---
    sources = collect_sources(
        source,
        script_extension=build_cfg["script_extension"],
        preamble_name=build_cfg["preamble"],
        exclude=build_cfg["exclude"],
        private_dir=build_cfg["private_dir"],
        skip=[bundle_path, manifest_path],
    )
    if not sources.scripts:
        logger.warning(
            "No %s files found under %s", build_cfg["script_extension"], source
        )

    # --- parse, register, aggregate ---
    floor = VersionFloor.starting_at(build_cfg["min_powershell_version"])
    registry = NameRegistry()
    expected_names = _register_sources(sources, floor, registry)
    logger.info(
        "🔎 %d function%s (%d public, %d private) in %d file%s",
        len(registry),
        plural(len(registry)),
        len(registry.public_names()),
        len(registry.private_names()),
        len(sources.files),
        plural(sources.files),
    )

    # --- reconcile (read only) ---
    store = ManifestStore(manifest_path)
    update: ManifestUpdate = reconcile_manifest(
        store,
        name=name,
        floor=floor,
        public_names=registry.public_names(),
        notes=flatten_notes(build_cfg["notes"], RELEASE_NOTES_SEPARATOR),
        module_version=build_cfg["module_version"],
    )

    # --- render and self-check ---
    bundle_text = render_bundle(sources.files)
    verify_bundle(bundle_text, expected_names, bundle_path)

    result = BuildResult(
        name=name,
        source=source,
        target=target,
        bundle_path=bundle_path,
        manifest_path=manifest_path,
        powershell_version=update.powershell_version,
        public_names=registry.public_names(),
        private_names=registry.private_names(),
        release_notes=update.release_notes,
        files=sources.paths(),
        manifest_created=update.is_new,
        dry_run=dry_run,
    )

    if dry_run:
        logger.info("🧪 (dry-run) Would write bundle: %s", bundle_path)
        logger.info(
            "🧪 (dry-run) Would %s manifest: %s",
            "create" if update.is_new else "update",
            manifest_path,
        )
        return result

    # --- write ---
    if not target.exists():
        logger.debug("Creating target directory %s", target)
    write_bundle(bundle_text, bundle_path)
    update.persist(store)
    logger.info(
        "✅ Built %s (PowerShell %s) → %s",
        name,
        update.powershell_version,
        target,
    )
    return result
