# src/psbundler/manifest.py
"""Descriptor Reconciler: create or merge the module manifest (``.psd1``).

Only the keys listed in ``OWNED_KEYS`` are computed here. Everything else in
an existing manifest passes through untouched. Keys match case-insensitively
and an existing key keeps its spelling.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from . import psd1
from .constants import (
    DEFAULT_BUNDLE_EXTENSION,
    DEFAULT_MODULE_VERSION,
    OUTPUT_ENCODING,
    RELEASE_NOTES_SEPARATOR,
)
from .errors import DescriptorLoadError, DescriptorWriteError
from .logs import get_app_logger
from .utils import flatten_notes, write_text_atomic
from .versions import VersionFloor


KEY_ROOT_MODULE = "RootModule"
KEY_MODULE_VERSION = "ModuleVersion"
KEY_GUID = "GUID"
KEY_POWERSHELL_VERSION = "PowerShellVersion"
KEY_FUNCTIONS = "FunctionsToExport"
KEY_PRIVATE_DATA = "PrivateData"
KEY_PSDATA = "PSData"
KEY_RELEASE_NOTES = "ReleaseNotes"

OWNED_KEYS = (
    KEY_ROOT_MODULE,
    KEY_POWERSHELL_VERSION,
    KEY_FUNCTIONS,
    f"{KEY_PRIVATE_DATA}.{KEY_PSDATA}.{KEY_RELEASE_NOTES}",
)


# --------------------------------------------------------------------------- #
# Storage
# --------------------------------------------------------------------------- #


class ManifestStore:
    """Load and persist one manifest file.

    Writes go through a temporary sibling file, so a failed write leaves the
    previous manifest in place.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"ManifestStore({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> dict[str, Any]:
        """Read the manifest.

        Raises:
            DescriptorLoadError: If the file is unreadable or not a valid
                PowerShell data file.
        """
        try:
            return psd1.load(self.path)
        except OSError as e:
            raise DescriptorLoadError(self.path, e.strerror or str(e)) from e
        except (UnicodeDecodeError, psd1.DataFileError) as e:
            raise DescriptorLoadError(self.path, str(e)) from e

    def create(self, fields: dict[str, Any]) -> None:
        self._write(fields)

    def update(self, fields: dict[str, Any]) -> None:
        self._write(fields)

    def _write(self, fields: dict[str, Any]) -> None:
        logger = get_app_logger()
        try:
            text = psd1.dumps(fields)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_text_atomic(self.path, text, encoding=OUTPUT_ENCODING)
        except TypeError as e:
            raise DescriptorWriteError(self.path, str(e)) from e
        except OSError as e:
            raise DescriptorWriteError(self.path, e.strerror or str(e)) from e
        logger.debug("[MANIFEST] Wrote %s", self.path)


# --------------------------------------------------------------------------- #
# Reconciliation
# --------------------------------------------------------------------------- #


@dataclass
class ManifestUpdate:
    """The manifest this run will persist, computed before anything is written."""

    path: Path
    is_new: bool
    data: dict[str, Any]
    previous: dict[str, Any] | None
    powershell_version: str
    exported: list[str]
    release_notes: str | None

    @property
    def changed(self) -> bool:
        return self.data != self.previous

    def persist(self, store: ManifestStore) -> None:
        """Create or update the manifest file through *store*."""
        if self.is_new:
            store.create(self.data)
        else:
            store.update(self.data)


def _key(table: dict[str, Any], key: str) -> str:
    """The spelling of *key* already used in *table*, else *key* itself.

    PowerShell hashtable keys are case-insensitive.
    """
    folded = key.casefold()
    return next((k for k in table if k.casefold() == folded), key)


def _get(table: dict[str, Any], key: str) -> Any:
    return table.get(_key(table, key))


def _set(table: dict[str, Any], key: str, value: Any) -> None:
    table[_key(table, key)] = value


def combine_notes(new: str | None, old: str | None) -> str | None:
    """Newest notes first. Either side may be missing."""
    if new and old:
        return f"{new}{RELEASE_NOTES_SEPARATOR}{old}"
    return new or old or None


def _existing_notes(data: dict[str, Any], path: Path) -> str | None:
    psdata = _psdata(data, path, create=False)
    if psdata is None:
        return None
    raw = _get(psdata, KEY_RELEASE_NOTES)
    if raw is None or isinstance(raw, str):
        return raw or None
    if isinstance(raw, list):
        return flatten_notes([str(n) for n in raw], RELEASE_NOTES_SEPARATOR)
    xmsg = f"{KEY_RELEASE_NOTES} must be a string, not {type(raw).__name__}"
    raise DescriptorLoadError(path, xmsg)


def _psdata(
    data: dict[str, Any], path: Path, *, create: bool
) -> dict[str, Any] | None:
    """Return ``PrivateData.PSData``, optionally creating the tables."""
    private = _get(data, KEY_PRIVATE_DATA)
    if private is None:
        if not create:
            return None
        private = {}
        _set(data, KEY_PRIVATE_DATA, private)
    if not isinstance(private, dict):
        xmsg = f"{KEY_PRIVATE_DATA} must be a hashtable"
        raise DescriptorLoadError(path, xmsg)

    psdata = _get(private, KEY_PSDATA)
    if psdata is None:
        if not create:
            return None
        psdata = {}
        _set(private, KEY_PSDATA, psdata)
    if not isinstance(psdata, dict):
        xmsg = f"{KEY_PRIVATE_DATA}.{KEY_PSDATA} must be a hashtable"
        raise DescriptorLoadError(path, xmsg)
    return psdata


def _fresh_manifest(
    *,
    root_module: str,
    module_version: str | None,
    powershell_version: str,
    exported: list[str],
    notes: str | None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        KEY_ROOT_MODULE: root_module,
        KEY_MODULE_VERSION: module_version or DEFAULT_MODULE_VERSION,
        KEY_GUID: str(uuid.uuid4()),
        KEY_POWERSHELL_VERSION: powershell_version,
        KEY_FUNCTIONS: exported,
        "CmdletsToExport": [],
        "VariablesToExport": [],
        "AliasesToExport": [],
    }
    if notes:
        data[KEY_PRIVATE_DATA] = {KEY_PSDATA: {KEY_RELEASE_NOTES: notes}}
    return data


def reconcile_manifest(  # noqa: PLR0913
    store: ManifestStore,
    *,
    name: str,
    floor: VersionFloor,
    public_names: Sequence[str],
    notes: str | None = None,
    module_version: str | None = None,
) -> ManifestUpdate:
    """Work out the manifest for this run without writing anything.

    Create path: a fresh manifest from this run's values.

    Merge path: the existing manifest with ``FunctionsToExport`` replaced,
    ``PowerShellVersion`` raised (never lowered) and *notes* prepended to the
    existing release notes. *floor* is raised in place by the existing
    manifest's version.

    Raises:
        DescriptorLoadError: If the existing manifest cannot be read or its
            owned keys hold values of the wrong shape.
    """
    logger = get_app_logger()
    root_module = f"{name}{DEFAULT_BUNDLE_EXTENSION}"
    exported = list(public_names)

    if not store.exists():
        logger.debug("[MANIFEST] No manifest at %s; creating one", store.path)
        data = _fresh_manifest(
            root_module=root_module,
            module_version=module_version,
            powershell_version=str(floor),
            exported=exported,
            notes=notes,
        )
        return ManifestUpdate(
            path=store.path,
            is_new=True,
            data=data,
            previous=None,
            powershell_version=str(floor),
            exported=exported,
            release_notes=notes,
        )

    previous = store.load()
    logger.debug("[MANIFEST] Merging into existing manifest %s", store.path)
    data = copy.deepcopy(previous)

    existing_version = _get(previous, KEY_POWERSHELL_VERSION)
    if existing_version is not None:
        try:
            floor.observe(str(existing_version), source=store.path.name)
        except ValueError as e:
            xmsg = f"invalid {KEY_POWERSHELL_VERSION} {existing_version!r}"
            raise DescriptorLoadError(store.path, xmsg) from e

    combined = combine_notes(notes, _existing_notes(previous, store.path))

    _set(data, KEY_ROOT_MODULE, root_module)
    _set(data, KEY_POWERSHELL_VERSION, str(floor))
    _set(data, KEY_FUNCTIONS, exported)
    if module_version:
        _set(data, KEY_MODULE_VERSION, module_version)
    if notes:
        psdata = _psdata(data, store.path, create=True)
        if psdata is not None:
            _set(psdata, KEY_RELEASE_NOTES, combined)

    still_exported = {n.casefold() for n in exported}
    removed = [
        n
        for n in _as_name_list(_get(previous, KEY_FUNCTIONS))
        if n.casefold() not in still_exported
    ]
    if removed:
        logger.info(
            "Dropping %d function(s) no longer in the source from"
            " FunctionsToExport: %s",
            len(removed),
            ", ".join(removed),
        )

    return ManifestUpdate(
        path=store.path,
        is_new=False,
        data=data,
        previous=previous,
        powershell_version=str(floor),
        exported=exported,
        release_notes=combined,
    )


def _as_name_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    return []
