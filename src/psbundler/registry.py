# src/psbundler/registry.py
"""Name Registry: one flat namespace per bundle."""

from collections.abc import Iterable

from .errors import DuplicateDeclarationError
from .extract import Declaration
from .logs import get_app_logger


class NameRegistry:
    """Declarations keyed by name, in first-seen order.

    Registering a name twice raises ``DuplicateDeclarationError``; nothing is
    ever overwritten. PowerShell command names are case-insensitive, so
    ``Get-Foo`` and ``get-foo`` collide.

    Preamble functions claim their names too, but appear in neither the
    public nor the private view.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Declaration] = {}
        self._preamble: set[str] = set()

    def register(self, declaration: Declaration, *, preamble: bool = False) -> None:
        logger = get_app_logger()
        key = declaration.name.casefold()
        existing = self._entries.get(key)
        if existing is not None:
            raise DuplicateDeclarationError(
                declaration.name,
                declaration.source_file.path,
                existing.source_file.path,
            )
        self._entries[key] = declaration
        if preamble:
            self._preamble.add(key)
            kind = "preamble"
        else:
            kind = "private" if declaration.private else "public"
        logger.trace(f"[REGISTRY] {declaration.name} ({kind})")

    def register_all(
        self, declarations: Iterable[Declaration], *, preamble: bool = False
    ) -> None:
        for declaration in declarations:
            self.register(declaration, preamble=preamble)

    def __len__(self) -> int:
        return len(self._entries) - len(self._preamble)

    def _module_entries(self) -> list[Declaration]:
        return [d for k, d in self._entries.items() if k not in self._preamble]

    def public_names(self) -> list[str]:
        return [d.name for d in self._module_entries() if not d.private]

    def private_names(self) -> list[str]:
        return [d.name for d in self._module_entries() if d.private]
