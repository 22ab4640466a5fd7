# src/psbundler/extract.py
"""Declaration Extractor: top-level functions and version requirements."""

from dataclasses import dataclass, field

from .collect import SourceFile
from .errors import ParseError
from .logs import get_app_logger
from .ps_parser import (
    FunctionDefinitionAst,
    ScriptBlockAst,
    ScriptSyntaxError,
    is_function_definition,
    parse_script,
)
from .utils import plural
from .versions import Version, parse_version


@dataclass(frozen=True)
class Declaration:
    name: str
    private: bool
    # diagnostics only
    source_file: SourceFile = field(compare=False, repr=False)
    line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Extraction:
    """Everything one file contributes to the build."""

    source_file: SourceFile
    declarations: tuple[Declaration, ...]
    required_version: Version | None


def parse_source(source: SourceFile) -> ScriptBlockAst:
    """Parse a collected file, naming it in any syntax error.

    Raises:
        ParseError: If the file is not valid PowerShell.
    """
    try:
        return parse_script(source.text)
    except ScriptSyntaxError as e:
        raise ParseError(
            source.path, e.message, line=e.line, column=e.column
        ) from e


def top_level_functions(tree: ScriptBlockAst) -> list[FunctionDefinitionAst]:
    """Function definitions not nested inside another script block."""
    return [
        node
        for node in tree.find_all(is_function_definition, recursive=False)
        if isinstance(node, FunctionDefinitionAst)
    ]


def extract_declarations(source: SourceFile) -> Extraction:
    """Parse *source* and list its top-level declarations in source order."""
    logger = get_app_logger()
    tree = parse_source(source)

    declarations = tuple(
        Declaration(
            name=fn.name,
            private=source.is_private,
            source_file=source,
            line=fn.line,
        )
        for fn in top_level_functions(tree)
    )

    raw_version = tree.requirements.required_version if tree.requirements else None
    required = parse_version(raw_version) if raw_version else None

    logger.trace(
        f"[EXTRACT] {source.rel_path}: {len(declarations)}"
        f" declaration{plural(declarations)}"
        + (f", requires {raw_version}" if raw_version else "")
    )
    return Extraction(
        source_file=source,
        declarations=declarations,
        required_version=required,
    )
