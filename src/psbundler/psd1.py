# src/psbundler/psd1.py
"""Read and write PowerShell data files (``.psd1``).

Only the restricted data language used by module manifests is supported:
hashtables, arrays, quoted strings and here-strings, numbers and the
``$true``/``$false``/``$null`` constants. Anything executable is rejected.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any

from .ps_parser import SINGLE_QUOTES, ScriptSyntaxError, Token, tokenize


_NUMBER_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")
_BARE_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_QUOTE_RE = re.compile(f"[{SINGLE_QUOTES}]")
_CONSTANTS: dict[str, Any] = {"true": True, "false": False, "null": None}

INDENT = "    "


class DataFileError(ValueError):
    """The text is not a valid PowerShell data file."""


# --------------------------------------------------------------------------- #
# Reading
# --------------------------------------------------------------------------- #


class _Reader:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.index = 0

    def _error(self, message: str, token: Token | None) -> DataFileError:
        if token is None:
            return DataFileError(f"{message} (at end of file)")
        return DataFileError(
            f"{message} (line {token.line}, column {token.column})"
        )

    def peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def take(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise self._error("Unexpected end of data", None)
        self.index += 1
        return tok

    def skip_separators(self, *, semicolons: bool = True) -> None:
        kinds = ("newline", "semi") if semicolons else ("newline",)
        while (tok := self.peek()) is not None and tok.kind in kinds:
            self.index += 1

    def read_document(self) -> dict[str, Any]:
        self.skip_separators()
        tok = self.take()
        if tok.kind != "open" or tok.text != "@{":
            xmsg = "Data file must contain a single hashtable '@{ ... }'"
            raise self._error(xmsg, tok)
        result = self.read_hashtable()
        self.skip_separators()
        trailing = self.peek()
        if trailing is not None:
            raise self._error(f"Unexpected content '{trailing.text}'", trailing)
        return result

    def read_hashtable(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        while True:
            self.skip_separators()
            tok = self.take()
            if tok.kind == "close" and tok.text == "}":
                return result
            if tok.kind == "word":
                key = tok.text
            elif tok.kind == "string":
                key = tok.value
            else:
                raise self._error(f"Expected a key, found '{tok.text}'", tok)

            eq = self.take()
            if eq.kind != "operator" or eq.text != "=":
                raise self._error(f"Expected '=' after key '{key}'", eq)
            result[key] = self.read_expression()

            end = self.peek()
            if end is None:
                raise self._error("Missing closing '}'", None)
            if end.kind not in ("newline", "semi", "close"):
                raise self._error(f"Unexpected token '{end.text}'", end)

    def read_expression(self) -> Any:
        """Read one value, or a comma-separated list of values."""
        first = self.read_value()
        items = [first]
        while (tok := self.peek()) is not None and (tok.kind, tok.text) == (
            "operator",
            ",",
        ):
            self.index += 1
            self.skip_separators(semicolons=False)
            items.append(self.read_value())
        return items if len(items) > 1 else first

    def read_array(self) -> list[Any]:
        items: list[Any] = []
        while True:
            self.skip_separators()
            tok = self.peek()
            if tok is None:
                raise self._error("Missing closing ')'", None)
            if tok.kind == "close" and tok.text == ")":
                self.index += 1
                return items
            value = self.read_expression()
            if isinstance(value, list) and not isinstance(value, _NestedArray):
                items.extend(value)
            else:
                items.append(value)

    def read_value(self) -> Any:  # noqa: PLR0911
        tok = self.take()
        if tok.kind == "string":
            return tok.value
        if tok.kind == "variable":
            name = tok.value.lower()
            if name in _CONSTANTS:
                return _CONSTANTS[name]
            raise self._error(f"Variables are not allowed: '{tok.text}'", tok)
        if tok.kind == "open" and tok.text == "@{":
            return self.read_hashtable()
        if tok.kind == "open" and tok.text == "@(":
            return _NestedArray(self.read_array())
        if tok.kind == "word":
            if _NUMBER_RE.match(tok.text):
                return int(tok.text)
            if _FLOAT_RE.match(tok.text):
                return float(tok.text)
        raise self._error(f"Unsupported value '{tok.text}'", tok)


class _NestedArray(list):  # type: ignore[type-arg]
    """Marks a list that came from an explicit ``@( )``."""


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def loads(text: str) -> dict[str, Any]:
    """Parse the text of a data file into a dict.

    Raises:
        DataFileError: If the text is not a valid data file.
    """
    try:
        tokens = [t for t in tokenize(text) if t.kind != "comment"]
    except ScriptSyntaxError as e:
        raise DataFileError(str(e)) from e
    return _plain(_Reader(tokens).read_document())


def load(path: Path) -> dict[str, Any]:
    return loads(path.read_text(encoding="utf-8-sig"))


# --------------------------------------------------------------------------- #
# Writing
# --------------------------------------------------------------------------- #


def _quote(value: str) -> str:
    return "'" + _QUOTE_RE.sub(lambda m: m.group() * 2, value) + "'"


def _format_key(key: str) -> str:
    return key if _BARE_KEY_RE.match(key) else _quote(key)


def _format_value(value: Any, depth: int) -> str:  # noqa: PLR0911
    pad = INDENT * depth
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, float) and not math.isfinite(value):
        xmsg = f"Cannot write non-finite number {value!r} to a data file"
        raise TypeError(xmsg)
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, (list, tuple)):
        if not value:
            return "@()"
        inner = "\n".join(
            f"{pad}{INDENT}{_format_value(item, depth + 1)}" for item in value
        )
        return f"@(\n{inner}\n{pad})"
    if isinstance(value, dict):
        if not value:
            return "@{}"
        lines = [
            f"{pad}{INDENT}{_format_key(str(k))} = {_format_value(v, depth + 1)}"
            for k, v in value.items()
        ]
        return "@{\n" + "\n".join(lines) + f"\n{pad}}}"
    xmsg = f"Cannot write value of type {type(value).__name__} to a data file"
    raise TypeError(xmsg)


def dumps(data: dict[str, Any]) -> str:
    """Render *data* as data file text. Key order is preserved."""
    return _format_value(data, 0) + "\n"


def dump(data: dict[str, Any], path: Path) -> None:
    path.write_text(dumps(data), encoding="utf-8")
