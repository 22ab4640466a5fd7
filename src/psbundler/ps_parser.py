# src/psbundler/ps_parser.py
"""Structural parser for PowerShell source.

This is not a full PowerShell grammar. It tokenizes the language precisely
enough to never confuse code with comments, strings, here-strings or
subexpressions embedded in strings, then builds a tree of nested blocks:

- ``ScriptBlockAst``: the file itself, function bodies and ``{ }`` script
  block literals.
- ``StatementBlockAst``: bodies of ``if``/``foreach``/``try``/... statements.
- ``GroupAst``: parentheses, ``$( )``, ``@( )``, ``@{ }`` and ``[ ]``.
- ``FunctionDefinitionAst``: ``function``/``filter``/``workflow`` definitions.

``#Requires`` comments are collected into ``ScriptBlockAst.requirements``.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Literal

from .versions import parse_version


TokenKind = Literal[
    "word",
    "string",
    "variable",
    "open",
    "close",
    "operator",
    "newline",
    "semi",
    "pipe",
    "comment",
]

FUNCTION_KEYWORDS = frozenset({"function", "filter", "workflow"})

# Keywords whose following ``{ }`` is a statement block, not a script block.
STATEMENT_KEYWORDS = frozenset(
    {
        "if",
        "elseif",
        "else",
        "while",
        "until",
        "for",
        "foreach",
        "do",
        "switch",
        "try",
        "catch",
        "finally",
        "trap",
        "data",
        "begin",
        "process",
        "end",
        "clean",
        "dynamicparam",
        "parallel",
        "sequence",
    }
)

# ASCII apostrophe plus the typographic single quotes PowerShell also accepts.
SINGLE_QUOTES = "'\u2018\u2019\u201a\u201b"

CLOSERS = {"{": "}", "@{": "}", "(": ")", "$(": ")", "@(": ")", "[": "]"}

_WORD_STOP = frozenset(" \t\f\v\r\n{}()[];,|=\"" + SINGLE_QUOTES)
_VARIABLE_CHARS = re.compile(r"[A-Za-z0-9_:?]")
_VERSION_RE = re.compile(r"^\d+(\.\d+){0,3}$")
_REQUIRES_RE = re.compile(r"^#requires\s+(?P<body>.*)$", re.IGNORECASE)
_BACKTICK_ESCAPES = {
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}


class ScriptSyntaxError(ValueError):
    """Raised when source text cannot be parsed. Line and column are 1-based."""

    def __init__(self, message: str, line: int, column: int) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} (line {line}, column {column})")


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int
    value: str = ""


# --------------------------------------------------------------------------- #
# Lexer
# --------------------------------------------------------------------------- #


class Lexer:
    """Split PowerShell source into tokens, skipping whitespace.

    Comments are returned as ``comment`` tokens so callers can look for
    ``#Requires``; the parser drops them.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._line_starts = [0]
        self._line_starts.extend(m.end() for m in re.finditer("\n", text))

    def location(self, offset: int) -> tuple[int, int]:
        index = bisect.bisect_right(self._line_starts, offset) - 1
        return index + 1, offset - self._line_starts[index] + 1

    def error(self, message: str, offset: int) -> ScriptSyntaxError:
        line, column = self.location(offset)
        return ScriptSyntaxError(message, line, column)

    def tokens(self) -> Iterator[Token]:
        i = 0
        n = len(self.text)
        while i < n:
            token, i = self._next_token(i)
            if token is not None:
                yield token

    def _make(
        self, kind: TokenKind, start: int, end: int, value: str = ""
    ) -> Token:
        line, column = self.location(start)
        return Token(kind, self.text[start:end], line, column, value)

    def _next_token(self, i: int) -> tuple[Token | None, int]:  # noqa: C901, PLR0911, PLR0912
        text = self.text
        ch = text[i]
        nxt = text[i + 1] if i + 1 < len(text) else ""

        if ch in " \t\f\v\r\ufeff":
            return None, i + 1
        if ch == "\n":
            return self._make("newline", i, i + 1), i + 1
        if ch == "`" and nxt in ("\n", "\r"):
            # line continuation
            end = i + 2 if nxt == "\n" or text[i + 2 : i + 3] != "\n" else i + 3
            return None, end

        if ch == "<" and nxt == "#":
            end = text.find("#>", i + 2)
            if end == -1:
                raise self.error("Unterminated block comment", i)
            return self._make("comment", i, end + 2), end + 2
        if ch == "#":
            end = text.find("\n", i)
            end = len(text) if end == -1 else end
            return self._make("comment", i, end), end

        if ch in SINGLE_QUOTES:
            return self._single_quoted(i)
        if ch == '"':
            return self._double_quoted(i)
        if ch == "@" and nxt in ("'", '"'):
            return self._here_string(i)

        if ch in "$@" and nxt == "(":
            return self._make("open", i, i + 2), i + 2
        if ch == "@" and nxt == "{":
            return self._make("open", i, i + 2), i + 2
        if ch == "$":
            return self._variable(i)
        if ch in "{([":
            return self._make("open", i, i + 1), i + 1
        if ch in "})]":
            return self._make("close", i, i + 1), i + 1
        if ch == ";":
            return self._make("semi", i, i + 1), i + 1
        if ch == "|":
            end = i + 2 if nxt == "|" else i + 1
            return self._make("pipe", i, end), end
        if ch in ",=":
            return self._make("operator", i, i + 1), i + 1

        return self._word(i)

    def _word(self, start: int) -> tuple[Token, int]:
        text = self.text
        i = start
        n = len(text)
        while i < n:
            ch = text[i]
            if ch == "`":
                i += 2
                continue
            if ch in _WORD_STOP and i > start:
                break
            if ch == "$" and i > start and text[i + 1 : i + 2] in ("(", "{"):
                break
            i += 1
        end = min(i, n)
        return self._make("word", start, end, text[start:end]), end

    def _variable(self, start: int) -> tuple[Token, int]:
        text = self.text
        if text[start + 1 : start + 2] == "{":
            i = start + 2
            while i < len(text) and text[i] != "}":
                i += 2 if text[i] == "`" else 1
            if i >= len(text):
                raise self.error("Unterminated braced variable name", start)
            return self._make("variable", start, i + 1, text[start + 2 : i]), i + 1

        i = start + 1
        if i < len(text) and text[i] in "$^?_":
            i += 1
        while i < len(text) and _VARIABLE_CHARS.match(text[i]):
            i += 1
        return self._make("variable", start, i, text[start + 1 : i]), i

    def _single_quoted(self, start: int) -> tuple[Token, int]:
        text = self.text
        i = start + 1
        parts: list[str] = []
        while i < len(text):
            ch = text[i]
            if ch in SINGLE_QUOTES:
                nxt = text[i + 1 : i + 2]
                if nxt and nxt in SINGLE_QUOTES:
                    parts.append(ch)
                    i += 2
                    continue
                return self._make("string", start, i + 1, "".join(parts)), i + 1
            parts.append(ch)
            i += 1
        raise self.error("Unterminated string", start)

    def _double_quoted(self, start: int) -> tuple[Token, int]:
        text = self.text
        i = start + 1
        parts: list[str] = []
        while i < len(text):
            ch = text[i]
            nxt = text[i + 1 : i + 2]
            if ch == "`" and nxt:
                parts.append(_BACKTICK_ESCAPES.get(nxt, nxt))
                i += 2
            elif ch == '"':
                if nxt == '"':
                    parts.append('"')
                    i += 2
                    continue
                return self._make("string", start, i + 1, "".join(parts)), i + 1
            elif ch == "$" and nxt == "(":
                end = self._skip_subexpression(i)
                parts.append(text[i:end])
                i = end
            elif ch == "$" and nxt == "{":
                token, end = self._variable(i)
                parts.append(token.text)
                i = end
            else:
                parts.append(ch)
                i += 1
        raise self.error("Unterminated string", start)

    def _skip_subexpression(self, start: int) -> int:
        """Return the offset just past the ``)`` closing ``$(`` at *start*."""
        depth = 1
        i = start + 2
        while i < len(self.text):
            token, i = self._next_token(i)
            if token is None:
                continue
            if token.kind == "open":
                depth += 1
            elif token.kind == "close":
                depth -= 1
                if depth == 0:
                    return i
        raise self.error("Missing closing ')' in subexpression", start)

    def _here_string(self, start: int) -> tuple[Token, int]:
        text = self.text
        quote = text[start + 1]
        eol = text.find("\n", start + 2)
        header_rest = text[start + 2 : len(text) if eol == -1 else eol]
        if eol == -1 or header_rest.strip():
            raise self.error(
                "No characters are allowed after a here-string header", start
            )

        terminator = "\n" + quote + "@"
        end = text.find(terminator, eol)
        if end == -1:
            raise self.error("Unterminated here-string", start)
        body = text[eol + 1 : end]
        body = body.removesuffix("\r")
        if quote == '"':
            body = _decode_backticks(body)
        stop = end + len(terminator)
        return self._make("string", start, stop, body), stop


def _decode_backticks(raw: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        if raw[i] == "`" and i + 1 < len(raw):
            out.append(_BACKTICK_ESCAPES.get(raw[i + 1], raw[i + 1]))
            i += 2
        else:
            out.append(raw[i])
            i += 1
    return "".join(out)


# --------------------------------------------------------------------------- #
# Tree
# --------------------------------------------------------------------------- #


@dataclass
class ScriptRequirements:
    """Values declared with ``#Requires`` comments."""

    required_version: str | None = None


@dataclass
class Ast:
    line: int
    column: int

    def children(self) -> Iterator[Ast]:
        return iter(())

    def find_all(
        self, predicate: Callable[[Ast], bool], *, recursive: bool = True
    ) -> list[Ast]:
        """Return descendants matching *predicate* in source order.

        With ``recursive=False`` nested script blocks (function bodies and
        script block literals) are not searched.
        """
        found: list[Ast] = []

        def visit(node: Ast) -> None:
            for child in node.children():
                if predicate(child):
                    found.append(child)
                if not recursive and isinstance(child, ScriptBlockAst):
                    continue
                visit(child)

        visit(self)
        return found

    def find(
        self, predicate: Callable[[Ast], bool], *, recursive: bool = True
    ) -> Ast | None:
        matches = self.find_all(predicate, recursive=recursive)
        return matches[0] if matches else None


@dataclass
class ScriptBlockAst(Ast):
    statements: list[Ast] = field(default_factory=list)
    requirements: ScriptRequirements | None = None

    def children(self) -> Iterator[Ast]:
        return iter(self.statements)


@dataclass
class StatementBlockAst(Ast):
    keyword: str = ""
    statements: list[Ast] = field(default_factory=list)

    def children(self) -> Iterator[Ast]:
        return iter(self.statements)


@dataclass
class GroupAst(Ast):
    opener: str = "("
    statements: list[Ast] = field(default_factory=list)

    def children(self) -> Iterator[Ast]:
        return iter(self.statements)


@dataclass
class FunctionDefinitionAst(Ast):
    name: str = ""
    keyword: str = "function"
    parameters: GroupAst | None = None
    body: ScriptBlockAst | None = None

    def children(self) -> Iterator[Ast]:
        if self.parameters is not None:
            yield self.parameters
        if self.body is not None:
            yield self.body


def is_function_definition(node: Ast) -> bool:
    return isinstance(node, FunctionDefinitionAst)


# --------------------------------------------------------------------------- #
# Parser
# --------------------------------------------------------------------------- #


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.index = 0

    def _error(self, message: str, token: Token) -> ScriptSyntaxError:
        return ScriptSyntaxError(message, token.line, token.column)

    def _peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def _skip_newlines(self) -> None:
        while (tok := self._peek()) is not None and tok.kind == "newline":
            self.index += 1

    def _at_key(self, opener: Token | None) -> bool:
        """True when the word just consumed is a hashtable key or assignee."""
        if opener is not None and opener.text == "@{":
            return True
        nxt = self._peek()
        return nxt is not None and nxt.kind == "operator" and nxt.text == "="

    def parse_items(  # noqa: C901, PLR0912
        self,
        into: list[Ast],
        opener: Token | None,
        *,
        braces_are_statements: bool = False,
    ) -> None:
        """Consume tokens into *into* until *opener* is closed (or EOF)."""
        at_start = True
        pending: str | None = None  # keyword waiting for its block
        after_do = False

        while (tok := self._peek()) is not None:
            self.index += 1

            if tok.kind in ("newline", "semi"):
                at_start = True
                if tok.kind == "semi":
                    pending = None
                continue

            if tok.kind == "close":
                if opener is None:
                    xmsg = f"Unexpected token '{tok.text}'"
                    raise self._error(xmsg, tok)
                expected = CLOSERS[opener.text]
                if tok.text != expected:
                    xmsg = (
                        f"Missing closing '{expected}' for '{opener.text}' "
                        f"opened at line {opener.line}, column {opener.column}"
                    )
                    raise self._error(xmsg, tok)
                return

            word = tok.text.lower() if tok.kind == "word" else ""
            was_after_do = after_do
            after_do = False

            if at_start and word and self._at_key(opener):
                # `@{ Filter = ... }` or `End = 1`: a name, not a keyword
                pending = None
                at_start = False
                continue

            if at_start and word in FUNCTION_KEYWORDS:
                into.append(self._parse_function(tok))
                pending = None
                at_start = True
                continue

            if at_start and word in STATEMENT_KEYWORDS:
                if word in ("while", "until") and was_after_do:
                    pending = None  # trailer of do { } while (...)
                else:
                    pending = word
                at_start = False
                continue

            if tok.kind == "open":
                node = self._parse_group(
                    tok, pending, braces_are_statements=braces_are_statements
                )
                into.append(node)
                if tok.text == "{":
                    after_do = pending == "do"
                    pending = None
                    at_start = True
                else:
                    at_start = False
                continue

            at_start = False

        if opener is not None:
            xmsg = f"Missing closing '{CLOSERS[opener.text]}' for '{opener.text}'"
            raise self._error(xmsg, opener)

    def _parse_group(
        self, tok: Token, pending: str | None, *, braces_are_statements: bool
    ) -> Ast:
        if tok.text == "{" and (pending is not None or braces_are_statements):
            block = StatementBlockAst(tok.line, tok.column, keyword=pending or "")
            self.parse_items(
                block.statements, tok, braces_are_statements=pending == "switch"
            )
            return block
        if tok.text == "{":
            script_block = ScriptBlockAst(tok.line, tok.column)
            self.parse_items(script_block.statements, tok)
            return script_block
        group = GroupAst(tok.line, tok.column, opener=tok.text)
        self.parse_items(group.statements, tok)
        return group

    def _parse_function(self, keyword: Token) -> FunctionDefinitionAst:
        name_tok = self._peek()
        if name_tok is None or name_tok.kind != "word" or name_tok.line != keyword.line:
            xmsg = f"Missing name after '{keyword.text}' keyword"
            raise self._error(xmsg, keyword)
        self.index += 1

        node = FunctionDefinitionAst(
            keyword.line,
            keyword.column,
            name=name_tok.text,
            keyword=keyword.text.lower(),
        )

        tok = self._peek()
        if tok is not None and tok.kind == "open" and tok.text == "(":
            self.index += 1
            node.parameters = GroupAst(tok.line, tok.column, opener="(")
            self.parse_items(node.parameters.statements, tok)

        self._skip_newlines()
        tok = self._peek()
        if tok is None or tok.kind != "open" or tok.text != "{":
            xmsg = f"Missing function body in definition of '{node.name}'"
            raise self._error(xmsg, name_tok)
        self.index += 1
        node.body = ScriptBlockAst(tok.line, tok.column)
        self.parse_items(node.body.statements, tok)
        return node


# --------------------------------------------------------------------------- #
# Requirements
# --------------------------------------------------------------------------- #


def _apply_requires(requirements: ScriptRequirements, comment: Token) -> None:
    match = _REQUIRES_RE.match(comment.text.strip())
    if match is None:
        return

    args = match.group("body").split()
    i = 0
    while i < len(args):
        flag = args[i].lower()
        value = args[i + 1] if i + 1 < len(args) else None
        if flag == "-version":
            if value is None or not _VERSION_RE.match(value):
                xmsg = f"Invalid #Requires -Version value: {value!r}"
                raise ScriptSyntaxError(xmsg, comment.line, comment.column)
            current = requirements.required_version
            if current is None or parse_version(value) > parse_version(current):
                requirements.required_version = value
            i += 2
        else:
            i += 1


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #


def tokenize(text: str) -> list[Token]:
    """Return all tokens of *text*, comments included."""
    return list(Lexer(text).tokens())


def parse_script(text: str) -> ScriptBlockAst:
    """Parse PowerShell *text* into a tree rooted at a ``ScriptBlockAst``.

    Raises:
        ScriptSyntaxError: On unbalanced delimiters, unterminated strings or
            comments, malformed function definitions or ``#Requires`` lines.
    """
    requirements = ScriptRequirements()
    code: list[Token] = []
    line_has_code: set[int] = set()
    for token in tokenize(text):
        if token.kind == "comment":
            if token.line not in line_has_code:
                _apply_requires(requirements, token)
            continue
        if token.kind != "newline":
            line_has_code.add(token.line)
        code.append(token)

    root = ScriptBlockAst(1, 1, requirements=requirements)
    _Parser(code).parse_items(root.statements, None)
    return root
