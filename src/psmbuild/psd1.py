# src/psmbuild/psd1.py
"""Reader and in-place editor for PowerShell data files (.psd1).

Only the restricted data language is understood: hashtables, arrays,
quoted strings, here-strings, numbers, ``$true``/``$false``/``$null`` and
comments. Besides the parsed values, the parser records the character span
of every hashtable entry so that ``set_value()`` can rewrite a single key
while leaving every other byte of the file alone.
"""

from __future__ import annotations

import codecs
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


KeyPath = tuple[str, ...]

_NUMBER_RE = re.compile(
    r"[+-]?(?:0[xX][0-9a-fA-F]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)(?![\w.])"
)
_BAREWORD_RE = re.compile(r"[A-Za-z_][\w.-]*")
_SIMPLE_KEY_RE = re.compile(r"^[A-Za-z_]\w*$")
_VARIABLE_RE = re.compile(r"\$(\w+)")
_HERE_HEADER_RE = re.compile(r"[ \t]*\r?\n")

_CONSTANTS: dict[str, Any] = {"true": True, "false": False, "null": None}

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


class Psd1ParseError(ValueError):
    """Raised when text is not a valid PowerShell data file."""

    def __init__(
        self,
        msg: str,
        text: str,
        pos: int,
        source: str | None = None,
    ) -> None:
        self.line = text.count("\n", 0, pos) + 1
        self.column = pos - (text.rfind("\n", 0, pos) + 1) + 1
        where = f"{source}:" if source else ""
        super().__init__(f"{where}{self.line}:{self.column}: {msg}")


@dataclass
class EntrySpan:
    key: str  # as spelled in the file
    key_start: int
    value_start: int
    value_end: int


@dataclass
class TableSpan:
    start: int  # index of "@{"
    end: int  # index of the closing "}"
    entries: dict[str, EntrySpan] = field(default_factory=dict)  # lowercased keys


@dataclass
class Psd1Document:
    text: str
    data: Any
    tables: dict[KeyPath, TableSpan]

    def table(self, path: Sequence[str]) -> TableSpan | None:
        """Return the span of the hashtable reached through ``path``."""
        return self.tables.get(tuple(p.lower() for p in path))


# --------------------------------------------------------------------------- #
# parsing
# --------------------------------------------------------------------------- #


class _Parser:
    def __init__(self, text: str, source: str | None) -> None:
        self.text = text
        self.source = source
        self.pos = 0
        self.last_end = 0
        self.tables: dict[KeyPath, TableSpan] = {}

    def error(self, msg: str, pos: int | None = None) -> Psd1ParseError:
        return Psd1ParseError(
            msg, self.text, self.pos if pos is None else pos, self.source
        )

    def peek(self, s: str) -> bool:
        return self.text.startswith(s, self.pos)

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def at_newline(self) -> bool:
        return self.text[self.pos : self.pos + 1] in ("\r", "\n")

    def skip(self, *, newlines: bool) -> None:
        """Skip blanks and comments, optionally crossing line breaks."""
        text = self.text
        size = len(text)
        while self.pos < size:
            ch = text[self.pos]
            if ch in " \t\f\v\ufeff":
                self.pos += 1
            elif ch == "`" and text.startswith(("`\n", "`\r\n"), self.pos):
                # line continuation
                self.pos = text.index("\n", self.pos) + 1
            elif ch in "\r\n":
                if not newlines:
                    break
                self.pos += 1
            elif text.startswith("<#", self.pos):
                end = text.find("#>", self.pos + 2)
                if end < 0:
                    raise self.error("unterminated block comment")
                self.pos = end + 2
            elif ch == "#":
                end = text.find("\n", self.pos)
                self.pos = size if end < 0 else end
                if self.pos > 0 and text[self.pos - 1] == "\r":
                    self.pos -= 1
            else:
                break

    def parse_document(self) -> Any:
        self.skip(newlines=True)
        if self.at_end():
            raise self.error("data file is empty")
        value = self.parse_expression(())
        self.skip(newlines=True)
        if not self.at_end():
            raise self.error("unexpected content after the data section")
        return value

    def parse_expression(self, path: KeyPath | None) -> Any:
        """Parse a value, collecting ``a, b, c`` comma lists into a list."""
        first = self.parse_primary(path)
        self.skip(newlines=False)
        if not self.peek(","):
            return first
        items = [first]
        while self.peek(","):
            self.pos += 1
            self.skip(newlines=True)
            items.append(self.parse_primary(None))
            self.skip(newlines=False)
        return items

    def parse_primary(self, path: KeyPath | None) -> Any:  # noqa: PLR0911
        if self.peek("@{"):
            return self.parse_table(path)
        if self.peek("@("):
            return self.parse_array()
        if self.peek("@'") or self.peek('@"'):
            return self.parse_here_string()
        if self.peek("'"):
            return self.parse_single_quoted()
        if self.peek('"'):
            return self.parse_double_quoted()
        if self.peek("$"):
            return self.parse_constant()
        match = _NUMBER_RE.match(self.text, self.pos)
        if match:
            self.pos = self.last_end = match.end()
            return _to_number(match.group())
        if self.at_end():
            raise self.error("unexpected end of data, expected a value")
        snippet = self.text[self.pos : self.pos + 20].splitlines()[0]
        raise self.error(f"unexpected token {snippet!r}, expected a value")

    def parse_table(self, path: KeyPath | None) -> dict[str, Any]:
        start = self.pos
        self.pos += 2
        data: dict[str, Any] = {}
        entries: dict[str, EntrySpan] = {}
        while True:
            self.skip(newlines=True)
            if self.peek(";"):
                self.pos += 1
                continue
            if self.peek("}"):
                break
            if self.at_end():
                raise self.error("unterminated hashtable", start)

            key_start = self.pos
            key = self.parse_key()
            self.skip(newlines=False)
            if not self.peek("="):
                raise self.error(f"expected '=' after key {key!r}")
            self.pos += 1
            self.skip(newlines=True)

            lowered = key.lower()
            if lowered in entries:
                raise self.error(f"duplicate key {key!r}", key_start)
            value_start = self.pos
            child = None if path is None else (*path, lowered)
            value = self.parse_expression(child)
            entries[lowered] = EntrySpan(key, key_start, value_start, self.last_end)
            data[key] = value

            self.skip(newlines=False)
            if not (
                self.peek(";") or self.peek("}") or self.at_newline() or self.at_end()
            ):
                raise self.error(f"expected a new line or ';' after key {key!r}")

        end = self.pos
        self.pos = self.last_end = end + 1
        if path is not None:
            self.tables[path] = TableSpan(start, end, entries)
        return data

    def parse_key(self) -> str:
        if self.peek("'"):
            return self.parse_single_quoted()
        if self.peek('"'):
            return self.parse_double_quoted()
        match = _BAREWORD_RE.match(self.text, self.pos) or _NUMBER_RE.match(
            self.text, self.pos
        )
        if not match:
            raise self.error("expected a hashtable key")
        self.pos = match.end()
        return match.group()

    def parse_array(self) -> list[Any]:
        start = self.pos
        self.pos += 2
        items: list[Any] = []
        while True:
            self.skip(newlines=True)
            if self.peek(")"):
                break
            if self.peek(",") or self.peek(";"):
                self.pos += 1
                continue
            if self.at_end():
                raise self.error("unterminated array", start)
            value = self.parse_expression(None)
            if isinstance(value, list):
                items.extend(value)
            else:
                items.append(value)
        self.pos = self.last_end = self.pos + 1
        return items

    def parse_single_quoted(self) -> str:
        text = self.text
        start = self.pos
        i = start + 1
        parts: list[str] = []
        while True:
            j = text.find("'", i)
            if j < 0:
                raise self.error("unterminated string", start)
            parts.append(text[i:j])
            if text.startswith("''", j):
                parts.append("'")
                i = j + 2
                continue
            self.pos = self.last_end = j + 1
            return "".join(parts)

    def parse_double_quoted(self) -> str:
        text = self.text
        start = self.pos
        i = start + 1
        parts: list[str] = []
        while i < len(text):
            ch = text[i]
            if ch == "`" and i + 1 < len(text):
                nxt = text[i + 1]
                parts.append(_BACKTICK_ESCAPES.get(nxt, nxt))
                i += 2
            elif ch == '"':
                if text.startswith('""', i):
                    parts.append('"')
                    i += 2
                    continue
                self.pos = self.last_end = i + 1
                return "".join(parts)
            else:
                parts.append(ch)
                i += 1
        raise self.error("unterminated string", start)

    def parse_here_string(self) -> str:
        text = self.text
        start = self.pos
        quote = text[start + 1]
        header = _HERE_HEADER_RE.match(text, start + 2)
        if not header:
            raise self.error("here-string header must be followed by a new line")
        body_start = header.end()
        closing = quote + "@"
        if text.startswith(closing, body_start):
            body = ""
            end = body_start + 2
        else:
            match = re.compile(r"\r?\n" + re.escape(closing)).search(text, body_start)
            if not match:
                raise self.error("unterminated here-string", start)
            body = text[body_start : match.start()]
            end = match.end()
        if quote == '"':
            body = re.sub(
                r"`(.)", lambda m: _BACKTICK_ESCAPES.get(m[1], m[1]), body
            )
        self.pos = self.last_end = end
        return body

    def parse_constant(self) -> Any:
        match = _VARIABLE_RE.match(self.text, self.pos)
        name = match.group(1).lower() if match else ""
        if not match or name not in _CONSTANTS:
            raise self.error(
                "variables are not allowed in data files"
                " (only $true, $false and $null)"
            )
        self.pos = self.last_end = match.end()
        return _CONSTANTS[name]


def _to_number(raw: str) -> int | float:
    sign = -1 if raw.startswith("-") else 1
    body = raw.lstrip("+-")
    if body[:2].lower() == "0x":
        return sign * int(body, 16)
    if any(c in body for c in ".eE"):
        return sign * float(body)
    return sign * int(body)


def parse(text: str, *, source: str | None = None) -> Psd1Document:
    """Parse ``text`` keeping entry spans for later in-place edits."""
    parser = _Parser(text, source)
    data = parser.parse_document()
    return Psd1Document(text=text, data=data, tables=parser.tables)


def loads(text: str, *, source: str | None = None) -> Any:
    """Parse ``text`` and return the plain Python value."""
    return parse(text, source=source).data


# --------------------------------------------------------------------------- #
# files
# --------------------------------------------------------------------------- #


def detect_encoding(raw: bytes) -> str:
    """Pick a codec from the byte order mark, defaulting to UTF-8."""
    if raw.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return "utf-16"
    return "utf-8"


def read_text(path: Path) -> tuple[str, str]:
    """Return the file's text (line endings intact) and its codec."""
    raw = path.read_bytes()
    encoding = detect_encoding(raw)
    return raw.decode(encoding), encoding


def write_text(path: Path, text: str, encoding: str) -> None:
    path.write_bytes(text.encode(encoding))


def load(path: Path) -> Any:
    text, _encoding = read_text(path)
    return loads(text, source=path.name)


# --------------------------------------------------------------------------- #
# formatting and editing
# --------------------------------------------------------------------------- #


def format_key(key: str) -> str:
    if _SIMPLE_KEY_RE.match(key):
        return key
    return format_value(key)


def format_value(value: Any) -> str:
    """Render a Python value as a PowerShell data literal."""
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if isinstance(value, dict):
        body = "; ".join(
            f"{format_key(k)} = {format_value(v)}" for k, v in value.items()
        )
        return f"@{{ {body} }}" if body else "@{}"
    if isinstance(value, (list, tuple)):
        return "@(" + ", ".join(format_value(v) for v in value) + ")"
    xmsg = f"Cannot write {type(value).__name__} to a data file"
    raise TypeError(xmsg)


def _entry_indent(text: str, table: TableSpan) -> str:
    if table.entries:
        first = min(table.entries.values(), key=lambda e: e.key_start)
        line_start = text.rfind("\n", 0, first.key_start) + 1
        lead = text[line_start : first.key_start]
        if not lead.strip():
            return lead
    line_start = text.rfind("\n", 0, table.start) + 1
    lead = text[line_start : table.start]
    indent = lead[: len(lead) - len(lead.lstrip(" \t"))]
    return indent + "    "


def _insert_entry(text: str, table: TableSpan, key: str, literal: str) -> str:
    newline = "\r\n" if "\r\n" in text else "\n"
    line_start = text.rfind("\n", 0, table.end) + 1
    brace_on_own_line = (
        line_start > table.start and not text[line_start : table.end].strip()
    )
    if brace_on_own_line:
        line = f"{_entry_indent(text, table)}{format_key(key)} = {literal}{newline}"
        return text[:line_start] + line + text[line_start:]
    # single-line table
    sep = "; " if table.entries else " "
    head = text[: table.end].rstrip(" \t")
    return f"{head}{sep}{format_key(key)} = {literal} " + text[table.end :]


def set_value(
    text: str,
    table_path: Sequence[str],
    key: str,
    value: Any,
    *,
    source: str | None = None,
) -> str:
    """Return ``text`` with ``key`` in the table at ``table_path`` set to ``value``.

    An existing entry has only its value replaced; a missing entry is added
    just before the table's closing brace, indented like its siblings.
    Raises KeyError when the table itself does not exist.
    """
    doc = parse(text, source=source)
    table = doc.table(table_path)
    if table is None:
        shown = ".".join(table_path) or "<root>"
        xmsg = f"No hashtable at {shown}"
        raise KeyError(xmsg)
    literal = format_value(value)
    entry = table.entries.get(key.lower())
    if entry is not None:
        return text[: entry.value_start] + literal + text[entry.value_end :]
    return _insert_entry(text, table, key, literal)


def get_value(data: Any, *keys: str, default: Any = None) -> Any:
    """Case-insensitive lookup through nested hashtables."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        lowered = key.lower()
        for k, v in current.items():
            if k.lower() == lowered:
                current = v
                break
        else:
            return default
    return current
