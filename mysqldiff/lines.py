"""Classify the lines of a CREATE TABLE body.

Every trimmed body line maps to exactly one tagged variant; the table parser
consumes these without looking at raw text again.
"""

from __future__ import annotations

import dataclasses
import enum
import re


class IndexKind(str, enum.Enum):
    PLAIN = "plain"
    UNIQUE = "unique"
    FULLTEXT = "fulltext"
    SPATIAL = "spatial"

    @property
    def keyword(self) -> str:
        """The keyword used after ``ADD`` / in ``# was`` comments."""
        return {
            IndexKind.PLAIN: "INDEX",
            IndexKind.UNIQUE: "UNIQUE",
            IndexKind.FULLTEXT: "FULLTEXT INDEX",
            IndexKind.SPATIAL: "SPATIAL INDEX",
        }[self]


@dataclasses.dataclass(frozen=True)
class PrimaryKeyLine:
    columns: tuple[str, ...]
    column_text: str
    options: str = ""


@dataclasses.dataclass(frozen=True)
class ForeignKeyLine:
    name: str | None
    columns: tuple[str, ...]
    column_text: str
    ref_table: str
    ref_columns: tuple[str, ...]
    ref_column_text: str
    actions: str = ""


@dataclasses.dataclass(frozen=True)
class CheckLine:
    name: str | None
    expression: str
    options: str = ""


@dataclasses.dataclass(frozen=True)
class IndexLine:
    name: str | None
    kind: IndexKind
    columns: tuple[str, ...]
    column_text: str
    options: str = ""


@dataclasses.dataclass(frozen=True)
class TerminatorLine:
    options: str


@dataclasses.dataclass(frozen=True)
class ColumnLine:
    name: str
    definition: str


@dataclasses.dataclass(frozen=True)
class Unrecognized:
    text: str


TableLine = PrimaryKeyLine | ForeignKeyLine | CheckLine | IndexLine | TerminatorLine | ColumnLine | Unrecognized


PRIMARY_KEY_RE = re.compile(r"^PRIMARY\s+KEY(?:\s+USING\s+(?P<using>\w+))?\s*(?P<rest>\(.*)$", flags=re.I | re.S)
FOREIGN_KEY_RE = re.compile(
    r"^(?:CONSTRAINT(?:\s+(?P<name>[^\s(]+))?\s+)?FOREIGN\s+KEY(?:\s+(?P<index>[^\s(]+))?\s*(?P<rest>\(.*)$",
    flags=re.I | re.S,
)
REFERENCES_RE = re.compile(r"^REFERENCES\s+(?P<table>[^\s(]+)\s*(?P<rest>\(.*)$", flags=re.I | re.S)
CHECK_RE = re.compile(r"^(?:CONSTRAINT(?:\s+(?P<name>[^\s(]+))?\s+)?CHECK\s*(?P<rest>\(.*)$", flags=re.I | re.S)
INDEX_RE = re.compile(
    r"""^(?P<kind>(?:UNIQUE|FULLTEXT|SPATIAL)(?:\s+(?:KEY|INDEX))?|KEY|INDEX)
    (?:\s+(?P<name>(?!USING\b)[^\s(]+)(?=\s))?
    (?:\s+USING\s+(?P<using>\w+))?
    \s*(?P<rest>\(.*)$""",
    flags=re.I | re.S | re.X,
)
TERMINATOR_RE = re.compile(r"^\)\s*(?P<options>.*)$", flags=re.S)
COLUMN_RE = re.compile(r"^(?P<name>\S+)\s+(?P<definition>\S.*)$", flags=re.S)
COLUMN_REF_RE = re.compile(r"^(?P<name>`[^`]+`|[^\s(`]+)(?:\s*\(\d+\))?(?:\s+(?:ASC|DESC))?$", flags=re.I)


def split_parenthesized(text: str) -> tuple[str, str] | None:
    """Split ``"(a,b(3)) rest"`` into ``("a,b(3)", "rest")``; None when unbalanced."""
    if not text.startswith("("):
        return None
    depth = 0
    quote: str | None = None
    escaped = False
    for idx, ch in enumerate(text):
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[1:idx], text[idx + 1 :].strip()
    return None


def split_sql_list(expr: str) -> list[str]:
    expr = expr.strip()
    if not expr:
        return []

    out: list[str] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False
    for ch in expr:
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0 and not quote:
            token = "".join(buf).strip()
            if token:
                out.append(token)
            buf = []
            continue
        buf.append(ch)

    token = "".join(buf).strip()
    if token:
        out.append(token)
    return out


def column_ref(part: str) -> str | None:
    """Bare column name of a key part, or None for a functional key part."""
    m = COLUMN_REF_RE.match(part.strip())
    if not m:
        return None
    return m.group("name")


def key_columns(column_text: str) -> tuple[str, ...]:
    """Key parts as written, e.g. ``("name(10)", "age")``."""
    return tuple(split_sql_list(column_text))


def _join_options(*parts: str | None) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def _index_kind(keyword: str) -> IndexKind:
    word = keyword.split()[0].upper()
    if word == "UNIQUE":
        return IndexKind.UNIQUE
    if word == "FULLTEXT":
        return IndexKind.FULLTEXT
    if word == "SPATIAL":
        return IndexKind.SPATIAL
    return IndexKind.PLAIN


def _classify_primary_key(line: str) -> TableLine | None:
    m = PRIMARY_KEY_RE.match(line)
    if not m:
        return None
    split = split_parenthesized(m.group("rest"))
    if split is None:
        return Unrecognized(line)
    inner, rest = split
    using = f"USING {m.group('using').upper()}" if m.group("using") else None
    return PrimaryKeyLine(columns=key_columns(inner), column_text=inner, options=_join_options(using, rest))


def _classify_foreign_key(line: str) -> TableLine | None:
    m = FOREIGN_KEY_RE.match(line)
    if not m:
        return None
    split = split_parenthesized(m.group("rest"))
    if split is None:
        return Unrecognized(line)
    inner, rest = split
    ref = REFERENCES_RE.match(rest)
    if not ref:
        return Unrecognized(line)
    ref_split = split_parenthesized(ref.group("rest"))
    if ref_split is None:
        return Unrecognized(line)
    ref_inner, actions = ref_split
    return ForeignKeyLine(
        name=m.group("name"),
        columns=key_columns(inner),
        column_text=inner,
        ref_table=ref.group("table"),
        ref_columns=key_columns(ref_inner),
        ref_column_text=ref_inner,
        actions=actions,
    )


def _classify_check(line: str) -> TableLine | None:
    m = CHECK_RE.match(line)
    if not m:
        return None
    split = split_parenthesized(m.group("rest"))
    if split is None:
        return Unrecognized(line)
    inner, rest = split
    return CheckLine(name=m.group("name"), expression=inner, options=rest)


def _classify_index(line: str) -> TableLine | None:
    m = INDEX_RE.match(line)
    if not m:
        return None
    split = split_parenthesized(m.group("rest"))
    if split is None:
        return None
    inner, rest = split
    using = f"USING {m.group('using').upper()}" if m.group("using") else None
    return IndexLine(
        name=m.group("name"),
        kind=_index_kind(m.group("kind")),
        columns=key_columns(inner),
        column_text=inner,
        options=_join_options(using, rest),
    )


def classify_line(line: str) -> TableLine:
    """Classify one trimmed body line (trailing comma already removed)."""
    line = line.strip()
    for classify in (_classify_primary_key, _classify_foreign_key, _classify_check, _classify_index):
        result = classify(line)
        if result is not None:
            return result

    m = TERMINATOR_RE.match(line)
    if m:
        return TerminatorLine(options=m.group("options").strip())

    m = COLUMN_RE.match(line)
    if m:
        return ColumnLine(name=m.group("name"), definition=m.group("definition").strip())

    return Unrecognized(line)
