"""Structured model of one ``CREATE TABLE`` definition."""

from __future__ import annotations

import dataclasses
import functools
import logging
import re

from mysqldiff.errors import DuplicateDefinitionError, ParseError
from mysqldiff.lines import (
    CheckLine,
    ColumnLine,
    ForeignKeyLine,
    IndexKind,
    IndexLine,
    PrimaryKeyLine,
    TerminatorLine,
    Unrecognized,
    classify_line,
    column_ref,
)

DEFAULT_LOGGER = logging.getLogger("mysqldiff")

TABLE_NAME_RE = re.compile(
    r"^\s*CREATE\s+(?:TEMPORARY\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>\S+?)\s*\(\s*$",
    flags=re.I,
)
AUTO_INCREMENT_RE = re.compile(r"\bAUTO_INCREMENT\b", flags=re.I)
AUTO_INCREMENT_OPTION_RE = re.compile(r"\s*\bAUTO_INCREMENT=\d+", flags=re.I)
PARTITION_RE = re.compile(r"\s*\bPARTITION\s+BY\b", flags=re.I)
COMMENT_OPTION_RE = re.compile(r"\bCOMMENT\s*=?\s*'", flags=re.I)


def key_sql(parts: tuple[str, ...]) -> str:
    return ",".join(parts)


def _suffix(text: str) -> str:
    return f" {text}" if text else ""


@dataclasses.dataclass(frozen=True)
class Column:
    name: str
    definition: str
    position: int

    @property
    def is_auto_increment(self) -> bool:
        return AUTO_INCREMENT_RE.search(self.definition) is not None


@dataclasses.dataclass(frozen=True)
class Index:
    name: str
    kind: IndexKind
    columns: tuple[str, ...]
    options: str = ""

    @property
    def column_names(self) -> tuple[str, ...]:
        names = (column_ref(part) for part in self.columns)
        return tuple(n for n in names if n is not None)

    @property
    def leading_column(self) -> str | None:
        if not self.columns:
            return None
        return column_ref(self.columns[0])

    def describe(self) -> str:
        """Old-definition text used in ``# was`` comments, e.g. ``UNIQUE (name,age)``."""
        return f"{self.kind.keyword} ({key_sql(self.columns)}){_suffix(self.options)}"

    def add_clause(self) -> str:
        return f"ADD {self.kind.keyword} {self.name} ({key_sql(self.columns)}){_suffix(self.options)}"


@dataclasses.dataclass(frozen=True)
class PrimaryKey:
    columns: tuple[str, ...]
    options: str = ""

    @property
    def column_names(self) -> tuple[str, ...]:
        names = (column_ref(part) for part in self.columns)
        return tuple(n for n in names if n is not None)

    @property
    def leading_column(self) -> str | None:
        return column_ref(self.columns[0]) if self.columns else None

    def describe(self) -> str:
        return f"({key_sql(self.columns)}){_suffix(self.options)}"


@dataclasses.dataclass(frozen=True)
class ForeignKey:
    name: str
    columns: tuple[str, ...]
    ref_table: str
    ref_columns: tuple[str, ...]
    actions: str = ""

    @property
    def column_names(self) -> tuple[str, ...]:
        names = (column_ref(part) for part in self.columns)
        return tuple(n for n in names if n is not None)

    def describe(self) -> str:
        return f"({key_sql(self.columns)}) REFERENCES {self.ref_table} ({key_sql(self.ref_columns)}){_suffix(self.actions)}"

    def add_clause(self) -> str:
        return f"ADD CONSTRAINT {self.name} FOREIGN KEY {self.describe()}"


@dataclasses.dataclass(frozen=True)
class CheckConstraint:
    name: str
    expression: str
    options: str = ""

    def describe(self) -> str:
        return f"CHECK ({self.expression}){_suffix(self.options)}"


@dataclasses.dataclass(frozen=True)
class Table:
    name: str
    columns: tuple[Column, ...]
    indexes: tuple[Index, ...]
    primary_key: PrimaryKey | None
    foreign_keys: tuple[ForeignKey, ...]
    checks: tuple[CheckConstraint, ...]
    options: str
    definition: str

    @functools.cached_property
    def column_map(self) -> dict[str, Column]:
        return {c.name: c for c in self.columns}

    @functools.cached_property
    def index_map(self) -> dict[str, Index]:
        return {i.name: i for i in self.indexes}

    @functools.cached_property
    def foreign_key_map(self) -> dict[str, ForeignKey]:
        return {fk.name: fk for fk in self.foreign_keys}

    @functools.cached_property
    def check_map(self) -> dict[str, CheckConstraint]:
        return {c.name: c for c in self.checks}

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def auto_increment_columns(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.is_auto_increment)

    @property
    def referenced_tables(self) -> tuple[str, ...]:
        seen: list[str] = []
        for fk in self.foreign_keys:
            if fk.ref_table not in seen:
                seen.append(fk.ref_table)
        return tuple(seen)

    @property
    def base_options(self) -> str:
        m = PARTITION_RE.search(self.options)
        return (self.options[: m.start()] if m else self.options).strip()

    @property
    def partitioning(self) -> str:
        m = PARTITION_RE.search(self.options)
        return self.options[m.start() :].strip() if m else ""

    @property
    def has_comment(self) -> bool:
        return COMMENT_OPTION_RE.search(self.base_options) is not None

    def create_statement(self) -> str:
        """The definition as written, minus foreign keys and the AUTO_INCREMENT counter."""
        out: list[str] = []
        in_body = False
        ended = False
        for raw in self.definition.split("\n"):
            if not raw.strip():
                continue
            if not in_body:
                out.append(raw)
                in_body = True
                continue
            if ended:
                out.append(AUTO_INCREMENT_OPTION_RE.sub("", raw))
                continue
            parsed = classify_line(raw.strip().rstrip(","))
            if isinstance(parsed, ForeignKeyLine):
                continue
            if isinstance(parsed, TerminatorLine):
                ended = True
                if len(out) > 1:
                    out[-1] = out[-1].rstrip().rstrip(",")
                out.append(AUTO_INCREMENT_OPTION_RE.sub("", raw))
                continue
            out.append(raw)
        statement = "\n".join(out).rstrip()
        if not statement.endswith(";"):
            statement += ";"
        return statement


def _unique_name(base: str, taken: set[str]) -> str:
    if base not in taken:
        return base
    n = 2
    while f"{base}_{n}" in taken:
        n += 1
    return f"{base}_{n}"


class _TableBuilder:
    """Accumulates classified lines and enforces per-table uniqueness."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.columns: dict[str, Column] = {}
        self.indexes: dict[str, Index] = {}
        self.primary_key: PrimaryKey | None = None
        self.foreign_keys: dict[str, ForeignKey] = {}
        self.checks: dict[str, CheckConstraint] = {}

    def duplicate(self, what: str, name: str) -> DuplicateDefinitionError:
        return DuplicateDefinitionError(f"{what} '{name}' duplicated in table '{self.name}'", entity=self.name)

    def add_column(self, line: ColumnLine) -> None:
        if line.name in self.columns:
            raise self.duplicate("field", line.name)
        self.columns[line.name] = Column(name=line.name, definition=line.definition, position=len(self.columns))

    def add_primary_key(self, line: PrimaryKeyLine) -> None:
        if self.primary_key is not None:
            raise DuplicateDefinitionError(
                f"two primary keys in table '{self.name}': ({line.column_text}), {self.primary_key.describe()}",
                entity=self.name,
            )
        self.primary_key = PrimaryKey(columns=line.columns, options=line.options)

    def add_index(self, line: IndexLine) -> None:
        name = line.name
        if name is None:
            first = column_ref(line.columns[0]) if line.columns else None
            name = _unique_name(first or "functional_index", set(self.indexes))
        elif name in self.indexes:
            raise self.duplicate("index", name)
        self.indexes[name] = Index(name=name, kind=line.kind, columns=line.columns, options=line.options)

    def add_foreign_key(self, line: ForeignKeyLine) -> None:
        name = line.name
        if name is None:
            n = len(self.foreign_keys) + 1
            while f"{self.name}_ibfk_{n}" in self.foreign_keys:
                n += 1
            name = f"{self.name}_ibfk_{n}"
        elif name in self.foreign_keys:
            raise self.duplicate("foreign key", name)
        self.foreign_keys[name] = ForeignKey(
            name=name,
            columns=line.columns,
            ref_table=line.ref_table,
            ref_columns=line.ref_columns,
            actions=line.actions,
        )

    def add_check(self, line: CheckLine) -> None:
        name = line.name
        if name is None:
            n = len(self.checks) + 1
            while f"{self.name}_chk_{n}" in self.checks:
                n += 1
            name = f"{self.name}_chk_{n}"
        elif name in self.checks:
            raise self.duplicate("check constraint", name)
        self.checks[name] = CheckConstraint(name=name, expression=line.expression, options=line.options)

    def validate_columns(self) -> None:
        keyed: list[tuple[str, tuple[str, ...]]] = [(f"index '{i.name}'", i.columns) for i in self.indexes.values()]
        if self.primary_key is not None:
            keyed.append(("primary key", self.primary_key.columns))
        keyed.extend((f"foreign key '{fk.name}'", fk.columns) for fk in self.foreign_keys.values())
        for what, parts in keyed:
            for part in parts:
                if part.startswith("("):
                    continue
                col = column_ref(part)
                if col is None or col not in self.columns:
                    raise ParseError(
                        f"{what} in table '{self.name}' refers to unknown column '{col or part}'",
                        entity=self.name,
                    )


def parse_table(text: str, log: logging.Logger | None = None) -> Table:
    """Parse one ``CREATE TABLE name ( ... ) options;`` statement."""
    log = log or DEFAULT_LOGGER
    lines = [line for line in text.strip().split("\n") if line.strip()]
    if not lines:
        raise ParseError("empty table definition")

    m = TABLE_NAME_RE.match(lines[0])
    if not m:
        raise ParseError("couldn't figure out table name", text=lines[0].strip())
    builder = _TableBuilder(m.group("name"))
    name = builder.name
    log.debug("parsing table %s", name)

    options: list[str] = []
    end_found = False
    complete = False
    garbage: list[str] = []
    for raw in lines[1:]:
        stripped = raw.strip()
        if complete:
            garbage.append(stripped)
            continue
        if end_found:
            options.append(stripped)
            complete = stripped.endswith(";")
            continue

        parsed = classify_line(stripped.rstrip(","))
        if isinstance(parsed, PrimaryKeyLine):
            builder.add_primary_key(parsed)
        elif isinstance(parsed, ForeignKeyLine):
            builder.add_foreign_key(parsed)
        elif isinstance(parsed, CheckLine):
            builder.add_check(parsed)
        elif isinstance(parsed, IndexLine):
            builder.add_index(parsed)
        elif isinstance(parsed, TerminatorLine):
            end_found = True
            options.append(parsed.options)
            complete = parsed.options.endswith(";")
        elif isinstance(parsed, ColumnLine):
            builder.add_column(parsed)
        else:
            assert isinstance(parsed, Unrecognized)
            raise ParseError(f"unparsable line in definition for table '{name}'", entity=name, text=parsed.text)

    if not end_found:
        raise ParseError(f"definition for table '{name}' has no closing parenthesis", entity=name)
    if not complete:
        log.warning("table '%s' didn't have terminator", name)
    if garbage:
        log.warning("table '%s' had trailing garbage:\n%s", name, "\n".join(garbage))

    builder.validate_columns()
    option_text = " ".join(o for o in options if o).strip()
    if option_text.endswith(";"):
        option_text = option_text[:-1].rstrip()

    return Table(
        name=name,
        columns=tuple(builder.columns.values()),
        indexes=tuple(builder.indexes.values()),
        primary_key=builder.primary_key,
        foreign_keys=tuple(builder.foreign_keys.values()),
        checks=tuple(builder.checks.values()),
        options=option_text,
        definition=text.strip(),
    )
