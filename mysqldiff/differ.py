"""Compute the DDL statements that migrate one schema into another.

Statements are collected per entity in discovery order and then stably
ordered by ``Phase``. The table diff keeps MySQL's structural rules intact
at every step of the migration: an auto-increment column is always the
leading column of some index, and every foreign key always has an index
serving it. Where a drop would break that, a guard index is added first and
removed again once the new keys exist.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from typing import Iterable

from mysqldiff import statements as actions
from mysqldiff.lines import IndexKind, column_ref
from mysqldiff.options import DiffOptions
from mysqldiff.routine import Routine
from mysqldiff.schema import Schema
from mysqldiff.statements import Phase, Statement, order_statements
from mysqldiff.table import AUTO_INCREMENT_OPTION_RE, Column, Table
from mysqldiff.view import View

DEFAULT_LOGGER = logging.getLogger("mysqldiff")

AUTO_GUARD_COMMENT = "auto columns must always be indexed"


def md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def leading_columns(parts: Iterable[str]) -> tuple[str, ...]:
    """Plain column names an index starts with, up to the first functional part."""
    out: list[str] = []
    for part in parts:
        name = column_ref(part)
        if name is None:
            break
        out.append(name)
    return tuple(out)


def _serves(lead: tuple[str, ...], columns: tuple[str, ...]) -> bool:
    return bool(columns) and lead[: len(columns)] == columns


class TableDiff:
    """Structural diff of one table present in both schemas."""

    def __init__(
        self,
        old: Table,
        new: Table,
        options: DiffOptions,
        incoming: Iterable[tuple[str, ...]] = (),
        log: logging.Logger | None = None,
    ) -> None:
        self.old = old
        self.new = new
        self.name = old.name
        self.options = options
        self.incoming = tuple(incoming)
        self.log = log or DEFAULT_LOGGER
        self.statements: list[Statement] = []
        self.inline_primary_key = False
        self.inline_indexes: set[str] = set()
        self.adopted_indexes: set[str] = set()

    def emit(self, phase: Phase, action: str, clause: str, comment: str = "") -> None:
        self.statements.append(
            Statement(phase=phase, name=self.name, action=action, sql=f"ALTER TABLE {self.name} {clause};", comment=comment)
        )

    @functools.cached_property
    def dropped_columns(self) -> set[str]:
        return {c.name for c in self.old.columns if c.name not in self.new.column_map}

    @functools.cached_property
    def primary_key_changed(self) -> bool:
        return self.old.primary_key != self.new.primary_key

    @functools.cached_property
    def surviving_keys(self) -> list[tuple[str, ...]]:
        """Leading columns of every index and primary key left untouched by the migration."""
        keys = [
            leading_columns(index.columns)
            for index in self.old.indexes
            if self.new.index_map.get(index.name) == index
        ]
        if self.old.primary_key is not None and not self.primary_key_changed:
            keys.append(leading_columns(self.old.primary_key.columns))
        return keys

    def compute(self) -> list[Statement]:
        self.log.debug("comparing tables called %s", self.name)
        guards = self._guards()
        self._diff_foreign_keys_dropped()
        self._diff_checks_dropped()
        self._diff_options()
        for guard_name, columns, comment in guards:
            clause = f"ADD INDEX ({columns[0]})" if guard_name is None else f"ADD INDEX {guard_name} ({','.join(columns)})"
            self.emit(Phase.GUARD_INDEX, actions.ADD_TEMPORARY_INDEX, clause, comment)
        self._diff_indexes_dropped()
        self._diff_primary_key_dropped()
        self._diff_changed_columns()
        self._diff_added_columns()
        self._diff_primary_key_added()
        self._diff_indexes_added()
        self._diff_dropped_columns()
        self._diff_foreign_keys_added()
        self._diff_checks_added()
        self._drop_guards(guards)
        return self.statements

    # guards

    def _guards(self) -> list[tuple[str | None, tuple[str, ...], str]]:
        guards: list[tuple[str | None, tuple[str, ...], str]] = []
        for column in self.old.columns:
            new_column = self.new.column_map.get(column.name)
            if not (column.is_auto_increment or (new_column is not None and new_column.is_auto_increment)):
                continue
            if any(lead[:1] == (column.name,) for lead in self.surviving_keys):
                continue
            self.log.debug("auto column %s.%s loses its index; adding a guard", self.name, column.name)
            guards.append((self._auto_guard_name(column.name), (column.name,), AUTO_GUARD_COMMENT))

        covered = list(self.surviving_keys) + [cols for _, cols, _ in guards]
        needed = [
            fk.column_names for fk in self.old.foreign_keys if self.new.foreign_key_map.get(fk.name) == fk
        ] + list(self.incoming)
        for columns in needed:
            if not columns or any(_serves(lead, columns) for lead in covered):
                continue
            name = f"temp_{md5_hex(','.join(columns))}"
            self.log.debug("foreign key columns %s.(%s) lose their index; adding a guard", self.name, ",".join(columns))
            guards.append((name, columns, ""))
            covered.append(columns)
        return guards

    def _auto_guard_name(self, column: str) -> str | None:
        hashed = f"mysqldiff_{md5_hex(f'{self.name}_{column}')}"
        if column in self.old.index_map:
            return hashed
        candidate = self.new.index_map.get(column)
        if candidate is None:
            return None
        if candidate.kind is IndexKind.PLAIN and candidate.columns == (column,) and not candidate.options:
            # the anonymous guard is named after its column, exactly the index wanted here
            self.adopted_indexes.add(candidate.name)
            return None
        return hashed

    def _drop_guards(self, guards: list[tuple[str | None, tuple[str, ...], str]]) -> None:
        for guard_name, columns, _ in guards:
            if guard_name is None and columns[0] in self.adopted_indexes:
                continue
            if any(c in self.dropped_columns for c in columns):
                self.log.debug("guard on %s.(%s) goes away with its column", self.name, ",".join(columns))
                continue
            self.emit(Phase.DROP_GUARD_INDEX, actions.DROP_TEMPORARY_INDEX, f"DROP INDEX {guard_name or columns[0]}")

    # columns

    def _diff_changed_columns(self) -> None:
        normalize = self.options.normalize_column
        for column in self.old.columns:
            new_column = self.new.column_map.get(column.name)
            if new_column is None:
                continue
            if normalize(column.definition) == normalize(new_column.definition):
                continue
            self.log.debug("field %s.%s changed", self.name, column.name)
            self.emit(
                Phase.CHANGE_COLUMN,
                actions.CHANGE_COLUMN,
                f"CHANGE COLUMN {column.name} {column.name} {new_column.definition}",
                f"was {column.definition}",
            )

    def _diff_added_columns(self) -> None:
        added = [c for c in self.new.columns if c.name not in self.old.column_map]
        # an auto-increment column must arrive together with its key, after the columns that key may use
        ordered = [c for c in added if not c.is_auto_increment] + [c for c in added if c.is_auto_increment]
        placed = set(self.old.column_map)
        for column in ordered:
            inline, trailer = self._inline_key(column)
            position = self._position(column, placed)
            self.log.debug("field %s.%s added", self.name, column.name)
            self.emit(
                Phase.ADD_COLUMN,
                actions.ADD_COLUMN,
                f"ADD COLUMN {column.name} {column.definition}{inline}{position}{trailer}",
            )
            placed.add(column.name)

    def _position(self, column: Column, placed: set[str]) -> str:
        columns = self.new.columns
        if column.position == 0:
            return " FIRST"
        if column.position == len(columns) - 1:
            return ""
        for previous in reversed(columns[: column.position]):
            if previous.name in placed:
                return f" AFTER {previous.name}"
        return " FIRST"

    def _inline_key(self, column: Column) -> tuple[str, str]:
        pk = self.new.primary_key
        if pk is not None and self.primary_key_changed and column.name in pk.column_names:
            if pk.column_names == (column.name,) and len(pk.columns) == 1 and not pk.options:
                self.inline_primary_key = True
                return " PRIMARY KEY", ""
            if column.is_auto_increment:
                self.inline_primary_key = True
                return "", f", ADD PRIMARY KEY {pk.describe()}"

        if column.is_auto_increment:
            for index in self.new.indexes:
                if index.name in self.old.index_map:
                    continue
                if leading_columns(index.columns)[:1] == (column.name,):
                    self.inline_indexes.add(index.name)
                    return "", f", {index.add_clause()}"
            return "", ""

        index = self.new.index_map.get(column.name)
        if (
            index is not None
            and index.name not in self.old.index_map
            and index.kind is IndexKind.UNIQUE
            and index.columns == (column.name,)
            and not index.options
        ):
            self.inline_indexes.add(index.name)
            return " UNIQUE KEY", ""
        return "", ""

    def _diff_dropped_columns(self) -> None:
        for column in self.old.columns:
            if column.name not in self.dropped_columns:
                continue
            self.log.debug("field %s.%s removed", self.name, column.name)
            self.emit(Phase.DROP_COLUMN, actions.DROP_COLUMN, f"DROP COLUMN {column.name}", f"was {column.definition}")

    # indexes and keys

    def _diff_indexes_dropped(self) -> None:
        for index in self.old.indexes:
            new_index = self.new.index_map.get(index.name)
            if new_index == index:
                continue
            action = actions.DROP_INDEX if new_index is None else actions.CHANGE_INDEX
            self.log.debug("index %s.%s %s", self.name, index.name, "removed" if new_index is None else "changed")
            self.emit(Phase.DROP_INDEX, action, f"DROP INDEX {index.name}", f"was {index.describe()}")

    def _diff_indexes_added(self) -> None:
        for index in self.new.indexes:
            old_index = self.old.index_map.get(index.name)
            if old_index == index:
                continue
            if index.name in self.inline_indexes or index.name in self.adopted_indexes:
                continue
            action = actions.ADD_INDEX if old_index is None else actions.CHANGE_INDEX
            self.emit(Phase.ADD_INDEX, action, index.add_clause())

    def _diff_primary_key_dropped(self) -> None:
        old_pk, new_pk = self.old.primary_key, self.new.primary_key
        if old_pk is None or not self.primary_key_changed:
            return
        action = actions.DROP_PK if new_pk is None else actions.CHANGE_PK
        self.emit(Phase.DROP_PRIMARY_KEY, action, "DROP PRIMARY KEY", f"was {old_pk.describe()}")

    def _diff_primary_key_added(self) -> None:
        old_pk, new_pk = self.old.primary_key, self.new.primary_key
        if new_pk is None or not self.primary_key_changed or self.inline_primary_key:
            return
        action = actions.ADD_PK if old_pk is None else actions.CHANGE_PK
        self.emit(Phase.ADD_PRIMARY_KEY, action, f"ADD PRIMARY KEY {new_pk.describe()}")

    def _diff_foreign_keys_dropped(self) -> None:
        for fk in self.old.foreign_keys:
            new_fk = self.new.foreign_key_map.get(fk.name)
            if new_fk == fk:
                continue
            action = actions.DROP_FK if new_fk is None else actions.CHANGE_FK
            self.emit(
                Phase.DROP_FOREIGN_KEY,
                action,
                f"DROP FOREIGN KEY {fk.name}",
                f"was CONSTRAINT {fk.name} FOREIGN KEY {fk.describe()}",
            )

    def _diff_foreign_keys_added(self) -> None:
        for fk in self.new.foreign_keys:
            old_fk = self.old.foreign_key_map.get(fk.name)
            if old_fk == fk:
                continue
            action = actions.ADD_FK if old_fk is None else actions.CHANGE_FK
            self.emit(Phase.ADD_FOREIGN_KEY, action, fk.add_clause())

    def _diff_checks_dropped(self) -> None:
        for check in self.old.checks:
            if self.new.check_map.get(check.name) == check:
                continue
            self.emit(Phase.DROP_FOREIGN_KEY, actions.DROP_CHECK, f"DROP CHECK {check.name}", f"was {check.describe()}")

    def _diff_checks_added(self) -> None:
        for check in self.new.checks:
            if self.old.check_map.get(check.name) == check:
                continue
            self.emit(Phase.ADD_FOREIGN_KEY, actions.ADD_CHECK, f"ADD CONSTRAINT {check.name} {check.describe()}")

    # options

    def _diff_options(self) -> None:
        normalize = self.options.normalize_table_options
        old_base, new_base = self.old.base_options, self.new.base_options
        if normalize(old_base) != normalize(new_base):
            self.log.debug("%s options changed", self.name)
            target = new_base
            if self.options.tolerant:
                target = AUTO_INCREMENT_OPTION_RE.sub("", target).strip()
            if not self.new.has_comment:
                target = f"COMMENT='' {target}".rstrip()
            self.emit(Phase.CHANGE_OPTIONS, actions.CHANGE_OPTIONS, target, f"was {old_base or 'blank'}")

        old_part, new_part = self.old.partitioning, self.new.partitioning
        if old_part != new_part:
            if old_part:
                self.emit(Phase.REMOVE_PARTITIONING, actions.DROP_PARTITIONING, "REMOVE PARTITIONING")
            if new_part:
                self.emit(Phase.PARTITION_TABLE, actions.CHANGE_PARTITIONS, new_part, f"was {old_part or 'blank'}")


class SchemaDiffer:
    def __init__(self, options: DiffOptions | None = None, log: logging.Logger | None = None) -> None:
        self.options = options or DiffOptions()
        self.log = log or DEFAULT_LOGGER

    def diff(self, old: Schema, new: Schema) -> list[Statement]:
        """Ordered statements turning ``old`` into ``new``; neither schema is modified."""
        self.log.info("comparing %s with %s", old.source or "first schema", new.source or "second schema")
        found: list[Statement] = []
        found.extend(self._diff_tables(old, new))
        found.extend(self._diff_routines(old, new))
        found.extend(self._diff_views(old, new))
        found.extend(self._create_tables(old, new))
        found.extend(self._create_routines(old, new))
        found.extend(self._create_views(old, new))
        ordered = order_statements(found)
        self.log.info("%d statements generated", len(ordered))
        return ordered

    def references(self, schema: Schema) -> list[Statement]:
        """Every selected table, each preceded by the tables it references."""
        out: list[Statement] = []
        seen: set[str] = set()

        def visit(table: Table) -> None:
            if table.name in seen:
                return
            seen.add(table.name)
            for ref in table.referenced_tables:
                parent = schema.table(ref)
                if parent is not None:
                    visit(parent)
            out.append(
                Statement(
                    phase=Phase.CREATE_TABLE,
                    name=table.name,
                    action=actions.REF_TABLE,
                    sql="",
                    referenced_tables=table.referenced_tables,
                )
            )

        for table in schema.tables.values():
            if self.options.table_selected(table.name):
                visit(table)
        return out

    @property
    def drops_allowed(self) -> bool:
        return not (self.options.only_both or self.options.keep_old_tables)

    def _incoming(self, old: Schema, new: Schema, name: str) -> list[tuple[str, ...]]:
        """Referenced columns of ``name`` used by foreign keys that survive the migration."""
        out: list[tuple[str, ...]] = []
        for child in old.tables.values():
            new_child = new.table(child.name)
            if new_child is None:
                continue
            for fk in child.foreign_keys:
                if fk.ref_table != name or new_child.foreign_key_map.get(fk.name) != fk:
                    continue
                columns = tuple(c for c in (column_ref(p) for p in fk.ref_columns) if c)
                if columns and columns not in out:
                    out.append(columns)
        return out

    def _diff_tables(self, old: Schema, new: Schema) -> list[Statement]:
        out: list[Statement] = []
        dropped: list[Table] = []
        for table in old.tables.values():
            if not self.options.table_selected(table.name):
                self.log.debug("table %s didn't match %s; ignoring", table.name, self.options.table_re)
                continue
            new_table = new.table(table.name)
            if new_table is None:
                self.log.debug("table %s dropped", table.name)
                dropped.append(table)
                continue
            diff = TableDiff(table, new_table, self.options, incoming=self._incoming(old, new, table.name), log=self.log)
            out.extend(diff.compute())

        if self.drops_allowed:
            for table in self._drop_order(dropped):
                out.append(
                    Statement(
                        phase=Phase.DROP_TABLE,
                        name=table.name,
                        action=actions.DROP_TABLE,
                        sql=f"DROP TABLE {table.name};",
                        spaced=True,
                    )
                )
        return out

    @staticmethod
    def _drop_order(tables: list[Table]) -> list[Table]:
        """Referencing tables before the tables they reference."""
        names = {t.name for t in tables}
        referrers: dict[str, list[Table]] = {t.name: [] for t in tables}
        for table in tables:
            for ref in table.referenced_tables:
                if ref in names and ref != table.name:
                    referrers[ref].append(table)

        out: list[Table] = []
        seen: set[str] = set()

        def visit(table: Table) -> None:
            if table.name in seen:
                return
            seen.add(table.name)
            for child in referrers[table.name]:
                visit(child)
            out.append(table)

        for table in tables:
            visit(table)
        return out

    def _create_tables(self, old: Schema, new: Schema) -> list[Statement]:
        if self.options.only_both:
            return []
        created: list[Table] = []
        seen: set[str] = set()

        def create(table: Table) -> None:
            if table.name in seen:
                return
            seen.add(table.name)
            for ref in table.referenced_tables:
                parent = new.table(ref)
                if parent is not None and old.table(ref) is None:
                    create(parent)
            self.log.debug("table %s added", table.name)
            created.append(table)

        for table in new.tables.values():
            if not self.options.table_selected(table.name) or old.table(table.name) is not None:
                continue
            create(table)

        out = [
            Statement(
                phase=Phase.CREATE_TABLE,
                name=table.name,
                action=actions.ADD_TABLE,
                sql=table.create_statement(),
                spaced=True,
                referenced_tables=table.referenced_tables,
            )
            for table in created
        ]
        for table in created:
            for fk in table.foreign_keys:
                out.append(
                    Statement(
                        phase=Phase.ADD_FOREIGN_KEY,
                        name=table.name,
                        action=actions.ADD_FK,
                        sql=f"ALTER TABLE {table.name} {fk.add_clause()};",
                    )
                )
        return out

    def _diff_routines(self, old: Schema, new: Schema) -> list[Statement]:
        out: list[Statement] = []
        for routine in old.routines.values():
            new_routine = new.routine(*routine.key)
            if new_routine is not None:
                if routine.signature() != new_routine.signature():
                    self.log.debug("%s %s changed", routine.type.lower(), routine.name)
                    out.append(self._routine_statement(new_routine, actions.CHANGE_ROUTINE, replace=routine))
            elif self.drops_allowed:
                self.log.debug("%s %s dropped", routine.type.lower(), routine.name)
                out.append(
                    Statement(
                        phase=Phase.DROP_ROUTINE,
                        name=routine.name,
                        action=actions.DROP_ROUTINE,
                        sql=routine.drop_statement(),
                    )
                )
        return out

    def _create_routines(self, old: Schema, new: Schema) -> list[Statement]:
        if self.options.only_both:
            return []
        return [
            self._routine_statement(routine, actions.ADD_ROUTINE)
            for routine in new.routines.values()
            if routine.key not in old.routines
        ]

    @staticmethod
    def _routine_statement(routine: Routine, action: str, replace: Routine | None = None) -> Statement:
        sql = routine.create_statement()
        if replace is not None:
            sql = f"{replace.drop_statement()}\n{sql}"
        return Statement(phase=Phase.CREATE_ROUTINE, name=routine.name, action=action, sql=sql)

    def _diff_views(self, old: Schema, new: Schema) -> list[Statement]:
        out: list[Statement] = []
        for view in old.views.values():
            new_view = new.view(view.name)
            if new_view is not None:
                if view.signature() != new_view.signature():
                    self.log.debug("view %s changed", view.name)
                    out.append(self._view_statement(new_view, actions.CHANGE_VIEW, new_view.alter_statement()))
            elif self.drops_allowed:
                self.log.debug("view %s dropped", view.name)
                out.append(
                    Statement(
                        phase=Phase.DROP_VIEW,
                        name=view.name,
                        action=actions.DROP_VIEW,
                        sql=f"DROP VIEW {view.name};",
                        spaced=True,
                    )
                )
        return out

    def _create_views(self, old: Schema, new: Schema) -> list[Statement]:
        if self.options.only_both:
            return []
        return [
            self._view_statement(view, actions.ADD_VIEW, view.create_statement())
            for view in new.views.values()
            if old.view(view.name) is None
        ]

    @staticmethod
    def _view_statement(view: View, action: str, sql: str) -> Statement:
        return Statement(phase=Phase.CREATE_VIEW, name=view.name, action=action, sql=sql)
