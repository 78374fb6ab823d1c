"""A parsed schema: every table, view and routine of one dump, keyed by name."""

from __future__ import annotations

import dataclasses
import logging

from mysqldiff.dump import split_definitions
from mysqldiff.errors import DuplicateDefinitionError, ParseError
from mysqldiff.options import DiffOptions
from mysqldiff.routine import Routine, parse_routine
from mysqldiff.table import Table, parse_table
from mysqldiff.view import View, parse_view

DEFAULT_LOGGER = logging.getLogger("mysqldiff")


@dataclasses.dataclass(frozen=True)
class Schema:
    tables: dict[str, Table] = dataclasses.field(default_factory=dict)
    views: dict[str, View] = dataclasses.field(default_factory=dict)
    routines: dict[tuple[str, str], Routine] = dataclasses.field(default_factory=dict)
    source: str = ""

    def table(self, name: str) -> Table | None:
        return self.tables.get(name)

    def view(self, name: str) -> View | None:
        return self.views.get(name)

    def routine(self, kind: str, name: str) -> Routine | None:
        return self.routines.get((kind, name))

    def is_empty(self) -> bool:
        return not (self.tables or self.views or self.routines)


def parse_schema(
    raw: str,
    options: DiffOptions | None = None,
    source: str = "",
    log: logging.Logger | None = None,
) -> Schema:
    """Parse dump text into a ``Schema``.

    ``DROP`` statements in the dump discard any earlier definition of the same
    name, so mysqldump placeholders (a table or a ``SELECT 1`` view standing in
    for a view) give way to the final definition. ``ALTER`` statements are
    skipped with a warning since they cannot be folded into the model. A table
    later redefined as a view is also replaced by that view.
    """
    options = options or DiffOptions()
    log = log or DEFAULT_LOGGER

    tables: dict[str, Table] = {}
    views: dict[str, View] = {}
    routines: dict[tuple[str, str], Routine] = {}

    for definition in split_definitions(raw, save_quotes=options.save_quotes, log=log):
        if definition.kind is None:
            raise ParseError("dump contains no recognizable table, view or routine definitions", text=definition.text[:500])
        if definition.action == "DROP":
            name = definition.dropped_name
            dropped: Table | View | Routine | None
            if definition.kind == "TABLE":
                dropped = tables.pop(name, None)
            elif definition.kind == "VIEW":
                dropped = views.pop(name, None)
            else:
                dropped = routines.pop((definition.kind, name), None)
            if dropped is not None:
                log.debug("%s %s dropped by the dump itself", definition.kind.lower(), name)
            continue
        if definition.action == "ALTER":
            log.warning("ignoring ALTER statement in dump: %s", definition.text.splitlines()[0])
            continue

        if definition.kind == "TABLE":
            table = parse_table(definition.text, log=log)
            if table.name in tables or table.name in views:
                raise DuplicateDefinitionError(f"table '{table.name}' defined twice", entity=table.name)
            tables[table.name] = table
        elif definition.kind == "VIEW":
            view = parse_view(definition.text, log=log)
            if view.name in views:
                raise DuplicateDefinitionError(f"view '{view.name}' defined twice", entity=view.name)
            if tables.pop(view.name, None) is not None:
                log.debug("view %s replaces its placeholder table", view.name)
            views[view.name] = view
        else:
            routine = parse_routine(definition.text, log=log)
            if routine.key in routines:
                raise DuplicateDefinitionError(
                    f"{routine.type.lower()} '{routine.name}' defined twice", entity=routine.name
                )
            routines[routine.key] = routine

    log.info(
        "parsed %s: %d tables, %d views, %d routines",
        source or "schema",
        len(tables),
        len(views),
        len(routines),
    )
    return Schema(tables=tables, views=views, routines=routines, source=source)
