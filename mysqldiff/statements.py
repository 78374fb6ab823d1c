"""Generated DDL statements and the fixed order they are executed in."""

from __future__ import annotations

import dataclasses
import enum
from typing import Iterable


class Phase(enum.IntEnum):
    """Execution order of generated statements; lower phases run first.

    Foreign keys go first so no later index or column change trips over them.
    Guard indexes are added before any index or primary key they stand in for
    is dropped, and removed only once every other change to the table is done.
    """

    DROP_FOREIGN_KEY = enum.auto()
    DROP_ROUTINE = enum.auto()
    DROP_VIEW = enum.auto()
    DROP_TABLE = enum.auto()
    REMOVE_PARTITIONING = enum.auto()
    CHANGE_OPTIONS = enum.auto()
    CREATE_TABLE = enum.auto()
    GUARD_INDEX = enum.auto()
    DROP_INDEX = enum.auto()
    DROP_PRIMARY_KEY = enum.auto()
    CHANGE_COLUMN = enum.auto()
    ADD_COLUMN = enum.auto()
    ADD_PRIMARY_KEY = enum.auto()
    ADD_INDEX = enum.auto()
    DROP_COLUMN = enum.auto()
    ADD_FOREIGN_KEY = enum.auto()
    CREATE_VIEW = enum.auto()
    CREATE_ROUTINE = enum.auto()
    DROP_GUARD_INDEX = enum.auto()
    PARTITION_TABLE = enum.auto()


# action types reported in list-tables headers
DROP_TABLE = "drop_table"
ADD_TABLE = "add_table"
REF_TABLE = "ref_table"
CHANGE_COLUMN = "change_column"
ADD_COLUMN = "add_column"
DROP_COLUMN = "drop_column"
CHANGE_INDEX = "change_index"
ADD_INDEX = "add_index"
DROP_INDEX = "drop_index"
ADD_TEMPORARY_INDEX = "add_temporary_index"
DROP_TEMPORARY_INDEX = "drop_temporary_index"
ADD_PK = "add_pk"
DROP_PK = "drop_pk"
CHANGE_PK = "change_pk"
ADD_FK = "add_fk"
DROP_FK = "drop_fk"
CHANGE_FK = "change_fk"
ADD_CHECK = "add_check"
DROP_CHECK = "drop_check"
CHANGE_OPTIONS = "change_options"
DROP_PARTITIONING = "drop_partitioning"
CHANGE_PARTITIONS = "change_partitions"
ADD_VIEW = "add_view"
DROP_VIEW = "drop_view"
CHANGE_VIEW = "change_view"
ADD_ROUTINE = "add_routine"
DROP_ROUTINE = "drop_routine"
CHANGE_ROUTINE = "change_routine"


@dataclasses.dataclass(frozen=True)
class Statement:
    """One generated statement.

    ``sql`` is complete, terminator included; ``comment`` is the old
    definition rendered as a trailing ``# ...`` unless suppressed. ``spaced``
    statements are followed by a blank line in the report.
    """

    phase: Phase
    name: str
    action: str
    sql: str
    comment: str = ""
    spaced: bool = False
    referenced_tables: tuple[str, ...] = ()


def order_statements(statements: Iterable[Statement]) -> list[Statement]:
    # sorted() is stable: ties keep discovery order
    return sorted(statements, key=lambda s: s.phase)
