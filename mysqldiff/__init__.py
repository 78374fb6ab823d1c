"""Compare two MySQL schemas and print the DDL that turns the first into the second."""

from __future__ import annotations

import logging

from mysqldiff.differ import SchemaDiffer
from mysqldiff.errors import DumpError, DuplicateDefinitionError, MySQLDiffError, ParseError, SourceError
from mysqldiff.options import DiffOptions
from mysqldiff.report import render_references, render_report
from mysqldiff.schema import Schema, parse_schema

__version__ = "0.1.0"

__all__ = [
    "DiffOptions",
    "DumpError",
    "DuplicateDefinitionError",
    "MySQLDiffError",
    "ParseError",
    "Schema",
    "SchemaDiffer",
    "SourceError",
    "diff_schemas",
    "parse_schema",
]


def diff_schemas(
    old: Schema,
    new: Schema,
    options: DiffOptions | None = None,
    log: logging.Logger | None = None,
    now: str | None = None,
) -> str:
    """Full report text: banner plus ordered statements, or '' when nothing differs."""
    options = options or DiffOptions()
    differ = SchemaDiffer(options, log=log)
    if options.refs:
        return render_references(differ.references(old))
    statements = differ.diff(old, new)
    return render_report(statements, options, __version__, old.source, new.source, now=now)
