"""Render generated statements as the final SQL patch text."""

from __future__ import annotations

import time
from typing import Iterable

from mysqldiff.options import DiffOptions
from mysqldiff.statements import Statement


def banner(version: str, old_source: str, new_source: str, options: DiffOptions, now: str | None = None) -> str:
    now = now or time.asctime()
    lines = [
        f"## mysqldiff {version}",
        "## ",
        f"## Run on {now}",
    ]
    described = options.describe()
    if described:
        lines.append(f"## Options: {described}")
    lines.extend(
        [
            "##",
            f"## --- {old_source}",
            f"## +++ {new_source}",
            "",
            "",
        ]
    )
    return "\n".join(lines)


def header(statement: Statement, with_references: bool = False) -> str:
    """Machine-readable block naming the table and action of the statement that follows."""
    lines = ["-- {", f'-- \t"name" : "{statement.name}",', f'-- \t"action_type" : "{statement.action}"']
    if with_references and statement.referenced_tables:
        lines[-1] += ","
        lines.append('-- \t"referenced_tables" : [')
        refs = [f'-- \t\t"{ref}"' for ref in statement.referenced_tables]
        lines.append(",\n".join(refs))
        lines.append("-- \t]")
    lines.append("-- }")
    return "\n".join(lines) + "\n"


def render_statement(statement: Statement, options: DiffOptions) -> str:
    text = statement.sql
    if statement.comment and not options.no_old_defs:
        text += f" # {statement.comment}"
    text += "\n"
    if statement.spaced:
        text += "\n"
    if options.list_tables:
        text = header(statement, with_references=bool(statement.referenced_tables)) + text
    return text


def render_references(statements: Iterable[Statement]) -> str:
    return "".join(header(s, with_references=True) + "\n" for s in statements)


def render_report(
    statements: list[Statement],
    options: DiffOptions,
    version: str,
    old_source: str = "",
    new_source: str = "",
    now: str | None = None,
) -> str:
    if not statements:
        return ""
    out: list[str] = []
    if not options.list_tables:
        out.append(banner(version, old_source, new_source, options, now=now))
    out.extend(render_statement(s, options) for s in statements)
    return "".join(out)
