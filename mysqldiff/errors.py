"""Exception types raised while loading, parsing and diffing schemas."""

from __future__ import annotations


class MySQLDiffError(Exception):
    """Base class for every fatal mysqldiff condition."""


class ParseError(MySQLDiffError, ValueError):
    """A dump, table, view or routine definition could not be understood."""

    def __init__(self, message: str, entity: str | None = None, text: str | None = None) -> None:
        self.entity = entity
        self.text = text
        if text:
            message = f"{message}:\n{text}"
        super().__init__(message)


class DuplicateDefinitionError(ParseError):
    """The same field, index, key, constraint or entity was defined twice."""


class SourceError(MySQLDiffError):
    """A schema argument resolved to neither a file nor a reachable database."""


class DumpError(MySQLDiffError):
    """An external client tool failed; the message carries its output verbatim."""

    def __init__(self, message: str, output: str = "") -> None:
        self.output = output
        if output:
            message = f"{message}\n{output.rstrip()}"
        super().__init__(message)
