"""``mysqldiff`` command line: compare two schemas and print the migration SQL.

Usage:
    mysqldiff [options] DB1 DB2

Each of DB1/DB2 is a dump file, a database name, or ``db:NAME``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mysqldiff import __version__, diff_schemas
from mysqldiff.errors import MySQLDiffError, SourceError
from mysqldiff.options import DiffOptions, load_options
from mysqldiff.sources import AUTH_FIELDS, ConnectionAuth, load_schema, resolve_source

LOGGER_NAME = "mysqldiff"


def configure_logging(level: int, debug_file: Path | None = None) -> logging.Logger:
    log = logging.getLogger(LOGGER_NAME)
    if level <= 0:
        log.setLevel(logging.WARNING)
    elif level == 1:
        log.setLevel(logging.INFO)
    else:
        log.setLevel(logging.DEBUG)
    for handler in list(log.handlers):
        log.removeHandler(handler)
    handler: logging.Handler
    if debug_file is not None:
        handler = logging.FileHandler(debug_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    log.addHandler(handler)
    log.propagate = False
    return log


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mysqldiff",
        description="Compare two MySQL schemas and print the SQL that migrates the first into the second",
    )
    parser.add_argument("db1", help="First schema: dump file, database name or db:NAME")
    parser.add_argument("db2", help="Second schema: dump file, database name or db:NAME")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    cmp = parser.add_argument_group("comparison")
    cmp.add_argument("-t", "--tolerant", action="store_true", default=None, help="Ignore cosmetic differences")
    cmp.add_argument("-n", "--no-old-defs", action="store_true", default=None, help="Suppress '# was ...' comments")
    cmp.add_argument("-o", "--only-both", action="store_true", default=None, help="Only report entities present in both schemas")
    cmp.add_argument("-k", "--keep-old-tables", action="store_true", default=None, help="Never drop tables, views or routines")
    cmp.add_argument("-r", "--table-re", default=None, help="Only compare tables whose name matches this regex")
    cmp.add_argument("--list-tables", action="store_true", default=None, help="Prefix each change with a JSON-like header")
    cmp.add_argument("--refs", action="store_true", default=None, help="List table references of the first schema instead")
    cmp.add_argument("--save-quotes", action="store_true", default=None, help="Keep identifier backticks")
    cmp.add_argument("--config", default=None, help="YAML file with options and extra tolerance rules")
    cmp.add_argument("--canonicalise", action="store_true", help="Round-trip file sources through a scratch database")

    conn = parser.add_argument_group("connection")
    for field in AUTH_FIELDS:
        kind = int if field == "port" else str
        conn.add_argument(f"--{field}", type=kind, default=None, help=f"Connection {field} for both schemas")
        for side in (1, 2):
            conn.add_argument(f"--{field}{side}", type=kind, default=None, help=f"Connection {field} for schema {side}")

    out = parser.add_argument_group("output")
    out.add_argument("-d", "--debug", type=int, default=0, help="Debug level (1 info, 2+ debug)")
    out.add_argument("--debug-file", default=None, help="Write debug output to this file instead of stderr")
    out.add_argument("-O", "--output", default=None, help="Write the report to this file instead of stdout")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> DiffOptions:
    options = DiffOptions()
    if args.config:
        options = load_options(Path(args.config), options)
    changes = {}
    for name in ("tolerant", "no_old_defs", "only_both", "keep_old_tables", "table_re", "list_tables", "refs", "save_quotes"):
        value = getattr(args, name)
        if value is not None:
            changes[name] = value
    return options.with_overrides(**changes)


def side_auth(args: argparse.Namespace, side: int) -> tuple[ConnectionAuth, bool]:
    """Connection settings for one side and whether any were given for that side only."""
    shared = ConnectionAuth(**{f: getattr(args, f) for f in AUTH_FIELDS})
    own = ConnectionAuth(**{f: getattr(args, f"{f}{side}") for f in AUTH_FIELDS})
    return shared.merged(own), own.is_set()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log = configure_logging(args.debug, Path(args.debug_file) if args.debug_file else None)

    try:
        options = build_options(args)
    except (OSError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    try:
        schemas = []
        for side, arg in ((1, args.db1), (2, args.db2)):
            auth, explicit = side_auth(args, side)
            source = resolve_source(arg, auth, explicit_db=explicit, log=log)
            schemas.append(load_schema(source, options, canonicalise=args.canonicalise, log=log))
        report = diff_schemas(schemas[0], schemas[1], options, log=log)
    except SourceError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except MySQLDiffError as exc:
        print(f"mysqldiff: {exc}", file=sys.stderr)
        return 1

    if args.output:
        write_text(Path(args.output), report)
        log.info("wrote %s", args.output)
    else:
        sys.stdout.write(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
