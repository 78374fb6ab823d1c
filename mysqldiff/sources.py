"""Obtain dump text for a schema argument: a dump file or a live database.

Live databases are read through the MySQL client tools (``mysqldump``,
``mysqlshow``, ``mysql``), which must be on ``PATH``.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import random
import re
import subprocess
import time
from pathlib import Path

from mysqldiff.errors import DumpError, SourceError
from mysqldiff.options import DiffOptions
from mysqldiff.schema import Schema, parse_schema

DEFAULT_LOGGER = logging.getLogger("mysqldiff")

AUTH_FIELDS = ("host", "port", "user", "password", "socket")
DB_PREFIX = "db:"
DUMP_ARGS = ["--no-data", "--quick", "--single-transaction", "--force", "--routines", "--triggers"]
MYSQLSHOW_DB_RE = re.compile(r"^\| ([\w-]+)")
UNKNOWN_DATABASE_RE = re.compile(r"Unknown database")
DANGEROUS_RE = re.compile(r"(?:^|;)\s*(use|(?:drop|create)\s+database)\b", flags=re.I)


@dataclasses.dataclass(frozen=True)
class ConnectionAuth:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    socket: str | None = None

    def is_set(self) -> bool:
        return any(getattr(self, f) for f in AUTH_FIELDS)

    def merged(self, override: ConnectionAuth) -> ConnectionAuth:
        """Fields of ``override`` win where set."""
        changes = {f: getattr(override, f) for f in AUTH_FIELDS if getattr(override, f)}
        return dataclasses.replace(self, **changes)

    def client_args(self) -> list[str]:
        return [f"--{f}={getattr(self, f)}" for f in AUTH_FIELDS if getattr(self, f)]

    def summary(self) -> str:
        # never print the password
        return " ".join(f"{f}={getattr(self, f)}" for f in AUTH_FIELDS if getattr(self, f) and f != "password")


@dataclasses.dataclass(frozen=True)
class SchemaSource:
    kind: str
    name: str
    auth: ConnectionAuth = ConnectionAuth()

    @property
    def is_file(self) -> bool:
        return self.kind == "file"

    def summary(self) -> str:
        if self.is_file:
            return f"file: {self.name}"
        args = self.auth.summary()
        return f"  db: {self.name}" + (f" ({args})" if args else "")


def run_tool(cmd: list[str], stdin: str | None = None, log: logging.Logger | None = None) -> str:
    """Run a client tool and return its combined output; any failure is a ``DumpError``."""
    log = log or DEFAULT_LOGGER
    log.debug("running %s", " ".join(a if not a.startswith("--password=") else "--password=***" for a in cmd))
    try:
        proc = subprocess.run(cmd, input=stdin, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise DumpError(f"Couldn't execute '{cmd[0]}': {exc}") from exc
    output = proc.stdout + proc.stderr
    if proc.returncode != 0:
        raise DumpError(f"{cmd[0]} failed with exit status {proc.returncode}", output=output)
    return output


def available_databases(auth: ConnectionAuth, log: logging.Logger | None = None) -> list[str]:
    output = run_tool(["mysqlshow", *auth.client_args()], log=log)
    dbs: list[str] = []
    for line in output.splitlines():
        m = MYSQLSHOW_DB_RE.match(line)
        if m:
            dbs.append(m.group(1))
    return dbs


def dump_database(name: str, auth: ConnectionAuth, log: logging.Logger | None = None) -> str:
    log = log or DEFAULT_LOGGER
    started = time.monotonic()
    output = run_tool(["mysqldump", *DUMP_ARGS, *auth.client_args(), name], log=log)
    if UNKNOWN_DATABASE_RE.search(output):
        raise DumpError(f"Couldn't read {name}'s table defs via mysqldump", output=output)
    log.debug("dump of %s took %.2fs", name, time.monotonic() - started)
    return output


def canonicalise_file(path: Path, auth: ConnectionAuth, log: logging.Logger | None = None) -> str:
    """Load a definitions file into a scratch database and dump it back in canonical form."""
    log = log or DEFAULT_LOGGER
    defs = path.read_text(encoding="utf-8")
    m = DANGEROUS_RE.search(defs)
    if m:
        raise SourceError(f"{path} contains dangerous command '{m.group(1)}'; aborting.")

    temp_db = f"test_mysqldiff-temp-{int(time.time())}_{os.getpid()}_{random.randint(0, 1 << 30)}"
    log.info("creating temporary database %s", temp_db)
    run_tool(["mysql", *auth.client_args()], stdin=f"CREATE DATABASE `{temp_db}`;\n", log=log)
    try:
        run_tool(["mysql", *auth.client_args(), temp_db], stdin=defs, log=log)
        try:
            return dump_database(temp_db, auth, log=log)
        except DumpError as exc:
            raise DumpError(
                f"Failed to create temporary database {temp_db} during canonicalization. "
                "Make sure that your mysql.db table has a row authorizing full access to all "
                "databases matching 'test\\_%', and that the database doesn't already exist.",
                output=exc.output,
            ) from exc
    finally:
        log.info("dropping temporary database %s", temp_db)
        run_tool(["mysql", *auth.client_args()], stdin=f"DROP DATABASE `{temp_db}`;\n", log=log)


def resolve_source(
    arg: str,
    auth: ConnectionAuth,
    explicit_db: bool = False,
    log: logging.Logger | None = None,
) -> SchemaSource:
    """Decide whether ``arg`` names a dump file or a database.

    ``db:NAME`` or per-side connection flags force a database; otherwise an
    existing file wins, then a database listed by ``mysqlshow``.
    """
    if arg.startswith(DB_PREFIX):
        return SchemaSource(kind="db", name=arg[len(DB_PREFIX) :], auth=auth)
    if explicit_db:
        return SchemaSource(kind="db", name=arg, auth=auth)
    if Path(arg).is_file():
        return SchemaSource(kind="file", name=arg, auth=auth)
    try:
        dbs = available_databases(auth, log=log)
    except DumpError as exc:
        raise SourceError(f"'{arg}' is not a valid file or database.\n{exc}") from exc
    if arg in dbs:
        return SchemaSource(kind="db", name=arg, auth=auth)
    raise SourceError(f"'{arg}' is not a valid file or database.")


def load_schema(
    source: SchemaSource,
    options: DiffOptions | None = None,
    canonicalise: bool = False,
    log: logging.Logger | None = None,
) -> Schema:
    log = log or DEFAULT_LOGGER
    if source.is_file:
        path = Path(source.name)
        text = canonicalise_file(path, source.auth, log=log) if canonicalise else path.read_text(encoding="utf-8")
    else:
        text = dump_database(source.name, source.auth, log=log)
    return parse_schema(text, options=options, source=source.summary(), log=log)
