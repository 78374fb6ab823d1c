"""CREATE VIEW definitions and the ALTER/CREATE statements that reproduce them."""

from __future__ import annotations

import dataclasses
import logging
import re

from mysqldiff.errors import ParseError

DEFAULT_LOGGER = logging.getLogger("mysqldiff")

VIEW_RE = re.compile(
    r"""^\s*CREATE(?:\s+OR\s+REPLACE)?
    (?:\s+ALGORITHM\s*=\s*(?P<algorithm>\S+))?
    (?:\s+DEFINER\s*=\s*(?P<definer>\S+))?
    (?:\s+SQL\s+SECURITY\s+(?P<security>DEFINER|INVOKER))?
    \s+VIEW\s+(?P<name>[^\s(]+)
    \s*(?P<columns>\([^)]*\))?
    \s*AS\s+(?P<select>.*?)
    (?:\s+WITH\s+(?P<check>(?:(?:CASCADED|LOCAL)\s+)?CHECK\s+OPTION))?
    \s*;?\s*$""",
    flags=re.I | re.S | re.X,
)


def _squash(text: str) -> str:
    return " ".join(text.split())


@dataclasses.dataclass(frozen=True)
class View:
    name: str
    columns: str
    select: str
    algorithm: str = "UNDEFINED"
    definer: str = "CURRENT_USER"
    security: str = "DEFINER"
    check_option: str = ""
    definition: str = ""

    def signature(self) -> tuple[str, str, str, str, str]:
        # the definer is not compared: the migration always re-creates as CURRENT_USER
        return (
            _squash(self.columns),
            _squash(self.select),
            self.algorithm.upper(),
            self.security.upper(),
            _squash(self.check_option).upper(),
        )

    def _body(self) -> str:
        columns = f" {self.columns}" if self.columns else ""
        check = f" WITH {_squash(self.check_option)}" if self.check_option else ""
        return (
            f"ALGORITHM={self.algorithm} DEFINER=CURRENT_USER SQL SECURITY {self.security} "
            f"VIEW {self.name}{columns} AS {self.select}{check};"
        )

    def create_statement(self) -> str:
        return f"CREATE {self._body()}"

    def alter_statement(self) -> str:
        return f"ALTER {self._body()}"


def parse_view(text: str, log: logging.Logger | None = None) -> View:
    log = log or DEFAULT_LOGGER
    m = VIEW_RE.match(text)
    if not m:
        raise ParseError("couldn't parse view definition", text=text.strip())
    log.debug("parsed view %s", m.group("name"))
    return View(
        name=m.group("name"),
        columns=(m.group("columns") or "").strip(),
        select=m.group("select").strip(),
        algorithm=(m.group("algorithm") or "UNDEFINED").upper(),
        definer=m.group("definer") or "CURRENT_USER",
        security=(m.group("security") or "DEFINER").upper(),
        check_option=_squash(m.group("check") or "").upper(),
        definition=text.strip(),
    )
