"""Stored procedures, functions and triggers.

Routines are compared as a whole: any change drops and re-creates them.
"""

from __future__ import annotations

import dataclasses
import logging
import re

from mysqldiff.errors import ParseError
from mysqldiff.lines import split_parenthesized

DEFAULT_LOGGER = logging.getLogger("mysqldiff")

ROUTINE_RE = re.compile(
    r"^\s*CREATE(?:\s+DEFINER\s*=\s*(?P<definer>\S+))?\s+(?P<type>TRIGGER|PROCEDURE|FUNCTION)\s+(?P<rest>.*?)\s*(?:;;|;)?\s*$",
    flags=re.I | re.S,
)
TRIGGER_RE = re.compile(
    r"""^(?P<name>\S+)\s+(?P<timing>BEFORE|AFTER)\s+(?P<event>INSERT|UPDATE|DELETE)
    \s+ON\s+(?P<table>\S+)\s+FOR\s+EACH\s+ROW
    (?:\s+(?P<order>(?:FOLLOWS|PRECEDES)\s+\S+))?
    \s+(?P<body>.*)$""",
    flags=re.I | re.S | re.X,
)
SIGNATURE_RE = re.compile(r"^(?P<name>[^\s(]+)\s*(?P<rest>\(.*)$", flags=re.S)
CHARACTERISTIC_RE = re.compile(
    r"""^\s*(?P<item>
    RETURNS\s+\S+(?:\s*\([^)]*\))?(?:\s+unsigned)?(?:\s+(?:CHARSET|CHARACTER\s+SET)\s+\S+)?(?:\s+COLLATE\s+\S+)?
    |COMMENT\s+'(?:[^'\\]|\\.|'')*'
    |LANGUAGE\s+SQL
    |NOT\s+DETERMINISTIC
    |DETERMINISTIC
    |CONTAINS\s+SQL
    |NO\s+SQL
    |READS\s+SQL\s+DATA
    |MODIFIES\s+SQL\s+DATA
    |SQL\s+SECURITY\s+(?:DEFINER|INVOKER))""",
    flags=re.I | re.S | re.X,
)


def _squash(text: str) -> str:
    return " ".join(text.split())


@dataclasses.dataclass(frozen=True)
class Routine:
    name: str
    type: str
    parameters: str
    characteristics: tuple[str, ...]
    body: str
    definer: str = "CURRENT_USER"
    source: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.type, self.name)

    @property
    def options(self) -> str:
        return " ".join(self.characteristics)

    def signature(self) -> tuple[str, str, str]:
        return (_squash(self.parameters), _squash(self.options).upper(), _squash(self.body))

    def drop_statement(self) -> str:
        return f"DROP {self.type} {self.name};"

    def create_statement(self) -> str:
        """Re-creation wrapped in a ``;;`` delimiter block, owned by the current user."""
        return f"DELIMITER ;;\nCREATE DEFINER=CURRENT_USER {self.type} {self.source};;\nDELIMITER ;"


def _parse_characteristics(text: str) -> tuple[tuple[str, ...], str]:
    found: list[str] = []
    while True:
        m = CHARACTERISTIC_RE.match(text)
        if not m:
            break
        found.append(_squash(m.group("item")))
        text = text[m.end() :]
    return tuple(found), text.strip()


def parse_routine(text: str, log: logging.Logger | None = None) -> Routine:
    log = log or DEFAULT_LOGGER
    m = ROUTINE_RE.match(text)
    if not m:
        raise ParseError("couldn't parse routine definition", text=text.strip())
    kind = m.group("type").upper()
    rest = m.group("rest").strip()
    definer = m.group("definer") or "CURRENT_USER"

    if kind == "TRIGGER":
        t = TRIGGER_RE.match(rest)
        if not t:
            raise ParseError("couldn't parse trigger definition", text=text.strip())
        characteristics = [t.group("timing").upper(), t.group("event").upper(), "ON", t.group("table")]
        if t.group("order"):
            characteristics.append(_squash(t.group("order")))
        routine = Routine(
            name=t.group("name"),
            type=kind,
            parameters="",
            characteristics=(" ".join(characteristics),),
            body=t.group("body").strip(),
            definer=definer,
            source=rest,
        )
    else:
        s = SIGNATURE_RE.match(rest)
        split = split_parenthesized(s.group("rest")) if s else None
        if s is None or split is None:
            raise ParseError(f"couldn't parse {kind.lower()} parameter list", text=text.strip())
        parameters, remainder = split
        characteristics, body = _parse_characteristics(remainder)
        if not body:
            raise ParseError(f"{kind.lower()} '{s.group('name')}' has no body", entity=s.group("name"))
        routine = Routine(
            name=s.group("name"),
            type=kind,
            parameters=parameters.strip(),
            characteristics=characteristics,
            body=body,
            definer=definer,
            source=rest,
        )

    log.debug("parsed %s %s", routine.type.lower(), routine.name)
    return routine
