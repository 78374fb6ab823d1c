"""Turn raw dump text into the individual CREATE/ALTER/DROP definitions it contains."""

from __future__ import annotations

import dataclasses
import logging
import re

DEFAULT_LOGGER = logging.getLogger("mysqldiff")

ENTITY_RE = re.compile(
    r"""^\s*(?P<action>CREATE|ALTER|DROP)\b
    (?:\s+OR\s+REPLACE)?
    (?:\s+(?:TEMPORARY|ALGORITHM\s*=\s*\S+|DEFINER\s*=\s*\S+|SQL\s+SECURITY\s+\S+))*
    \s+(?P<kind>TABLE|VIEW|TRIGGER|PROCEDURE|FUNCTION)\b""",
    flags=re.I | re.S | re.X,
)
DROP_NAME_RE = re.compile(
    r"^\s*DROP\s+(?:TABLE|VIEW|TRIGGER|PROCEDURE|FUNCTION)\s+(?:IF\s+EXISTS\s+)?(?P<name>[^\s;,]+)",
    flags=re.I,
)
DELIMITER_RE = re.compile(r"^DELIMITER\s+(\S+)\s*$", flags=re.I)
SET_COMMENT_RE = re.compile(r"/\*!\d+\s+SET\s+.*?\*/[ \t]*;?[ \t]*", flags=re.I | re.S)
EXECUTABLE_COMMENT_RE = re.compile(r"/\*!\d*\s*(.*?)\*/", flags=re.S)
BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/[ \t]*", flags=re.S)
IDENTIFIER_QUOTE_RE = re.compile(r"`([^`]+)`")
BLANK_LINES_RE = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")
ENVIRONMENT_RE = re.compile(
    r"^\s*(?:SET|USE|LOCK|UNLOCK|INSERT|REPLACE|START|COMMIT|BEGIN|(?:CREATE|ALTER|DROP)\s+(?:DATABASE|SCHEMA))\b",
    flags=re.I,
)


@dataclasses.dataclass(frozen=True)
class RawDefinition:
    """One statement from the dump; ``kind`` is None for an unrecognizable blob."""

    action: str | None
    kind: str | None
    text: str

    @property
    def dropped_name(self) -> str | None:
        """Name removed by a ``DROP`` statement; None for anything else."""
        if self.action != "DROP":
            return None
        m = DROP_NAME_RE.match(self.text)
        return m.group("name") if m else None


def strip_identifier_quotes(text: str) -> str:
    return IDENTIFIER_QUOTE_RE.sub(r"\1", text)


def strip_line_comments(text: str) -> str:
    """Remove ``#`` and ``-- `` comments that are not inside a quoted string."""
    out: list[str] = []
    quote: str | None = None
    idx = 0
    size = len(text)
    while idx < size:
        ch = text[idx]
        if quote:
            out.append(ch)
            if ch == "\\" and quote != "`" and idx + 1 < size:
                out.append(text[idx + 1])
                idx += 2
                continue
            if ch == quote:
                quote = None
            idx += 1
            continue
        if ch in "'\"`":
            quote = ch
        elif text.startswith("/*", idx):
            end = text.find("*/", idx + 2)
            end = size if end < 0 else end + 2
            out.append(text[idx:end])
            idx = end
            continue
        elif ch == "#" or (text.startswith("--", idx) and (idx + 2 >= size or text[idx + 2] in " \t\r\n")):
            end = text.find("\n", idx)
            if end < 0:
                break
            idx = end
            continue
        out.append(ch)
        idx += 1
    return "".join(out)


def decode_dump_text(raw: str, save_quotes: bool = False) -> str:
    """Strip comments and environment settings, keeping executable-comment payloads."""
    text = raw.replace("\r\n", "\n")
    if not save_quotes:
        text = strip_identifier_quotes(text)
    text = strip_line_comments(text)
    text = SET_COMMENT_RE.sub("", text)
    text = EXECUTABLE_COMMENT_RE.sub(lambda m: "\n" + m.group(1), text)
    text = BLOCK_COMMENT_RE.sub("", text)
    return text


def split_statements(text: str) -> list[str]:
    """Split on statement terminators, honouring ``DELIMITER`` directives.

    Statements ended by a custom delimiter (routines) are returned without it;
    statements ended by ``;`` keep their terminator.
    """
    statements: list[str] = []
    delimiter = ";"
    buf: list[str] = []
    for line in text.split("\n"):
        stripped = line.strip()
        m = DELIMITER_RE.match(stripped)
        if m:
            if any(b.strip() for b in buf):
                statements.append("\n".join(buf))
            buf = []
            delimiter = m.group(1)
            continue
        if not buf and (stripped == delimiter or not stripped.strip(";")):
            continue
        buf.append(line.rstrip())
        if stripped.endswith(delimiter):
            stmt = "\n".join(buf)
            if delimiter != ";":
                stmt = stmt.rstrip()[: -len(delimiter)].rstrip()
            statements.append(stmt)
            buf = []
    if any(b.strip() for b in buf):
        statements.append("\n".join(buf))
    return statements


def classify_statement(statement: str) -> RawDefinition | None:
    m = ENTITY_RE.match(statement)
    if not m:
        return None
    text = BLANK_LINES_RE.sub("\n", statement.strip())
    return RawDefinition(action=m.group("action").upper(), kind=m.group("kind").upper(), text=text)


def split_definitions(raw: str, save_quotes: bool = False, log: logging.Logger | None = None) -> list[RawDefinition]:
    log = log or DEFAULT_LOGGER
    text = decode_dump_text(raw, save_quotes=save_quotes)
    definitions: list[RawDefinition] = []
    skipped = 0
    unknown = 0
    for statement in split_statements(text):
        definition = classify_statement(statement)
        if definition is None:
            if ENVIRONMENT_RE.match(statement):
                skipped += 1
            else:
                unknown += 1
            log.debug("skipping non-definition statement: %s", statement.strip().splitlines()[0])
            continue
        definitions.append(definition)
    log.debug("dump split into %d definitions (%d other statements skipped)", len(definitions), skipped + unknown)

    if not definitions and unknown:
        # nothing recognizable: hand the whole blob on so entity parsing fails loudly
        return [RawDefinition(action=None, kind=None, text=text.strip())]
    return definitions
