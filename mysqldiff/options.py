"""Diff options and the tolerant-mode normalization rules.

Options can be built directly, from CLI flags, or from a YAML file such as::

    tolerant: true
    no-old-defs: true
    table-re: "^app_"
    tolerance_rules:
      - name: strip-charset
        scope: column
        pattern: " CHARACTER SET \\w+"
        replacement: ""
"""

from __future__ import annotations

import dataclasses
import re
from pathlib import Path
from typing import Any

try:
    import yaml
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required. Install with: pip install pyyaml") from exc


COLUMN_SCOPE = "column"
OPTIONS_SCOPE = "options"
SCOPES = (COLUMN_SCOPE, OPTIONS_SCOPE)


@dataclasses.dataclass(frozen=True)
class NormalizationRule:
    """A regex substitution applied to both sides of a comparison in tolerant mode."""

    name: str
    scope: str
    pattern: str
    replacement: str = ""

    def __post_init__(self) -> None:
        if self.scope not in SCOPES:
            raise ValueError(f"Unknown rule scope for {self.name}: {self.scope!r} (expected one of {SCOPES})")
        try:
            re.compile(self.pattern)
        except re.error as exc:
            raise ValueError(f"Invalid pattern for rule {self.name}: {exc}") from exc

    def apply(self, text: str) -> str:
        return re.sub(self.pattern, self.replacement, text, flags=re.I)


DEFAULT_TOLERANCE_RULES: tuple[NormalizationRule, ...] = (
    NormalizationRule("column-collate", COLUMN_SCOPE, r" COLLATE [\w_]+"),
    NormalizationRule("integer-display-width", COLUMN_SCOPE, r"\b(tinyint|smallint|mediumint|int|integer|bigint)\(\d+\)", r"\1"),
    NormalizationRule("float-precision", COLUMN_SCOPE, r"\b(float|double|real)\(\d+,\d+\)", r"\1"),
    NormalizationRule("default-empty-not-null", COLUMN_SCOPE, r" DEFAULT '' NOT NULL$"),
    NormalizationRule("trailing-not-null", COLUMN_SCOPE, r" NOT NULL$"),
    NormalizationRule("auto-increment-counter", OPTIONS_SCOPE, r" ?\bAUTO_INCREMENT=\d+"),
    NormalizationRule("table-collate", OPTIONS_SCOPE, r" ?\bCOLLATE=[\w_]+"),
)


@dataclasses.dataclass(frozen=True)
class DiffOptions:
    """Every flag that changes how schemas are parsed, compared or reported.

    tolerant         ignore cosmetic differences (see ``tolerance_rules``)
    no_old_defs      drop the trailing ``# was ...`` comments
    only_both        only report entities present in both schemas
    keep_old_tables  never drop tables, views or routines missing from the second schema
    table_re         only consider tables whose name matches this pattern
    list_tables      prefix each change with a machine-readable header
    refs             list table references instead of diffing
    save_quotes      keep identifier backticks while parsing
    """

    tolerant: bool = False
    no_old_defs: bool = False
    only_both: bool = False
    keep_old_tables: bool = False
    table_re: str | None = None
    list_tables: bool = False
    refs: bool = False
    save_quotes: bool = False
    tolerance_rules: tuple[NormalizationRule, ...] = DEFAULT_TOLERANCE_RULES

    def __post_init__(self) -> None:
        if self.table_re is not None:
            try:
                re.compile(self.table_re)
            except re.error as exc:
                raise ValueError(f"Invalid table-re {self.table_re!r}: {exc}") from exc

    def with_overrides(self, **changes: Any) -> DiffOptions:
        return dataclasses.replace(self, **changes)

    def table_selected(self, name: str) -> bool:
        if not self.table_re:
            return True
        return re.search(self.table_re, name) is not None

    def normalize_column(self, definition: str) -> str:
        return self._normalize(definition, COLUMN_SCOPE)

    def normalize_table_options(self, options: str) -> str:
        return self._normalize(options, OPTIONS_SCOPE)

    def _normalize(self, text: str, scope: str) -> str:
        if not self.tolerant:
            return text
        for rule in self.tolerance_rules:
            if rule.scope == scope:
                text = rule.apply(text)
        return text.strip()

    def describe(self) -> str:
        """Render the non-default options the way the report banner lists them."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            if f.name == "tolerance_rules":
                continue
            value = getattr(self, f.name)
            if value == f.default:
                continue
            flag = f.name.replace("_", "-")
            parts.append(flag if value is True else f"{flag}={value}")
        return ", ".join(parts)


OPTION_KEYS = {f.name for f in dataclasses.fields(DiffOptions)} - {"tolerance_rules"}


def parse_rule(entry: dict) -> NormalizationRule:
    if not isinstance(entry, dict):
        raise ValueError(f"Tolerance rule must be a mapping, got: {entry!r}")
    missing = [k for k in ("name", "pattern") if k not in entry]
    if missing:
        raise ValueError(f"Tolerance rule missing keys {missing}: {entry!r}")
    return NormalizationRule(
        name=str(entry["name"]),
        scope=str(entry.get("scope", COLUMN_SCOPE)),
        pattern=str(entry["pattern"]),
        replacement=str(entry.get("replacement", "")),
    )


def options_from_mapping(data: dict, base: DiffOptions | None = None) -> DiffOptions:
    base = base or DiffOptions()
    changes: dict[str, Any] = {}
    extra_rules: list[NormalizationRule] = []
    for raw_key, value in (data or {}).items():
        key = str(raw_key).replace("-", "_")
        if key == "tolerance_rules":
            extra_rules.extend(parse_rule(entry) for entry in value or [])
            continue
        if key not in OPTION_KEYS:
            raise ValueError(f"Unknown option in config: {raw_key}")
        if key == "table_re":
            changes[key] = None if value is None else str(value)
        else:
            changes[key] = bool(value)
    if extra_rules:
        changes["tolerance_rules"] = base.tolerance_rules + tuple(extra_rules)
    return base.with_overrides(**changes)


def load_options(path: Path, base: DiffOptions | None = None) -> DiffOptions:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return options_from_mapping(data, base)
