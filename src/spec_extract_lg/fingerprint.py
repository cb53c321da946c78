"""
Source/vendor fingerprinting.

Signals and the vendor label are advisory: the structure analyzer may use the
signals as scoring evidence but the label never decides how a table is
parsed. Vendor shapes live in ``data/vendor_rules.yml``; each rule is a set of
named predicates that must all hold.
"""

from importlib import resources
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field
from ruamel.yaml import YAML

from .extraction import Row, TableNode
from .models import SourceMetadata
from .values import ValueExtractor

logger = structlog.get_logger(__name__)

CATEGORY_HEADER_WORDS = ("GRAPHICS", "SPECIFICATION")
CATEGORY_KEY_WORDS = ("GRAPHICS", "MODEL", "CHIPSET")


class VendorRule(BaseModel):
    name: str
    table_structure_type: str = "Unknown"
    complexity: str = "Variable"
    match: Dict[str, Any] = Field(default_factory=dict)


class TableSignals:
    """Table-level facts computed once and shared by every predicate."""

    def __init__(self, table: TableNode, values: ValueExtractor):
        self.table = table
        self.pairs: List[Row] = [r for r in table.rows if r.is_pair]
        self.has_strong_tags = any(r.has_emphasis for r in table.rows)
        self.has_width_attributes = any(c.width for r in table.rows for c in r.cells if c.tag == "td")
        self.has_continuations = any(r.is_continuation for r in self.pairs)
        self.has_inline_multi_values = any(
            values.has_multiple_inline_values(r.value) for r in self.pairs
        )


def _classes_all(signals: TableSignals, names: List[str]) -> bool:
    return all(name in signals.table.classes for name in names)


def _flag(attr: str) -> Callable[[TableSignals, bool], bool]:
    def check(signals: TableSignals, expected: bool) -> bool:
        return bool(getattr(signals, attr)) == bool(expected)
    return check


def _percent_width_style(signals: TableSignals, expected: bool) -> bool:
    found = any(
        "%" in c.style for r in signals.table.rows for c in r.cells if c.tag == "td"
    )
    return found == bool(expected)


def _category_headers(signals: TableSignals, expected: bool) -> bool:
    found = False
    for row in signals.table.rows:
        if len(row.cells) == 1:
            cell = row.cells[0]
            text = cell.text.upper()
            if cell.colspan == "2" and any(w in text for w in CATEGORY_HEADER_WORDS):
                found = True
                break
        elif row.is_pair and any(w in row.key.upper() for w in CATEGORY_KEY_WORDS):
            found = True
            break
    return found == bool(expected)


def _specification_header(signals: TableSignals, expected: bool) -> bool:
    found = any(
        len(r.cells) == 1 and r.cells[0].tag == "td" and r.cells[0].colspan == "2"
        and "specification" in r.cells[0].text.lower()
        for r in signals.table.rows
    )
    return found == bool(expected)


def _value_contains_all(signals: TableSignals, needles: List[str]) -> bool:
    return any(all(n in r.value for n in needles) for r in signals.pairs)


def _value_contains_any(signals: TableSignals, needles: List[str]) -> bool:
    return any(n in r.value for r in signals.pairs for n in needles)


def _any_of(signals: TableSignals, alternatives: List[Dict[str, Any]]) -> bool:
    return any(_matches(signals, alt) for alt in alternatives)


PREDICATES: Dict[str, Callable[[TableSignals, Any], bool]] = {
    "classes_all": _classes_all,
    "has_thead": lambda s, expected: s.table.has_thead == bool(expected),
    "has_strong_tags": _flag("has_strong_tags"),
    "has_width_attributes": _flag("has_width_attributes"),
    "has_continuations": _flag("has_continuations"),
    "has_inline_multi_values": _flag("has_inline_multi_values"),
    "percent_width_style": _percent_width_style,
    "category_headers": _category_headers,
    "specification_header": _specification_header,
    "value_contains_all": _value_contains_all,
    "value_contains_any": _value_contains_any,
    "any_of": _any_of,
}


def _matches(signals: TableSignals, match: Dict[str, Any]) -> bool:
    return all(PREDICATES[name](signals, arg) for name, arg in match.items())


def load_vendor_rules(path: Optional[Path] = None) -> List[VendorRule]:
    """Load the vendor rule table; the packaged table when no path is given."""
    yaml = YAML(typ="safe")
    if path is None:
        source = resources.files(__package__).joinpath("data/vendor_rules.yml")
        with source.open("r", encoding="utf-8") as f:
            cfg = yaml.load(f)
    else:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.load(f)

    rules = [VendorRule(**entry) for entry in (cfg or {}).get("vendors", [])]
    for rule in rules:
        _validate(rule.match, rule.name)
    return rules


def _validate(match: Dict[str, Any], rule_name: str) -> None:
    for name, arg in match.items():
        if name not in PREDICATES:
            raise ValueError(f"Unknown vendor predicate '{name}' in rule '{rule_name}'")
        if name == "any_of":
            for alt in arg:
                _validate(alt, rule_name)


class SourceFingerprinter:
    def __init__(self, values: ValueExtractor, rules: Optional[List[VendorRule]] = None):
        self.values = values
        self.rules = rules if rules is not None else load_vendor_rules()
        self.log = logger.bind(component="source_fingerprinter")

    def fingerprint(self, table: TableNode) -> SourceMetadata:
        signals = TableSignals(table, self.values)
        rule = next((r for r in self.rules if _matches(signals, r.match)), None)

        source = SourceMetadata(
            vendor=rule.name if rule else "Generic",
            table_classes=list(table.classes),
            has_thead_tbody=table.has_thead,
            has_strong_tags=signals.has_strong_tags,
            has_width_attributes=signals.has_width_attributes,
            has_inline_multi_values=signals.has_inline_multi_values,
            table_structure_type=rule.table_structure_type if rule else "Unknown",
            complexity=rule.complexity if rule else "Variable",
        )
        self.log.debug("source_fingerprinted", table=table.index, vendor=source.vendor)
        return source
