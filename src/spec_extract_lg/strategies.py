"""
Layout-specific row walkers.

Every parser makes a single pass over the rows and writes through a
``SpecAccumulator``, the only place that touches the three specification maps.
"""

import re
from statistics import mean
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from .extraction import Row
from .models import (
    CategoryGroup,
    MultiValue,
    SpecificationType,
    SpecificationValue,
    SpecValue,
    TableStructure,
    TypedSpecification,
)
from .specs import TypeDetector, normalize_key
from .values import ValueExtractor

CATEGORY_PAIR_WORDS = ("GRAPHICS", "SPECIFICATION", "CATEGORY", "GENERAL")
CATEGORY_NAME_STRIP = re.compile(r"[^\w\s]")
DEFAULT_CATEGORY = "General"
EXPLICIT_CATEGORY_CONFIDENCE = 0.95

PRODUCT_KEY_WORDS = ("graphics engine", "gpu", "graphics coprocessor", "chipset")
GPU_MODEL_PATTERNS = [
    re.compile(r"(rtx|gtx|radeon|geforce)\s*[™®]*\s*(\d+[a-z]*(?:\s*xt)?)", re.IGNORECASE),
    re.compile(
        r"(?:(amd|nvidia)\s*)?(?:(radeon|geforce)\s*)?[™®]*\s*(rtx|gtx|rx)\s*[™®]*\s*(\d+[a-z]*(?:\s*xt)?)",
        re.IGNORECASE,
    ),
]


class RowMetrics(BaseModel):
    total_rows: int = 0
    data_rows: int = 0
    header_rows: int = 0
    continuation_rows: int = 0


def row_metrics(rows: List[Row]) -> RowMetrics:
    metrics = RowMetrics(total_rows=len(rows))
    for row in rows:
        if not row.is_pair:
            continue
        if row.is_table_header:
            metrics.header_rows += 1
        elif row.is_continuation:
            metrics.continuation_rows += 1
        elif row.key and row.value:
            metrics.data_rows += 1
    return metrics


def guess_product_name(rows: List[Row]) -> str:
    for row in rows:
        if not row.is_pair or not row.value:
            continue
        if any(word in row.key.lower() for word in PRODUCT_KEY_WORDS):
            for pattern in GPU_MODEL_PATTERNS:
                m = pattern.search(row.value)
                if m:
                    return " ".join(m.group(0).replace("™", "").replace("®", "").split())
            return row.value
    return ""


class ExtractionResult(BaseModel):
    specifications: Dict[str, SpecValue] = Field(default_factory=dict)
    typed_specifications: Dict[str, TypedSpecification] = Field(default_factory=dict)
    multi_value_specs: Dict[str, List[SpecificationValue]] = Field(default_factory=dict)
    explicit_categories: Dict[str, CategoryGroup] = Field(default_factory=dict)
    inline_value_count: int = 0
    multi_value_spec_count: int = 0


class SpecAccumulator:
    """Collects specifications for one table, keeping the three maps in step."""

    def __init__(self):
        self.result = ExtractionResult()

    def _store(self, key: str, typed: TypedSpecification) -> None:
        if key in self.result.typed_specifications and self.result.typed_specifications[key].has_multiple_values:
            self.result.multi_value_spec_count -= 1
        if typed.has_multiple_values:
            self.result.multi_value_spec_count += 1
        self.result.specifications[key] = typed.value
        self.result.typed_specifications[key] = typed
        self.result.multi_value_specs[key] = list(typed.alternatives)

    def save_single(self, key: str, value: SpecificationValue) -> None:
        self._store(key, TypedSpecification(
            value=value.normalized_value,
            type=value.type,
            unit=value.unit,
            numeric_value=value.numeric_value,
            confidence=value.confidence,
            value_count=1,
            alternatives=[value],
        ))

    def save_multi(self, key: str, values: List[SpecificationValue]) -> None:
        if not values:
            return
        if len(values) == 1:
            self.save_single(key, values[0])
            return

        continuations = [v for v in values if v.is_continuation]
        inline = [v for v in values if v.is_inline_value]
        primary = values[0] if not values[0].is_continuation else None

        self._store(key, TypedSpecification(
            value=_materialize(values, inline, continuations, primary),
            type=SpecificationType.LIST,
            confidence=mean(v.confidence for v in values),
            has_multiple_values=True,
            value_count=len(values),
            has_inline_values=bool(inline),
            alternatives=values,
            metadata={
                "hasContinuations": bool(continuations),
                "continuationCount": len(continuations),
                "inlineValueCount": len(inline),
                "primaryValue": primary.normalized_value if primary else "",
            },
        ))

    def add_explicit_category(self, name: str) -> None:
        if name not in self.result.explicit_categories:
            self.result.explicit_categories[name] = CategoryGroup(
                name=name,
                order=len(self.result.explicit_categories),
                confidence=EXPLICIT_CATEGORY_CONFIDENCE,
                is_explicit=True,
            )


def _materialize(
    values: List[SpecificationValue],
    inline: List[SpecificationValue],
    continuations: List[SpecificationValue],
    primary: Optional[SpecificationValue],
) -> SpecValue:
    normalized = [v.normalized_value for v in values]
    if inline:
        prefixes = [v.prefix for v in values]
        if all(prefixes) and len(set(prefixes)) == len(prefixes):
            return {v.prefix: v.normalized_value for v in values}
        return normalized
    if continuations and primary is not None:
        return MultiValue(primary=normalized[0], additional=normalized[1:])
    return normalized


def is_category_row(row: Row) -> bool:
    """Rows that open a new category in CategoryKeyValue tables."""
    if len(row.cells) == 1:
        cell = row.cells[0]
        text = cell.text
        if not text:
            return False
        return cell.colspan_count > 1 or cell.has_emphasis or (text.isupper())
    if row.is_pair and row.key and not row.value:
        return any(w in row.key.upper() for w in CATEGORY_PAIR_WORDS)
    return False


class StrategyParser:
    def __init__(self, types: TypeDetector, values: ValueExtractor):
        self.types = types
        self.values = values
        self.parsers: Dict[TableStructure, Callable[[List[Row], SpecAccumulator], None]] = {
            TableStructure.INLINE_MULTI_VALUE: self.parse_inline,
            TableStructure.PLAIN_MULTI_VALUE: self.parse_continuations,
            TableStructure.HYBRID_MULTI_VALUE: self.parse_continuations,
            TableStructure.SIMPLE_KEY_VALUE: self.parse_simple,
            TableStructure.CATEGORY_KEY_VALUE: self.parse_categories,
            TableStructure.COMPLEX_MULTI_VALUE: self.parse_continuations,
        }

    def parse(self, structure: TableStructure, rows: List[Row]) -> ExtractionResult:
        acc = SpecAccumulator()
        parser = self.parsers.get(structure, self.parse_simple)
        parser(rows, acc)
        return acc.result

    def parse_simple(self, rows: List[Row], acc: SpecAccumulator) -> None:
        for row in rows:
            if not row.is_pair or row.is_table_header or not row.key or not row.value:
                continue
            key = normalize_key(row.key)
            if key:
                acc.save_single(key, self.types.create_value(row.value, key))

    def parse_inline(self, rows: List[Row], acc: SpecAccumulator) -> None:
        for row in rows:
            if not row.is_pair or row.is_table_header or not row.key or not row.value:
                continue
            key = normalize_key(row.key)
            if not key:
                continue

            pairs = self.values.split(row.value)
            if len(pairs) > 1:
                values = [
                    self.types.create_value(value, key, order=i, prefix=prefix, is_inline_value=True)
                    for i, (prefix, value) in enumerate(pairs)
                ]
                acc.save_multi(key, values)
                acc.result.inline_value_count += len(values)
            else:
                acc.save_single(key, self.types.create_value(row.value, key))

    def parse_continuations(self, rows: List[Row], acc: SpecAccumulator) -> None:
        """Shared walker for Plain, Hybrid and Complex tables."""
        pending_key = ""
        pending: List[SpecificationValue] = []

        for row in rows:
            if not row.is_pair or row.is_table_header:
                continue
            key = normalize_key(row.key)
            if key:
                acc.save_multi(pending_key, pending)
                pending_key, pending = key, []
                if row.value:
                    pending.append(self.types.create_value(row.value, key))
            elif row.value and pending_key:
                pending.append(self.types.create_value(
                    row.value, pending_key, order=len(pending), is_continuation=True,
                ))

        acc.save_multi(pending_key, pending)

    def parse_categories(self, rows: List[Row], acc: SpecAccumulator) -> None:
        current = DEFAULT_CATEGORY
        for row in rows:
            if is_category_row(row):
                text = row.cells[0].text
                name = " ".join(CATEGORY_NAME_STRIP.sub("", text).split())
                if name:
                    current = name
                    acc.add_explicit_category(name)
                continue
            if not row.is_pair or row.is_table_header or not row.key or not row.value:
                continue
            key = normalize_key(row.key)
            if key:
                acc.save_single(key, self.types.create_value(row.value, key, category=current))
