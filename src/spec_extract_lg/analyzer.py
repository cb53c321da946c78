"""
Structure analysis: six independent layout scores, then an argmax.

The thresholds below were tuned by hand against vendor fixture tables and are
kept as-is.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List

import structlog
from pydantic import BaseModel, Field

from .extraction import Row
from .models import STRUCTURE_PRIORITY, SourceMetadata, TableStructure
from .values import ValueExtractor

logger = structlog.get_logger(__name__)

CATEGORY_HEADER_WORDS = ("GRAPHICS", "SPECIFICATION")
CATEGORY_PAIR_WORDS = ("GRAPHICS", "SPECIFICATION", "CATEGORY", "GENERAL")


class StructureAnalysis(BaseModel):
    structure: TableStructure = TableStructure.UNKNOWN
    confidence: float = 0.0
    scores: Dict[TableStructure, float] = Field(default_factory=dict)

    @property
    def strategy(self) -> str:
        return f"Universal_{self.structure.value}"


def is_category_header(row: Row) -> bool:
    """Category header shapes recognized when scoring CategoryKeyValue."""
    if len(row.cells) == 1:
        cell = row.cells[0]
        text = cell.text.upper()
        return cell.colspan == "2" and any(w in text for w in CATEGORY_HEADER_WORDS)
    if row.is_pair and not row.value:
        return any(w in row.key.upper() for w in CATEGORY_PAIR_WORDS)
    return False


class StructureAnalyzer:
    def __init__(self, values: ValueExtractor):
        self.values = values
        self.log = logger.bind(component="structure_analyzer")
        self.scorers: Dict[TableStructure, Callable[[List[Row], SourceMetadata], float]] = {
            TableStructure.INLINE_MULTI_VALUE: self.score_inline,
            TableStructure.PLAIN_MULTI_VALUE: self.score_plain,
            TableStructure.HYBRID_MULTI_VALUE: self.score_hybrid,
            TableStructure.SIMPLE_KEY_VALUE: self.score_simple,
            TableStructure.CATEGORY_KEY_VALUE: self.score_category,
            TableStructure.COMPLEX_MULTI_VALUE: self.score_complex,
        }

    def analyze(self, rows: List[Row], source: SourceMetadata) -> StructureAnalysis:
        if not rows:
            return StructureAnalysis()

        with ThreadPoolExecutor(max_workers=len(self.scorers)) as executor:
            futures = {
                structure: executor.submit(scorer, rows, source)
                for structure, scorer in self.scorers.items()
            }
            # Wait for every score before choosing
            scores = {structure: future.result() for structure, future in futures.items()}

        # Continuation rows rule out the pure key/value layouts
        if any(r.is_continuation for r in rows):
            cap = scores[TableStructure.PLAIN_MULTI_VALUE]
            for structure in (TableStructure.SIMPLE_KEY_VALUE, TableStructure.CATEGORY_KEY_VALUE):
                scores[structure] = min(scores[structure], cap)

        best = STRUCTURE_PRIORITY[0]
        for structure in STRUCTURE_PRIORITY[1:]:
            if scores[structure] > scores[best]:
                best = structure

        analysis = StructureAnalysis(structure=best, confidence=scores[best], scores=scores)
        self.log.debug(
            "structure_selected",
            structure=best.value,
            confidence=round(scores[best], 3),
            scores={s.value: round(v, 3) for s, v in scores.items()},
        )
        return analysis

    def score_inline(self, rows: List[Row], source: SourceMetadata) -> float:
        data_rows = 0
        inline_rows = 0
        for row in rows:
            if not row.is_pair or not row.key or not row.value or row.is_table_header:
                continue
            data_rows += 1
            if self.values.has_multiple_inline_values(row.value):
                inline_rows += 1

        ratio = inline_rows / data_rows if data_rows else 0.0
        if ratio > 0.15:
            bonus = (0.1 if source.has_thead_tbody else 0.0) + (0.1 if source.has_strong_tags else 0.0)
            return min(1.0, 0.7 * ratio + bonus)
        return 0.0

    def score_plain(self, rows: List[Row], source: SourceMetadata) -> float:
        return 0.85 if any(r.is_pair and not r.key for r in rows) else 0.2

    def score_hybrid(self, rows: List[Row], source: SourceMetadata) -> float:
        data_rows = 0
        emphasis_rows = 0
        continuation_rows = 0
        for row in rows:
            if not row.is_pair or row.is_table_header:
                continue
            if row.key and row.value:
                data_rows += 1
                if row.key_has_emphasis:
                    emphasis_rows += 1
            elif row.is_continuation:
                continuation_rows += 1

        if not data_rows:
            return 0.1
        emphasis_ratio = emphasis_rows / data_rows
        continuation_ratio = continuation_rows / data_rows
        if source.has_strong_tags and (emphasis_ratio > 0.3 or continuation_ratio > 0.1):
            return min(0.9, 0.6 + emphasis_ratio * 0.2 + continuation_ratio * 0.1)
        return 0.1

    def score_simple(self, rows: List[Row], source: SourceMetadata) -> float:
        pair_rows = 0
        clean_pairs = 0
        continuation_rows = 0
        has_th_keys = False
        for row in rows:
            if not row.is_pair:
                continue
            pair_rows += 1
            if row.is_table_header:
                continue
            if row.cells[0].tag == "th":
                has_th_keys = True
            if row.key and row.value:
                # Packed inline values are not a clean pair
                if not self.values.has_multiple_inline_values(row.value):
                    clean_pairs += 1
            elif not row.key:
                continuation_rows += 1

        if not pair_rows:
            return 0.0
        simple_ratio = clean_pairs / pair_rows
        continuation_ratio = continuation_rows / pair_rows
        has_category_headers = any(is_category_header(r) for r in rows)

        if not has_category_headers:
            if has_th_keys and simple_ratio > 0.8 and continuation_ratio < 0.1:
                return min(0.95, 0.8 + simple_ratio * 0.15)
            if simple_ratio > 0.9 and continuation_ratio < 0.05:
                return min(0.85, 0.7 + simple_ratio * 0.15)
        return max(0.1, simple_ratio * 0.4)

    def score_category(self, rows: List[Row], source: SourceMetadata) -> float:
        headers = sum(1 for r in rows if is_category_header(r))
        if not headers:
            return 0.1
        ratio = headers / len(rows)
        if ratio > 0.05:
            return min(0.92, 0.75 + ratio * 0.17)
        return 0.75

    def score_complex(self, rows: List[Row], source: SourceMetadata) -> float:
        continuations = [r for r in rows if r.is_continuation]
        ratio = len(continuations) / len(rows)

        has_mode_rows = any(
            r.value.startswith("-") and ("mode:" in r.value or "Mode" in r.value or "Clock" in r.value)
            for r in continuations
        )
        if not (has_mode_rows or (continuations and len(rows) <= 3)):
            return 0.1

        if len(rows) <= 3 and ratio > 0.3:
            return 0.98
        if ratio > 0.3:
            return min(0.95, 0.7 + ratio * 0.25)
        if ratio > 0:
            return 0.85
        return 0.1
