"""
Document-level entry point.

``TableParser.parse`` selects every table in the HTML, runs the per-table
graph for each one on a thread pool and returns the results in document
order. A table that fails is skipped with a warning; a failure outside the
per-table boundary is reported in ``errors`` (or re-raised on request).
"""

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from statistics import mean
from typing import List, Optional, Tuple

import structlog

from .analyzer import StructureAnalyzer
from .cache import InMemoryResultCache, ResultCache, make_cache_key, ttl_for_quality
from .categories import CategoryMapper
from .config import Settings
from .extraction import RowExtractor, TableNode
from .fingerprint import SourceFingerprinter, VendorRule, load_vendor_rules
from .graph import TableState, build_table_graph
from .models import STRUCTURE_PRIORITY, ParsingOptions, ParsingResult, ProductSpecification
from .quality import QualityAnalyzer
from .regex_cache import RegexCache
from .specs import TypeDetector
from .strategies import StrategyParser
from .values import ValueExtractor

logger = structlog.get_logger(__name__)

SCHEMA_VERSION = "1.0"

_shared_cache: Optional[InMemoryResultCache] = None
_shared_cache_lock = threading.Lock()


def shared_cache(max_entries: int = 1000) -> InMemoryResultCache:
    """Process-wide result cache, created on first use.

    ``max_entries`` sizes the cache when it is created; later calls get the
    existing instance.
    """
    global _shared_cache
    with _shared_cache_lock:
        if _shared_cache is None:
            _shared_cache = InMemoryResultCache(max_entries=max_entries)
        return _shared_cache


class TableParser:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[ResultCache] = None,
        regex_cache: Optional[RegexCache] = None,
        analyzer: Optional[StructureAnalyzer] = None,
        extractor: Optional[RowExtractor] = None,
        vendor_rules: Optional[List[VendorRule]] = None,
    ):
        self.settings = settings or Settings()
        self.regex = regex_cache or RegexCache()
        self.cache = cache if cache is not None else shared_cache(self.settings.cache_max_entries)

        self.values = ValueExtractor(self.regex)
        self.types = TypeDetector(self.regex)
        self.extractor = extractor or RowExtractor(
            max_rows=self.settings.max_rows_per_table,
            max_cell_chars=self.settings.max_cell_chars,
        )
        if vendor_rules is None:
            vendor_rules = load_vendor_rules(self.settings.vendor_rules_path)
        self.fingerprinter = SourceFingerprinter(self.values, vendor_rules)
        self.analyzer = analyzer or StructureAnalyzer(self.values)
        self.strategies = StrategyParser(self.types, self.values)

        self.graph = build_table_graph(
            self.fingerprinter,
            self.analyzer,
            self.strategies,
            CategoryMapper(),
            QualityAnalyzer(),
        )
        self.log = logger.bind(component="table_parser")

    def parse(self, html: str, options: Optional[ParsingOptions] = None) -> ParsingResult:
        options = options or ParsingOptions()
        started = time.perf_counter()
        result = ParsingResult()

        if not html or not html.strip():
            result.success = True
            result.warnings.append("Empty HTML provided")
            result.processing_time = timedelta(seconds=time.perf_counter() - started)
            return result

        try:
            key = make_cache_key(html, options) if options.enable_caching else None
            cached = self.cache.get(key) if key else None
            if cached is not None:
                self.log.info("cache_hit", tables=len(cached))
                result.data = list(cached)
                result.warnings = [w for spec in cached for w in spec.metadata.warnings]
                result.success = True
                return result

            tables = self.extractor.extract_tables(html)
            self.log.info("parse_started", tables_found=len(tables), html_chars=len(html))
            if not tables:
                result.warnings.append("No tables found in HTML")
            else:
                workers = max(1, min(self.settings.table_workers, len(tables)))
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    # map() yields in submission order, i.e. document order
                    outcomes = list(executor.map(self._process_table, tables))
                for spec, warnings in outcomes:
                    result.warnings.extend(warnings)
                    if spec is not None:
                        result.data.append(spec)

            result.success = True
            if key and result.data:
                ttl = ttl_for_quality(
                    mean(s.quality.overall_score for s in result.data), options.cache_expiry
                )
                self.cache.set(key, result.data, ttl, max_entries=options.max_cache_entries)
                self.log.debug("cache_stored", ttl_seconds=ttl.total_seconds())
        except Exception as e:
            self.log.error("parse_failed", error=str(e))
            result.success = False
            result.errors.append(f"Universal parsing failed: {e}")
            if options.throw_on_error:
                raise
        finally:
            result.processing_time = timedelta(seconds=time.perf_counter() - started)

        self.log.info(
            "parse_finished",
            specs=len(result.data),
            success=result.success,
            elapsed_ms=round(result.processing_time.total_seconds() * 1000, 2),
        )
        return result

    def _process_table(self, table: TableNode) -> Tuple[Optional[ProductSpecification], List[str]]:
        try:
            out = self.graph.invoke(TableState(table=table))
            final = out if isinstance(out, TableState) else TableState(**out)
            return final.spec, list(final.spec.metadata.warnings)
        except Exception as e:
            self.log.warning("table_skipped", table=table.index, error=str(e))
            return None, [f"Table {table.index} skipped: {e}"]

    def parse_to_json(self, html: str, options: Optional[ParsingOptions] = None) -> str:
        result = self.parse(html, options)
        qualities = [s.quality.overall_score for s in result.data]
        envelope = {
            "success": result.success,
            "data": [s.model_dump(mode="json") for s in result.data],
            "errors": result.errors,
            "warnings": result.warnings,
            "metadata": {
                "processingTimeMs": round(result.processing_time.total_seconds() * 1000, 3),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "version": SCHEMA_VERSION,
                "tablesFound": len(result.data),
                "averageQuality": round(mean(qualities), 4) if qualities else 0.0,
                "multiValueTables": sum(1 for s in result.data if s.metadata.multi_value_specs > 0),
                "supportedPatterns": [s.value for s in STRUCTURE_PRIORITY],
            },
        }
        return json.dumps(envelope, indent=2, ensure_ascii=False)
