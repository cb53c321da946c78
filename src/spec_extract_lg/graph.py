import time
from typing import Dict, List, Optional

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, Field

from .analyzer import StructureAnalysis, StructureAnalyzer
from .categories import CategoryMapper
from .extraction import TableNode
from .fingerprint import SourceFingerprinter
from .models import (
    CategoryGroup,
    ParseMetadata,
    ProductSpecification,
    SourceMetadata,
    TypedSpecification,
)
from .quality import QualityAnalyzer
from .strategies import ExtractionResult, RowMetrics, StrategyParser, guess_product_name, row_metrics


class TableState(BaseModel):
    table: TableNode
    started_at: float = Field(default_factory=time.perf_counter)
    source: Optional[SourceMetadata] = None
    analysis: Optional[StructureAnalysis] = None
    metrics: Optional[RowMetrics] = None
    product_name: str = ""
    extraction: Optional[ExtractionResult] = None
    typed_specifications: Dict[str, TypedSpecification] = Field(default_factory=dict)
    categorized_specs: Dict[str, CategoryGroup] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    spec: Optional[ProductSpecification] = None


def build_table_graph(
    fingerprinter: SourceFingerprinter,
    analyzer: StructureAnalyzer,
    strategies: StrategyParser,
    mapper: CategoryMapper,
    quality: QualityAnalyzer,
):
    """Compile the per-table pipeline.

    fingerprint -> analyze -> extract -> categorize -> assess. Nodes raise on
    failure; the caller decides what a failed table means.
    """

    def node_fingerprint(state: TableState) -> TableState:
        state.source = fingerprinter.fingerprint(state.table)
        if state.table.truncated:
            state.warnings.append(
                f"Table {state.table.index} truncated to {len(state.table.rows)} rows"
            )
        return state

    def node_analyze(state: TableState) -> TableState:
        state.analysis = analyzer.analyze(state.table.rows, state.source)
        state.metrics = row_metrics(state.table.rows)
        return state

    def node_extract(state: TableState) -> TableState:
        state.product_name = guess_product_name(state.table.rows)
        state.extraction = strategies.parse(state.analysis.structure, state.table.rows)
        if not state.extraction.typed_specifications:
            state.warnings.append(f"Table {state.table.index}: no specifications extracted")
        return state

    def node_categorize(state: TableState) -> TableState:
        state.typed_specifications, state.categorized_specs = mapper.categorize(
            state.extraction.typed_specifications,
            state.extraction.explicit_categories,
        )
        return state

    def node_assess(state: TableState) -> TableState:
        extraction = state.extraction
        metrics = state.metrics
        metadata = ParseMetadata(
            structure=state.analysis.structure,
            confidence=state.analysis.confidence,
            processing_time_ms=(time.perf_counter() - state.started_at) * 1000,
            total_rows=metrics.total_rows,
            data_rows=metrics.data_rows,
            header_rows=metrics.header_rows,
            continuation_rows=metrics.continuation_rows,
            inline_value_count=extraction.inline_value_count,
            multi_value_specs=extraction.multi_value_spec_count,
            warnings=list(state.warnings),
        )
        spec = ProductSpecification(
            product_name=state.product_name,
            specifications=dict(extraction.specifications),
            typed_specifications=state.typed_specifications,
            multi_value_specs=dict(extraction.multi_value_specs),
            categorized_specs=state.categorized_specs,
            metadata=metadata,
            source=state.source,
            parsing_strategy=state.analysis.strategy,
        )
        state.spec = spec.model_copy(update={"quality": quality.analyze(spec)})
        return state

    g = StateGraph(TableState)
    g.add_node("fingerprint", node_fingerprint)
    g.add_node("analyze", node_analyze)
    g.add_node("extract", node_extract)
    g.add_node("categorize", node_categorize)
    g.add_node("assess", node_assess)

    g.set_entry_point("fingerprint")
    g.add_edge("fingerprint", "analyze")
    g.add_edge("analyze", "extract")
    g.add_edge("extract", "categorize")
    g.add_edge("categorize", "assess")
    g.add_edge("assess", END)
    return g.compile()
