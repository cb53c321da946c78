"""
Spec Extract - vendor specification table extraction
Built on LangGraph: one small graph per HTML table, fanned out per document
"""

__version__ = "0.1.0"

from .graph import build_table_graph, TableState
from .parser import TableParser
from .models import (
    ParsingOptions,
    ParsingResult,
    ProductSpecification,
    SpecificationType,
    SpecificationValue,
    TableStructure,
    TypedSpecification,
)

__all__ = [
    "build_table_graph",
    "TableState",
    "TableParser",
    "ParsingOptions",
    "ParsingResult",
    "ProductSpecification",
    "SpecificationType",
    "SpecificationValue",
    "TableStructure",
    "TypedSpecification",
]
