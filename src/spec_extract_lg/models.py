"""
Data model for extracted specification tables.

Everything here is created fresh per parse call. The result models are frozen
once built; strategies accumulate into plain lists/dicts and only hand over a
finished ``ProductSpecification``.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TableStructure(str, Enum):
    INLINE_MULTI_VALUE = "InlineMultiValue"
    PLAIN_MULTI_VALUE = "PlainMultiValue"
    HYBRID_MULTI_VALUE = "HybridMultiValue"
    SIMPLE_KEY_VALUE = "SimpleKeyValue"
    CATEGORY_KEY_VALUE = "CategoryKeyValue"
    COMPLEX_MULTI_VALUE = "ComplexMultiValue"
    UNKNOWN = "Unknown"


# Evaluation order; ties in the analyzer go to the earlier entry.
STRUCTURE_PRIORITY = [
    TableStructure.INLINE_MULTI_VALUE,
    TableStructure.PLAIN_MULTI_VALUE,
    TableStructure.HYBRID_MULTI_VALUE,
    TableStructure.SIMPLE_KEY_VALUE,
    TableStructure.CATEGORY_KEY_VALUE,
    TableStructure.COMPLEX_MULTI_VALUE,
]


class SpecificationType(str, Enum):
    TEXT = "Text"
    NUMERIC = "Numeric"
    BOOLEAN = "Boolean"
    LIST = "List"
    MEMORY = "Memory"
    CLOCK = "Clock"
    POWER = "Power"
    DIMENSION = "Dimension"
    INTERFACE = "Interface"
    RESOLUTION = "Resolution"
    COUNT = "Count"
    SPEED = "Speed"
    VERSION = "Version"
    CONNECTOR = "Connector"
    SUPPORT = "Support"
    ACCESSORY = "Accessory"
    WEIGHT = "Weight"
    DISPLAY_OUTPUT = "DisplayOutput"
    UNKNOWN = "Unknown"


class MultiValue(BaseModel):
    """A primary value plus the continuation rows that followed it."""
    model_config = ConfigDict(frozen=True)

    primary: str
    additional: List[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return ", ".join([self.primary, *self.additional])


# Scalar, ordered list, label -> value map, or primary/additional split.
SpecValue = Union[str, List[str], Dict[str, str], MultiValue]


def render_value(value: SpecValue) -> str:
    """Flatten any ``SpecValue`` variant to a single display string."""
    if isinstance(value, str):
        return value
    if isinstance(value, MultiValue):
        return str(value)
    if isinstance(value, dict):
        return ", ".join(f"{label}: {v}" for label, v in value.items())
    return ", ".join(value)


class SpecificationValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    normalized_value: str
    numeric_value: Optional[float] = None
    unit: str = ""
    type: SpecificationType = SpecificationType.TEXT
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    metadata: Dict[str, str] = Field(default_factory=dict)
    is_list_item: bool = False
    is_continuation: bool = False
    is_inline_value: bool = False
    order: int = 0
    prefix: str = ""

    @model_validator(mode="after")
    def _single_origin(self):
        if self.is_continuation and self.is_inline_value:
            raise ValueError("a value cannot be both a continuation and an inline split")
        return self


class TypedSpecification(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: SpecValue
    type: SpecificationType = SpecificationType.TEXT
    unit: str = ""
    numeric_value: Optional[float] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    category: str = ""
    has_multiple_values: bool = False
    value_count: int = 0
    has_inline_values: bool = False
    alternatives: List[SpecificationValue] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _count_matches_alternatives(self):
        if self.value_count != len(self.alternatives):
            raise ValueError(
                f"value_count={self.value_count} but {len(self.alternatives)} alternatives"
            )
        if self.has_multiple_values != (self.value_count > 1):
            raise ValueError("has_multiple_values must equal value_count > 1")
        return self


class CategoryGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    specifications: Dict[str, TypedSpecification] = Field(default_factory=dict)
    order: int = 0
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    is_explicit: bool = False
    multi_value_count: int = 0

    @property
    def item_count(self) -> int:
        return len(self.specifications)


class ParseMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    structure: TableStructure = TableStructure.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    processing_time_ms: float = 0.0
    total_rows: int = 0
    data_rows: int = 0
    header_rows: int = 0
    continuation_rows: int = 0
    inline_value_count: int = 0
    multi_value_specs: int = 0
    warnings: List[str] = Field(default_factory=list)
    parsed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SourceMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    vendor: str = "Generic"
    table_classes: List[str] = Field(default_factory=list)
    has_thead_tbody: bool = False
    has_strong_tags: bool = False
    has_width_attributes: bool = False
    has_inline_multi_values: bool = False
    table_structure_type: str = "Unknown"
    complexity: str = "Variable"


QUALITY_WEIGHTS = {
    "structure_score": 0.25,
    "type_detection_accuracy": 0.20,
    "completeness_score": 0.20,
    "multi_value_handling": 0.15,
    "category_organization": 0.10,
    "performance_score": 0.10,
}


class QualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    structure_score: float = Field(default=0.0, ge=0.0, le=1.0)
    type_detection_accuracy: float = Field(default=0.0, ge=0.0, le=1.0)
    completeness_score: float = Field(default=0.0, ge=0.0, le=1.0)
    multi_value_handling: float = Field(default=0.0, ge=0.0, le=1.0)
    category_organization: float = Field(default=0.0, ge=0.0, le=1.0)
    performance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    overall_score: float = Field(default=0.0, ge=0.0, le=1.0)


class ProductSpecification(BaseModel):
    """One table's extraction result."""
    model_config = ConfigDict(frozen=True)

    product_name: str = ""
    specifications: Dict[str, SpecValue] = Field(default_factory=dict)
    typed_specifications: Dict[str, TypedSpecification] = Field(default_factory=dict)
    multi_value_specs: Dict[str, List[SpecificationValue]] = Field(default_factory=dict)
    categorized_specs: Dict[str, CategoryGroup] = Field(default_factory=dict)
    metadata: ParseMetadata = Field(default_factory=ParseMetadata)
    source: SourceMetadata = Field(default_factory=SourceMetadata)
    quality: QualityMetrics = Field(default_factory=QualityMetrics)
    parsing_strategy: str = ""

    @model_validator(mode="after")
    def _maps_in_lockstep(self):
        keys = set(self.specifications)
        if keys != set(self.typed_specifications) or keys != set(self.multi_value_specs):
            raise ValueError("specification maps are out of sync")
        return self

    def flat_specifications(self) -> Dict[str, str]:
        """Key -> display string, the shape the downstream normalizer consumes."""
        return {key: render_value(value) for key, value in self.specifications.items()}


class ParsingOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable_caching: bool = True
    throw_on_error: bool = False
    max_cache_entries: int = Field(default=1000, ge=1)
    cache_expiry: timedelta = timedelta(hours=24)


class ParsingResult(BaseModel):
    success: bool = False
    data: List[ProductSpecification] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    processing_time: timedelta = timedelta(0)
