"""Per-table quality scoring."""

from .models import QUALITY_WEIGHTS, ProductSpecification, QualityMetrics, SpecificationType, render_value


def performance_score(processing_time_ms: float) -> float:
    if processing_time_ms < 1000:
        return 0.9
    if processing_time_ms < 5000:
        return 0.7
    return 0.5


class QualityAnalyzer:
    def analyze(self, spec: ProductSpecification) -> QualityMetrics:
        typed = spec.typed_specifications
        simple = spec.specifications

        scores = {
            "structure_score": spec.metadata.confidence,
            "type_detection_accuracy": (
                sum(1 for t in typed.values() if t.type != SpecificationType.UNKNOWN) / len(typed)
                if typed else 0.0
            ),
            "completeness_score": (
                sum(1 for v in simple.values() if render_value(v)) / len(simple)
                if simple else 0.0
            ),
            "multi_value_handling": (
                sum(1 for t in typed.values() if t.has_multiple_values) / len(typed)
                if typed else 0.0
            ),
            "category_organization": 0.9 if spec.categorized_specs else 0.5,
            "performance_score": performance_score(spec.metadata.processing_time_ms),
        }
        overall = sum(scores[name] * weight for name, weight in QUALITY_WEIGHTS.items())
        return QualityMetrics(overall_score=min(1.0, overall), **scores)
