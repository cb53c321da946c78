"""Tests for category assignment and quality scoring."""

import pytest

from spec_extract_lg.categories import CategoryMapper, category_for_key
from spec_extract_lg.models import (
    QUALITY_WEIGHTS,
    CategoryGroup,
    ParseMetadata,
    ProductSpecification,
    TypedSpecification,
)
from spec_extract_lg.quality import QualityAnalyzer, performance_score


def _typed(types, key, *raws, category=""):
    values = [
        types.create_value(raw, key, order=i, is_continuation=i > 0, category=category)
        for i, raw in enumerate(raws)
    ]
    return TypedSpecification(
        value=raws[0],
        type=values[0].type,
        confidence=values[0].confidence,
        has_multiple_values=len(values) > 1,
        value_count=len(values),
        alternatives=values,
    )


class TestCategoryForKey:
    @pytest.mark.parametrize("key,expected", [
        ("Graphics Coprocessor", "GPU Core"),
        ("memory", "Memory"),
        ("Engine Clock", "Performance"),
        ("Bus Standard", "Connectivity"),
        ("Recommended PSU", "Power"),
        ("DirectX Support", "Software"),
        ("Max Digital Resolution", "Display"),
        ("Net Weight", "Physical"),
        ("Accessories", "Package"),
    ])
    def test_known_keys(self, key, expected):
        assert category_for_key(key) == expected

    @pytest.mark.parametrize("key,expected", [
        ("Shader Frequency", "Performance"),
        ("Graphics RAM Type", "Memory"),
        ("Card Size", "Physical"),
        ("USB Port", "Connectivity"),
    ])
    def test_substring_fallback(self, key, expected):
        assert category_for_key(key) == expected

    def test_default(self):
        assert category_for_key("Warranty") == "General"


class TestCategoryMapper:
    def test_inferred_groups(self, types):
        typed = {
            "Memory": _typed(types, "Memory", "8 GB", "GDDR6"),
            "Engine Clock": _typed(types, "Engine Clock", "2505 MHz"),
            "Warranty": _typed(types, "Warranty", "3 Years"),
        }
        updated, groups = CategoryMapper().categorize(typed, {})

        assert updated["Memory"].category == "Memory"
        assert list(groups) == ["Memory", "Performance", "General"]
        assert [g.order for g in groups.values()] == [0, 1, 2]
        assert groups["Memory"].multi_value_count == 1
        assert groups["Memory"].confidence == 0.85
        assert not groups["Memory"].is_explicit
        assert sum(g.item_count for g in groups.values()) == len(typed)

    def test_explicit_category_wins(self, types):
        explicit = {"POWER": CategoryGroup(name="POWER", confidence=0.95, is_explicit=True)}
        typed = {
            "Memory": _typed(types, "Memory", "8 GB", category="POWER"),
            "Model": _typed(types, "Model", "X1"),
        }
        updated, groups = CategoryMapper().categorize(typed, explicit)

        assert updated["Memory"].category == "POWER"
        assert list(groups) == ["POWER", "General"]
        assert groups["POWER"].is_explicit and groups["POWER"].confidence == 0.95
        assert list(groups["POWER"].specifications) == ["Memory"]

    def test_empty_explicit_group_is_kept(self, types):
        explicit = {"EXTRAS": CategoryGroup(name="EXTRAS", confidence=0.95, is_explicit=True)}
        _, groups = CategoryMapper().categorize({"Model": _typed(types, "Model", "X1")}, explicit)
        assert groups["EXTRAS"].item_count == 0


class TestQuality:
    def test_weights_sum_to_one(self):
        assert sum(QUALITY_WEIGHTS.values()) == pytest.approx(1.0)

    @pytest.mark.parametrize("ms,expected", [(0, 0.9), (999.9, 0.9), (1000, 0.7), (4999, 0.7), (5000, 0.5)])
    def test_performance_tiers(self, ms, expected):
        assert performance_score(ms) == expected

    def test_weighted_overall(self, types):
        typed = {
            "Memory": _typed(types, "Memory", "8 GB", "GDDR6"),
            "Warranty": _typed(types, "Warranty", "3 Years"),
        }
        spec = ProductSpecification(
            specifications={"Memory": "8 GB", "Warranty": "3 Years"},
            typed_specifications=typed,
            multi_value_specs={k: t.alternatives for k, t in typed.items()},
            metadata=ParseMetadata(confidence=0.8, processing_time_ms=10),
        )
        q = QualityAnalyzer().analyze(spec)

        assert q.structure_score == 0.8
        assert q.type_detection_accuracy == 1.0
        assert q.completeness_score == 1.0
        assert q.multi_value_handling == 0.5
        assert q.category_organization == 0.5
        assert q.performance_score == 0.9
        expected = 0.8 * 0.25 + 0.2 + 0.2 + 0.5 * 0.15 + 0.5 * 0.10 + 0.9 * 0.10
        assert q.overall_score == pytest.approx(expected)

    def test_empty_spec(self):
        q = QualityAnalyzer().analyze(ProductSpecification())
        assert q.type_detection_accuracy == 0.0
        assert q.completeness_score == 0.0
        assert 0.0 <= q.overall_score <= 1.0
