"""Tests for structure scoring and selection."""

import random

import pytest

from spec_extract_lg.analyzer import StructureAnalyzer
from spec_extract_lg.extraction import RowExtractor
from spec_extract_lg.fingerprint import SourceFingerprinter
from spec_extract_lg.models import STRUCTURE_PRIORITY, SourceMetadata, TableStructure as S

KEYS = ["Memory", "Engine Clock", "Bus Standard", "Recommended PSU", "Cooler", "Warranty", "Slot", "OpenGL"]
VALUES = ["16 GB GDDR6", "2610 MHz", "PCI Express 4.0 x16", "650W", "Triple Fan", "3 Years", "2.5 Slot", "4.6"]


@pytest.fixture
def analyze(values):
    analyzer = StructureAnalyzer(values)
    fingerprinter = SourceFingerprinter(values)

    def run(html):
        table = RowExtractor().extract_tables(html)[0]
        return analyzer.analyze(table.rows, fingerprinter.fingerprint(table))
    return run


def _clean_rows(rng, n):
    idx = rng.sample(range(len(KEYS)), n)
    return [(KEYS[i], VALUES[i]) for i in idx]


class TestScenarios:
    def test_simple_key_value(self, analyze, table_html):
        analysis = analyze(table_html([("Memory", "16 GB GDDR6"), ("Engine Clock", "2610 MHz")]))
        assert analysis.structure == S.SIMPLE_KEY_VALUE
        assert analysis.confidence >= 0.7
        assert analysis.strategy == "Universal_SimpleKeyValue"

    def test_inline_multi_value(self, analyze, table_html):
        analysis = analyze(table_html([("Engine Clock", "Boost Clock: 2610 MHz Game Clock: 2500 MHz")]))
        assert analysis.structure == S.INLINE_MULTI_VALUE

    def test_category_key_value(self, analyze, table_html):
        html = table_html(["GRAPHICS CARD SPECIFICATIONS", ("Memory", "8 GB"), ("Engine Clock", "2505 MHz")])
        assert analyze(html).structure == S.CATEGORY_KEY_VALUE

    def test_complex_multi_value(self, analyze, fixture_html):
        analysis = analyze(fixture_html("complex"))
        assert analysis.structure == S.COMPLEX_MULTI_VALUE
        assert analysis.confidence == pytest.approx(0.98)

    def test_amazon_is_simple_with_high_confidence(self, analyze, fixture_html):
        analysis = analyze(fixture_html("amazon"))
        assert analysis.structure == S.SIMPLE_KEY_VALUE
        assert analysis.confidence > 0.8

    @pytest.mark.parametrize("fixture,expected", [
        ("vishal_peripherals", S.HYBRID_MULTI_VALUE),
        ("primeabgb", S.PLAIN_MULTI_VALUE),
        ("mdcomputers", S.CATEGORY_KEY_VALUE),
    ])
    def test_vendor_fixtures(self, analyze, fixture_html, fixture, expected):
        analysis = analyze(fixture_html(fixture))
        assert analysis.structure == expected
        assert analysis.confidence > 0.7


class TestSelection:
    def test_all_six_scores_are_computed(self, analyze, table_html):
        analysis = analyze(table_html([("Memory", "8 GB")]))
        assert set(analysis.scores) == set(STRUCTURE_PRIORITY)
        assert all(0.0 <= s <= 1.0 for s in analysis.scores.values())

    def test_ties_follow_priority_order(self, values):
        analyzer = StructureAnalyzer(values)
        for structure in analyzer.scorers:
            analyzer.scorers[structure] = lambda rows, source: 0.5
        table = RowExtractor().extract_tables("<table><tr><td>a</td><td>b</td></tr></table>")[0]
        analysis = analyzer.analyze(table.rows, SourceFingerprinter(values).fingerprint(table))
        assert analysis.structure == S.INLINE_MULTI_VALUE

    def test_empty_rows(self, values):
        analysis = StructureAnalyzer(values).analyze([], SourceMetadata())
        assert analysis.structure == S.UNKNOWN
        assert analysis.confidence == 0.0


class TestProperties:
    @pytest.mark.parametrize("seed", range(12))
    def test_clean_pairs_select_simple(self, analyze, table_html, seed):
        rng = random.Random(seed)
        rows = _clean_rows(rng, rng.randint(1, len(KEYS)))
        attrs = 'class="specs"' if seed % 2 else ""
        analysis = analyze(table_html(rows, attrs=attrs))
        assert analysis.structure == S.SIMPLE_KEY_VALUE, rows
        assert analysis.confidence >= 0.7

    def test_clean_pairs_with_emphasis_keys_select_simple(self, analyze):
        html = (
            "<table><tr><td><strong>Memory</strong></td><td>8 GB</td></tr>"
            "<tr><td><strong>Engine Clock</strong></td><td>2505 MHz</td></tr></table>"
        )
        analysis = analyze(html)
        assert analysis.structure == S.SIMPLE_KEY_VALUE
        assert analysis.confidence >= 0.7

    @pytest.mark.parametrize("seed", range(12))
    def test_continuations_select_multi_value_layouts(self, analyze, table_html, seed):
        rng = random.Random(seed)
        rows = _clean_rows(rng, rng.randint(1, len(KEYS)))
        for _ in range(rng.randint(1, 3)):
            rows.insert(rng.randint(1, len(rows)), ("", rng.choice(["6-pin", "- Default mode: 2580 MHz", "Extra"])))
        analysis = analyze(table_html(rows))
        assert analysis.structure in {S.PLAIN_MULTI_VALUE, S.HYBRID_MULTI_VALUE, S.COMPLEX_MULTI_VALUE}, rows

    def test_continuations_beat_category_headers(self, analyze, table_html):
        html = table_html(["GRAPHICS", ("Memory", "8 GB"), ("", "GDDR6"), ("Engine Clock", "2505 MHz")])
        assert analyze(html).structure in {S.PLAIN_MULTI_VALUE, S.HYBRID_MULTI_VALUE, S.COMPLEX_MULTI_VALUE}

    def test_header_row_counts_against_simple(self, analyze, table_html):
        header = "<tr><th>Specification</th><th>Value</th></tr>"
        rows = [("Memory", "8 GB"), ("Engine Clock", "2505 MHz"), ("Cooler", "Triple Fan"), ("Warranty", "3 Years")]
        analysis = analyze(table_html(rows, header_row=header))
        assert analysis.scores[S.SIMPLE_KEY_VALUE] == pytest.approx(0.32)
