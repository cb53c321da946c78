import html as html_lib
from pathlib import Path

import pytest

from spec_extract_lg.cache import InMemoryResultCache
from spec_extract_lg.parser import TableParser
from spec_extract_lg.regex_cache import RegexCache
from spec_extract_lg.specs import TypeDetector
from spec_extract_lg.values import ValueExtractor

FIXTURES = Path(__file__).parent / "fixtures"


def build_table(rows, attrs="", header_row=None):
    """Render (key, value) tuples as an HTML table.

    A bare string in ``rows`` becomes a single colspan=2 cell.
    """
    parts = [f"<table{(' ' + attrs) if attrs else ''}>"]
    if header_row:
        parts.append(header_row)
    for row in rows:
        if isinstance(row, str):
            parts.append(f'<tr><td colspan="2">{html_lib.escape(row)}</td></tr>')
        else:
            key, value = row
            parts.append(f"<tr><td>{html_lib.escape(key)}</td><td>{html_lib.escape(value)}</td></tr>")
    parts.append("</table>")
    return "".join(parts)


@pytest.fixture
def table_html():
    return build_table


@pytest.fixture
def fixture_html():
    def load(name: str) -> str:
        return (FIXTURES / f"{name}.html").read_text(encoding="utf-8")
    return load


@pytest.fixture
def result_cache():
    return InMemoryResultCache(max_entries=50)


@pytest.fixture
def parser(result_cache):
    return TableParser(cache=result_cache)


@pytest.fixture
def regex_cache():
    return RegexCache()


@pytest.fixture
def values(regex_cache):
    return ValueExtractor(regex_cache)


@pytest.fixture
def types(regex_cache):
    return TypeDetector(regex_cache)
