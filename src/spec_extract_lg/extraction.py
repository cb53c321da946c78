"""
Row/cell extraction from raw HTML.

Tables are read once with BeautifulSoup and turned into plain frozen models,
so nothing downstream touches the parse tree and tables can be processed on
separate threads.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

WHITESPACE = re.compile(r"\s+")
EMPHASIS_TAGS = ["strong", "b"]


def clean_text(text: str) -> str:
    """Collapse whitespace runs (including non-breaking spaces) and trim."""
    return WHITESPACE.sub(" ", text).strip()


class Cell(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    text: str = ""
    colspan: str = ""
    width: str = ""
    style: str = ""
    has_emphasis: bool = False

    @property
    def colspan_count(self) -> int:
        try:
            return int(self.colspan)
        except ValueError:
            return 1


class Row(BaseModel):
    model_config = ConfigDict(frozen=True)

    cells: List[Cell] = Field(default_factory=list)

    @property
    def is_pair(self) -> bool:
        return len(self.cells) == 2

    @property
    def key(self) -> str:
        return self.cells[0].text if self.is_pair else ""

    @property
    def value(self) -> str:
        return self.cells[1].text if self.is_pair else ""

    @property
    def has_emphasis(self) -> bool:
        return any(c.has_emphasis for c in self.cells)

    @property
    def key_has_emphasis(self) -> bool:
        return self.is_pair and self.cells[0].has_emphasis

    @property
    def is_continuation(self) -> bool:
        """Empty key cell with a value: extends the previous key."""
        return self.is_pair and not self.key and bool(self.value)

    @property
    def is_table_header(self) -> bool:
        if not self.is_pair:
            return False
        if self.key.lower() == "category" and self.value.lower() == "specification":
            return True
        return all(c.tag == "th" for c in self.cells)


class TableNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    classes: List[str] = Field(default_factory=list)
    width: str = ""
    has_thead: bool = False
    has_tbody: bool = False
    rows: List[Row] = Field(default_factory=list)
    truncated: bool = False


class RowExtractor:
    """Turns an HTML document into ``TableNode`` objects in document order."""

    def __init__(self, max_rows: int = 2000, max_cell_chars: int = 2048):
        self.max_rows = max_rows
        self.max_cell_chars = max_cell_chars

    def extract_tables(self, html: str) -> List[TableNode]:
        soup = BeautifulSoup(html, 'html.parser')
        tables = []
        for table in soup.find_all('table'):
            node = self._table_node(table, len(tables))
            # Tables without rows are dropped silently
            if node is not None:
                tables.append(node)
        return tables

    def _table_node(self, table, index: int) -> Optional[TableNode]:
        tr_tags = table.find_all('tr')
        if not tr_tags:
            return None

        truncated = len(tr_tags) > self.max_rows
        rows = [self._row(tr) for tr in tr_tags[:self.max_rows]]

        return TableNode(
            index=index,
            classes=list(table.get('class') or []),
            width=table.get('width', ''),
            has_thead=table.find('thead') is not None,
            has_tbody=table.find('tbody') is not None,
            rows=rows,
            truncated=truncated,
        )

    def _row(self, tr) -> Row:
        return Row(cells=[self._cell(td) for td in tr.find_all(['td', 'th'])])

    def _cell(self, td) -> Cell:
        text = clean_text(td.get_text(' ', strip=True))
        if len(text) > self.max_cell_chars:
            text = text[:self.max_cell_chars].rstrip()
        return Cell(
            tag=td.name,
            text=text,
            colspan=str(td.get('colspan', '')).strip(),
            width=str(td.get('width', '')),
            style=str(td.get('style', '')),
            has_emphasis=td.find(EMPHASIS_TAGS) is not None,
        )
