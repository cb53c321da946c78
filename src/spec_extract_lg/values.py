"""
Inline compound value detection and splitting.

A single cell can pack several values ("Boost Clock: 2610 MHz Game Clock:
2500 MHz", "1x HDMI 2.1 3x DisplayPort 1.4a"). ``split`` returns them as
ordered (prefix, value) pairs; a cell holding one value comes back as a single
pair with an empty prefix.
"""

import re
from typing import List, Optional, Tuple

from .regex_cache import RegexCache

InlinePair = Tuple[str, str]

# A number may only start where a digit run starts, so long runs stay linear.
RUN_START = r"(?<!\d)"

CLOCK_PAIR = r"(boost\s+clock)\s*:\s*(.*?)\s*(game\s+clock)\s*:\s*(.*)$"
DISPLAY_OUTPUT = RUN_START + r"\d+\s*x\s*(hdmi|displayport)[™®]?(?:\s*\d+(?:\.\d+)*[a-z]?)?"
DIMENSION_GROUP = (
    RUN_START + r"\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*(mm|cm|inches|in)\b"
)

# Cheap checks, evaluated in order with a short-circuit.
MULTI_VALUE_CHECKS = [
    r"boost\s+clock\s*:.*?game\s+clock\s*:",
    RUN_START + r"\d+\s*x\s*(?:hdmi|displayport).*?" + RUN_START + r"\d+\s*x\s*(?:hdmi|displayport)",
    DIMENSION_GROUP + r".*?" + RUN_START + r"\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*(?:mm|cm|inches|in)\b",
    r"(?:clock|mode)\s*:.*?(?:clock|mode)\s*:",
]

# Tokens that end a value rather than start a label.
UNIT_WORDS = {
    "mhz", "ghz", "gb", "mb", "tb", "gbps", "w", "mm", "cm", "in", "inches",
    "g", "kg", "bit", "pin", "x",
}
MAX_LABEL_WORDS = 3


class ValueExtractor:
    def __init__(self, regex_cache: Optional[RegexCache] = None):
        self.regex = regex_cache or RegexCache()

    def has_multiple_inline_values(self, text: str) -> bool:
        if not text:
            return False
        return any(self.regex.get(p).search(text) for p in MULTI_VALUE_CHECKS)

    def split(self, text: str) -> List[InlinePair]:
        text = text.strip()
        if not text:
            return [("", "")]

        for finder in (self._clock_pair, self._display_outputs, self._dimensions, self._labels):
            pairs = finder(text)
            if len(pairs) > 1:
                return pairs

        return [("", text)]

    def _clock_pair(self, text: str) -> List[InlinePair]:
        m = self.regex.get(CLOCK_PAIR).search(text)
        if not m or not m.group(2) or not m.group(4).strip():
            return []
        return [
            (_title(m.group(1)), m.group(2).strip()),
            (_title(m.group(3)), m.group(4).strip()),
        ]

    def _display_outputs(self, text: str) -> List[InlinePair]:
        return [
            (_interface_name(m.group(1)), m.group(0).strip())
            for m in self.regex.get(DISPLAY_OUTPUT).finditer(text)
        ]

    def _dimensions(self, text: str) -> List[InlinePair]:
        return [
            (m.group(1).lower(), m.group(0).strip())
            for m in self.regex.get(DIMENSION_GROUP).finditer(text)
        ]

    def _labels(self, text: str) -> List[InlinePair]:
        """Split generic ``Label: value Label: value`` runs."""
        starts = []
        for colon in self.regex.get(r":").finditer(text):
            label_start = _label_start(text, colon.start())
            if label_start is not None:
                starts.append((label_start, colon.start(), colon.end()))

        pairs = []
        for i, (label_start, colon, value_start) in enumerate(starts):
            value_end = starts[i + 1][0] if i + 1 < len(starts) else len(text)
            value = text[value_start:value_end].strip(" ,;|-")
            if value:
                pairs.append((text[label_start:colon].strip(), value))
        return pairs


def _label_start(text: str, colon: int) -> Optional[int]:
    """Index where the label ending at ``colon`` begins, walking back word by word."""
    head = text[:colon].rstrip()
    start = None
    words = 0
    pos = len(head)
    while pos > 0 and words < MAX_LABEL_WORDS:
        space = head.rfind(" ", 0, pos)
        word = head[space + 1:pos]
        if not word or not word[0].isalpha() or word.lower() in UNIT_WORDS:
            break
        if ":" in word or any(ch.isdigit() for ch in word):
            break
        start = space + 1
        words += 1
        pos = space
        if space < 0:
            break
    return start


def _title(label: str) -> str:
    return " ".join(w.capitalize() for w in label.split())


def _interface_name(name: str) -> str:
    return "HDMI" if name.lower() == "hdmi" else "DisplayPort"
