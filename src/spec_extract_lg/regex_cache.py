"""Shared cache of compiled regular expressions."""

import re
import threading
from typing import Dict, Pattern, Tuple


class RegexCache:
    """Thread-safe pattern -> compiled regex map.

    Construct one per ``TableParser`` and hand it to every component that
    builds patterns at runtime. Entries are inserted whole and never mutated.
    """

    def __init__(self) -> None:
        self._patterns: Dict[Tuple[str, int], Pattern[str]] = {}
        self._lock = threading.Lock()

    def get(self, pattern: str, flags: int = re.IGNORECASE) -> Pattern[str]:
        key = (pattern, flags)
        compiled = self._patterns.get(key)
        if compiled is not None:
            return compiled
        compiled = re.compile(pattern, flags)
        with self._lock:
            return self._patterns.setdefault(key, compiled)

    def __len__(self) -> int:
        return len(self._patterns)
