"""
Type, unit and magnitude inference for specification values.

Two stages: an exact lookup on the (normalized) key, then an ordered list of
value patterns where the first match wins.
"""

import re
from typing import Dict, Optional, Tuple

from .models import SpecificationType, SpecificationValue
from .regex_cache import RegexCache

T = SpecificationType

KEY_TYPES: Dict[str, SpecificationType] = {
    "graphics engine": T.TEXT,
    "graphics coprocessor": T.TEXT,
    "bus standard": T.INTERFACE,
    "interface": T.INTERFACE,
    "memory interface": T.INTERFACE,
    "directx support": T.VERSION,
    "directx": T.VERSION,
    "opengl support": T.VERSION,
    "opengl": T.VERSION,
    "memory": T.MEMORY,
    "video memory": T.MEMORY,
    "graphics card ram": T.MEMORY,
    "engine clock": T.CLOCK,
    "gpu clock speed": T.CLOCK,
    "memory clock": T.SPEED,
    "stream processors": T.COUNT,
    "compute units": T.COUNT,
    "cuda cores": T.COUNT,
    "multi-view support": T.COUNT,
    "multi-view": T.COUNT,
    "resolution": T.RESOLUTION,
    "max digital resolution": T.RESOLUTION,
    "display outputs": T.DISPLAY_OUTPUT,
    "hdcp support": T.SUPPORT,
    "hdcp": T.SUPPORT,
    "recommended psu": T.POWER,
    "power connector": T.CONNECTOR,
    "accessories": T.ACCESSORY,
    "dimensions": T.DIMENSION,
    "dimensions l x w x h": T.DIMENSION,
    "net weight": T.WEIGHT,
    "ai performance": T.NUMERIC,
}
KEY_CONFIDENCE = 0.95

# A number may only start where a digit run starts, so long runs stay linear.
RUN_START = r"(?<!\d)"

# (type, pattern, confidence) on the lower-cased value; first match wins.
VALUE_RULES = [
    (T.MEMORY, r"\b\d+\s*gb\b", 0.95),
    (T.CLOCK, RUN_START + r"\d+\s*(?:mhz|ghz)", 0.95),
    (T.SPEED, RUN_START + r"\d+\s*gbps", 0.95),
    (T.INTERFACE, r"(?:pci\s*express|pcie|express)[\s\d.]*x\d+", 0.90),
    (T.RESOLUTION, r"\b\d{3,5}\s*x\s*\d{3,5}\b(?!\s*x)", 0.95),
    (T.POWER, RUN_START + r"\d+\s*w$", 0.90),
    (T.COUNT, r"^\d+$|^\d+\s+units?$", 0.90),
    (T.VERSION, r"^\d+(?:\.\d+)*(?:\s+ultimate)?$", 0.85),
    (T.DISPLAY_OUTPUT, RUN_START + r"\d+\s*x\s*(?:hdmi|displayport)", 0.95),
    (T.CONNECTOR, RUN_START + r"(?:\d+\s*x\s*)?\d+-pin", 0.90),
    (T.DIMENSION, RUN_START + r"\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*(?:mm|cm|inches|in)\b", 0.95),
    (T.WEIGHT, RUN_START + r"\d+\s*k?g$", 0.95),
    (T.BOOLEAN, r"^(?:yes|no)$", 0.95),
    (T.NUMERIC, r"^\d+(?:\.\d+)?$", 0.70),
]
FALLBACK_CONFIDENCE = 0.6

UNIT_NUMBER = RUN_START + r"(\d+(?:\.\d+)?)\s*-?\s*(mhz|ghz|gbps|gb|mb|tb|w|g|kg|mm|cm|inches|bit|pin)(?:\s|$|\))"
WORD_NUMBER = RUN_START + r"(\d+(?:\.\d+)?)\s*([a-z]+)?(?:\s|$)"
THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}\b)")

TRADEMARKS = re.compile(r"[™®©]")
WHITESPACE = re.compile(r"\s+")
LEADING_DASH = re.compile(r"^-\s*")
EMPHASIS_MARKUP = re.compile(r"</?(?:strong|b)>", re.IGNORECASE)
KEY_PUNCTUATION = re.compile(r"[^\w\s\-()]")


def normalize_key(key: str) -> str:
    key = EMPHASIS_MARKUP.sub("", key)
    key = KEY_PUNCTUATION.sub("", key)
    return WHITESPACE.sub(" ", key).strip()


def normalize_value(value: str) -> str:
    value = TRADEMARKS.sub("", value)
    value = WHITESPACE.sub(" ", value).replace("×", "x").strip()
    return LEADING_DASH.sub("", value)


class TypeDetector:
    def __init__(self, regex_cache: Optional[RegexCache] = None):
        self.regex = regex_cache or RegexCache()

    def detect_type(self, value: str, key: str = "") -> Tuple[SpecificationType, float]:
        by_key = KEY_TYPES.get(normalize_key(key).lower())
        if by_key is not None:
            return by_key, KEY_CONFIDENCE

        lowered = normalize_value(value).lower()
        for spec_type, pattern, confidence in VALUE_RULES:
            if self.regex.get(pattern).search(lowered):
                return spec_type, confidence
        return T.TEXT, FALLBACK_CONFIDENCE

    def extract_number(self, value: str) -> Tuple[Optional[float], str]:
        """Return (magnitude, unit) with the unit spelled as in the source text."""
        text = THOUSANDS.sub("", value)
        m = self.regex.get(UNIT_NUMBER).search(text)
        if m:
            return float(m.group(1)), m.group(2)
        m = self.regex.get(WORD_NUMBER).search(text)
        if m:
            return float(m.group(1)), m.group(2) or ""
        return None, ""

    def create_value(
        self,
        raw: str,
        key: str,
        order: int = 0,
        prefix: str = "",
        is_continuation: bool = False,
        is_inline_value: bool = False,
        category: str = "",
    ) -> SpecificationValue:
        normalized = normalize_value(raw)
        spec_type, confidence = self.detect_type(normalized, key)
        numeric, unit = self.extract_number(normalized)

        metadata = {"originalValue": raw, "key": key}
        if prefix:
            metadata["prefix"] = prefix
        if category:
            metadata["category"] = category

        return SpecificationValue(
            value=raw,
            normalized_value=normalized,
            numeric_value=numeric,
            unit=unit,
            type=spec_type,
            confidence=confidence,
            metadata=metadata,
            is_list_item=is_continuation or raw.lstrip().startswith("-") or order > 0 or bool(prefix),
            is_continuation=is_continuation,
            is_inline_value=is_inline_value,
            order=order,
            prefix=prefix,
        )
