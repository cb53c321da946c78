"""Display-category assignment for extracted keys."""

from typing import Dict, List, Tuple

from .models import CategoryGroup, SpecificationValue, TypedSpecification

INFERRED_CATEGORY_CONFIDENCE = 0.85

KEY_CATEGORIES: Dict[str, str] = {
    "graphics engine": "GPU Core",
    "graphics coprocessor": "GPU Core",
    "cuda cores": "GPU Core",
    "stream processors": "GPU Core",
    "compute units": "GPU Core",
    "memory": "Memory",
    "video memory": "Memory",
    "graphics card ram": "Memory",
    "memory clock": "Memory",
    "memory interface": "Memory",
    "engine clock": "Performance",
    "gpu clock speed": "Performance",
    "boost clock": "Performance",
    "game clock": "Performance",
    "ai performance": "Performance",
    "bus standard": "Connectivity",
    "interface": "Connectivity",
    "display outputs": "Connectivity",
    "power connector": "Power",
    "recommended psu": "Power",
    "directx support": "Software",
    "directx": "Software",
    "opengl support": "Software",
    "opengl": "Software",
    "hdcp support": "Software",
    "hdcp": "Software",
    "resolution": "Display",
    "max digital resolution": "Display",
    "multi-view support": "Display",
    "multi-view": "Display",
    "dimensions": "Physical",
    "dimensions l x w x h": "Physical",
    "net weight": "Physical",
    "accessories": "Package",
}

# Checked in order against the lower-cased key.
SUBSTRING_CATEGORIES: List[Tuple[Tuple[str, ...], str]] = [
    (("clock", "frequency"), "Performance"),
    (("memory", "ram"), "Memory"),
    (("power", "watt"), "Power"),
    (("dimension", "size", "weight"), "Physical"),
    (("display", "output", "resolution"), "Display"),
    (("interface", "connector", "port"), "Connectivity"),
    (("directx", "opengl", "support"), "Software"),
]
DEFAULT_CATEGORY = "General"


def category_for_key(key: str) -> str:
    lowered = key.strip().lower()
    if lowered in KEY_CATEGORIES:
        return KEY_CATEGORIES[lowered]
    for needles, category in SUBSTRING_CATEGORIES:
        if any(n in lowered for n in needles):
            return category
    return DEFAULT_CATEGORY


def _explicit_category(values: List[SpecificationValue], explicit: Dict[str, CategoryGroup]) -> str:
    for value in values:
        name = value.metadata.get("category", "")
        if name in explicit:
            return name
    return ""


class CategoryMapper:
    def categorize(
        self,
        typed_specifications: Dict[str, TypedSpecification],
        explicit: Dict[str, CategoryGroup],
    ) -> Tuple[Dict[str, TypedSpecification], Dict[str, CategoryGroup]]:
        """Assign every spec a category.

        Returns the specs with ``category`` filled in and the category groups.
        Header-declared groups come first, in the order they appeared.
        """
        members: Dict[str, Dict[str, TypedSpecification]] = {name: {} for name in explicit}
        updated: Dict[str, TypedSpecification] = {}

        for key, spec in typed_specifications.items():
            name = _explicit_category(spec.alternatives, explicit) or category_for_key(key)
            spec = spec.model_copy(update={"category": name})
            updated[key] = spec
            members.setdefault(name, {})[key] = spec

        groups: Dict[str, CategoryGroup] = {}
        for order, (name, specs) in enumerate(members.items()):
            is_explicit = name in explicit
            groups[name] = CategoryGroup(
                name=name,
                specifications=specs,
                order=order,
                confidence=explicit[name].confidence if is_explicit else INFERRED_CATEGORY_CONFIDENCE,
                is_explicit=is_explicit,
                multi_value_count=sum(1 for s in specs.values() if s.has_multiple_values),
            )
        return updated, groups
