"""Naming convention translation between internal and wire identifiers.

Internal names are snake_case (``publication_date``), wire names are
lower camelCase (``publicationDate``). Entity type names derive from the
class name: ``VehicleRecall`` -> ``vehicle_recall`` (type) ->
``vehicleRecall`` / ``vehicleRecalls`` (wire) -> ``vehicle_recalls`` (path).

All helpers are pure and memoized.
"""

from __future__ import annotations

import re
from functools import lru_cache

_CAMEL_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LOWER_UPPER = re.compile(r"([a-z\d])([A-Z])")

# Irregular nouns seen in entity and relation names
_IRREGULAR = {
    "person": "people",
    "child": "children",
    "status": "statuses",
}
_UNCOUNTABLE = frozenset({"information", "metadata", "series", "news", "data"})


@lru_cache(maxsize=1024)
def jsonize(name: str) -> str:
    """Convert an internal snake_case name to its lower camelCase wire name."""
    head, *rest = name.lstrip("_").split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest if part)


@lru_cache(maxsize=1024)
def dejsonize(name: str) -> str:
    """Convert a lower camelCase wire name back to snake_case."""
    return underscore(name)


@lru_cache(maxsize=1024)
def underscore(name: str) -> str:
    """Convert a CamelCase or camelCase identifier to snake_case."""
    name = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    name = _LOWER_UPPER.sub(r"\1_\2", name)
    return name.replace("-", "_").lower()


@lru_cache(maxsize=1024)
def pluralize(word: str) -> str:
    """Return the plural of the last ``_``-separated segment of *word*."""
    prefix, _, last = word.rpartition("_")
    prefix = f"{prefix}_" if prefix else ""
    lower = last.lower()

    if lower in _UNCOUNTABLE or not lower:
        plural = last
    elif lower in _IRREGULAR:
        plural = _IRREGULAR[lower]
    elif re.search(r"[^aeiou]y$", lower):
        plural = last[:-1] + "ies"
    elif re.search(r"(s|x|z|ch|sh)$", lower):
        plural = last + "es"
    else:
        plural = last + "s"
    return prefix + plural


@lru_cache(maxsize=1024)
def singularize(word: str) -> str:
    """Return the singular of the last ``_``-separated segment of *word*."""
    prefix, _, last = word.rpartition("_")
    prefix = f"{prefix}_" if prefix else ""
    lower = last.lower()

    for singular, plural in _IRREGULAR.items():
        if lower == plural:
            return prefix + singular
    if lower in _UNCOUNTABLE or lower in _IRREGULAR or lower.endswith("ss"):
        singular = last
    elif lower.endswith("ies") and len(lower) > 3:
        singular = last[:-3] + "y"
    elif re.search(r"(ss|x|z|ch|sh)es$", lower):
        singular = last[:-2]
    elif lower.endswith("s"):
        singular = last[:-1]
    else:
        singular = last
    return prefix + singular


@lru_cache(maxsize=1024)
def tableize(class_name: str) -> str:
    """Return the plural snake_case path segment for a class name."""
    return pluralize(underscore(class_name))
