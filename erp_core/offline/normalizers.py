# =============================================================================
# erp_core/offline/normalizers.py
# Response Shape Matchers and Normalization
# =============================================================================
"""
Response normalization.

The backend has answered list endpoints with several envelopes over time:

    [...]                                   bare list
    {"data": [...]}                         standard envelope
    {"data": {"data": [...], "pagination"}} paginated envelope
    {"purchase_orders": [...]}              named list
    {"data": {"purchase_orders": [...]}}    named list inside the envelope

A matcher tries one envelope and returns the list or None. normalize()
runs an entity's matchers in order and never raises.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

Matcher = Callable[[Any], Optional[list]]


class EntityShape(Enum):
    """Canonical shape of a cached entity value."""
    LIST = "list"          # [...]
    WRAPPED = "wrapped"    # {"data": [...]}
    MAPPING = "mapping"    # {...}


def empty_value(shape: EntityShape) -> Any:
    """Fresh empty value for a shape."""
    if shape is EntityShape.LIST:
        return []
    if shape is EntityShape.WRAPPED:
        return {"data": []}
    return {}


def conforms(shape: EntityShape, value: Any) -> bool:
    """Check that a value has the canonical shape."""
    if shape is EntityShape.LIST:
        return isinstance(value, list)
    if shape is EntityShape.WRAPPED:
        return isinstance(value, dict) and isinstance(value.get("data"), list)
    return isinstance(value, dict)


def is_empty(shape: EntityShape, value: Any) -> bool:
    """True for the shape's empty value (or anything not conforming)."""
    if not conforms(shape, value):
        return True
    if shape is EntityShape.WRAPPED:
        return len(value["data"]) == 0
    return len(value) == 0


def items_of(shape: EntityShape, value: Any) -> list:
    """The record list carried by a canonical value."""
    if shape is EntityShape.LIST and isinstance(value, list):
        return value
    if shape is EntityShape.WRAPPED and conforms(shape, value):
        return value["data"]
    return []


# =============================================================================
# SHAPE MATCHERS
# =============================================================================

def bare_list(raw: Any) -> Optional[list]:
    return raw if isinstance(raw, list) else None


def data_list(raw: Any) -> Optional[list]:
    if isinstance(raw, dict) and isinstance(raw.get("data"), list):
        return raw["data"]
    return None


def nested_data_list(raw: Any) -> Optional[list]:
    if isinstance(raw, dict):
        inner = raw.get("data")
        if isinstance(inner, dict) and isinstance(inner.get("data"), list):
            return inner["data"]
    return None


def named_list(name: str) -> Matcher:
    """Matcher for ``{name: [...]}``."""
    def match(raw: Any) -> Optional[list]:
        if isinstance(raw, dict) and isinstance(raw.get(name), list):
            return raw[name]
        return None

    match.__name__ = f"named_list[{name}]"
    return match


def data_named_list(name: str) -> Matcher:
    """Matcher for ``{"data": {name: [...]}}``."""
    def match(raw: Any) -> Optional[list]:
        if isinstance(raw, dict):
            inner = raw.get("data")
            if isinstance(inner, dict) and isinstance(inner.get(name), list):
                return inner[name]
        return None

    match.__name__ = f"data_named_list[{name}]"
    return match


def list_matchers(name: Optional[str] = None) -> List[Matcher]:
    """
    Default priority order for list endpoints.

    bare list, {data: []}, {data: {data: []}}, then the entity-named forms.
    """
    matchers: List[Matcher] = [bare_list, data_list, nested_data_list]
    if name:
        matchers += [named_list(name), data_named_list(name)]
    return matchers


def named_first_matchers(name: str) -> List[Matcher]:
    """Priority order for endpoints that answer with a named field first."""
    return [named_list(name), data_named_list(name), data_list, nested_data_list, bare_list]


# =============================================================================
# NORMALIZATION
# =============================================================================

def match_first(matchers: Sequence[Matcher], raw: Any) -> Optional[list]:
    """Return the result of the first matcher that recognizes ``raw``."""
    for matcher in matchers:
        found = matcher(raw)
        if found is not None:
            return found
    return None


def normalize(shape: EntityShape, matchers: Sequence[Matcher], raw: Any) -> Any:
    """
    Extract the canonical value of an API response.

    Unrecognized responses normalize to ``empty_value(shape)``.
    """
    if shape is EntityShape.MAPPING:
        if isinstance(raw, dict) and isinstance(raw.get("data"), dict):
            return raw["data"]
        return raw if isinstance(raw, dict) else {}

    found = match_first(matchers, raw)
    if found is None:
        return empty_value(shape)
    if shape is EntityShape.WRAPPED:
        return {"data": list(found)}
    return list(found)
