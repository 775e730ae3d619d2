"""Tagged variant for frontmatter values: Scalar | ListValue | MappingValue | Missing"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

from vaultpub.core.frontmatter import MAX_DEPTH
from vaultpub.core.utils.slug import normalize_property_key


@dataclass(frozen=True)
class Scalar:
    value: str | int | float | bool


@dataclass(frozen=True)
class ListValue:
    items: tuple["Value", ...]


@dataclass(frozen=True)
class MappingValue:
    entries: dict[str, Any]


@dataclass(frozen=True)
class Missing:
    pass


MISSING = Missing()

Value = Union[Scalar, ListValue, MappingValue, Missing]


def from_raw(raw: Any, depth: int = 0) -> Value:
    """Classify a raw YAML value once; downstream code matches on the variant.

    List items nested deeper than MAX_DEPTH are Missing.
    """
    if raw is None:
        return MISSING
    if isinstance(raw, (str, int, float, bool)):
        return Scalar(raw)
    if isinstance(raw, (date, datetime)):
        return Scalar(raw.isoformat())
    if isinstance(raw, (list, tuple)):
        if depth >= MAX_DEPTH:
            return MISSING
        return ListValue(tuple(from_raw(item, depth + 1) for item in raw))
    if isinstance(raw, dict):
        return MappingValue(raw)
    return Scalar(str(raw))


def lookup(nested: dict[str, Any], property_path: str) -> Value:
    """Follow a dotted property path through nested frontmatter; segments are normalized."""
    current: Any = nested
    for segment in property_path.split('.'):
        if not segment:
            continue
        if not isinstance(current, dict):
            return MISSING
        key = normalize_property_key(segment)
        if key not in current:
            return MISSING
        current = current[key]
    return from_raw(current)


def render_scalar(value: str | int | float | bool) -> str:
    """Stringify a scalar: booleans lowercase, integral floats without '.0'."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_list(value: Value) -> list[Value]:
    """Coerce to a list: Missing -> [], ListValue -> items, anything else -> [value]."""
    match value:
        case Missing():
            return []
        case ListValue(items):
            return list(items)
        case _:
            return [value]


def render(value: Value, separator: str = ", ") -> str:
    """Render a value as literal text; lists join with separator, Missing renders ''."""
    match value:
        case Missing():
            return ""
        case Scalar(v):
            return render_scalar(v)
        case ListValue(items):
            return separator.join(render(item) for item in items)
        case MappingValue(entries):
            return ", ".join(f"{k}: {render(from_raw(v))}" for k, v in entries.items())


def primitive_equals(value: Value, target: Any) -> bool:
    """Strict equality against an ignore primitive, without bool/number coercion."""
    match value:
        case Scalar(v):
            if isinstance(v, bool) or isinstance(target, bool):
                return isinstance(v, bool) and isinstance(target, bool) and v is target
            if isinstance(v, str) != isinstance(target, str):
                return False
            return v == target
        case _:
            return False
