# src/psbundler/utils/utils_types.py

from types import UnionType
from typing import Any, TypeVar, Union, cast, get_args, get_origin, get_type_hints


T = TypeVar("T")


def cast_hint(_typ: type[T], value: Any) -> T:
    """Explicit cast that documents intent but is purely for type hinting.

    Performs *no runtime checks*.
    """
    return cast("T", value)


def schema_from_typeddict(td: type[Any]) -> dict[str, Any]:
    """Extract field names and their annotated types from a TypedDict."""
    return get_type_hints(td)


def safe_isinstance(value: Any, expected_type: Any) -> bool:  # noqa: PLR0911
    """isinstance() that understands unions and ``list[X]`` annotations."""
    if expected_type is Any:
        return True

    origin = get_origin(expected_type)
    if origin in (Union, UnionType):
        return any(safe_isinstance(value, arg) for arg in get_args(expected_type))
    if origin is list:
        if not isinstance(value, list):
            return False
        (item_type,) = get_args(expected_type) or (Any,)
        return all(safe_isinstance(item, item_type) for item in value)
    if origin is dict:
        return isinstance(value, dict)
    if expected_type is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected_type is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if isinstance(expected_type, type):
        return isinstance(value, expected_type)
    return False
