"""Helpers for reading and writing nested fields of unstructured objects.

An unstructured object is the plain python form of a kubernetes resource as
returned by a yaml loader: mappings, sequences and scalar values. Fields are
addressed by a list of keys, typically produced from a dotted path such as
`spec.forProvider.region`. Only mappings can be traversed.
"""

import copy
from typing import Any

from .exceptions import FieldPathException

__all__ = [
    "split_path",
    "nested_field",
    "set_nested_field",
    "remove_nested_field",
]


def split_path(path: str) -> list[str]:
    """Split a dotted path into its fields.

    There is no escaping, so a field name containing a `.` can't be addressed.
    """
    return path.split(".")


def _json_path(fields: list[str]) -> str:
    return "." + ".".join(fields)


def _nested_field_no_copy(obj: dict[str, Any], fields: list[str]) -> tuple[Any, bool]:
    value: Any = obj
    for i, field in enumerate(fields):
        if value is None:
            return None, False
        if not isinstance(value, dict):
            raise FieldPathException(
                f"{_json_path(fields[:i + 1])} accessor error: {value!r} is of the "
                f"type {type(value).__name__}, expected dict"
            )
        if field not in value:
            return None, False
        value = value[field]
    return value, True


def nested_field(obj: dict[str, Any], fields: list[str]) -> tuple[Any, bool]:
    """Return a deep copy of the value at the path and whether it was found.

    A missing key is not an error. Traversing through a value that is not a
    mapping raises a `FieldPathException`.
    """
    value, found = _nested_field_no_copy(obj, fields)
    if not found:
        return None, False
    return copy.deepcopy(value), True


def set_nested_field(obj: dict[str, Any], value: Any, fields: list[str]) -> None:
    """Set a deep copy of the value at the path, creating intermediate mappings."""
    current = obj
    for i, field in enumerate(fields[:-1]):
        if (existing := current.get(field)) is not None:
            if not isinstance(existing, dict):
                raise FieldPathException(
                    f"value cannot be set because {_json_path(fields[:i + 1])} "
                    "is not a dict"
                )
            current = existing
        else:
            current[field] = {}
            current = current[field]
    current[fields[-1]] = copy.deepcopy(value)


def remove_nested_field(obj: dict[str, Any], fields: list[str]) -> None:
    """Remove the field at the path if present."""
    current = obj
    for field in fields[:-1]:
        if not isinstance(current.get(field), dict):
            return
        current = current[field]
    current.pop(fields[-1], None)
