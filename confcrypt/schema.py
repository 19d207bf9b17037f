"""Checking parameter values against their declared schema types."""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from confcrypt.model import SchemaType

_ADAPTERS: dict[SchemaType, TypeAdapter[Any]] = {
    SchemaType.STRING: TypeAdapter(str),
    SchemaType.INT: TypeAdapter(int),
    SchemaType.FLOAT: TypeAdapter(float),
    SchemaType.BOOL: TypeAdapter(bool),
}


def coerce_value(schema_type: SchemaType, value: str) -> Any:
    """Convert a textual value to the Python type its schema declares.

    Args:
        schema_type: Declared type
        value: Plaintext value as stored in the file

    Returns:
        The converted value (``"42"`` -> ``42`` for int, ``"yes"`` -> ``True``
        for bool, ...)

    Raises:
        ValueError: If the value does not conform to the type
    """
    try:
        return _ADAPTERS[schema_type].validate_python(value)
    except ValidationError as e:
        errors = "; ".join(err["msg"] for err in e.errors())
        raise ValueError(f"'{value}' is not a valid {schema_type}: {errors}") from e
