"""Conversion of decoded Avro values into typed field trees."""

from __future__ import annotations

import datetime
import decimal
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

NAMED_TYPES = ("record", "error", "enum", "fixed")
BUILTIN_TYPES = NAMED_TYPES + (
    "null", "boolean", "int", "long", "float", "double", "string", "bytes", "array", "map",
)


class FieldType(str, Enum):
    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    STRING = "STRING"
    BYTE_ARRAY = "BYTE_ARRAY"
    MAP = "MAP"
    LIST = "LIST"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIME = "TIME"
    DECIMAL = "DECIMAL"


_PRIMITIVES = {
    "boolean": FieldType.BOOLEAN,
    "int": FieldType.INTEGER,
    "long": FieldType.LONG,
    "float": FieldType.FLOAT,
    "double": FieldType.DOUBLE,
    "string": FieldType.STRING,
    "bytes": FieldType.BYTE_ARRAY,
}

_LOGICAL = {
    "date": FieldType.DATE,
    "timestamp-millis": FieldType.DATETIME,
    "timestamp-micros": FieldType.DATETIME,
    "local-timestamp-millis": FieldType.DATETIME,
    "local-timestamp-micros": FieldType.DATETIME,
    "time-millis": FieldType.TIME,
    "time-micros": FieldType.TIME,
    "decimal": FieldType.DECIMAL,
    "uuid": FieldType.STRING,
}


@dataclass
class Field:
    """A typed value. MAP values hold dict[str, Field], LIST values list[Field]."""

    type: FieldType
    value: Any

    def to_python(self) -> Any:
        """Unwrap the tree into plain Python values."""
        if self.value is None:
            return None
        if self.type is FieldType.MAP:
            return {k: v.to_python() for k, v in self.value.items()}
        if self.type is FieldType.LIST:
            return [v.to_python() for v in self.value]
        return self.value


def avro_to_field(schema: Any, datum: Any) -> Field:
    """Convert a datum decoded by fastavro into a :class:`Field` tree.

    Args:
        schema: Parsed Avro schema the datum was decoded with
        datum: The decoded value

    Returns:
        Root field of the converted tree

    Raises:
        ValueError: If the datum matches no branch of a union, or the
            schema references an unknown named type
    """
    return _convert(schema, datum, _named_types(schema))


def _named_types(schema: Any, names: dict[str, dict] | None = None) -> dict[str, dict]:
    """Collect named types (records, enums, fixed) by name."""
    if names is None:
        names = {}
    if isinstance(schema, list):
        for branch in schema:
            _named_types(branch, names)
    elif isinstance(schema, dict):
        if schema.get("type") in NAMED_TYPES and "name" in schema:
            names[schema["name"]] = schema
            namespace = schema.get("namespace")
            if namespace and "." not in schema["name"]:
                names[f"{namespace}.{schema['name']}"] = schema
        for child in schema.get("fields", ()):
            _named_types(child["type"], names)
        for key in ("items", "values"):
            if key in schema:
                _named_types(schema[key], names)
        if isinstance(schema.get("type"), (dict, list)):
            _named_types(schema["type"], names)
    return names


def _resolve(schema: Any, names: dict[str, dict]) -> Any:
    """Follow named references and ``{"type": <schema>}`` wrappers."""
    if isinstance(schema, dict) and schema.get("type") not in BUILTIN_TYPES:
        return _resolve(schema["type"], names)
    if isinstance(schema, str) and schema not in BUILTIN_TYPES:
        try:
            return names[schema]
        except KeyError:
            raise ValueError(f"Unknown named type {schema!r}") from None
    return schema


def _type_name(schema: Any) -> str:
    if isinstance(schema, list):
        return "union"
    if isinstance(schema, dict):
        return schema["type"]
    return schema


def _null_type(schema: Any, names: dict[str, dict]) -> FieldType:
    """Field type a null takes: its first non-null union branch."""
    if isinstance(schema, list):
        for branch in schema:
            if branch != "null":
                return _field_type(_resolve(branch, names))
        return FieldType.STRING
    if schema == "null":
        return FieldType.STRING
    return _field_type(schema)


def _field_type(schema: Any) -> FieldType:
    name = _type_name(schema)
    if isinstance(schema, dict) and schema.get("logicalType") in _LOGICAL:
        return _LOGICAL[schema["logicalType"]]
    if name in ("record", "error", "map"):
        return FieldType.MAP
    if name == "array":
        return FieldType.LIST
    if name == "enum":
        return FieldType.STRING
    if name == "fixed":
        return FieldType.BYTE_ARRAY
    return _PRIMITIVES.get(name, FieldType.STRING)


def _matches(schema: Any, datum: Any) -> bool:
    """Whether a Python value can belong to a (resolved) union branch."""
    name = _type_name(schema)
    logical = schema.get("logicalType") if isinstance(schema, dict) else None
    if logical in ("date",):
        return isinstance(datum, datetime.date) and not isinstance(datum, datetime.datetime)
    if logical and logical.startswith(("timestamp", "local-timestamp")):
        return isinstance(datum, datetime.datetime)
    if logical and logical.startswith("time-"):
        return isinstance(datum, datetime.time)
    if logical == "decimal":
        return isinstance(datum, decimal.Decimal)
    if logical == "uuid" and isinstance(datum, uuid.UUID):
        return True

    if name == "null":
        return datum is None
    if name == "boolean":
        return isinstance(datum, bool)
    if name in ("int", "long"):
        return isinstance(datum, int) and not isinstance(datum, bool)
    if name in ("float", "double"):
        return isinstance(datum, float)
    if name in ("string", "enum"):
        return isinstance(datum, str)
    if name in ("bytes", "fixed"):
        return isinstance(datum, bytes)
    if name == "array":
        return isinstance(datum, list)
    if name == "map":
        return isinstance(datum, dict)
    if name in ("record", "error"):
        return isinstance(datum, dict) and set(datum) <= {f["name"] for f in schema["fields"]}
    return False


def _convert(schema: Any, datum: Any, names: dict[str, dict]) -> Field:
    schema = _resolve(schema, names)

    if isinstance(schema, list):
        if datum is None:
            return Field(_null_type(schema, names), None)
        for branch in schema:
            resolved = _resolve(branch, names)
            if _matches(resolved, datum):
                return _convert(resolved, datum, names)
        raise ValueError(f"Value {datum!r} matches no branch of union {schema!r}")

    if datum is None:
        return Field(_null_type(schema, names), None)

    field_type = _field_type(schema)
    name = _type_name(schema)
    if name in ("record", "error"):
        return Field(
            field_type,
            {
                f["name"]: _convert(f["type"], datum.get(f["name"]), names)
                for f in schema["fields"]
            },
        )
    if name == "map":
        return Field(
            field_type, {k: _convert(schema["values"], v, names) for k, v in datum.items()}
        )
    if name == "array":
        return Field(field_type, [_convert(schema["items"], v, names) for v in datum])
    if isinstance(datum, uuid.UUID):
        return Field(field_type, str(datum))
    return Field(field_type, datum)
