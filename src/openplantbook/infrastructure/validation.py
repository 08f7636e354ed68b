"""Pydantic-based validation helpers for inbound and cached payloads."""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


def validate_json_as[SchemaT](schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def dump_json_as[SchemaT](schema: type[SchemaT], value: SchemaT) -> bytes:
    """Serialise `value` to JSON bytes using the schema's field names."""
    return TypeAdapter(schema).dump_json(value)
