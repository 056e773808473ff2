"""Local rows decoded from serialized remote results."""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from typing import Any, overload

from .errors import ResultParseError


class Row(Sequence[Any]):
    """An immutable row of values, optionally with field names."""

    __slots__ = ("_values", "_fields")

    def __init__(self, values: Sequence[Any], fields: Sequence[str] | None = None) -> None:
        if fields is not None and len(fields) != len(values):
            raise ValueError(f"Row has {len(values)} values but {len(fields)} field names")
        self._values = tuple(values)
        self._fields = tuple(fields) if fields is not None else None

    @property
    def fields(self) -> tuple[str, ...] | None:
        return self._fields

    def get(self, index: int) -> Any:
        return self._values[index]

    @overload
    def __getitem__(self, key: int | str) -> Any: ...

    @overload
    def __getitem__(self, key: slice) -> tuple[Any, ...]: ...

    def __getitem__(self, key: int | str | slice) -> Any:
        if isinstance(key, str):
            if self._fields is None or key not in self._fields:
                raise KeyError(key)
            return self._values[self._fields.index(key)]
        return self._values[key]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._values == other._values and self._fields == other._fields
        if isinstance(other, tuple):
            return self._values == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._values, self._fields))

    def as_dict(self) -> dict[str, Any]:
        if self._fields is None:
            raise ValueError("Row has no field names")
        return dict(zip(self._fields, self._values))

    def __repr__(self) -> str:
        if self._fields is None:
            return f"Row{self._values!r}"
        inner = ", ".join(f"{k}={v!r}" for k, v in zip(self._fields, self._values))
        return f"Row({inner})"


def _field_names(record: dict[str, Any]) -> list[str] | None:
    schema = record.get("schema")
    if not schema:
        return None
    return [str(field["name"]) for field in schema["fields"]]


def decode_row(record: Any) -> Row:
    """Decode one serialized row: ``{"values": [...], "schema": {...}}`` or a bare list."""
    if isinstance(record, list):
        return Row(record)
    if isinstance(record, dict) and isinstance(record.get("values"), list):
        try:
            return Row(record["values"], _field_names(record))
        except (KeyError, TypeError, ValueError) as exc:
            raise ResultParseError(f"bad row schema: {exc}", record) from exc
    raise ResultParseError(f"cannot decode row from {type(record).__name__}", record)


def decode_rows(payload: Any) -> list[Row]:
    """Decode a serialized list of rows (JSON text or already-decoded list)."""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise ResultParseError(str(exc), payload) from exc
    if not isinstance(payload, list):
        raise ResultParseError(f"expected a list of rows, got {type(payload).__name__}", payload)
    return [decode_row(record) for record in payload]
