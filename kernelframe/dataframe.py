"""
DataFrame, Column, GroupedData and RowHandle.

Each method renders one statement of the remote dialect. Chainable methods bind
the result to a fresh remote name and return a new handle; terminal methods
return a Deferred of the decoded value.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from typing_extensions import Self

from ._internal.builders import (
    ArgList,
    ExprArg,
    HandleArg,
    LiteralArg,
    NameArg,
    column_args,
    generate_assignment,
    generate_result,
    generate_void,
    non_negative_int,
    parse_int,
    parse_json,
    parse_text,
    single_arg,
)
from ._internal.remote_handle import Deferred, RemoteHandle
from .errors import MalformedArgumentsError
from .rdd import RDD, remote_function
from .rows import Row, decode_row, decode_rows

logger = logging.getLogger(__name__)


def _names(cols: Sequence[Any], what: str) -> ArgList:
    for position, col in enumerate(cols):
        if not isinstance(col, str):
            raise MalformedArgumentsError(
                f"{what} takes column names only; argument {position} is {type(col).__name__}"
            )
    return ArgList(tuple(NameArg(c) for c in cols))


def _agg_map(mapping: Mapping[str, str]) -> LiteralArg:
    if not isinstance(mapping, Mapping) or not mapping:
        raise MalformedArgumentsError("agg() takes a non-empty mapping of column name to function name")
    for key, value in mapping.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise MalformedArgumentsError(f"agg() mapping entries must be str -> str, got {key!r}: {value!r}")
    return LiteralArg(dict(mapping))


class Column(RemoteHandle):
    """A column expression bound in the remote session."""

    kind = "column"

    def _binary(self, method: str, other: Any) -> Column:
        arg = HandleArg(other) if isinstance(other, Column) else LiteralArg(other)
        return generate_assignment(
            self, Column, "var {{refId}} = {{inRefId}}." + method + "({{other}});", {"other": arg}
        )

    def equal_to(self, other: Any) -> Column:
        return self._binary("equalTo", other)

    def not_equal(self, other: Any) -> Column:
        return self._binary("notEqual", other)

    def gt(self, other: Any) -> Column:
        return self._binary("gt", other)

    def geq(self, other: Any) -> Column:
        return self._binary("geq", other)

    def lt(self, other: Any) -> Column:
        return self._binary("lt", other)

    def leq(self, other: Any) -> Column:
        return self._binary("leq", other)

    def and_(self, other: Column) -> Column:
        return self._binary("and", other)

    def or_(self, other: Column) -> Column:
        return self._binary("or", other)

    def plus(self, other: Any) -> Column:
        return self._binary("plus", other)

    def minus(self, other: Any) -> Column:
        return self._binary("minus", other)

    def multiply(self, other: Any) -> Column:
        return self._binary("multiply", other)

    def divide(self, other: Any) -> Column:
        return self._binary("divide", other)

    def like(self, pattern: str) -> Column:
        return self._binary("like", pattern)

    def alias(self, name: str) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.as({{name}});",
                                   {"name": NameArg(name)})

    def cast(self, type_name: str) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.cast({{to}});",
                                   {"to": NameArg(type_name)})

    def asc(self) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.asc();")

    def desc(self) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.desc();")

    def is_null(self) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.isNull();")

    def is_not_null(self) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.isNotNull();")

    def to_string(self) -> Deferred[str]:
        return generate_result(self, "{{inRefId}}.toString();", parse=parse_text)


class RowHandle(RemoteHandle):
    """A single row that still lives in the remote session."""

    kind = "row"

    def size(self) -> Deferred[int]:
        return generate_result(self, "{{inRefId}}.size();", parse=parse_int)

    def get(self, index: int) -> Deferred[Any]:
        return generate_result(self, "JSON.stringify({{inRefId}}.get({{index}}));",
                               {"index": non_negative_int(index, "index")}, parse=parse_json)

    def fetch(self) -> Deferred[Row]:
        """Bring the row over as a local :class:`Row`."""
        return generate_result(self, "JSON.stringify({{inRefId}});", parse=lambda p: decode_row(parse_json(p)))


class GroupedData(RemoteHandle):
    """The result of ``group_by``/``cube``, awaiting an aggregation."""

    kind = "groupedData"

    def agg(self, mapping: Mapping[str, str]) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.agg({{aggMap}});",
                                   {"aggMap": _agg_map(mapping)})

    def count(self) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.count();")

    def _stat(self, method: str, cols: Sequence[str]) -> DataFrame:
        return generate_assignment(
            self, DataFrame, "var {{refId}} = {{inRefId}}." + method + "({{cols}});",
            {"cols": _names(cols, method)},
        )

    def avg(self, *cols: str) -> DataFrame:
        return self._stat("avg", cols)

    def mean(self, *cols: str) -> DataFrame:
        return self._stat("mean", cols)

    def max(self, *cols: str) -> DataFrame:
        return self._stat("max", cols)

    def min(self, *cols: str) -> DataFrame:
        return self._stat("min", cols)

    def sum(self, *cols: str) -> DataFrame:
        return self._stat("sum", cols)


class DataFrame(RemoteHandle):
    """A distributed collection of rows organized into named columns."""

    kind = "dataFrame"

    # Chainable

    def agg(self, mapping: Mapping[str, str]) -> DataFrame:
        """Aggregate the whole frame without groups, e.g. ``{"age": "max"}``."""
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.agg({{aggMap}});",
                                   {"aggMap": _agg_map(mapping)})

    def alias(self, alias: str) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.as({{alias}});",
                                   {"alias": NameArg(alias)})

    def apply(self, col_name: str) -> Column:
        """Select a column by name; nested fields like ``a.b`` are allowed."""
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.apply({{name}});",
                                   {"name": NameArg(col_name)})

    def cache(self) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.cache();")

    def coalesce(self, num_partitions: int) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.coalesce({{n}});",
                                   {"n": non_negative_int(num_partitions, "num_partitions")})

    def col(self, name: str) -> Column:
        return generate_assignment(self, Column, "var {{refId}} = {{inRefId}}.col({{name}});",
                                   {"name": NameArg(name)})

    def __getitem__(self, name: str) -> Column:
        return self.col(name)

    def cube(self, *cols: Column | str) -> GroupedData:
        return generate_assignment(self, GroupedData, "var {{refId}} = {{inRefId}}.cube({{cols}});",
                                   {"cols": column_args(cols, Column)})

    def describe(self, *cols: str) -> DataFrame:
        """Summary statistics; all numeric columns when *cols* is empty."""
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.describe({{cols}});",
                                   {"cols": _names(cols, "describe")})

    def distinct(self) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.distinct();")

    def drop(self, column: Column | str) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.drop({{col}});",
                                   {"col": single_arg(column, Column)})

    def drop_duplicates(self, col_names: Sequence[str] | None = None) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.dropDuplicates([{{cols}}]);",
                                   {"cols": _names(list(col_names or []), "drop_duplicates")})

    def except_(self, other: DataFrame) -> DataFrame:
        """Rows in this frame but not in *other* (SQL ``EXCEPT``)."""
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.except({{other}});",
                                   {"other": self._frame(other)})

    def filter(self, condition: Column | str) -> DataFrame:
        """Filter rows by a Column or a SQL expression string."""
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.filter({{cond}});",
                                   {"cond": single_arg(condition, Column)})

    def where(self, condition: Column | str) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.where({{cond}});",
                                   {"cond": single_arg(condition, Column)})

    def first(self) -> RowHandle:
        return generate_assignment(self, RowHandle, "var {{refId}} = {{inRefId}}.first();")

    def head(self) -> RowHandle:
        return generate_assignment(self, RowHandle, "var {{refId}} = {{inRefId}}.head();")

    def flat_map(self, func: str) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.flatMap({{udf}});",
                                   {"udf": remote_function(func)})

    def map(self, func: str) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.map({{udf}});",
                                   {"udf": remote_function(func)})

    def group_by(self, *cols: Column | str) -> GroupedData:
        return generate_assignment(self, GroupedData, "var {{refId}} = {{inRefId}}.groupBy({{cols}});",
                                   {"cols": column_args(cols, Column)})

    def join(self, other: DataFrame, on: Column | str | None = None) -> DataFrame:
        params: dict[str, Any] = {"other": self._frame(other)}
        if on is None:
            return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.join({{other}});", params)
        params["on"] = single_arg(on, Column)
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.join({{other}}, {{on}});", params)

    def limit(self, num: int) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.limit({{n}});",
                                   {"n": non_negative_int(num, "num")})

    def order_by(self, *cols: Column | str) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.orderBy({{cols}});",
                                   {"cols": column_args(cols, Column)})

    def repartition(self, num_partitions: int) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.repartition({{n}});",
                                   {"n": non_negative_int(num_partitions, "num_partitions")})

    def select(self, *cols: Column | str) -> Self:
        """Select columns; with no arguments the frame itself is returned."""
        if not cols:
            return self
        return generate_assignment(self, type(self), "var {{refId}} = {{inRefId}}.select({{cols}});",
                                   {"cols": column_args(cols, Column)})

    def to_json(self) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.toJSON();")

    def to_rdd(self) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.toRDD();")

    def union_all(self, other: DataFrame) -> DataFrame:
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.unionAll({{other}});",
                                   {"other": self._frame(other)})

    def with_column(self, name: str, col: Column) -> DataFrame:
        if not isinstance(col, Column):
            raise MalformedArgumentsError(f"with_column() takes a Column, got {type(col).__name__}")
        return generate_assignment(self, DataFrame, "var {{refId}} = {{inRefId}}.withColumn({{name}}, {{col}});",
                                   {"name": NameArg(name), "col": HandleArg(col)})

    def with_column_renamed(self, existing: str, new: str) -> DataFrame:
        return generate_assignment(
            self, DataFrame, "var {{refId}} = {{inRefId}}.withColumnRenamed({{old}}, {{new}});",
            {"old": NameArg(existing), "new": NameArg(new)},
        )

    # Terminal

    def collect(self) -> Deferred[list[Row]]:
        """All rows of the frame, decoded locally."""
        return generate_result(self, "JSON.stringify({{inRefId}}.collect());", parse=decode_rows)

    def columns(self) -> Deferred[list[str]]:
        return generate_result(self, "JSON.stringify({{inRefId}}.columns());", parse=_parse_columns)

    def count(self) -> Deferred[int]:
        return generate_result(self, "{{inRefId}}.count();", parse=parse_int)

    def dtypes(self) -> Deferred[list[tuple[str, str]]]:
        """Column names with their type names, e.g. ``[("age", "IntegerType")]``."""
        return generate_result(self, "JSON.stringify({{inRefId}}.dtypes());", parse=_parse_dtypes)

    def take(self, num: int) -> Deferred[list[Row]]:
        return generate_result(self, "JSON.stringify({{inRefId}}.take({{num}}));",
                               {"num": non_negative_int(num, "num")}, parse=decode_rows)

    def to_string(self) -> Deferred[str]:
        return generate_result(self, "{{inRefId}}.toString();", parse=parse_text)

    # Side effects only

    def explain(self, extended: bool = False) -> Deferred[None]:
        """Print the plans on the remote side; physical plan only unless *extended*."""
        return generate_void(self, "{{inRefId}}.explain({{extended}});",
                             {"extended": ExprArg("true" if extended else "")})

    def foreach(self, func: str) -> Deferred[None]:
        return generate_void(self, "{{inRefId}}.foreach({{udf}});", {"udf": remote_function(func)})

    def register_temp_table(self, table_name: str) -> Deferred[None]:
        return generate_void(self, "{{inRefId}}.registerTempTable({{name}});", {"name": NameArg(table_name)})

    def show(self) -> Deferred[None]:
        """Display the top 20 rows on the remote side."""
        return generate_void(self, "{{inRefId}}.show();")

    @staticmethod
    def _frame(other: Any) -> HandleArg:
        if not isinstance(other, DataFrame):
            raise MalformedArgumentsError(f"Expected a DataFrame, got {type(other).__name__}")
        return HandleArg(other)


def _parse_columns(payload: Any) -> list[str]:
    value = parse_json(payload)
    if not isinstance(value, list) or not all(isinstance(c, str) for c in value):
        raise ValueError(f"expected a JSON array of column names, got {value!r}")
    return value


def _parse_dtypes(payload: Any) -> list[tuple[str, str]]:
    value = parse_json(payload)
    if not isinstance(value, list):
        raise ValueError(f"expected a JSON array of [name, type] pairs, got {value!r}")
    pairs = []
    for entry in value:
        if not isinstance(entry, list) or len(entry) != 2:
            raise ValueError(f"malformed dtype entry {entry!r}")
        pairs.append((str(entry[0]), str(entry[1])))
    return pairs
