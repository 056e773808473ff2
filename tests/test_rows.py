"""Tests for Row and row decoding."""

import pytest

from kernelframe.errors import ResultParseError
from kernelframe.rows import Row, decode_row, decode_rows


class TestRow:
    def test_positional_and_named_access(self):
        row = Row(["Andy", 30], ["name", "age"])

        assert row.get(0) == "Andy"
        assert row[1] == 30
        assert row["age"] == 30
        assert len(row) == 2
        assert list(row) == ["Andy", 30]
        assert row.as_dict() == {"name": "Andy", "age": 30}

    def test_unknown_field(self):
        with pytest.raises(KeyError):
            Row([1], ["a"])["b"]

    def test_row_without_fields(self):
        row = Row([1, 2])

        assert row == (1, 2)
        assert row.fields is None
        with pytest.raises(ValueError):
            row.as_dict()

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            Row([1, 2], ["a"])

    def test_repr(self):
        assert repr(Row(["Andy"], ["name"])) == "Row(name='Andy')"
        assert repr(Row([1])) == "Row(1,)"

    def test_hashable(self):
        assert len({Row([1], ["a"]), Row([1], ["a"])}) == 1


class TestDecode:
    def test_decode_records_with_schema(self):
        payload = '[{"values": ["Justin", 19], "schema": {"fields": [{"name": "name"}, {"name": "age"}]}}]'

        assert decode_rows(payload) == [Row(["Justin", 19], ["name", "age"])]

    def test_decode_records_without_schema(self):
        assert decode_rows([{"values": [1]}, [2, 3]]) == [Row([1]), Row([2, 3])]

    def test_empty_list(self):
        assert decode_rows("[]") == []

    @pytest.mark.parametrize("payload", ["{bad", '{"values": []}', "[1]"])
    def test_malformed(self, payload):
        with pytest.raises(ResultParseError):
            decode_rows(payload)

    def test_empty_schema_means_no_field_names(self):
        assert decode_rows('[{"values": [1], "schema": {}}]') == [Row([1])]

    def test_bad_schema(self):
        with pytest.raises(ResultParseError):
            decode_row({"values": [1], "schema": {"fields": [{"nom": "a"}]}})
