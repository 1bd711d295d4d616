"""
Tests for CLI utilities.
"""

from __future__ import annotations

import pytest
import typer

from recordspine.cli.utils import _to_dict, open_instance, parse_params, report_errors
from recordspine.core.dialect import ColumnInfo
from recordspine.core.errors import EmptyInputError, QueryError


class TestToDict:
    def test_dataclass(self):
        column = ColumnInfo(name="UserId", type="INTEGER", nullable=True, default=None, primary_key=True)
        assert _to_dict(column) == {
            "name": "UserId",
            "type": "INTEGER",
            "nullable": True,
            "default": None,
            "primary_key": True,
        }

    def test_dict_passthrough(self):
        assert _to_dict({"a": 1}) == {"a": 1}

    def test_other(self):
        assert _to_dict(3) == {"value": 3}


class TestParseParams:
    def test_pairs(self):
        assert parse_params(["name=John", ":id=1", "empty="]) == {"name": "John", "id": "1", "empty": ""}

    def test_value_may_contain_equals(self):
        assert parse_params(["expr=a=b"]) == {"expr": "a=b"}

    def test_none(self):
        assert parse_params(None) == {}

    @pytest.mark.parametrize("item", ["oops", "=value"])
    def test_malformed(self, item):
        with pytest.raises(typer.BadParameter):
            parse_params([item])


class TestReportErrors:
    def test_query_error_uses_driver_code(self, capsys):
        with pytest.raises(typer.Exit) as exc_info:
            with report_errors():
                raise QueryError("no such table: [Nope]", code="SQLITE_ERROR")
        assert exc_info.value.exit_code == 1
        assert "Error (SQLITE_ERROR): no such table: [Nope]" in capsys.readouterr().err

    def test_other_errors_use_category(self, capsys):
        with pytest.raises(typer.Exit):
            with report_errors():
                raise EmptyInputError("No data")
        assert "Error (VALIDATION): No data" in capsys.readouterr().err

    def test_foreign_errors_propagate(self):
        with pytest.raises(KeyError):
            with report_errors():
                raise KeyError("x")


class TestOpenInstance:
    def test_closed_afterwards(self):
        with open_instance("main", "sqlite:") as db:
            assert db.adapter.is_connected
        assert not db.adapter.is_connected

    def test_closed_after_error(self):
        with pytest.raises(typer.Exit):
            with open_instance("main", "sqlite:") as db:
                db.query("SELECT * FROM nope")
        assert not db.adapter.is_connected
