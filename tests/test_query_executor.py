"""Tests for query execution and schema inspection."""

import pytest

from csvquery.core import QueryExecutor, TrustedQuery
from csvquery.exceptions import BadRequestException, NotFoundException, QueryException


@pytest.fixture
def loaded(database, loader, write_csv):
    loader.load(write_csv("a,b\n1,x\n2,y\n"), "orders")
    return database


class TestTrustedQuery:
    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_rejects_missing_text(self, text):
        with pytest.raises(BadRequestException) as exc_info:
            TrustedQuery.from_request(text)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Query is required"

    def test_keeps_text_verbatim(self):
        assert TrustedQuery.from_request(" SELECT 1 ").text == " SELECT 1 "


class TestQueryExecutor:
    def test_select(self, loaded):
        result = QueryExecutor(loaded).execute(TrustedQuery("SELECT * FROM orders"))

        assert result.rows == [{"a": "1", "b": "x"}, {"a": "2", "b": "y"}]
        assert result.row_count == 2
        assert isinstance(result.execution_time_ms, int)
        assert result.execution_time_ms >= 0

    def test_ddl_and_dml_are_allowed(self, loaded):
        executor = QueryExecutor(loaded)

        assert executor.execute(TrustedQuery("UPDATE orders SET b = 'z' WHERE a = '1'")).rows == []
        assert executor.execute(TrustedQuery("CREATE TABLE notes (body TEXT)")).row_count == 0
        assert executor.execute(TrustedQuery("SELECT b FROM orders WHERE a = '1'")).rows == [{"b": "z"}]

    def test_blob_values_are_json_safe(self, database):
        result = QueryExecutor(database).execute(
            TrustedQuery("SELECT x'ff00' AS b, 1.5 AS r, NULL AS n")
        )

        assert result.rows == [{"b": {"type": "Buffer", "data": [255, 0]}, "r": 1.5, "n": None}]

    def test_syntax_error(self, loaded):
        with pytest.raises(QueryException) as exc_info:
            QueryExecutor(loaded).execute(TrustedQuery("SELEKT * FROM orders"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message.startswith("Error executing query:")
        assert "syntax error" in exc_info.value.message

    def test_missing_table(self, loaded):
        with pytest.raises(QueryException, match="no such table"):
            QueryExecutor(loaded).execute(TrustedQuery("SELECT * FROM nope"))

    def test_timeout(self, database):
        endless = TrustedQuery(
            "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c) SELECT count(*) FROM c"
        )
        with pytest.raises(QueryException, match="interrupted"):
            QueryExecutor(database, timeout_seconds=0.05).execute(endless)


class TestSchemaInspector:
    def test_describe(self, loaded, inspector):
        columns = inspector.describe("orders")
        assert [c.to_dict() for c in columns] == [
            {"name": "a", "type": "TEXT"},
            {"name": "b", "type": "TEXT"},
        ]

    def test_describe_reports_declared_types_of_other_tables(self, database, inspector):
        database.query("CREATE TABLE metrics (n INTEGER, label TEXT)")
        assert [(c.name, c.type) for c in inspector.describe("metrics")] == [
            ("n", "INTEGER"),
            ("label", "TEXT"),
        ]

    def test_missing_table(self, database, inspector):
        with pytest.raises(NotFoundException) as exc_info:
            inspector.describe("nope")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Table nope not found"

    def test_row_count(self, loaded, inspector):
        assert inspector.row_count("orders") == 2
