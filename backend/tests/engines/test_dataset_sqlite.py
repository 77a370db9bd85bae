"""
End-to-end DataSet tests on an in-memory SQLite database.

SQLite binds ``:name`` natively, so these exercise assembly, execution, the
cursor and fields without any placeholder rewriting.
"""

import logging
import sqlite3
from datetime import datetime

import pytest

from pydataset.core.connection import Connection
from pydataset.core.context import QueryContext
from pydataset.core.exceptions import FieldNotFoundError, QueryCancelledError
from pydataset.engines.sql import DataSet, DataType


def _open(conn: Connection, sql: str, **params) -> DataSet:
    ds = DataSet(conn).add_sql(sql)
    for name, value in params.items():
        ds.set_input_param(name, value)
    ds.open()
    return ds


class TestOpenAndCursor:
    def test_open_positions_on_first_row(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id, name from customer order by id")
        assert ds.count() == 3
        assert ds.recno == 1
        assert ds.is_not_empty()
        assert ds.index == 0
        assert ds.bof()
        assert not ds.eof()
        assert ds.field_by_name("NAME").as_string() == "Ann"

    def test_next_visits_every_row(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer order by id")
        seen = []
        while not ds.eof():
            assert ds.recno == ds.index + 1
            seen.append(ds.field_by_name("id").as_int())
            ds.next()
        assert seen == [1, 2, 3]
        assert ds.recno == ds.count() + 1
        assert ds.field_by_name("id").is_null()

    def test_next_at_eof_is_a_no_op(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer")
        ds.last()
        ds.next()
        ds.next()
        assert ds.recno == 4
        assert ds.eof()

    def test_previous_stops_at_bof(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer order by id")
        ds.last()
        assert (ds.index, ds.recno) == (2, 3)
        ds.previous()
        ds.previous()
        ds.previous()
        assert ds.bof()
        assert ds.field_by_name("id").as_int() == 1

    def test_empty_result(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer where id < 0")
        assert ds.is_empty()
        assert ds.recno == 0
        assert ds.bof() and ds.eof()
        ds.last()
        assert (ds.index, ds.recno) == (0, 0)
        assert ds.field_by_name("id").is_null()

    def test_params_and_macros(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn)
        ds.add_sql("select id from &table")
        ds.add_sql("where region = :region and id in (&ids)")
        ds.set_macro("table", "customer").set_macro("ids", [1, 2, 3]).set_input_param("region", "EU")
        ds.open()
        assert ds.count() == 2
        assert ds.get_macros() == {"table": "customer", "ids": [1, 2, 3]}
        assert ds.macro_by_name("table").text() == "customer"

    def test_open_is_repeatable(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer where region = :region", region="EU")
        ds.set_input_param("region", "US")
        ds.open()
        assert ds.count() == 1
        assert ds.recno == 1

    def test_locate(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id, name from customer order by id")
        assert ds.locate("name", "Bob") is True
        assert ds.recno == 2
        assert ds.locate("name", "Zed") is False
        assert ds.eof()

    def test_locate_unknown_field(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer")
        with pytest.raises(FieldNotFoundError):
            ds.locate("nope", 1)


class TestFields:
    def test_types_inferred_from_first_non_null(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id, name, balance, score from customer where id >= 2 order by id")
        assert ds.field_by_name("id").data_type is DataType.INTEGER
        assert ds.field_by_name("name").data_type is DataType.TEXT
        assert ds.field_by_name("balance").data_type is DataType.FLOAT
        assert ds.field_by_name("score").data_type is DataType.INTEGER

    def test_all_null_column_has_no_type(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select score from customer where id = 2")
        assert ds.field_by_name("score").data_type is None

    def test_order_and_index(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select name, id from customer")
        f = ds.field_by_name("id")
        assert (f.order, f.index) == (2, 1)
        assert ds.fields.names() == ["name", "id"]

    def test_find_field_is_case_insensitive(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select name from customer")
        assert ds.find_field("NaMe") is ds.field_by_name("name")
        assert ds.find_field("missing") is None
        assert "NAME" in ds.fields

    def test_field_view_follows_cursor(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select name from customer order by id")
        name = ds.field_by_name("name")
        ds.next()
        assert name.as_string() == "Bob"

    def test_create_fields_then_open_refreshes_positions(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("select id, name from customer order by id")
        ds.create_fields()
        assert ds.fields.names() == ["id", "name"]
        name = ds.field_by_name("name")
        name.order, name.index = 9, 7

        ds.open()

        assert ds.field_by_name("name") is name
        assert (name.order, name.index) == (2, 1)
        assert name.data_type is None
        assert name.as_string() == "Ann"


class TestAssembly:
    def test_prepare_registers_unknown_params(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("select * from customer where region = :region and id > :min_id")
        ds.set_input_param("min_id", 1)
        ds.prepare()
        assert ds.params.names() == ["min_id", "region"]
        assert ds.param_by_name("region").as_string() == ""
        assert ds.param_by_name("min_id").as_int() == 1

    def test_sql_param_inlines_literals(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("update t set a = :a, b = :b, c = :c, d = :d, e = :e where f = :f")
        ds.set_input_param("a", 5)
        ds.set_input_param("b", "x")
        ds.set_input_param("c", None)
        ds.set_input_param("d", datetime(2024, 1, 2, 3, 4, 5))
        ds.set_input_param("e", 1.5)
        ds.set_input_param("f", True)
        assert ds.sql_param() == (
            "update t set a = 5, b = 'x', c = null, "
            "d = to_date('2024-01-02 03:04:05','rrrr-mm-dd hh24:mi:ss'), e = 1.500000 where f = :f"
        )

    def test_newlines_are_normalized(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("select id\r\nfrom customer").add_sql("where id = :id")
        assert ds.get_sql() == "select id\n from customer\n where id = :id"

    def test_get_params_shape(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("select :a")
        assert ds.get_params() is None
        ds.set_input_param("a", 1)
        assert ds.get_params() == {"a": 1}

    def test_parse_sql(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("select id from &t").set_macro("t", "customer")
        assert ds.parse_sql().sql() == "SELECT id FROM customer"


class TestClose:
    def test_close_clears_everything(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer where region = :r", r="EU")
        ds.set_macro("m", 1)
        ds.close()
        assert ds.count() == 0
        assert (ds.index, ds.recno) == (0, 0)
        assert len(ds.fields) == 0
        assert len(ds.params) == 0
        assert len(ds.macros) == 0
        assert not ds.master_source.attached
        assert ds.sql.text() == ""

    def test_close_no_clear_sql_keeps_text(self, sqlite_conn: Connection):
        ds = _open(sqlite_conn, "select id from customer")
        ds.close_no_clear_sql()
        assert ds.count() == 0
        assert ds.sql.text() == "select id from customer"
        ds.open()
        assert ds.count() == 3


class TestExec:
    def test_exec_commits_without_transaction(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("update customer set score = :score where region = :region")
        ds.set_input_param("score", 1).set_input_param("region", "EU")
        result = ds.exec()
        assert result.rows_affected() == 2
        assert sqlite_conn.db.in_transaction is False

    def test_delete_returns_rowcount(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("delete from orders where customer_id = :id")
        ds.set_input_param("id", 1)
        assert ds.delete() == 2
        assert _open(sqlite_conn, "select id from orders").count() == 1

    def test_insert_lastrowid(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("insert into orders (customer_id, code, amount) values (:c, :code, :amt)")
        ds.set_input_param("c", 2).set_input_param("code", "B-1").set_input_param("amt", 3.0)
        result = ds.exec()
        assert result.rowcount == 1
        assert result.lastrowid == 13

    def test_exec_batch(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("insert into orders (customer_id, code, amount) values (:c, :code, :amt)")
        ds.set_input_param_batch("code", ["B-1", "B-2", "B-3"])
        ds.set_input_param_batch("amt", [1.0, 2.0, 3.0])
        ds.set_input_param("c", 2)
        ds.exec_batch(ds.params.batch_size)
        rows = _open(sqlite_conn, "select code, amount from orders where customer_id = 2 order by id")
        assert rows.count() == 3
        rows.last()
        assert rows.field_by_name("amount").as_float() == 3.0

    def test_failed_exec_rolls_back(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("insert into orders (id, customer_id, code, amount) values (:id, 1, 'X', 0)")
        ds.set_input_param_batch("id", [20, 10])
        with pytest.raises(sqlite3.IntegrityError):
            ds.exec_batch(2)
        assert _open(sqlite_conn, "select id from orders where id = 20").is_empty()


class TestTransactions:
    def test_transaction_commit(self, sqlite_conn: Connection):
        with sqlite_conn.begin() as tx:
            assert DataSet(tx).add_sql("delete from orders").delete() == 3
            assert _open(sqlite_conn, "select id from orders").is_empty()
            assert sqlite_conn.db.in_transaction
        assert not sqlite_conn.db.in_transaction
        assert _open(sqlite_conn, "select id from orders").is_empty()

    def test_transaction_rollback(self, sqlite_conn: Connection):
        with pytest.raises(RuntimeError):
            with sqlite_conn.begin() as tx:
                DataSet(tx).add_sql("delete from orders").exec()
                raise RuntimeError("abort")
        assert _open(sqlite_conn, "select id from orders").count() == 3

    def test_dataset_on_connection_respects_open_transaction(self, sqlite_conn: Connection):
        tx = sqlite_conn.begin()
        DataSet(sqlite_conn).add_sql("delete from orders").exec()
        tx.rollback()
        assert _open(sqlite_conn, "select id from orders").count() == 3


class TestContext:
    def test_cancelled_context(self, sqlite_conn: Connection):
        ctx = QueryContext()
        ctx.cancel()
        ds = DataSet(sqlite_conn).add_sql("select id from customer")
        with pytest.raises(QueryCancelledError):
            ds.open_with_context(ctx)
        with pytest.raises(QueryCancelledError):
            ds.exec_with_context(ctx)
        with pytest.raises(QueryCancelledError):
            ds.delete_with_context(ctx)

    def test_expired_context(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn, context=QueryContext(timeout=0)).add_sql("select id from customer")
        with pytest.raises(QueryCancelledError, match="deadline"):
            ds.open()

    def test_live_context(self, sqlite_conn: Connection):
        ds = DataSet(sqlite_conn).add_sql("select id from customer")
        ds.add_context(QueryContext(timeout=30)).open()
        assert ds.count() == 3


class TestLogging:
    def test_statement_and_params_logged(self, sqlite_conn: Connection, caplog: pytest.LogCaptureFixture):
        sqlite_conn.log = True
        ds = DataSet(sqlite_conn).add_sql("select id from customer where id = :id")
        ds.set_input_param("id", 1)
        with caplog.at_level(logging.INFO, logger="pydataset"):
            ds.open()
        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["select id from customer where id = :id", "param id [in] = 1"]
        assert caplog.records[0].sql == "select id from customer where id = :id"

    def test_nothing_logged_when_disabled(self, sqlite_conn: Connection, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="pydataset"):
            _open(sqlite_conn, "select id from customer")
        assert caplog.records == []
