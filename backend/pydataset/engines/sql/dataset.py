"""
DataSet: SQL assembly, execution and an in-memory cursor over the result.

Typical use::

    ds = DataSet(conn)
    ds.add_sql("select id, name from customer where region = :region")
    ds.set_input_param("region", "EU")
    ds.open()
    while not ds.eof():
        print(ds.field_by_name("name").as_string())
        ds.next()

Assembly order on every open/exec: newline normalization, ``&macro``
substitution, master-detail wrapping (queries only), placeholder translation
for the connection's dialect.

``open()`` loads the whole result into memory. A DataSet is meant for one
owner at a time: nothing here is synchronized, so use one DataSet per thread.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from decimal import Decimal
from typing import Any, NamedTuple

from sqlglot import exp

from pydataset.core.config import settings
from pydataset.core.connection import Connection, Transaction
from pydataset.core.context import QueryContext
from pydataset.core.exceptions import QueryCancelledError
from pydataset.core.pool import statement_timeout
from pydataset.core.variant import Variant
from pydataset.engines.sql import binding, parser
from pydataset.engines.sql.buffer import SqlBuffer, normalize_newlines
from pydataset.engines.sql.dialect import replace_param, shape_args, translate
from pydataset.engines.sql.fields import Field, FieldSet, data_type_of, data_type_of_column
from pydataset.engines.sql.macros import Macro, MacroSet
from pydataset.engines.sql.master import MasterSource
from pydataset.engines.sql.params import OutBind, Param, ParamOut, ParamSet
from pydataset.engines.sql.rows import Row, RowStore
from pydataset.models import Dialect

_log = logging.getLogger(__name__)


class ExecResult(NamedTuple):
    rowcount: int
    lastrowid: Any = None

    def rows_affected(self) -> int:
        return self.rowcount


class DataSet:
    def __init__(
        self,
        connection: Connection | Transaction,
        *,
        context: QueryContext | None = None,
    ) -> None:
        if isinstance(connection, Transaction):
            self.tx: Transaction | None = connection
            self.connection = connection.connection
        else:
            self.tx = None
            self.connection = connection
        self.ctx = context
        self.sql = SqlBuffer()
        self.rows = RowStore()
        self.index = 0
        self.recno = 0
        self._reset_state()

    def _reset_state(self) -> None:
        self.fields = FieldSet(self)
        self.params = ParamSet()
        self.macros = MacroSet()
        self.master_source = MasterSource()

    @property
    def dialect(self) -> Dialect | None:
        if self.tx is not None:
            return self.tx.dialect
        return self.connection.dialect

    def add_context(self, ctx: QueryContext | None) -> DataSet:
        self.ctx = ctx
        return self

    # ------------------------------------------------------------------
    # SQL assembly
    # ------------------------------------------------------------------

    def add_sql(self, sql: str) -> DataSet:
        self.sql.add(sql)
        return self

    def _raw_sql(self) -> str:
        return self.macros.apply(normalize_newlines(self.sql.text()))

    def _master_detail_sql(self) -> str:
        sql = self._raw_sql()
        self._drop_master_aliases()
        ms = self.master_source
        if not ms.attached or not ms.is_valid():
            return sql
        filters = ms.filters()
        for _detail, alias, value in filters:
            self.params.set_input_param(alias, value)
            ms.aliases.append(alias)
        return ms.wrap(sql, [(detail, alias) for detail, alias, _ in filters])

    def get_sql(self) -> str:
        """Statement SQL: macros applied, placeholders translated, no master filter."""
        self._drop_master_aliases()
        return translate(self._raw_sql(), self.params.names(), self.dialect)

    def _drop_master_aliases(self) -> None:
        for alias in self.master_source.aliases:
            self.params.remove(alias)
        self.master_source.aliases.clear()

    def get_sql_master_detail(self) -> str:
        """Query SQL: like get_sql, wrapped by the master-detail filter when linked."""
        sql = self._master_detail_sql()
        return translate(sql, self.params.names(), self.dialect)

    def get_params(self) -> list[Any] | dict[str, Any] | None:
        return shape_args(self.params.bind_args(), self.dialect)

    def get_params_batch(self, index: int) -> list[Any] | dict[str, Any] | None:
        return shape_args(self.params.bind_args(index), self.dialect)

    def get_macros(self) -> dict[str, Any]:
        return {m.name: m.value.as_value() for m in self.macros}

    def sql_param(self) -> str:
        """SQL with param values inlined as literals. For logs and debugging only."""
        sql = self._raw_sql()
        for p in self.params:
            literal = _literal(p.value.as_value())
            if literal is not None:
                sql = replace_param(sql, ":" + p.name, literal)
        return sql

    def parse_sql(self) -> exp.Expression:
        return parser.parse_sql(self._raw_sql(), self.dialect)

    def create_fields(self) -> None:
        """Declare fields from the SELECT list before opening."""
        for name in parser.discover_columns(self._raw_sql(), self.dialect):
            self.fields.add(name)

    def prepare(self) -> None:
        """Register every ``:name`` in the SQL that is not a param yet (empty IN value)."""
        for name in parser.discover_params(self._raw_sql(), self.dialect):
            self.params.add(name, "")

    # ------------------------------------------------------------------
    # Params and macros
    # ------------------------------------------------------------------

    def param_by_name(self, name: str) -> Param:
        return self.params.param_by_name(name)

    def set_input_param(self, name: str, value: Any) -> DataSet:
        self.params.set_input_param(name, value)
        return self

    def set_input_param_clob(self, name: str, value: str) -> DataSet:
        self.params.set_input_param_clob(name, value)
        return self

    def set_input_param_blob(self, name: str, value: bytes) -> DataSet:
        self.params.set_input_param_blob(name, value)
        return self

    def set_input_param_batch(self, name: str, values: list[Any]) -> DataSet:
        self.params.set_input_param_batch(name, values)
        return self

    def set_output_param(self, name: str, dest: Any) -> DataSet:
        self.params.set_output_param(name, dest)
        return self

    def set_inout_param(self, name: str, value: Any, dest: Any = None) -> DataSet:
        self.params.set_inout_param(name, value, dest)
        return self

    def set_output_param_slice(self, *params: ParamOut) -> DataSet:
        self.params.set_output_param_slice(*params)
        return self

    def set_macro(self, name: str, value: Any) -> DataSet:
        self.macros.set_macro(name, value)
        return self

    def macro_by_name(self, name: str) -> Macro:
        return self.macros.macro_by_name(name)

    def print_param(self) -> None:
        self.params.print_param(self.connection.logger)

    # ------------------------------------------------------------------
    # Master-detail
    # ------------------------------------------------------------------

    def add_master_source(self, data_set: DataSet) -> DataSet:
        self.master_source.add_master_source(data_set)
        return self

    def add_master_fields(self, *fields: str) -> DataSet:
        self.master_source.add_master_fields(*fields)
        return self

    def add_detail_fields(self, *fields: str) -> DataSet:
        self.master_source.add_detail_fields(*fields)
        return self

    def clear_master_fields(self) -> DataSet:
        self._drop_master_aliases()
        self.master_source.clear_master_fields()
        return self

    def clear_detail_fields(self) -> DataSet:
        self._drop_master_aliases()
        self.master_source.clear_detail_fields()
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def open(self) -> None:
        self._open(self.ctx)

    def open_with_context(self, ctx: QueryContext) -> None:
        self._open(ctx)

    def exec(self) -> ExecResult:
        return self._exec(self.ctx)

    def exec_with_context(self, ctx: QueryContext) -> ExecResult:
        return self._exec(ctx)

    def delete(self) -> int:
        return self._exec(self.ctx).rowcount

    def delete_with_context(self, ctx: QueryContext) -> int:
        return self._exec(ctx).rowcount

    def exec_batch(self, size: int) -> None:
        """
        Run the statement *size* times on one cursor, binding batch value i
        (or the scalar value) on run i. Stops at the first failing run.
        """
        ctx = self.ctx
        sql = self.get_sql()
        self._log_statement(sql)
        with self._timeout(ctx):
            cur = self._cursor()
            try:
                for i in range(size):
                    self._execute(cur, sql, self.get_params_batch(i), ctx)
            except Exception:
                self._rollback_autocommit()
                raise
            finally:
                cur.close()
        self._commit_autocommit()

    def close(self) -> None:
        """Drop rows, fields, params, macros, master link and the SQL text."""
        self.sql.clear()
        self.close_no_clear_sql()

    def close_no_clear_sql(self) -> None:
        self.index = 0
        self.recno = 0
        self.rows = RowStore()
        self._reset_state()

    def _open(self, ctx: QueryContext | None) -> None:
        self.rows = RowStore()
        self.index = 0
        self.recno = 0

        sql = self.get_sql_master_detail()
        self._log_statement(sql)

        if self.tx is not None:
            description, records = self._fetch(sql, ctx)
        else:
            try:
                description, records = self._fetch(sql, ctx)
            except QueryCancelledError:
                raise
            except Exception as err:
                self._rollback_quiet()
                if self.connection.ping():
                    raise
                _log.warning("Query failed on a dead connection, reconnecting: %s", err)
                try:
                    self.connection.open()
                except Exception:
                    _log.error("Reconnect failed", exc_info=True)
                    raise err
                description, records = self._fetch(sql, ctx)
            self._commit_autocommit()

        self._scan(description, records)
        self.first()

    def _exec(self, ctx: QueryContext | None) -> ExecResult:
        sql = self.get_sql()
        self._log_statement(sql)
        with self._timeout(ctx):
            cur = self._cursor()
            try:
                self._execute(cur, sql, self.get_params(), ctx)
                result = ExecResult(
                    rowcount=cur.rowcount if cur.rowcount is not None else 0,
                    lastrowid=getattr(cur, "lastrowid", None),
                )
            except Exception:
                self._rollback_autocommit()
                raise
            finally:
                cur.close()
        self._commit_autocommit()
        return result

    def _fetch(self, sql: str, ctx: QueryContext | None) -> tuple[list[Any], list[Any]]:
        with self._timeout(ctx):
            cur = self._cursor()
            try:
                self._execute(cur, sql, self.get_params(), ctx)
                description = list(cur.description or [])
                records = list(cur.fetchall()) if description else []
            finally:
                cur.close()
        return description, records

    def _execute(self, cur: Any, sql: str, args: Any, ctx: QueryContext | None) -> None:
        args, out_vars = _bind_out(cur, args)
        guard = ctx.running(self.connection.interrupter()) if ctx is not None else nullcontext()
        with guard:
            if args is None:
                cur.execute(sql)
            else:
                cur.execute(sql, args)
        for name, var in out_vars.items():
            self.params.param_by_name(name).value = Variant(var.getvalue())

    def _cursor(self) -> Any:
        if self.tx is not None:
            return self.tx.cursor()
        return self.connection.cursor()

    def _timeout(self, ctx: QueryContext | None):
        timeout = ctx.remaining() if ctx is not None else None
        if timeout is None:
            timeout = settings.EXTERNAL_DB_STATEMENT_TIMEOUT
        return statement_timeout(self.connection.db, self.connection.product_type, timeout)

    def _autocommit(self) -> bool:
        return self.tx is None and self.connection.transaction is None

    def _commit_autocommit(self) -> None:
        if self._autocommit():
            self.connection.commit()

    def _rollback_autocommit(self) -> None:
        if self._autocommit():
            self._rollback_quiet()

    def _rollback_quiet(self) -> None:
        try:
            self.connection.rollback()
        except Exception:
            pass

    def _log_statement(self, sql: str) -> None:
        if not self.connection.log:
            return
        self.connection.logger.info("%s", sql, extra={"sql": sql})
        self.print_param()

    def _scan(self, description: list[Any], records: list[Any]) -> None:
        columns = [d[0] for d in description]
        if len(self.fields) == 0:
            for i, name in enumerate(columns):
                field = self.fields.add(name)
                field.data_type = data_type_of_column(
                    description[i][1], self.connection.product_type, self.connection.db
                ) or _infer_type(records, i)
                field.order = i + 1
                field.index = i
        else:
            positions = {name.upper(): i for i, name in enumerate(columns)}
            for field in self.fields:
                i = positions.get(field.key)
                if i is not None:
                    field.order = i + 1
                    field.index = i
        self.rows.load(columns, records)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def count(self) -> int:
        return len(self.rows)

    def is_empty(self) -> bool:
        return self.count() == 0

    def is_not_empty(self) -> bool:
        return self.count() > 0

    def first(self) -> None:
        self.index = 0
        self.recno = 1 if self.count() > 0 else 0

    def next(self) -> None:
        if not self.eof():
            self.index += 1
            self.recno += 1

    def previous(self) -> None:
        if not self.bof():
            self.index -= 1
            self.recno -= 1

    def last(self) -> None:
        self.index = max(self.count() - 1, 0)
        self.recno = self.count()

    def bof(self) -> bool:
        return self.count() == 0 or self.recno == 1

    def eof(self) -> bool:
        return self.count() == 0 or self.recno > self.count()

    def current_row(self) -> Row | None:
        if self.recno < 1 or not 0 <= self.index < self.count():
            return None
        return self.rows[self.index]

    def field_by_name(self, name: str) -> Field:
        return self.fields.field_by_name(name)

    def find_field(self, name: str) -> Field | None:
        return self.fields.find_field_by_name(name)

    def locate(self, key: str, value: Any) -> bool:
        """Move to the first row whose *key* field equals *value*; False leaves the cursor at Eof."""
        field = self.field_by_name(key)
        self.first()
        while not self.eof():
            if field.as_value() == value:
                return True
            self.next()
        return False

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def bind_to(self, target: Any, model: type | None = None) -> None:
        binding.bind_to(self, target, model)

    def to_struct(self, model: type) -> Any:
        binding.describe(model)
        record = binding.new_record(model)
        binding.bind_record(self, record)
        return record

    def to_list(self, model: type) -> list[Any]:
        out: list[Any] = []
        binding.bind_to(self, out, model)
        return out

    def __repr__(self) -> str:
        return f"DataSet(count={self.count()}, recno={self.recno}, dialect={self.dialect})"


def _infer_type(records: list[Any], i: int):
    for record in records:
        value = record[i]
        if value is not None:
            return data_type_of(value)
    return None


def _bind_out(cur: Any, args: Any) -> tuple[Any, dict[str, Any]]:
    """
    Swap OutBind placeholders for driver output variables (``cursor.var``).
    Drivers without output variables get the input value (INOUT) or NULL.
    """
    if args is None:
        return None, {}
    items = args.items() if isinstance(args, dict) else enumerate(args)
    if not any(isinstance(v, OutBind) for _k, v in items):
        return args, {}

    out_vars: dict[str, Any] = {}
    make_var = getattr(cur, "var", None)

    def convert(ob: OutBind) -> Any:
        if make_var is None:
            return ob.value if ob.is_input else None
        var = make_var(ob.dest if isinstance(ob.dest, type) else type(ob.dest))
        if ob.is_input:
            var.setvalue(0, ob.value)
        out_vars[ob.name] = var
        return var

    if isinstance(args, dict):
        bound: Any = {k: convert(v) if isinstance(v, OutBind) else v for k, v in args.items()}
    else:
        bound = [convert(v) if isinstance(v, OutBind) else v for v in args]
    return bound, out_vars


def _literal(value: Any) -> str | None:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        stamp = value.strftime("%Y-%m-%d %H:%M:%S")
        return f"to_date('{stamp}','rrrr-mm-dd hh24:mi:ss')"
    if isinstance(value, date):
        return f"to_date('{value.isoformat()}','rrrr-mm-dd')"
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return f"{value:f}"
    if isinstance(value, str):
        return f"'{value}'"
    return None
