"""Record binding (dataclasses and pydantic models) against an in-memory SQLite DataSet."""

from dataclasses import dataclass, field
from typing import Any, Optional

import pytest
from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField

from pydataset.core.connection import Connection
from pydataset.core.exceptions import BindingError
from pydataset.engines.sql import DataSet, Int8
from pydataset.engines.sql.binding import describe, new_record


@dataclass
class Customer:
    id: int
    name: str = field(metadata={"column": "NAME"})
    balance: float = 0.0
    score: Optional[int] = None


@dataclass
class CustomerScore:
    id: int
    score: int = -1


@dataclass
class Tagged:
    ident: int = field(metadata={"column": "id"})
    name: str = field(default="", metadata={"column": "-"})
    tags: list[str] = field(default_factory=list)
    _cache: Any = None


@dataclass(frozen=True)
class FrozenCustomer:
    id: int
    name: str


@dataclass
class Narrow:
    big: Int8


class CustomerModel(BaseModel):
    ident: int = PydanticField(json_schema_extra={"column": "id"})
    name: str
    region: str | None = None


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int


def _customers(conn: Connection, where: str = "") -> DataSet:
    ds = DataSet(conn)
    ds.add_sql(f"select id, name, region, balance, score from customer {where} order by id")
    ds.open()
    return ds


def test_to_struct_dataclass(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    c = ds.to_struct(Customer)
    assert c == Customer(id=1, name="Ann", balance=10.5, score=7)


def test_null_on_optional_keeps_default(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn, "where id = 2")
    assert ds.to_struct(Customer).score is None


def test_null_on_plain_field_becomes_zero(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn, "where id = 2")
    assert ds.to_struct(CustomerScore).score == 0


def test_to_list_binds_remaining_rows(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    ds.next()
    out = ds.to_list(Customer)
    assert [c.id for c in out] == [2, 3]
    assert ds.eof()


def test_bind_to_existing_list_uses_element_type(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    first = ds.to_struct(Customer)
    target = [first]
    ds.next()
    ds.bind_to(target)
    assert [c.name for c in target] == ["Ann", "Bob", "Cid"]


def test_bind_to_empty_list_needs_model(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    with pytest.raises(BindingError):
        ds.bind_to([])


def test_bind_to_rejects_non_record(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    with pytest.raises(BindingError):
        ds.bind_to({"id": 0})
    with pytest.raises(BindingError):
        ds.bind_to(Customer)


def test_pydantic_model_with_column_tag(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    out = ds.to_list(CustomerModel)
    assert [(m.ident, m.name, m.region) for m in out] == [(1, "Ann", "EU"), (2, "Bob", "US"), (3, "Cid", "EU")]


def test_frozen_records_raise_binding_error(sqlite_conn: Connection) -> None:
    ds = _customers(sqlite_conn)
    with pytest.raises(BindingError):
        ds.to_struct(FrozenCustomer)
    with pytest.raises(BindingError):
        ds.to_struct(FrozenModel)


def test_fixed_width_destination_wraps(sqlite_conn: Connection) -> None:
    ds = DataSet(sqlite_conn).add_sql("select 200 as big")
    ds.open()
    assert ds.to_struct(Narrow).big == -56


def test_skipped_attributes() -> None:
    assert [b.attr for b in describe(Tagged)] == ["ident"]
    assert describe(Tagged)[0].column == "id"


def test_describe_is_cached() -> None:
    assert describe(Customer) is describe(Customer)


def test_describe_rejects_plain_class() -> None:
    with pytest.raises(BindingError):
        describe(dict)


def test_new_record_zero_values() -> None:
    assert new_record(Customer) == Customer(id=0, name="", balance=0.0, score=None)
    model = new_record(CustomerModel)
    assert (model.ident, model.name, model.region) == (0, "", None)


def test_missing_columns_are_skipped(sqlite_conn: Connection) -> None:
    ds = DataSet(sqlite_conn).add_sql("select id from customer where id = 3")
    ds.open()
    c = ds.to_struct(Customer)
    assert (c.id, c.name, c.balance) == (3, "", 0.0)
