"""
Fields: result columns as views into the DataSet's current row.

A Field stores no value. Reading it looks up its column in the row under
the cursor, so the same Field object follows ``next()``/``previous()``.
Off the end of the result (or before ``open()``) every Field reads as null.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

import psycopg
from psycopg import postgres
from pymysql.constants import FIELD_TYPE

from pydataset.core.exceptions import FieldNotFoundError
from pydataset.core.variant import NULL, Variant
from pydataset.models import ProductTypeEnum

if TYPE_CHECKING:
    from pydataset.engines.sql.dataset import DataSet


class DataType(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    DATETIME = "datetime"
    BOOLEAN = "boolean"


def data_type_of(value: Any) -> DataType | None:
    """Kind of a scanned driver value; None for anything outside the five kinds."""
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if isinstance(value, str):
        return DataType.TEXT
    if isinstance(value, int):
        return DataType.INTEGER
    if isinstance(value, (float, Decimal)):
        return DataType.FLOAT
    if isinstance(value, (datetime, date, time)):
        return DataType.DATETIME
    return None


_PG_TYPES = {
    "bool": DataType.BOOLEAN,
    "int2": DataType.INTEGER,
    "int4": DataType.INTEGER,
    "int8": DataType.INTEGER,
    "oid": DataType.INTEGER,
    "float4": DataType.FLOAT,
    "float8": DataType.FLOAT,
    "numeric": DataType.FLOAT,
    "money": DataType.FLOAT,
    "text": DataType.TEXT,
    "varchar": DataType.TEXT,
    "bpchar": DataType.TEXT,
    "char": DataType.TEXT,
    "name": DataType.TEXT,
    "date": DataType.DATETIME,
    "time": DataType.DATETIME,
    "timetz": DataType.DATETIME,
    "timestamp": DataType.DATETIME,
    "timestamptz": DataType.DATETIME,
}

_MYSQL_TYPES = {
    FIELD_TYPE.TINY: DataType.INTEGER,
    FIELD_TYPE.SHORT: DataType.INTEGER,
    FIELD_TYPE.LONG: DataType.INTEGER,
    FIELD_TYPE.INT24: DataType.INTEGER,
    FIELD_TYPE.LONGLONG: DataType.INTEGER,
    FIELD_TYPE.YEAR: DataType.INTEGER,
    FIELD_TYPE.DECIMAL: DataType.FLOAT,
    FIELD_TYPE.NEWDECIMAL: DataType.FLOAT,
    FIELD_TYPE.FLOAT: DataType.FLOAT,
    FIELD_TYPE.DOUBLE: DataType.FLOAT,
    FIELD_TYPE.VARCHAR: DataType.TEXT,
    FIELD_TYPE.VAR_STRING: DataType.TEXT,
    FIELD_TYPE.STRING: DataType.TEXT,
    FIELD_TYPE.ENUM: DataType.TEXT,
    FIELD_TYPE.DATE: DataType.DATETIME,
    FIELD_TYPE.NEWDATE: DataType.DATETIME,
    FIELD_TYPE.TIME: DataType.DATETIME,
    FIELD_TYPE.DATETIME: DataType.DATETIME,
    FIELD_TYPE.TIMESTAMP: DataType.DATETIME,
}


def data_type_of_column(
    type_code: Any, product_type: ProductTypeEnum | None, db: Any = None
) -> DataType | None:
    """
    Kind of a result column from the driver's ``cursor.description`` type code:
    a type OID for psycopg, a ``FIELD_TYPE`` constant for pymysql. sqlite3
    reports no type code.
    """
    if type_code is None:
        return None
    if product_type == ProductTypeEnum.POSTGRES:
        registry = db.adapters.types if isinstance(db, psycopg.Connection) else postgres.types
        info = registry.get(type_code)
        return _PG_TYPES.get(info.name) if info is not None else None
    if product_type == ProductTypeEnum.MYSQL:
        return _MYSQL_TYPES.get(type_code)
    return None


class Field:
    def __init__(self, owner: DataSet | None, name: str) -> None:
        self.owner = owner
        self.name = name
        self.data_type: DataType | None = None
        self.order = 0
        self.index = 0

    @property
    def key(self) -> str:
        return self.name.upper()

    @property
    def value(self) -> Variant:
        if self.owner is None:
            return NULL
        row = self.owner.current_row()
        if row is None:
            return NULL
        return row.get(self.key, NULL)

    def is_null(self) -> bool:
        return self.value.is_null()

    def is_not_null(self) -> bool:
        return self.value.is_not_null()

    def as_value(self) -> Any:
        return self.value.as_value()

    def as_string(self) -> str:
        return self.value.as_string()

    def as_int(self) -> int:
        return self.value.as_int()

    def as_int8(self) -> int:
        return self.value.as_int8()

    def as_int16(self) -> int:
        return self.value.as_int16()

    def as_int32(self) -> int:
        return self.value.as_int32()

    def as_int64(self) -> int:
        return self.value.as_int64()

    def as_float(self) -> float:
        return self.value.as_float()

    def as_float64(self) -> float:
        return self.value.as_float64()

    def as_float32(self) -> float:
        return self.value.as_float32()

    def as_decimal(self) -> Decimal:
        return self.value.as_decimal()

    def as_bool(self) -> bool:
        return self.value.as_bool()

    def as_datetime(self) -> datetime:
        return self.value.as_datetime()

    def as_date(self) -> date:
        return self.value.as_date()

    def as_bytes(self) -> bytes:
        return self.value.as_bytes()

    def __repr__(self) -> str:
        return f"Field({self.name!r}, data_type={self.data_type}, index={self.index})"


class FieldSet:
    """Fields in result order. Lookup by name ignores case."""

    def __init__(self, owner: DataSet | None = None) -> None:
        self.owner = owner
        self.items: list[Field] = []

    def add(self, name: str) -> Field:
        field = self.find_field_by_name(name)
        if field is not None:
            return field
        field = Field(self.owner, name)
        field.index = len(self.items)
        field.order = field.index + 1
        self.items.append(field)
        return field

    def find_field_by_name(self, name: str) -> Field | None:
        key = name.upper()
        for field in self.items:
            if field.key == key:
                return field
        return None

    def field_by_name(self, name: str) -> Field:
        field = self.find_field_by_name(name)
        if field is None:
            raise FieldNotFoundError(name)
        return field

    def names(self) -> list[str]:
        return [f.name for f in self.items]

    def clear(self) -> None:
        self.items.clear()

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_field_by_name(name) is not None
