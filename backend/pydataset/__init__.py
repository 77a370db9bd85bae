"""
pydataset: cursor-style DataSets over DB-API connections.

    conn = Connection.from_datasource(DataSource(product_type="postgres", ...))
    ds = DataSet(conn).add_sql("select * from customer where id = :id")
    ds.set_input_param("id", 7).open()
"""

from pydataset.core.connection import Connection, Transaction
from pydataset.core.context import QueryContext
from pydataset.core.exceptions import (
    BindingError,
    ConfigurationError,
    DataSetError,
    FieldNotFoundError,
    MacroNotFoundError,
    ParamNotFoundError,
    QueryCancelledError,
    SqlParseError,
)
from pydataset.core.variant import Variant, VariantKind
from pydataset.engines.sql import DataSet, ExecResult, ParamOut
from pydataset.models import DataSource, Dialect, ProductTypeEnum

__all__ = [
    "Connection",
    "Transaction",
    "QueryContext",
    "DataSet",
    "ExecResult",
    "ParamOut",
    "Variant",
    "VariantKind",
    "DataSource",
    "Dialect",
    "ProductTypeEnum",
    "DataSetError",
    "ConfigurationError",
    "BindingError",
    "FieldNotFoundError",
    "MacroNotFoundError",
    "ParamNotFoundError",
    "SqlParseError",
    "QueryCancelledError",
]
