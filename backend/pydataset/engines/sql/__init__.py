"""
DataSet engine: SQL assembly, params, macros, master-detail, cursor, record binding.

Exports: DataSet, ExecResult, Field, FieldSet, DataType, Param, ParamSet,
ParamDirection, ParamOut, Macro, MacroSet, MasterSource, Row, RowStore,
SqlBuffer, discover_columns, discover_params, translate.
"""

from pydataset.engines.sql.binding import Float32, Float64, Int8, Int16, Int32, Int64
from pydataset.engines.sql.buffer import SqlBuffer
from pydataset.engines.sql.dialect import translate
from pydataset.engines.sql.fields import DataType, Field, FieldSet
from pydataset.engines.sql.macros import Macro, MacroSet
from pydataset.engines.sql.master import MasterSource
from pydataset.engines.sql.params import LobType, Param, ParamDirection, ParamOut, ParamSet
from pydataset.engines.sql.parser import discover_columns, discover_params
from pydataset.engines.sql.rows import Row, RowStore
from pydataset.engines.sql.dataset import DataSet, ExecResult

__all__ = [
    "DataSet",
    "ExecResult",
    "DataType",
    "Field",
    "FieldSet",
    "Param",
    "ParamSet",
    "ParamDirection",
    "ParamOut",
    "LobType",
    "Macro",
    "MacroSet",
    "MasterSource",
    "Row",
    "RowStore",
    "SqlBuffer",
    "discover_columns",
    "discover_params",
    "translate",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
]
