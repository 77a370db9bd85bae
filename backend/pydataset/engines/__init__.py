"""
Engines: the SQL DataSet engine.
"""

from pydataset.engines.sql import DataSet, ExecResult

__all__ = [
    "DataSet",
    "ExecResult",
]
