"""
Master-detail link: filters a detail DataSet by the master's current row.

The detail query is wrapped as::

    select * from (<detail sql>) t where D1 = :D10000 and D2 = :D20001

and each ``:Dn000i`` is bound to the master's current value of the paired
master field when the detail SQL is assembled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydataset.engines.sql.dataset import DataSet

_log = logging.getLogger(__name__)


class MasterSource:
    def __init__(self) -> None:
        self.data_source: DataSet | None = None
        self.master_fields: list[str] = []
        self.detail_fields: list[str] = []
        # param names bound by the last wrap, dropped before the next one
        self.aliases: list[str] = []

    def add_master_source(self, data_set: DataSet) -> None:
        self.data_source = data_set

    def add_master_fields(self, *fields: str) -> None:
        self.master_fields.extend(fields)

    def add_detail_fields(self, *fields: str) -> None:
        self.detail_fields.extend(fields)

    def clear_master_fields(self) -> None:
        self.master_fields.clear()

    def clear_detail_fields(self) -> None:
        self.detail_fields.clear()

    @property
    def attached(self) -> bool:
        return self.data_source is not None

    def is_valid(self) -> bool:
        """Both field lists non-empty and of equal length; logs why not otherwise."""
        if not self.master_fields or not self.detail_fields:
            _log.warning("Master-detail link skipped: master fields and detail fields cannot be empty")
            return False
        if len(self.master_fields) != len(self.detail_fields):
            _log.warning(
                "Master-detail link skipped: %d master fields vs %d detail fields",
                len(self.master_fields),
                len(self.detail_fields),
            )
            return False
        return True

    def filters(self) -> list[tuple[str, str, object]]:
        """(detail field, param alias, master value) per linked pair."""
        if self.data_source is None:
            return []
        out = []
        for i, (master, detail) in enumerate(zip(self.master_fields, self.detail_fields)):
            alias = f"{detail}{i:04d}"
            out.append((detail, alias, self.data_source.field_by_name(master).as_value()))
        return out

    def wrap(self, sql: str, aliases: list[tuple[str, str]]) -> str:
        where = " and ".join(f"{detail} = :{alias}" for detail, alias in aliases)
        return f"select * from ({sql}) t where {where}"
