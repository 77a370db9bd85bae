"""Materialized result rows."""

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from pydataset.core.variant import Variant


class Row(Mapping[str, Variant]):
    """Read-only mapping of upper-cased column name to Variant, in result order."""

    __slots__ = ("_cells",)

    def __init__(self, columns: Sequence[str], values: Sequence[Any]) -> None:
        self._cells = {name.upper(): Variant(v) for name, v in zip(columns, values, strict=True)}

    def __getitem__(self, key: str) -> Variant:
        return self._cells[key.upper()]

    def get(self, key: str, default: Any = None) -> Any:
        return self._cells.get(key.upper(), default)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.upper() in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def to_dict(self) -> dict[str, Any]:
        return {k: v.as_value() for k, v in self._cells.items()}

    def __repr__(self) -> str:
        return f"Row({self.to_dict()!r})"


class RowStore:
    def __init__(self) -> None:
        self._rows: list[Row] = []

    def append(self, row: Row) -> None:
        self._rows.append(row)

    def load(self, columns: Sequence[str], records: Sequence[Sequence[Any]]) -> None:
        for record in records:
            self._rows.append(Row(columns, record))

    def clear(self) -> None:
        self._rows.clear()

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)
