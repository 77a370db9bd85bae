"""
Bind parameters: named, directional (IN / OUT / INOUT), with optional
per-index values for batch execution.

Params keep insertion order; for positional dialects that order is the
``$N`` number. Names compare case-sensitively, like the tokens in the SQL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from pydataset.core.config import settings
from pydataset.core.exceptions import ParamNotFoundError
from pydataset.core.variant import Variant


class ParamDirection(str, Enum):
    IN = "in"
    OUT = "out"
    INOUT = "inout"


class LobType(str, Enum):
    CLOB = "clob"
    BLOB = "blob"


class ParamOut(NamedTuple):
    """(name, dest) pair for ``set_output_param_slice``."""

    name: str
    dest: Any


@dataclass
class OutBind:
    """
    Output destination handed to the connection. ``dest`` is a type or a
    sample value telling the driver what to allocate; ``value`` seeds INOUT.
    """

    name: str
    dest: Any
    value: Any = None
    is_input: bool = False


@dataclass
class Param:
    name: str
    direction: ParamDirection = ParamDirection.IN
    value: Variant = field(default_factory=Variant)
    values: list[Variant] = field(default_factory=list)
    dest: Any = None
    lob: LobType | None = None

    def value_at(self, index: int | None) -> Variant:
        """Batch value at *index*, else the scalar value."""
        if index is not None and 0 <= index < len(self.values):
            return self.values[index]
        return self.value

    def bind_value(self, index: int | None = None) -> Any:
        v = self.value_at(index).as_value()
        if self.direction is ParamDirection.IN:
            if self.lob is LobType.BLOB and v is not None:
                return bytes(v)
            return v
        return OutBind(
            name=self.name,
            dest=self.dest,
            value=v,
            is_input=self.direction is ParamDirection.INOUT,
        )

    # Variant-style shortcuts so ``ds.param_by_name("x").as_int()`` reads naturally.
    def as_value(self) -> Any:
        return self.value.as_value()

    def as_int(self) -> int:
        return self.value.as_int()

    def as_float(self) -> float:
        return self.value.as_float()

    def as_string(self) -> str:
        return self.value.as_string()

    def as_bool(self) -> bool:
        return self.value.as_bool()

    def is_null(self) -> bool:
        return self.value.is_null()


class ParamSet:
    def __init__(self) -> None:
        self.items: list[Param] = []

    def find(self, name: str) -> Param | None:
        for param in self.items:
            if param.name == name:
                return param
        return None

    def param_by_name(self, name: str) -> Param:
        param = self.find(name)
        if param is None:
            raise ParamNotFoundError(name)
        return param

    def _upsert(self, name: str) -> Param:
        param = self.find(name)
        if param is None:
            param = Param(name=name)
            self.items.append(param)
        return param

    def add(self, name: str, value: Any = "") -> Param:
        """Append an IN param unless one with this name exists already."""
        param = self.find(name)
        if param is None:
            param = Param(name=name, value=Variant.of(value))
            self.items.append(param)
        return param

    def set_input_param(self, name: str, value: Any) -> Param:
        param = self._upsert(name)
        param.direction = ParamDirection.IN
        param.value = Variant.of(value)
        param.lob = None
        return param

    def set_input_param_clob(self, name: str, value: str) -> Param:
        param = self.set_input_param(name, value)
        param.lob = LobType.CLOB
        return param

    def set_input_param_blob(self, name: str, value: bytes) -> Param:
        param = self.set_input_param(name, value)
        param.lob = LobType.BLOB
        return param

    def set_input_param_batch(self, name: str, values: list[Any]) -> Param:
        param = self._upsert(name)
        param.direction = ParamDirection.IN
        param.values = [Variant.of(v) for v in values]
        return param

    def set_output_param(self, name: str, dest: Any) -> Param:
        param = self._upsert(name)
        param.direction = ParamDirection.OUT
        param.dest = dest
        param.value = Variant()
        return param

    def set_inout_param(self, name: str, value: Any, dest: Any = None) -> Param:
        param = self._upsert(name)
        param.direction = ParamDirection.INOUT
        param.value = Variant.of(value)
        param.dest = dest if dest is not None else type(value)
        return param

    def set_output_param_slice(self, *params: ParamOut) -> None:
        for p in params:
            self.set_output_param(p.name, p.dest)

    @property
    def batch_size(self) -> int:
        return max((len(p.values) for p in self.items), default=0)

    def names(self) -> list[str]:
        return [p.name for p in self.items]

    def bind_args(self, index: int | None = None) -> list[tuple[str, Any]]:
        """(name, bind value) per param in order; *index* selects batch values."""
        return [(p.name, p.bind_value(index)) for p in self.items]

    def print_param(self, logger: logging.Logger) -> None:
        limit = settings.SQL_LOG_PARAM_MAX_LEN
        for p in self.items:
            text = repr(p.value.as_value())
            if len(text) > limit:
                text = text[: limit - 3] + "..."
            logger.info(
                "param %s [%s] = %s",
                p.name,
                p.direction.value,
                text,
                extra={"param_name": p.name, "param_direction": p.direction.value},
            )

    def remove(self, name: str) -> None:
        self.items = [p for p in self.items if p.name != name]

    def clear(self) -> None:
        self.items.clear()

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
