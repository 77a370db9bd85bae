"""
Variant: a tagged value box for row cells, params and macros.

The kind is fixed when the Variant is built. Every ``as_*`` accessor is total:
a value that cannot be converted yields the target type's zero value
(0, 0.0, "", False, datetime.min, b"") instead of raising.

``as_datetime`` always returns a naive datetime. Aware values and numeric
Unix timestamps are converted to UTC and lose their tzinfo.
"""

from __future__ import annotations

import math
import struct
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

_TRUE_STRINGS = frozenset({"true", "t", "1", "yes", "y", "on"})


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    except OverflowError:
        return datetime.min


class VariantKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT = "text"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    BINARY = "binary"
    SEQUENCE = "sequence"
    OTHER = "other"


def kind_of(value: Any) -> VariantKind:
    """Classify a Python value. bool is checked before int, datetime before date."""
    if value is None:
        return VariantKind.NULL
    if isinstance(value, bool):
        return VariantKind.BOOLEAN
    if isinstance(value, int):
        return VariantKind.INTEGER
    if isinstance(value, float):
        return VariantKind.FLOAT
    if isinstance(value, Decimal):
        return VariantKind.DECIMAL
    if isinstance(value, str):
        return VariantKind.TEXT
    if isinstance(value, datetime):
        return VariantKind.DATETIME
    if isinstance(value, date):
        return VariantKind.DATE
    if isinstance(value, time):
        return VariantKind.TIME
    if isinstance(value, (bytes, bytearray, memoryview)):
        return VariantKind.BINARY
    if isinstance(value, (list, tuple)):
        return VariantKind.SEQUENCE
    return VariantKind.OTHER


def _parse_number(s: str) -> int | float | None:
    s = s.strip()
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        pass
    try:
        x = float(s)
    except ValueError:
        return None
    return x if math.isfinite(x) else None


def _wrap_signed(value: int, bits: int) -> int:
    mask = (1 << bits) - 1
    value &= mask
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class Variant:
    """Immutable holder of one nullable value and its kind."""

    __slots__ = ("_value", "_kind")

    def __init__(self, value: Any = None) -> None:
        if isinstance(value, Variant):
            value = value.value
        self._value = value
        self._kind = kind_of(value)

    @classmethod
    def of(cls, value: Any) -> Variant:
        return value if isinstance(value, Variant) else cls(value)

    @property
    def value(self) -> Any:
        return self._value

    @property
    def kind(self) -> VariantKind:
        return self._kind

    def is_null(self) -> bool:
        return self._kind is VariantKind.NULL

    def is_not_null(self) -> bool:
        return self._kind is not VariantKind.NULL

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Variant):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        try:
            return hash(self._value)
        except TypeError:
            return id(self)

    def __repr__(self) -> str:
        return f"Variant({self._value!r})"

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def as_value(self) -> Any:
        return self._value

    def as_int(self) -> int:
        k, v = self._kind, self._value
        if k in (VariantKind.INTEGER, VariantKind.BOOLEAN):
            return int(v)
        if k is VariantKind.FLOAT:
            return int(v) if math.isfinite(v) else 0
        if k is VariantKind.DECIMAL:
            return int(v) if v.is_finite() else 0
        if k in (VariantKind.TEXT, VariantKind.BINARY):
            n = _parse_number(self.as_string())
            return int(n) if n is not None else 0
        return 0

    def as_int8(self) -> int:
        return _wrap_signed(self.as_int(), 8)

    def as_int16(self) -> int:
        return _wrap_signed(self.as_int(), 16)

    def as_int32(self) -> int:
        return _wrap_signed(self.as_int(), 32)

    def as_int64(self) -> int:
        return _wrap_signed(self.as_int(), 64)

    def as_float(self) -> float:
        k, v = self._kind, self._value
        if k in (VariantKind.INTEGER, VariantKind.BOOLEAN, VariantKind.FLOAT, VariantKind.DECIMAL):
            return float(v)
        if k in (VariantKind.TEXT, VariantKind.BINARY):
            n = _parse_number(self.as_string())
            return float(n) if n is not None else 0.0
        return 0.0

    as_float64 = as_float

    def as_float32(self) -> float:
        x = self.as_float()
        try:
            return struct.unpack("f", struct.pack("f", x))[0]
        except OverflowError:
            return math.copysign(math.inf, x)

    def as_decimal(self) -> Decimal:
        k, v = self._kind, self._value
        if k is VariantKind.DECIMAL:
            return v
        if k in (VariantKind.INTEGER, VariantKind.BOOLEAN):
            return Decimal(int(v))
        if k is VariantKind.FLOAT:
            return Decimal(repr(v)) if math.isfinite(v) else Decimal(0)
        if k in (VariantKind.TEXT, VariantKind.BINARY):
            try:
                d = Decimal(self.as_string().strip())
            except InvalidOperation:
                return Decimal(0)
            return d if d.is_finite() else Decimal(0)
        return Decimal(0)

    def as_string(self) -> str:
        k, v = self._kind, self._value
        if k is VariantKind.NULL:
            return ""
        if k is VariantKind.TEXT:
            return v
        if k is VariantKind.BOOLEAN:
            return "true" if v else "false"
        if k is VariantKind.DATETIME:
            return v.isoformat(sep=" ")
        if k in (VariantKind.DATE, VariantKind.TIME):
            return v.isoformat()
        if k is VariantKind.BINARY:
            return bytes(v).decode("utf-8", errors="replace")
        if k is VariantKind.SEQUENCE:
            return ", ".join(Variant(x).as_string() for x in v)
        return str(v)

    def as_bool(self) -> bool:
        k, v = self._kind, self._value
        if k is VariantKind.BOOLEAN:
            return v
        if k in (VariantKind.INTEGER, VariantKind.FLOAT, VariantKind.DECIMAL):
            return v != 0
        if k in (VariantKind.TEXT, VariantKind.BINARY):
            s = self.as_string().strip().lower()
            if s in _TRUE_STRINGS:
                return True
            n = _parse_number(s)
            return n is not None and n != 0
        return False

    def as_datetime(self) -> datetime:
        k, v = self._kind, self._value
        if k is VariantKind.DATETIME:
            return _naive_utc(v)
        if k is VariantKind.DATE:
            return datetime.combine(v, time.min)
        if k in (VariantKind.TEXT, VariantKind.BINARY):
            try:
                return _naive_utc(datetime.fromisoformat(self.as_string().strip()))
            except ValueError:
                return datetime.min
        if k in (VariantKind.INTEGER, VariantKind.FLOAT, VariantKind.DECIMAL):
            try:
                return _naive_utc(datetime.fromtimestamp(float(v), tz=timezone.utc))
            except (OverflowError, OSError, ValueError):
                return datetime.min
        return datetime.min

    def as_date(self) -> date:
        if self._kind is VariantKind.DATE:
            return self._value
        return self.as_datetime().date()

    def as_bytes(self) -> bytes:
        k, v = self._kind, self._value
        if k is VariantKind.NULL:
            return b""
        if k is VariantKind.BINARY:
            return bytes(v)
        return self.as_string().encode("utf-8")


NULL = Variant(None)
