"""
Row-to-record binding for dataclasses and pydantic models.

Each record type gets a descriptor, built once and cached: one entry per
bindable attribute with its source column and converter. The column comes
from a ``column`` tag (dataclass ``field(metadata={"column": "NAME"})``,
pydantic ``Field(json_schema_extra={"column": "NAME"})`` or the pydantic
alias) and falls back to the attribute name. Lookup is case-insensitive.

Skipped attributes: ``_private`` ones, nested records, collection types, and
anything tagged ``column="-"``. Columns missing from the result are skipped.

Fixed-width integer and float32 destinations are spelled with the NewTypes
below (``id: Int32``) and wrap like a narrowing conversion.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Callable, Mapping
from collections.abc import Sequence as ABCSequence
from collections.abc import Set as ABCSet
from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache
from typing import TYPE_CHECKING, Any, NamedTuple, NewType

from pydantic import BaseModel

from pydataset.core.exceptions import BindingError
from pydataset.core.variant import Variant

if TYPE_CHECKING:
    from pydataset.engines.sql.dataset import DataSet

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)

_CONVERTERS: dict[Any, Callable[[Variant], Any]] = {
    int: Variant.as_int,
    Int8: Variant.as_int8,
    Int16: Variant.as_int16,
    Int32: Variant.as_int32,
    Int64: Variant.as_int64,
    float: Variant.as_float,
    Float32: Variant.as_float32,
    Float64: Variant.as_float64,
    Decimal: Variant.as_decimal,
    str: Variant.as_string,
    bool: Variant.as_bool,
    datetime: Variant.as_datetime,
    date: Variant.as_date,
    bytes: Variant.as_bytes,
}

_ZERO: dict[Any, Any] = {
    int: 0,
    float: 0.0,
    Decimal: Decimal(0),
    str: "",
    bool: False,
    datetime: datetime.min,
    date: date.min,
    bytes: b"",
}

_COLLECTION_ORIGINS = (list, tuple, set, frozenset, dict, ABCSequence, ABCSet, Mapping)


class FieldBinding(NamedTuple):
    attr: str
    column: str
    optional: bool
    convert: Callable[[Variant], Any] | None


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        optional = len(args) != len(typing.get_args(tp))
        if len(args) == 1:
            return args[0], optional
        return tp, optional
    return tp, False


def _is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and (
        dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)
    )


def _is_skipped_type(tp: Any) -> bool:
    if tp in (list, tuple, set, frozenset, dict):
        return True
    origin = typing.get_origin(tp)
    if origin is not None and isinstance(origin, type) and issubclass(origin, _COLLECTION_ORIGINS):
        return True
    return _is_record_type(tp)


def _zero(tp: Any) -> Any:
    inner, optional = _unwrap_optional(tp)
    if optional:
        return None
    supertype = getattr(inner, "__supertype__", None)
    if supertype is not None:
        return _zero(supertype)
    if inner in _ZERO:
        return _ZERO[inner]
    origin = typing.get_origin(inner) or inner
    if origin in (list, ABCSequence):
        return []
    if origin in (dict, Mapping):
        return {}
    return None


def _binding(attr: str, tp: Any, column: str | None) -> FieldBinding | None:
    if attr.startswith("_") or column == "-":
        return None
    inner, optional = _unwrap_optional(tp)
    if _is_skipped_type(inner):
        return None
    return FieldBinding(
        attr=attr,
        column=column or attr,
        optional=optional,
        convert=_CONVERTERS.get(inner),
    )


@lru_cache(maxsize=None)
def describe(model: type) -> tuple[FieldBinding, ...]:
    """Binding descriptor for a dataclass or pydantic model type."""
    if isinstance(model, type) and dataclasses.is_dataclass(model):
        hints = typing.get_type_hints(model)
        out = []
        for f in dataclasses.fields(model):
            b = _binding(f.name, hints.get(f.name, Any), f.metadata.get("column"))
            if b is not None:
                out.append(b)
        return tuple(out)
    if isinstance(model, type) and issubclass(model, BaseModel):
        out = []
        for name, info in model.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            column = extra.get("column") or info.alias
            b = _binding(name, info.annotation, column)
            if b is not None:
                out.append(b)
        return tuple(out)
    raise BindingError(f"{getattr(model, '__name__', model)!s} is not a dataclass or pydantic model")


def new_record(model: type) -> Any:
    """Instance of *model* with zero values for every required attribute."""
    if dataclasses.is_dataclass(model):
        hints = typing.get_type_hints(model)
        kwargs = {
            f.name: _zero(hints.get(f.name, Any))
            for f in dataclasses.fields(model)
            if f.init
            and f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        }
        return model(**kwargs)
    if issubclass(model, BaseModel):
        kwargs = {
            name: _zero(info.annotation)
            for name, info in model.model_fields.items()
            if info.is_required()
        }
        return model.model_construct(**kwargs)
    raise BindingError(f"{model.__name__} is not a dataclass or pydantic model")


def is_record(obj: Any) -> bool:
    return not isinstance(obj, type) and _is_record_type(type(obj))


def bind_record(ds: DataSet, record: Any) -> None:
    """Copy the current row of *ds* into *record*, attribute by attribute."""
    for b in describe(type(record)):
        field = ds.fields.find_field_by_name(b.column)
        if field is None:
            continue
        value = field.value
        if b.optional and value.is_null():
            continue
        try:
            converted = b.convert(value) if b.convert is not None else value.as_value()
        except (TypeError, ValueError, ArithmeticError) as e:
            raise BindingError(f"cannot convert column {b.column!r} for {b.attr!r}: {e}") from e
        try:
            setattr(record, b.attr, converted)
        except (AttributeError, TypeError, ValueError) as e:
            raise BindingError(
                f"cannot assign {type(record).__name__}.{b.attr}; pass a mutable record: {e}"
            ) from e


def bind_to(ds: DataSet, target: Any, model: type | None = None) -> None:
    """
    Bind into a single record, or append one new record per remaining row to
    a list. For an empty list the record type must be passed as *model*.
    """
    if isinstance(target, list):
        if model is None:
            if not target:
                raise BindingError("model is required to bind into an empty list")
            model = type(target[0])
        describe(model)
        while not ds.eof():
            record = new_record(model)
            bind_record(ds, record)
            target.append(record)
            ds.next()
        return
    if is_record(target):
        bind_record(ds, target)
        return
    raise BindingError(
        f"the variable {type(target).__name__} is not a record or a list of records"
    )
