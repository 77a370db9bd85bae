"""
Macros: named text substitutions applied to the raw SQL before params.

``&name`` in the SQL is replaced by the macro's value as text. A list or
tuple is joined with ", " and its string elements are single-quoted, so
``in (&ids)`` becomes ``in (1, 2, 3)`` or ``in ('x', 'y')``.

Macro text is inserted verbatim, never escaped. Use macros for identifiers
and trusted fragments; pass values as params.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from pydataset.core.exceptions import MacroNotFoundError
from pydataset.core.variant import Variant, VariantKind

# a macro reference ends where an identifier would not continue
_NAME_END = r"(?![A-Za-z0-9_])"


def join_list(values: Any) -> str:
    """Render a sequence the way it goes into an IN list: ``1, 2`` or ``'a', 'b'``."""
    parts = []
    for v in values:
        item = Variant.of(v)
        if item.kind is VariantKind.TEXT:
            parts.append(f"'{item.as_string()}'")
        else:
            parts.append(item.as_string())
    return ", ".join(parts)


@dataclass
class Macro:
    name: str
    value: Variant = field(default_factory=Variant)

    def text(self) -> str:
        if self.value.kind is VariantKind.SEQUENCE:
            return join_list(self.value.as_value())
        return self.value.as_string()


class MacroSet:
    """Macros in registration order; names compare case-sensitively, like the SQL text."""

    def __init__(self) -> None:
        self.items: list[Macro] = []

    def set_macro(self, name: str, value: Any) -> Macro:
        macro = self.find(name)
        if macro is None:
            macro = Macro(name=name)
            self.items.append(macro)
        macro.value = Variant.of(value)
        return macro

    def find(self, name: str) -> Macro | None:
        for macro in self.items:
            if macro.name == name:
                return macro
        return None

    def macro_by_name(self, name: str) -> Macro:
        macro = self.find(name)
        if macro is None:
            raise MacroNotFoundError(name)
        return macro

    def apply(self, sql: str) -> str:
        for macro in self.items:
            pattern = re.compile(re.escape("&" + macro.name) + _NAME_END)
            replacement = macro.text()
            sql = pattern.sub(lambda _m: replacement, sql)
        return sql

    def clear(self) -> None:
        self.items.clear()

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
