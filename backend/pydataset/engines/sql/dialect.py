"""
Placeholder translation per SQL dialect.

SQL is written with ``:name`` placeholders. Before execution they are
rewritten to what the connection's driver binds:

- PostgreSQL (psycopg RawCursor): ``$N``, where N is the param's position in
  the param list (not its position in the text). Every occurrence of one
  param shares its number.
- MySQL (pymysql, pyformat): ``%(name)s``; literal ``%`` is doubled first.
- SQLite (sqlite3, named) and unknown dialects: unchanged.

A token only matches when followed by a delimiter or the end of the text,
so ``:id`` is never rewritten inside ``:identifier``.
"""

from collections.abc import Sequence
from typing import Any

from pydataset.models import Dialect

_DELIMITERS = frozenset(" ,()=|[];\n\r\t")


def replace_param(sql: str, param: str, replacement: str) -> str:
    """Replace every delimited occurrence of *param* (e.g. ``:id``) with *replacement*."""
    out: list[str] = []
    pos = 0
    size = len(param)
    while True:
        i = sql.find(param, pos)
        if i == -1:
            out.append(sql[pos:])
            break
        end = i + size
        out.append(sql[pos:i])
        if end == len(sql) or sql[end] in _DELIMITERS:
            out.append(replacement)
        else:
            out.append(param)
        pos = end
    return "".join(out)


def translate(sql: str, names: Sequence[str], dialect: Dialect | None) -> str:
    """Rewrite ``:name`` placeholders of the registered *names* for *dialect*."""
    if dialect == Dialect.POSTGRESQL:
        for i, name in enumerate(names):
            sql = replace_param(sql, ":" + name, f"${i + 1}")
        return sql
    if dialect == Dialect.MYSQL:
        if not names:
            return sql
        sql = sql.replace("%", "%%")
        for name in names:
            sql = replace_param(sql, ":" + name, f"%({name})s")
        return sql
    return sql


def shape_args(
    pairs: Sequence[tuple[str, Any]], dialect: Dialect | None
) -> list[Any] | dict[str, Any] | None:
    """Bind arguments in the form the dialect expects: list for ``$N``, dict otherwise."""
    if not pairs:
        return None
    if dialect == Dialect.POSTGRESQL:
        return [value for _name, value in pairs]
    return dict(pairs)
