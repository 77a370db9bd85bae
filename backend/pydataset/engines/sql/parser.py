"""
Static SQL analysis backed by sqlglot.

- discover_columns(sql): output column names of a SELECT (alias, else column).
- discover_params(sql): ``:name`` bind tokens in first-seen order.

Parsing works on the SQL before placeholder translation, so the text still
carries ``:name`` tokens that sqlglot reads as placeholders.
"""

import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError
from sqlglot.tokens import TokenType

from pydataset.core.exceptions import SqlParseError
from pydataset.models import Dialect

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_READ_DIALECT = {
    Dialect.POSTGRESQL: "postgres",
    Dialect.MYSQL: "mysql",
    Dialect.SQLITE: "sqlite",
}


def _read(dialect: Dialect | None) -> str | None:
    return _READ_DIALECT.get(dialect) if dialect is not None else None


def parse_sql(sql: str, dialect: Dialect | None = None) -> exp.Expression:
    """Parse one statement; SqlParseError carries the SQL on failure."""
    try:
        stmt = sqlglot.parse_one(sql, read=_read(dialect))
    except SqlglotError as e:
        raise SqlParseError(f"error when parsing the query: {e}", sql) from e
    if stmt is None:
        raise SqlParseError("error when parsing the query: empty statement", sql)
    return stmt


def discover_columns(sql: str, dialect: Dialect | None = None) -> list[str]:
    """
    Column names of the top-level SELECT list. ``*`` and unaliased
    expressions are skipped; non-SELECT statements give an empty list.
    """
    stmt = parse_sql(sql, dialect)
    if not isinstance(stmt, exp.Select):
        return []
    names: list[str] = []
    for e in stmt.expressions:
        if isinstance(e, exp.Alias):
            names.append(e.alias)
        elif isinstance(e, exp.Column) and not isinstance(e.this, exp.Star):
            names.append(e.name)
    return names


def discover_params(sql: str, dialect: Dialect | None = None) -> list[str]:
    """
    ``:name`` tokens in order of first appearance, without duplicates.
    String literals, quoted identifiers and ``::`` casts are not params.
    """
    try:
        tokens = sqlglot.tokenize(sql, read=_read(dialect))
    except SqlglotError as e:
        raise SqlParseError(f"error when tokenizing the query: {e}", sql) from e

    names: list[str] = []
    for tok, nxt in zip(tokens, tokens[1:]):
        if tok.token_type != TokenType.COLON:
            continue
        if nxt.start != tok.end + 1:
            continue
        if nxt.token_type in (TokenType.STRING, TokenType.IDENTIFIER):
            continue
        if _IDENT.fullmatch(nxt.text) and nxt.text not in names:
            names.append(nxt.text)
    return names
