"""
DB connection helpers for external databases.

Uses psycopg (PostgreSQL), pymysql (MySQL) or sqlite3 (SQLite) based on product_type.
PostgreSQL connections use psycopg's RawCursor so ``$1``-style placeholders
bind positionally.
"""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
import pymysql

from pydataset.core.config import settings
from pydataset.models import ProductTypeEnum


def _get(datasource: Any, key: str) -> Any:
    """Get attribute or dict key from DataSource, dict, or Pydantic model."""
    if isinstance(datasource, dict):
        return datasource.get(key)
    return getattr(datasource, key, None)


def resolve_product_type(
    datasource: Any, product_type: ProductTypeEnum | None = None
) -> ProductTypeEnum:
    pt = product_type or _get(datasource, "product_type")
    if pt is None:
        raise ValueError("product_type is required (from datasource or argument)")
    if isinstance(pt, str):
        return ProductTypeEnum(pt)
    return pt


def connect(
    datasource: Any,
    *,
    product_type: ProductTypeEnum | None = None,
) -> Any:
    """
    Open a DB-API connection from a DataSource or connection dict.

    - datasource: DataSource model or dict with host, port, database, username,
      password, and product_type (or pass product_type=).
    - SQLite only needs ``database`` (a file path or ``:memory:``).
    """
    pt = resolve_product_type(datasource, product_type)
    database = _get(datasource, "database")
    if database is None:
        raise ValueError("datasource must provide database")

    timeout = settings.EXTERNAL_DB_CONNECT_TIMEOUT

    if pt == ProductTypeEnum.SQLITE:
        return sqlite3.connect(database, timeout=timeout, check_same_thread=False)

    host = _get(datasource, "host")
    username = _get(datasource, "username")
    for name, val in [("host", host), ("username", username)]:
        if val is None:
            raise ValueError(f"datasource must provide {name}")
    password = _get(datasource, "password") or ""
    port = _get(datasource, "port")

    if pt == ProductTypeEnum.POSTGRES:
        return psycopg.connect(
            host=host,
            port=int(port or 5432),
            dbname=database,
            user=username,
            password=password,
            connect_timeout=timeout,
            cursor_factory=psycopg.RawCursor,
        )
    if pt == ProductTypeEnum.MYSQL:
        return pymysql.connect(
            host=host,
            port=int(port or 3306),
            database=database,
            user=username,
            password=password,
            connect_timeout=timeout,
        )
    raise ValueError(f"Unsupported product_type: {pt}")


@contextmanager
def statement_timeout(
    conn: Any,
    product_type: ProductTypeEnum | None,
    timeout_sec: float | None,
) -> Iterator[None]:
    """
    Apply a server-side statement timeout for the duration of the block.

    Postgres: statement_timeout, MySQL: max_execution_time (both in ms).
    SQLite has no such setting; the block runs unchanged.
    """
    active = (
        timeout_sec is not None
        and timeout_sec > 0
        and product_type in (ProductTypeEnum.POSTGRES, ProductTypeEnum.MYSQL)
    )
    if active:
        timeout_ms = max(1, int(timeout_sec * 1000))
        cur_set = conn.cursor()
        try:
            if product_type == ProductTypeEnum.POSTGRES:
                cur_set.execute(f"SET statement_timeout = {timeout_ms}")
            else:
                cur_set.execute("SET SESSION max_execution_time = %s", (timeout_ms,))
        finally:
            try:
                cur_set.close()
            except Exception:
                pass
    try:
        yield
    finally:
        if active:
            try:
                cur_reset = conn.cursor()
                if product_type == ProductTypeEnum.POSTGRES:
                    cur_reset.execute("SET statement_timeout = 0")
                else:
                    cur_reset.execute("SET SESSION max_execution_time = 0")
                cur_reset.close()
            except Exception:
                pass


def execute(
    conn: Any,
    sql: str,
    params: dict | list | tuple | None = None,
    *,
    product_type: ProductTypeEnum | None = None,
    timeout_sec: float | None = None,
) -> Any:
    """
    Execute SQL and return the cursor. Caller reads it and closes it.

    - timeout_sec: statement timeout; falls back to EXTERNAL_DB_STATEMENT_TIMEOUT.
    """
    if timeout_sec is None:
        timeout_sec = settings.EXTERNAL_DB_STATEMENT_TIMEOUT
    with statement_timeout(conn, product_type, timeout_sec):
        cur = conn.cursor()
        try:
            if params is not None:
                cur.execute(sql, params)
            else:
                cur.execute(sql)
        except Exception:
            cur.close()
            raise
    return cur
