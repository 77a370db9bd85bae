"""
Driver-level helpers for external databases.

psycopg, pymysql and sqlite3 are used directly; a DataSource (product_type, host, ...) is enough.
"""

from .connect import connect, execute, resolve_product_type, statement_timeout
from .health import health_check

__all__ = [
    "connect",
    "execute",
    "resolve_product_type",
    "statement_timeout",
    "health_check",
]
