import sqlite3
from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from pydataset.core.connection import Connection

_SCHEMA = """
CREATE TABLE customer (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    region TEXT,
    balance REAL,
    score INTEGER
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER NOT NULL,
    code TEXT NOT NULL,
    amount REAL NOT NULL
);
INSERT INTO customer (id, name, region, balance, score) VALUES
    (1, 'Ann', 'EU', 10.5, 7),
    (2, 'Bob', 'US', 0.0, NULL),
    (3, 'Cid', 'EU', 99.25, 3);
INSERT INTO orders (id, customer_id, code, amount) VALUES
    (10, 1, 'A-10', 5.0),
    (11, 1, 'A-11', 7.5),
    (12, 3, 'C-12', 1.0);
"""


@pytest.fixture
def sqlite_conn() -> Generator[Connection, None, None]:
    """In-memory SQLite seeded with customer/orders; committed before the test runs."""
    db = sqlite3.connect(":memory:")
    db.executescript(_SCHEMA)
    db.commit()
    conn = Connection(db, product_type="sqlite", log=False)
    yield conn
    conn.close()


@pytest.fixture
def pg_conn() -> Connection:
    """A PostgreSQL-dialect Connection over a MagicMock DB-API connection."""
    return Connection(MagicMock(), product_type="postgres", log=False)


@pytest.fixture
def mysql_conn() -> Connection:
    return Connection(MagicMock(), product_type="mysql", log=False)
