"""
Connection and Transaction: what a DataSet executes against.

A Connection wraps one DB-API 2.0 connection together with the facts the
engine needs about it: its product type (and so its placeholder dialect), how
to reopen it, and whether SQL should be logged. A Transaction is a scope on a
Connection; DataSets bound to it never commit and never reconnect.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydataset.core.config import settings
from pydataset.core.exceptions import ConfigurationError
from pydataset.core.pool import connect, health_check, resolve_product_type
from pydataset.models import Dialect, ProductTypeEnum

_log = logging.getLogger(__name__)


class Connection:
    def __init__(
        self,
        db: Any = None,
        *,
        product_type: ProductTypeEnum | str | None = None,
        dialect: Dialect | None = None,
        connector: Callable[[], Any] | None = None,
        log: bool | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.product_type = ProductTypeEnum(product_type) if product_type is not None else None
        self.dialect = dialect or Dialect.from_product_type(self.product_type)
        self._connector = connector
        self.log = settings.SQL_LOG if log is None else log
        self.logger = logger or _log
        self.transaction: Transaction | None = None
        self.db = db
        if self.db is None and connector is not None:
            self.db = connector()

    @classmethod
    def from_datasource(
        cls,
        datasource: Any,
        *,
        log: bool | None = None,
        logger: logging.Logger | None = None,
    ) -> Connection:
        """Connect to a DataSource (or dict); ``open()`` reconnects the same way."""
        pt = resolve_product_type(datasource)
        return cls(
            product_type=pt,
            connector=lambda: connect(datasource, product_type=pt),
            log=log,
            logger=logger,
        )

    def open(self) -> None:
        """(Re)open the underlying connection using the connector."""
        if self._connector is None:
            raise ConfigurationError("Connection has no connector; cannot reopen")
        old = self.db
        self.db = self._connector()
        if old is not None:
            self._close_quiet(old)

    def ping(self) -> bool:
        return health_check(self.db, self.product_type)

    def cursor(self) -> Any:
        if self.db is None:
            raise ConfigurationError("Connection is not open")
        return self.db.cursor()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        if self.db is not None:
            self._close_quiet(self.db)
            self.db = None

    def interrupter(self) -> Callable[[], None] | None:
        """Callable that aborts the in-flight statement, if the driver has one."""
        db = self.db
        if db is None:
            return None
        if self.product_type == ProductTypeEnum.SQLITE:
            return getattr(db, "interrupt", None)
        if self.product_type == ProductTypeEnum.POSTGRES:
            return getattr(db, "cancel_safe", None) or getattr(db, "cancel", None)
        return None

    def begin(self) -> Transaction:
        if self.transaction is not None:
            raise ConfigurationError("Connection already has an active transaction")
        return Transaction(self)

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Connection(product_type={self.product_type!r}, dialect={self.dialect!r})"

    @staticmethod
    def _close_quiet(db: Any) -> None:
        try:
            db.close()
        except Exception:
            pass


class Transaction:
    """
    Explicit transaction scope. Used as a context manager it commits on a
    clean exit and rolls back when the block raises.
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.active = True
        connection.transaction = self

    @property
    def dialect(self) -> Dialect | None:
        return self.connection.dialect

    def commit(self) -> None:
        self._ensure_active()
        try:
            self.connection.commit()
        finally:
            self._finish()

    def rollback(self) -> None:
        self._ensure_active()
        try:
            self.connection.rollback()
        finally:
            self._finish()

    def _finish(self) -> None:
        self.active = False
        if self.connection.transaction is self:
            self.connection.transaction = None

    def cursor(self) -> Any:
        self._ensure_active()
        return self.connection.cursor()

    def _ensure_active(self) -> None:
        if not self.active:
            raise ConfigurationError("Transaction is already finished")

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if not self.active:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
