"""
Connection descriptors for external databases.

Entities: ProductTypeEnum, Dialect, DataSource.
"""

from enum import Enum

from pydantic import BaseModel, Field


class ProductTypeEnum(str, Enum):
    """Supported database product types (postgres, mysql, sqlite)."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class Dialect(str, Enum):
    """Placeholder dialect of a connection; selects how ``:name`` is rewritten."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"

    @classmethod
    def from_product_type(cls, product_type: "ProductTypeEnum | str | None") -> "Dialect | None":
        if product_type is None:
            return None
        return _DIALECT_BY_PRODUCT[ProductTypeEnum(product_type)]


_DIALECT_BY_PRODUCT = {
    ProductTypeEnum.POSTGRES: Dialect.POSTGRESQL,
    ProductTypeEnum.MYSQL: Dialect.MYSQL,
    ProductTypeEnum.SQLITE: Dialect.SQLITE,
}


class DataSource(BaseModel):
    """Where and how to connect. ``database`` is the file path for SQLite."""

    name: str = Field(default="default", max_length=255)
    product_type: ProductTypeEnum
    host: str | None = Field(default=None, max_length=255)
    port: int | None = None
    database: str = Field(max_length=1024)
    username: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=512)
    description: str | None = Field(default=None, max_length=512)
