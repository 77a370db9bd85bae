"""
Errors raised by the DataSet engine.

Driver errors (psycopg.Error, pymysql.Error, sqlite3.Error) are not wrapped;
they reach the caller unchanged.
"""


class DataSetError(Exception):
    """Base class for engine errors."""

    pass


class ConfigurationError(DataSetError):
    """The DataSet (or a call on it) is set up in a way that cannot work."""

    pass


class BindingError(ConfigurationError):
    """Raised when rows cannot be bound onto a record or list of records."""

    pass


class FieldNotFoundError(DataSetError, KeyError):
    """No field with the requested name exists in the result."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Field not found: {self.name!r}"


class ParamNotFoundError(DataSetError, KeyError):
    """No parameter with the requested name is registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Parameter not found: {self.name!r}"


class MacroNotFoundError(DataSetError, KeyError):
    """No macro with the requested name is registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Macro not found: {self.name!r}"


class SqlParseError(DataSetError, ValueError):
    """Static parsing of the SQL text failed. ``sql`` holds the offending text."""

    def __init__(self, message: str, sql: str) -> None:
        super().__init__(f"{message}. SQL:\n{sql}")
        self.sql = sql


class QueryCancelledError(DataSetError):
    """The QueryContext was cancelled or its deadline passed."""

    pass
