"""Runtime settings, read from ``PYDATASET_*`` environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PYDATASET_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
    )

    EXTERNAL_DB_CONNECT_TIMEOUT: int = Field(
        default=10, ge=1, description="Seconds to wait when opening a connection"
    )
    EXTERNAL_DB_STATEMENT_TIMEOUT: float | None = Field(
        default=None,
        description="Statement timeout in seconds applied when no QueryContext is given",
    )
    SQL_LOG: bool = Field(
        default=False, description="Log SQL text and bound params for new connections"
    )
    SQL_LOG_PARAM_MAX_LEN: int = Field(
        default=200, ge=8, description="Truncate logged parameter values to this length"
    )


settings = Settings()
