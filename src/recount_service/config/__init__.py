"""Application configuration loading helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    url: str
    pool_size: int = 10
    pool_timeout: float = 10.0
    echo: bool = False


class TransactionBudget(BaseModel):
    """Time budget of one store transaction, in milliseconds."""

    max_wait_ms: int
    timeout_ms: int


class TransactionSettings(BaseModel):
    import_budget: TransactionBudget
    update_budget: TransactionBudget
    status_budget: TransactionBudget


class RecountSettings(BaseModel):
    import_slow_threshold_ms: int = 5000
    merge_version_policy: Literal["strict", "lenient"] = "strict"
    export_requires_revision: bool = True


class TelegramSettings(BaseModel):
    bot_token: str
    critical_chat_id: int


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Stock Recount", alias="APP_NAME")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(alias="DATABASE_URL")
    database_pool_size: int = Field(default=10, alias="DATABASE_POOL_SIZE")
    database_pool_timeout: float = Field(default=10.0, alias="DATABASE_POOL_TIMEOUT")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    import_tx_max_wait_ms: int = Field(default=20000, alias="IMPORT_TX_MAX_WAIT_MS")
    import_tx_timeout_ms: int = Field(default=30000, alias="IMPORT_TX_TIMEOUT_MS")
    update_tx_max_wait_ms: int = Field(default=10000, alias="UPDATE_TX_MAX_WAIT_MS")
    update_tx_timeout_ms: int = Field(default=15000, alias="UPDATE_TX_TIMEOUT_MS")
    status_tx_max_wait_ms: int = Field(default=5000, alias="STATUS_TX_MAX_WAIT_MS")
    status_tx_timeout_ms: int = Field(default=10000, alias="STATUS_TX_TIMEOUT_MS")

    import_slow_threshold_ms: int = Field(default=5000, alias="IMPORT_SLOW_THRESHOLD_MS")
    merge_version_policy: Literal["strict", "lenient"] = Field(
        default="strict", alias="MERGE_VERSION_POLICY"
    )
    export_requires_revision: bool = Field(default=True, alias="EXPORT_REQUIRES_REVISION")

    telegram_bot_token: str = Field(default="replace-me", alias="TELEGRAM_BOT_TOKEN")
    telegram_critical_chat_id: int = Field(default=0, alias="TELEGRAM_CRITICAL_CHAT_ID")

    _database: DatabaseSettings = PrivateAttr()
    _transactions: TransactionSettings = PrivateAttr()
    _recount: RecountSettings = PrivateAttr()
    _telegram: TelegramSettings = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:  # pragma: no cover - simple data wiring
        object.__setattr__(
            self,
            "_database",
            DatabaseSettings(
                url=self.database_url,
                pool_size=self.database_pool_size,
                pool_timeout=self.database_pool_timeout,
                echo=self.database_echo,
            ),
        )
        object.__setattr__(
            self,
            "_transactions",
            TransactionSettings(
                import_budget=TransactionBudget(
                    max_wait_ms=self.import_tx_max_wait_ms,
                    timeout_ms=self.import_tx_timeout_ms,
                ),
                update_budget=TransactionBudget(
                    max_wait_ms=self.update_tx_max_wait_ms,
                    timeout_ms=self.update_tx_timeout_ms,
                ),
                status_budget=TransactionBudget(
                    max_wait_ms=self.status_tx_max_wait_ms,
                    timeout_ms=self.status_tx_timeout_ms,
                ),
            ),
        )
        object.__setattr__(
            self,
            "_recount",
            RecountSettings(
                import_slow_threshold_ms=self.import_slow_threshold_ms,
                merge_version_policy=self.merge_version_policy,
                export_requires_revision=self.export_requires_revision,
            ),
        )
        object.__setattr__(
            self,
            "_telegram",
            TelegramSettings(
                bot_token=self.telegram_bot_token,
                critical_chat_id=self.telegram_critical_chat_id,
            ),
        )

    @property
    def database(self) -> DatabaseSettings:
        return self._database

    @property
    def transactions(self) -> TransactionSettings:
        return self._transactions

    @property
    def recount(self) -> RecountSettings:
        return self._recount

    @property
    def telegram(self) -> TelegramSettings:
        return self._telegram


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


__all__ = [
    "Settings",
    "get_settings",
    "DatabaseSettings",
    "TransactionBudget",
    "TransactionSettings",
    "RecountSettings",
    "TelegramSettings",
]
