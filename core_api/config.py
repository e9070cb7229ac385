"""
Configuration settings for core-api.

Uses Pydantic Settings to load environment variables (and an optional `.env`
file) for the HTTP server, logging and the MySQL connection pool. Values are
read once per process; there is no hot reload.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_name: str = Field("core-api", alias="APP_NAME")
    app_version: str = Field("0.0.1", alias="APP_VERSION")
    machine_name: str = Field("dev", alias="HOST_HOSTNAME")
    hostname: str = Field("http://localhost", alias="APP_HOSTNAME")
    app_env: str = Field("development", alias="APP_ENV")
    server_env: Optional[str] = Field(None, alias="SERVER_ENV")
    port: int = Field(2020, alias="PORT")

    # Logging
    log_file: Optional[str] = Field(None, alias="LOG_FILE")
    log_level: Optional[str] = Field(None, alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Database
    db_host: str = Field("127.0.0.1", alias="DB_HOST")
    db_port: int = Field(3306, alias="DB_PORT")
    db_user: str = Field("root", alias="DB_USER")
    db_password: str = Field("", alias="DB_PASSWORD")
    db_name: str = Field("core", alias="DB_NAME")
    db_timezone: str = Field("+00:00", alias="DB_TIMEZONE")
    db_connection_limit: int = Field(10, alias="DB_CONNECTION_LIMIT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
