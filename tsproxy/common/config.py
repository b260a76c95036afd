from __future__ import annotations

import logging
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tsproxy.common.errors import ConfigError

log = logging.getLogger("tsproxy.config")

REQUIRED_ENV = {
    "host": "TYPESENSE_HOST",
    "port": "TYPESENSE_PORT",
    "api_key": "TYPESENSE_API_KEY",
    "collection": "TYPESENSE_COLLECTION_NAME",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # upstream typesense
    host: str = Field(default="", validation_alias="TYPESENSE_HOST")
    port: str = Field(default="", validation_alias="TYPESENSE_PORT")
    api_key: str = Field(default="", validation_alias="TYPESENSE_API_KEY")
    collection: str = Field(default="", validation_alias="TYPESENSE_COLLECTION_NAME")
    search_by_fields: str = Field(default="", validation_alias="TYPESENSE_SEARCH_BY_FIELDS")
    upstream_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="UPSTREAM_TIMEOUT_SECONDS")

    # listener
    listen_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    listen_port: int = Field(default=8080, ge=1, le=65535, validation_alias="APP_PORT")

    # browser clients
    cors_allow_origin: str = Field(default="http://localhost:3000", validation_alias="CORS_ALLOW_ORIGIN")

    @field_validator("port")
    @classmethod
    def _check_port(cls, v: str) -> str:
        v = v.strip()
        if v and not (v.isascii() and v.isdigit() and 1 <= int(v) <= 65535):
            raise ValueError(f"TYPESENSE_PORT must be a number in 1-65535, got {v!r}")
        return v

    @field_validator("search_by_fields")
    @classmethod
    def _strip_fields(cls, v: str) -> str:
        return v.strip()

    @property
    def upstream_base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def missing_required(self) -> list[str]:
        return [env for name, env in REQUIRED_ENV.items() if not getattr(self, name).strip()]

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump()
        if data["api_key"]:
            data["api_key"] = "***"
        return data


def load_settings(**overrides: Any) -> Settings:
    """Build the process configuration from the environment and validate it.

    Raises ConfigError when a required Typesense variable is unset or a value
    has the wrong type. An empty TYPESENSE_SEARCH_BY_FIELDS only warns: the
    upstream then falls back to its default search fields.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    missing = settings.missing_required()
    if missing:
        raise ConfigError(f"missing Typesense environment variables: {', '.join(missing)}")

    if not settings.search_by_fields:
        log.warning("TYPESENSE_SEARCH_BY_FIELDS is not set; Typesense default search fields apply")
    return settings
