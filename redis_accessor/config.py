"""
Configuration settings for the Redis accessor.

Uses Pydantic Settings to load environment variables for the Redis
connection, lock leases, id generation and logging. Values can also come from
a local `.env` file.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Connection
    redis_url: Optional[str] = Field(None, alias="REDIS_URL")
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_port: int = Field(6379, alias="REDIS_PORT")
    redis_db: int = Field(0, alias="REDIS_DB")
    redis_password: Optional[str] = Field(None, alias="REDIS_PASSWORD")
    redis_connect_timeout: float = Field(3.0, alias="REDIS_CONNECT_TIMEOUT")

    # Sentinel
    redis_sentinels: Optional[str] = Field(None, alias="REDIS_SENTINELS")
    redis_sentinel_master: str = Field("mymaster", alias="REDIS_SENTINEL_MASTER")

    # Accessor behaviour
    store_backend: Literal["redis", "memory"] = Field("redis", alias="STORE_BACKEND")
    lock_ttl_ms: int = Field(1000, alias="LOCK_TTL_MS", gt=0)
    id_strategy: Literal["uuid", "sequence"] = Field("uuid", alias="ID_STRATEGY")
    strict_predicates: bool = Field(False, alias="STRICT_PREDICATES")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def sentinel_addresses(self) -> List[Tuple[str, int]]:
        """
        Parse `REDIS_SENTINELS` ("host:port,host:port") into address tuples.

        A missing port falls back to the standard sentinel port 26379.
        """
        if not self.redis_sentinels:
            return []
        addresses: List[Tuple[str, int]] = []
        for item in self.redis_sentinels.split(","):
            item = item.strip()
            if not item:
                continue
            host, _, port = item.partition(":")
            addresses.append((host, int(port) if port else 26379))
        return addresses


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
