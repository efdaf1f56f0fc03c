from functools import lru_cache
import logging
import os
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.oauth.keys import check_key_prefix

logger = logging.getLogger(__name__)


class RedisConfig(BaseModel):
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DATABASE: str = "0"
    REDIS_SOCKET_TIMEOUT: float | None = Field(None, gt=0)

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn(self) -> str:
        return (
            f"redis://:"
            f"{self.REDIS_PASSWORD}@"
            f"{self.REDIS_HOST}:"
            f"{self.REDIS_PORT}/"
            f"{self.REDIS_DATABASE}"
        )


class OAuthStorageConfig(BaseModel):
    OAUTH_KEY_PREFIX: str = "osin"
    REFRESH_POINTER_FROM_REFRESH_TOKEN: bool = False

    model_config = ConfigDict(extra="ignore")

    @field_validator("OAUTH_KEY_PREFIX")
    @classmethod
    def validate_key_prefix(cls, value: str) -> str:
        return check_key_prefix(value)


class AppConfig(BaseModel):
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_LEVEL_FILE: str = "WARNING"
    LOG_TO_FILE: bool = False

    model_config = ConfigDict(extra="ignore")


class Config(BaseModel):
    app: AppConfig
    redis: RedisConfig
    oauth: OAuthStorageConfig

    model_config = ConfigDict(extra="ignore")


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory. Override in tests via monkeypatching or cache_clear().
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }
    logger.debug("Loading settings (env file: %s)", env_filename)

    return Config(
        app=AppConfig(**merged_env),
        redis=RedisConfig(**merged_env),
        oauth=OAuthStorageConfig(**merged_env),
    )


config = get_settings()
