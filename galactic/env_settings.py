from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field


class EnvSettings(BaseSettings):
    secret_key: str = Field("", alias="GALACTIC_SECRET_KEY")
    config_dir: str = Field("config", alias="GALACTIC_CONFIG_DIR")

    log_dir: str = Field("data/logs", alias="GALACTIC_LOG_DIR")
    log_level: str = Field("INFO", alias="GALACTIC_LOG_LEVEL")
    log_retention_days: int = Field(30, alias="GALACTIC_LOG_RETENTION_DAYS")

    http_timeout_s: float = Field(30.0, alias="GALACTIC_HTTP_TIMEOUT")

    class Config:
        populate_by_name = True


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
