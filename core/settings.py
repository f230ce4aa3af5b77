"""Application settings."""

import logging
from functools import lru_cache

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Goods Core"
    database_url: str = Field("sqlite:///./goods.db")
    log_level: str = Field("INFO")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
