from __future__ import annotations
import logging
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="RECIPE_BOX_", extra="ignore")

    data_dir: Path = Path.home() / ".recipe_box"
    user_id: str = "local"
    max_desired_servings: int = 1000
    max_recipes_per_list: int = 50
    log_level: str = "WARNING"
    http_timeout: float = 15

    @field_validator("log_level", mode="after")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("user_id", mode="after")
    @classmethod
    def require_user_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("RECIPE_BOX_USER_ID must not be empty")
        return v.strip()
