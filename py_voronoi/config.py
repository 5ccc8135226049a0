"""Configuration management."""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env for local runs only for values missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    for key, value in file_env.items():
        if key not in os.environ and value is not None:
            os.environ[key] = value


class Settings(BaseSettings):
    """Engine settings pulled from PY_VORONOI_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="PY_VORONOI_", extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Domain defaults
    default_width: float = Field(default=1000.0, gt=0, description="Default domain width")
    default_height: float = Field(default=1000.0, gt=0, description="Default domain height")
    default_site_count: int = Field(default=100, ge=3, description="Default number of sites")
    max_site_count: int = Field(default=20000, ge=3, description="Largest accepted site count")

    # Generation
    relaxation_iterations: int = Field(
        default=0, ge=0, description="Lloyd relaxation passes applied to generated sites"
    )


settings = Settings()
