"""
API Configuration

Loaded from environment variables or a .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App info
    app_name: str = "Cocktail Dispenser API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Storage
    data_dir: str = "./data"
    levels_file: str = "ingredient_levels.json"
    pump_config_file: str = "pump-config.json"
    cocktails_file: str = "cocktails.json"

    # Level persistence
    debounce_ms: int = 500

    # Venting
    auto_vent_duration_ms: int = 2000
    manual_vent_duration_ms: int = 1000
    actuation_time_scale: float = 1.0  # 0 makes the simulated pumps instant

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def cors_origin_list(self) -> List[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def levels_path(self) -> Path:
        return Path(self.data_dir) / self.levels_file

    @property
    def pump_config_path(self) -> Path:
        return Path(self.data_dir) / self.pump_config_file

    @property
    def cocktails_path(self) -> Path:
        return Path(self.data_dir) / self.cocktails_file


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
