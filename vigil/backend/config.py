"""Vigil — Application Configuration."""

import logging
from pydantic_settings import BaseSettings

_cfg_logger = logging.getLogger("vigil.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    app_name: str = "Vigil"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    log_level: str = "INFO"

    # Hot zone clustering
    hotzone_radius_km: float = 150.0
    hotzone_min_intensity: float = 1.2
    # Sort by (timestamp, id) before clustering so set-equal snapshots cluster identically
    canonical_cluster_order: bool = False

    # Navigation presets
    top_regions_limit: int = 5

    model_config = {"env_file": ".env", "env_prefix": "VIGIL_"}


def _load_settings() -> Settings:
    s = Settings()
    if s.hotzone_radius_km <= 0:
        _cfg_logger.warning(
            "Invalid hot zone radius %.1f km, falling back to 150 km", s.hotzone_radius_km
        )
        s.hotzone_radius_km = 150.0
    return s


settings = _load_settings()
