from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="COPING_")

    app_name: str = "Coping Paver Layout Engine"
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    log_level: str = "INFO"
    log_file: str | None = None
    min_boundary_cut_row_mm: float = 100.0
    boundary_safety_margin_mm: float = 2.0  # keep rows this far short of a boundary


settings = Settings()
