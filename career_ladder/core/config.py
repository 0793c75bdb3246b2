"""Application configuration utilities.

This module centralizes environment configuration for the backend, including
the matrix data provider, the SQLite database path and the bundled sample
snapshot location.

Controls:
- Validate enum-like env values.
- Avoid crashing on missing env; provide safe defaults for dev.

Environment variables (to be provided via .env by orchestrator):
- DATA_PROVIDER: 'sqlite' (default) or 'json'
- DB_PATH: Optional absolute/relative path to sqlite database. Defaults to
  career_ladder.db at the repository root.
- DATA_DIR: Directory holding bundled JSON snapshots.
- SAMPLE_MATRIX_FILE: Bundled snapshot filename inside DATA_DIR.
- CORS_ORIGINS: Comma separated list of allowed origins.
- LOG_LEVEL: Root log level, defaults to INFO.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, ValidationError


REPO_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseModel):
    """Configuration settings loaded from environment with secure defaults."""
    data_provider: Literal["json", "sqlite"] = Field(
        default="sqlite", description="Data provider for the career ladder matrix."
    )
    db_path: Optional[str] = Field(
        default=None, description="SQLite DB path (used when DATA_PROVIDER=sqlite)."
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins.",
    )
    data_dir: str = Field(
        default=str(REPO_ROOT / "data"),
        description="Path to JSON data directory."
    )
    sample_matrix_file: str = Field(
        default="sample_matrix.json",
        description="Bundled matrix snapshot used as seed and offline fallback.",
    )
    log_level: str = Field(default="INFO", description="Root log level.")


def _default_db_path() -> str:
    return str(REPO_ROOT / "career_ladder.db")


def load_settings() -> Settings:
    """Load settings from environment with robust defaults and validation.

    Returns:
        Settings: Validated settings object.

    Raises:
        ValidationError: If environment values are invalid.
    """
    data_provider = os.getenv("DATA_PROVIDER", "sqlite").strip().lower()
    if data_provider not in {"json", "sqlite"}:
        data_provider = "sqlite"  # safe default favoring persistence

    cors_origins_raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    cors_origins = [o.strip() for o in cors_origins_raw.split(",") if o.strip()]

    db_path_env = os.getenv("DB_PATH")
    db_path = db_path_env if db_path_env else _default_db_path()

    try:
        settings = Settings(
            data_provider=data_provider,  # type: ignore[arg-type]
            db_path=db_path,
            cors_origins=cors_origins,
            data_dir=os.getenv("DATA_DIR", str(REPO_ROOT / "data")),
            sample_matrix_file=os.getenv("SAMPLE_MATRIX_FILE", "sample_matrix.json"),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
    except ValidationError as ve:
        # Keep error generic to avoid leaking values
        raise ve
    return settings


# Singleton-style accessor
_settings: Optional[Settings] = None

# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Get cached application settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings

# PUBLIC_INTERFACE
def reset_settings_cache() -> None:
    """Reset the cached settings.

    This is primarily intended for tests to ensure that changes to environment
    variables (e.g., DATA_PROVIDER, DB_PATH) take effect on subsequent calls
    to get_settings().
    """
    global _settings
    _settings = None
