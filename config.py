from __future__ import annotations
import logging
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    ADMIN_API_KEY: str = "devkey"
    DATA_DIR: Path = BASE_DIR / "data"
    PUBLIC_DIR: Path = BASE_DIR / "public"
    LOG_LEVEL: str = "INFO"
    SEED_DEMO: bool = True


def setup_logging(level: str = "INFO"):
    """Configure logging settings"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
    )
