from functools import lru_cache
from pathlib import Path

from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Where and how a store is kept on disk.

    Values come from ``FLATKV_*`` environment variables (or a ``.env`` file)
    and may be overridden by passing keyword arguments.
    """

    root: Path = Path("data")
    store_filename: str = "memory.db"
    backups_dirname: str = "backups"
    max_backups: PositiveInt = 10

    model_config = SettingsConfigDict(
        env_prefix="FLATKV_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
