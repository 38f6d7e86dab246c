"""
GameSquad configuration - shared session and watchlist settings
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import os


def get_data_dir() -> Path:
    """Get GameSquad data directory"""
    override = os.environ.get('GAMESQUAD_DATA_DIR')
    if override:
        data_dir = Path(override)
    elif os.name == 'nt':  # Windows
        data_dir = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming')) / '.gamesquad'
    else:  # Linux/Mac
        data_dir = Path.home() / '.gamesquad'

    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


class Settings(BaseSettings):
    # Storage
    data_dir: str = str(get_data_dir())
    database_url: Optional[str] = None  # Defaults to gamesquad.db in data_dir

    # Server
    host: str = "0.0.0.0"
    port: int = 5002
    debug: bool = False
    cors_origins: List[str] = ["http://localhost:3000"]

    # Watchlist
    history_limit: int = 10  # Records returned by GET /records when no limit given
    max_history_limit: int = 100
    prune_after_days: int = 30
    prune_interval: int = 3600  # Seconds between prune passes, 0 disables

    # Presence
    outbox_size: int = 100  # Pending pushes per connection before it counts as dead

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "GAMESQUAD_"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
