from pydantic import BaseModel
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    database_url: str = "sqlite:///./snapdrop.db"
    storage_dir: str = "paste-files"
    paste_ttl_days: int = 30
    key_length: int = 6
    key_max_attempts: int = 10
    max_upload_bytes: int = 50 * 1024 * 1024
    max_paste_chars: int = 500_000
    sweep_interval_seconds: int = 3600
    log_level: str = "INFO"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./snapdrop.db"),
            storage_dir=os.getenv("STORAGE_DIR", "paste-files"),
            paste_ttl_days=int(os.getenv("PASTE_TTL_DAYS", "30")),
            key_length=int(os.getenv("KEY_LENGTH", "6")),
            key_max_attempts=int(os.getenv("KEY_MAX_ATTEMPTS", "10")),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024))),
            max_paste_chars=int(os.getenv("MAX_PASTE_CHARS", "500000")),
            sweep_interval_seconds=int(os.getenv("SWEEP_INTERVAL_SECONDS", "3600")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
    return _settings
