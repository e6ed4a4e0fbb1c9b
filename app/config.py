# =======================================================================================
# app/config.py - Configuration Management
# =======================================================================================
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

def _env_int(name: str) -> Optional[int]:
    """Helper to parse integer environment variables."""
    v = os.getenv(name)
    return int(v) if v and v.isdigit() else None

def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"

class Config:
    # Database (SQLite by default, any SQLAlchemy URL works)
    DB_URL: str = os.getenv("DB_URL", "sqlite:///./tags.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))

    # API Settings
    API_DEBUG: bool = _env_bool("API_DEBUG")
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Wild Apricot
    WA_ACCOUNT_ID: Optional[int] = _env_int("WA_ACCOUNT_ID")
    WA_API_KEY: str = os.getenv("WA_API_KEY", "")
    WA_AUTH_URL: str = os.getenv("WA_AUTH_URL", "https://oauth.wildapricot.org/auth/token")
    WA_API_URL: str = os.getenv("WA_API_URL", "https://api.wildapricot.org/v2.2")
    WA_TIMEOUT_SECONDS: float = float(os.getenv("WA_TIMEOUT_SECONDS", "30"))

    # Contact field names (as configured in the Wild Apricot account)
    TAG_ID_FIELD_NAME: str = os.getenv("TAG_ID_FIELD_NAME", "TagId")
    TRAINING_FIELD_NAME: str = os.getenv("TRAINING_FIELD_NAME", "Safety Training")

    # Sync Settings
    SYNC_INTERVAL_SECONDS: int = int(os.getenv("SYNC_INTERVAL_SECONDS", "360"))
    SYNC_ON_STARTUP: bool = _env_bool("SYNC_ON_STARTUP", "true")

config = Config()
