# FILE: backend/tastelocal/core/config.py
# TASTELOCAL - CONFIGURATION
# 1. Handles comma-separated CORS strings (for Docker/Production).
# 2. Handles JSON strings.
# 3. Collection and channel names are configurable per deployment.

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Union
from pydantic import field_validator
import json

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- API Setup ---
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "TasteLocal API"

    # --- CORS Configuration ---
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            # Handle comma-separated string: "http://localhost,https://myapp.com"
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            # Handle JSON string: '["http://localhost"]'
            return json.loads(v)
        return v

    # --- Document Store & Push Channel ---
    DATABASE_URI: str = "mongodb://localhost:27017/tastelocal"
    REDIS_URL: str = "redis://localhost:6379/0"

    BUSINESSES_COLLECTION: str = "businesses"
    USERS_COLLECTION: str = "users"

    # One pub/sub channel per document
    UPDATES_CHANNEL_TEMPLATE: str = "{collection}:{id}:updates"
    SUBSCRIPTION_POLL_SECONDS: float = 1.0
    # Snapshots buffered per stream consumer; the oldest is dropped when full
    SNAPSHOT_BACKLOG: int = 16

settings = Settings()
