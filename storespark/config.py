"""
Application settings.

Values are read from environment variables prefixed with ``STORESPARK_`` and
from an optional ``.env`` file. Leaving ``mongodb_uri`` unset keeps all data in
the in-memory repository.
"""
import json
from typing import Annotated, Any, List, Optional

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def parse_cors(v: Any) -> List[str]:
    """Accepts a list, a JSON list string or a comma-separated string of origins."""
    if isinstance(v, str) and v.strip().startswith('['):
        v = json.loads(v)
    elif isinstance(v, str):
        return [i.strip() for i in v.split(',') if i.strip()]
    if isinstance(v, list):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STORESPARK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "StoreSpark"
    log_level: str = "INFO"

    # Auth
    secret_key: str = "supersecretkey"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    bcrypt_rounds: int = Field(12, ge=4, le=31)

    # Storage
    mongodb_uri: Optional[str] = None
    mongodb_database: str = "storespark"
    seed_demo_data: bool = True

    cors_origins: Annotated[List[str], NoDecode, BeforeValidator(parse_cors)] = ["*"]


def get_settings() -> Settings:
    return Settings()
