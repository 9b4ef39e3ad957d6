"""
Application settings.
Read once from the environment (or .env) at startup.
"""
import hashlib
import re
from typing import List, Optional

from pydantic_settings import BaseSettings

_KEY_PATTERN = re.compile(r"[0-9a-fA-F]{64}")
_FALLBACK_KEY_LABEL = b"chatroom/insecure-fallback-key/v1"


class Settings(BaseSettings):
    # Database. DATABASE_URL is used unless DB_HOST is set, then PostgreSQL is built from DB_*.
    DATABASE_URL: str = "sqlite:///./chatroom.db"
    DB_HOST: Optional[str] = None
    DB_PORT: int = 5432
    DB_NAME: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASS: Optional[str] = None
    DB_TIMEOUT_SECONDS: int = 10

    # Server-side message encryption: 64 hex chars (AES-256 key)
    CHAT_ENCRYPTION_KEY: Optional[str] = None

    # Rate limiting
    RATE_LIMIT_BACKEND: str = "memory"  # memory | redis
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_WINDOW_MS: int = 1000
    RATE_LIMIT_MAX_IDENTITIES: int = 10_000
    RATE_LIMIT_IDENTITY_HEADERS: List[str] = ["CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP"]

    # Room protocol
    USER_TIMEOUT_MS: int = 300_000
    MAX_MESSAGES_RETRIEVE: int = 100
    MESSAGE_RETENTION_MS: int = 3_600_000
    REAPER_INTERVAL_SECONDS: int = 600
    MAX_ROOM_ID_LENGTH: int = 64
    MAX_USERNAME_LENGTH: int = 30
    MAX_MESSAGE_LENGTH: int = 5400  # fits an e2e:v1: body of 1000 four-byte characters
    POLL_RATE_MS: int = 2000  # advertised to browser clients

    # Optional
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PROJECT_NAME: str = "Chatroom"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @property
    def database_url(self) -> str:
        if self.DB_HOST:
            return (
                f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASS}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return self.DATABASE_URL

    @property
    def insecure_key_mode(self) -> bool:
        """True when CHAT_ENCRYPTION_KEY is missing or malformed and the fallback key is in use."""
        key = (self.CHAT_ENCRYPTION_KEY or "").strip()
        return _KEY_PATTERN.fullmatch(key) is None

    @property
    def encryption_key(self) -> bytes:
        if self.insecure_key_mode:
            return hashlib.sha256(_FALLBACK_KEY_LABEL).digest()
        return bytes.fromhex(self.CHAT_ENCRYPTION_KEY.strip())

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
