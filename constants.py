import os
from dataclasses import dataclass, field
from typing import List, Optional

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

APP_ENV = os.getenv("APP_ENV", "development")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")

# "memory" keeps room records in-process, "redis" uses the Redis directory
ROOM_STORE = os.getenv("ROOM_STORE", "memory")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

DEFAULT_DISPLAY_NAME_PREFIX = "User_"


def parse_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    app_env: str = APP_ENV
    cors_origins: List[str] = field(default_factory=lambda: parse_origins(CORS_ORIGINS))
    room_store: str = ROOM_STORE
    redis_host: str = REDIS_HOST
    redis_port: int = REDIS_PORT
    redis_password: Optional[str] = REDIS_PASSWORD

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def allowed_origins(self) -> List[str]:
        # Outside production every origin is accepted
        return self.cors_origins if self.is_production else ["*"]
