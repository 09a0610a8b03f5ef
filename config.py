import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

# Values already set in the environment win over the .env file
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./sql_app.db"
TOKEN_TTL_HOURS = 24


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    port: int = 8080
    log_level: str = "INFO"


def database_url() -> str:
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def load_settings() -> Settings:
    """Read settings from the environment. A missing JWT_SECRET is fatal."""
    secret = (os.getenv("JWT_SECRET") or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET must be set to start the server")

    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return Settings(
        jwt_secret=secret,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        port=int(os.getenv("PORT", "8080")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
