import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load a local .env file if present.
load_dotenv()


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Provide secrets via environment variables or a .env file.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set EVENT_PLANNER_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: EVENT_PLANNER_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("EVENT_PLANNER_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("EVENT_PLANNER_DB_PATH", "./event_planner.sqlite")
    )

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: The default is a fixed, publicly known string. Any deployment
    # MUST set AUTH_JWT_SECRET to a strong random value.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "your_jwt_secret")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "60"))

    # Tokens travel in a custom header, not `Authorization: Bearer`.
    AUTH_TOKEN_HEADER: str = os.environ.get("AUTH_TOKEN_HEADER", "x-auth-token")

    # -----------------
    # CORS (development)
    # -----------------
    # Empty = no CORS middleware.
    CORS_ALLOW_ORIGINS: str = os.environ.get("CORS_ALLOW_ORIGINS", "")


def load_config() -> Config:
    return Config()
