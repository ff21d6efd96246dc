"""
Runtime configuration read from environment variables.
"""

import os
from dataclasses import dataclass


def get_engine_url(database_type: str | None = None) -> str:
    """Build the database URL from environment."""
    db_type = database_type or os.getenv("DATABASE_TYPE", "sqlite")

    if db_type == "sqlite":
        db_path = os.getenv("DATABASE_PATH", "./data/ledger.db")
        return f"sqlite:///{db_path}"
    elif db_type == "postgresql":
        host = os.getenv("DB_HOST", "localhost")
        port = os.getenv("DB_PORT", "5432")
        dbname = os.getenv("DB_NAME", "ledger")
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "postgres")
        return f"postgresql://{user}:{password}@{host}:{port}/{dbname}"
    else:
        raise ValueError(f"Unsupported database type: {db_type}")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    log_json: bool
    seed_chart: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL") or get_engine_url(),
            log_level=os.getenv("LEDGER_LOG_LEVEL", "INFO").upper(),
            log_json=_env_flag("LEDGER_LOG_JSON", False),
            seed_chart=_env_flag("LEDGER_SEED_CHART", False),
        )
