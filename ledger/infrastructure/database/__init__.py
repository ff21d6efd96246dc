"""
Database initialization and session management.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from ledger.core.config import get_engine_url
from ledger.infrastructure.database import models


def build_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets thread-sharing and a single pool for :memory:."""
    url = url or get_engine_url()
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            db_file = url.removeprefix("sqlite:///")
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    models.register_immutability_listeners()
    SQLModel.metadata.create_all(bind=engine)
