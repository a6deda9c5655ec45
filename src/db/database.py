"""Generate database sessions and pick the store implementation"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.db.memory_repository import InMemoryGameStateStore
from src.db.repository import GameStateStore
from src.db.schema import Base
from src.db.sql_repository import SQLGameStateStore

logger = logging.getLogger(__name__)


def make_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    engine = create_engine(database_url, echo=echo)

    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def build_store(settings: Settings) -> GameStateStore:
    """SQL store when a database URL is configured, otherwise the in-memory demo store."""
    if settings.database_url is None:
        logger.warning("No database configured, running in demo mode with an in-memory store.")
        return InMemoryGameStateStore()
    return SQLGameStateStore(make_session_factory(settings.database_url, echo=settings.debug))
