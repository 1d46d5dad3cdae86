"""
Database connection and session management for the cat bond snapshot store
"""

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError
from contextlib import contextmanager
from typing import Generator, Optional
import logging

from catbond_etl.config import DATABASE_URL

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_options(database_url: str) -> dict:
    if database_url.startswith('sqlite'):
        options = {'connect_args': {'check_same_thread': False}}
        if ':memory:' in database_url or database_url in ('sqlite://', 'sqlite:///'):
            # One shared connection, otherwise every session sees an empty database
            options['poolclass'] = StaticPool
        return options
    return {'pool_pre_ping': True, 'pool_size': 5, 'max_overflow': 10}


class DatabaseManager:
    """Owns the engine and session factory for the snapshot database"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or DATABASE_URL
        self.engine = create_engine(self.database_url, echo=False, **_engine_options(self.database_url))
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Transactional session: commits on exit, rolls back on database errors

        Usage:
            with db_manager.get_session() as session:
                session.merge(SnapshotBlob(name=..., payload=...))
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {str(e)}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create the snapshot tables if they do not exist"""
        try:
            # Import here so the model is registered on Base.metadata
            from catbond_etl.models import snapshot_models  # noqa: F401
            Base.metadata.create_all(bind=self.engine)
            logger.info("Snapshot tables created successfully")
        except Exception as e:
            logger.error(f"Error creating tables: {e}")
            raise

    def test_connection(self) -> bool:
        """Run SELECT 1 against the snapshot database, logging only the backend name"""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
            logger.info(f"✅ Database connection test successful ({self.engine.url.get_backend_name()})")
            return True
        except Exception as e:
            logger.error("❌ Database connection test failed")
            logger.error(f"   Error: {str(e)}")
            return False
