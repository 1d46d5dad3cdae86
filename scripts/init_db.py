from catbond_etl.config import DATA_DIR
from catbond_etl.models.base import DatabaseManager
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def initialize_database():
    """Create the snapshot tables and check the connection"""
    try:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        db_manager = DatabaseManager()
        db_manager.create_tables()

        if db_manager.test_connection():
            logger.info("✅ Database initialization complete")
        else:
            raise RuntimeError("Snapshot database is not reachable")

    except Exception as e:
        logger.error(f"❌ Database initialization failed: {str(e)}")
        raise

if __name__ == "__main__":
    logger.info("🔄 Initializing snapshot tables...")
    initialize_database()
