"""QR Pulse - Local Store Engine & Session Factory.

The engine is built explicitly and handed to the local storage strategy;
nothing here creates a connection at import time.
"""

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from qrpulse.core.logging import get_logger, mask_url

logger = get_logger("database")


def create_db_engine(db_url: str) -> Engine:
    """Build the engine for the local store."""
    if db_url.startswith("sqlite"):
        logger.info("📦 Local store backend: SQLite")
    else:
        logger.info("🐘 Local store backend: server database")
    logger.info(f"📍 Local store URL: {mask_url(db_url)}")

    engine_kwargs: dict = {"echo": False}
    if db_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            # A single shared connection keeps in-memory data alive
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10
        engine_kwargs["pool_recycle"] = 300

    engine = create_engine(db_url, **engine_kwargs)
    logger.info("⚙️  Local store engine created")
    return engine


def test_connection(engine: Engine) -> bool:
    """Test the database connection with SELECT 1."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            conn.commit()
        logger.info("✅ Local store connection test: SUCCESS")
        return True
    except Exception as e:
        logger.error(f"❌ Local store connection test: FAILED: {e}")
        return False


def init_db(engine: Engine) -> None:
    """Create all tables."""
    # Registers the table on SQLModel.metadata
    from qrpulse.models import local_models  # noqa: F401

    logger.info("🔨 Creating local store tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("✅ Local store tables ready")
