"""
Database configuration:
- SQLite for development and tests (StaticPool when in-memory)
- PostgreSQL via psycopg with pool_pre_ping and connection recycling
- One session per request through get_db()
- Retry on OperationalError for the preflight test (max 2 retries)
"""
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool
import logging
from typing import Generator
import time

from storeapp.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if DATABASE_URL.startswith("sqlite"):
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # Single shared connection so every session sees the same in-memory database
        engine = create_engine(
            DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            DATABASE_URL,
            connect_args={"check_same_thread": False},
        )
    logger.info("SQLite database configured")
else:
    # psycopg 3 driver unless the URL already names one
    if DATABASE_URL.startswith("postgresql://"):
        DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)
    if "supabase" in DATABASE_URL and "sslmode" not in DATABASE_URL:
        DATABASE_URL += "?sslmode=require"
        logger.info("Added sslmode=require to DATABASE_URL")

    engine = create_engine(
        DATABASE_URL,
        poolclass=QueuePool,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=300,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10},
    )
    logger.info("PostgreSQL database configured")

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

Base = declarative_base()


def get_db() -> Generator:
    """Yield a database session for one request and always close it"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection(retries: int = 2) -> tuple[bool, str]:
    """Run SELECT 1, retrying on OperationalError"""
    for attempt in range(retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True, "Database connection successful"
        except OperationalError as e:
            if attempt == retries:
                return False, f"Database connection failed: {str(e)}"
            logger.warning(f"Database connection attempt {attempt + 1} failed, retrying...")
            time.sleep(1)
    return False, "Database connection test failed"
