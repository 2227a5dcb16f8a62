from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
import logging

logger = logging.getLogger("database")

# Base class for all models
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create the pooled engine for the configured database."""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory db
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)

    engine = create_engine(
        database_url,
        # Connection pooling configuration
        poolclass=QueuePool,
        pool_size=10,                    # Base connections
        max_overflow=20,                 # Additional connections under load
        pool_pre_ping=True,              # Validate connections
        pool_recycle=3600,               # Recycle every hour
        echo=False,
        connect_args={
            "options": "-c timezone=utc",
            "application_name": "amazon_clone_api"
        }
    )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_connection, connection_record):
        logger.info("DB connection established")

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
