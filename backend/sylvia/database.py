from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sylvia.core.config import settings
import logging
import time

logger = logging.getLogger(__name__)

logger.info("SYLVIA DATABASE_URL = %s", settings.get_masked_database_url())

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI serves sync endpoints from a threadpool
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    connect_args=connect_args,
)

# Slow query logging (DEBUG mode only)
if settings.DEBUG:
    SLOW_QUERY_THRESHOLD_MS = 200.0

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if hasattr(context, "_query_start_time"):
            elapsed_ms = (time.perf_counter() - context._query_start_time) * 1000
            if elapsed_ms >= SLOW_QUERY_THRESHOLD_MS:
                statement_first_line = statement.split("\n")[0].strip()[:100]
                logger.warning("SLOW_QUERY: %.2fms - %s", elapsed_ms, statement_first_line)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Create any missing tables.

    The hosted database is provisioned separately; this only makes local
    development databases usable. create_all() never alters existing tables.
    """
    # Import all models so Base.metadata includes every table definition
    from sylvia import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
