import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from sitechat.core.config import DATABASE_URL
from sitechat.core.exceptions import StoreUnavailable
from sitechat.database.base import Base

logger = logging.getLogger(__name__)

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Flipped by init_db(); while False every chat route answers 503.
db_state = {"available": False}


def init_db() -> bool:
    import sitechat.models  # noqa: F401  registers the tables

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        db_state["available"] = False
        logger.warning("Database not available, chat is disabled: %s", exc)
        return False

    db_state["available"] = True
    return True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def require_db():
    if not db_state["available"]:
        raise StoreUnavailable()
