from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from scroll.db.models import Base


# PUBLIC_INTERFACE
def create_db_engine(database_url: str) -> Engine:
    """
    Build the engine for the given URL.
    SQLite connections get foreign keys switched on so note rows cascade with their user.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, echo=False, future=True, connect_args=connect_args)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


# PUBLIC_INTERFACE
def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# PUBLIC_INTERFACE
def init_db(engine: Engine):
    """Create the users and notes tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine)


# PUBLIC_INTERFACE
def get_db(request: Request):
    """One session per request, taken from app.state.session_factory and closed when the handler returns."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
