# backend/database.py
from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def normalize_url(url: str) -> str:
    # Hosting providers hand out postgres://, SQLAlchemy only accepts postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _enable_sqlite_fk(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    url = normalize_url(url)

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}  # SQLite only
    else:
        connect_args = {}

    engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)

    # SQLite ignores ON DELETE rules unless asked per connection
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_fk)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine):
    # Register every model on Base.metadata before creating tables
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    db = request.app.state.SessionLocal()
    try:
        yield db
    finally:
        db.close()
