"""SQLite engine factory and request-scoped sessions for the feedback history."""

from collections.abc import Generator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from rubriq.settings import settings


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    del connection_record
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(sqlite_path: str) -> Engine:
    """Create an engine for ``sqlite_path``, creating its directory when missing."""
    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    built = create_engine(f"sqlite:///{sqlite_path}", connect_args={"check_same_thread": False})
    # Feedback rows reference their essay; SQLite ignores that unless asked per connection.
    event.listen(built, "connect", _enable_foreign_keys)
    return built


engine = build_engine(settings.sqlite_path)


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    """Yield a database session for request-scoped dependency injection."""
    with Session(engine) as session:
        yield session
