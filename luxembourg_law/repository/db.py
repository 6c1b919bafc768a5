"""Database engine and session factory.

Uses a synchronous SQLAlchemy engine: SQLite by default, PostgreSQL (psycopg2)
when `DATABASE_URL` points at one.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from luxembourg_law.config.settings import settings


def create_db_engine(url: str | None = None, **kwargs: Any) -> Engine:
    url = url or settings.database_url

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        # ON DELETE CASCADE needs foreign keys enabled per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = create_db_engine()

SessionLocal = sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
)


def get_db_session() -> Iterator[Session]:
    with SessionLocal() as session:
        yield session


def insert_ignore(session: Session, model: type, rows: Sequence[dict[str, Any]]) -> int:
    """Insert rows, silently skipping those that hit a unique constraint.

    Returns the number of rows actually inserted.
    """
    if not rows:
        return 0

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).on_conflict_do_nothing()
    else:
        raise NotImplementedError(f"insert_ignore is not supported for dialect {dialect!r}")

    inserted = 0
    for row in rows:
        result = session.execute(stmt.values(**row))
        inserted += max(result.rowcount or 0, 0)
    return inserted


def like_escape(value: str) -> str:
    """Escape LIKE wildcards; use with `escape="\\"`."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def ensure_sqlite_directory(engine: Engine) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if engine.dialect.name != "sqlite":
        return
    database = engine.url.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
