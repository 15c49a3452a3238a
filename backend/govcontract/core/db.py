from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

Base = declarative_base()


class Database:
    """
    Owns the engine and session factory for one process.

    Built explicitly at startup (FastAPI lifespan or Celery worker init) and
    disposed at shutdown; nothing in this module holds a global connection.
    """

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if not url:
                raise ValueError("Database requires either a URL or an engine")
            # Pydantic v2 AnyUrl needs to be converted to string for SQLAlchemy
            engine = create_engine(str(url), pool_pre_ping=True)
        self.engine = engine
        self.session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
