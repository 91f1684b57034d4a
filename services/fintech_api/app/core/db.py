import logging
from contextlib import contextmanager
from typing import Iterator, Type, TypeVar
from fastapi import Request
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker, Session
from .errors import NotFound
from .models import Base

log = logging.getLogger("fintech-api.db")

M = TypeVar("M")


class Store:
    """
    Handle on the ledger database: owns the engine and the session factory.
    Opened once at process start and closed at shutdown.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_engine(url, pool_pre_ping=True, future=True, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """One unit of work: commit on success, roll back on any exception."""
        session: Session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        log.info(f"disposing engine for {self.engine.url.render_as_string(hide_password=True)}")
        self.engine.dispose()


def get_session(request: Request) -> Iterator[Session]:
    store: Store = request.app.state.store
    with store.session() as session:
        yield session


def fetch(session: Session, model: Type[M], ident, label: str, *, lock: bool = False) -> M:
    """Load `model` by primary key or raise NotFound("<label> not found")."""
    if lock:
        # populate_existing: values read under the lock win over the identity map
        stmt = select(model).where(model.id == ident).with_for_update().execution_options(populate_existing=True)
        obj = session.execute(stmt).scalar_one_or_none()
    else:
        obj = session.get(model, ident)
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj
