"""
Module: hris_kernel.db.engine
Responsibility: The process-wide SQLAlchemy engine and session factory, and
    the transactional helpers built on them.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from outer layers, except create_tables() which loads the module
    ORM registry so Base.metadata knows every payroll table.

Invariants enforced:
    - PostgreSQL runs at READ COMMITTED.  Period status changes are guarded
      by compare-and-swap UPDATEs, so no stronger isolation is needed.
    - In-memory SQLite uses a single shared connection (StaticPool); every
      session sees the same schema and data.  File-backed SQLite gets a
      normal pool so competing sessions hold separate connections.

Failure modes:
    - RuntimeError from get_engine/get_session/get_session_factory before
      init_engine_from_url() has run.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from hris_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALISED = "Engine not initialized. Call init_engine_from_url() first."


def _sqlite_options(url: URL) -> dict[str, Any]:
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def _server_options(
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
    pool_recycle: int,
) -> dict[str, Any]:
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Calling it again replaces the previous engine.  Pool arguments apply to
    server databases only.  Sessions are created with
    ``expire_on_commit=False`` so DTO conversion after commit does not
    reload rows.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    backend = url.get_backend_name()
    if backend == "sqlite":
        options = _sqlite_options(url)
    else:
        options = _server_options(
            pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle,
        )

    _engine = create_engine(url, echo=echo, **options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": backend,
            "pool": options.get("poolclass", QueuePool).__name__,
            "echo": echo,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """The session factory, e.g. for one session per competing worker."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Session that commits when the block exits normally.

    Any exception rolls the session back and is re-raised.  The session is
    closed either way::

        with session_scope() as session:
            session.add(model)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_scope_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table the module ORM registry knows about."""
    from hris_kernel.db.base import Base
    from hris_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every mapped table.  Tests only."""
    from hris_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


@atexit.register
def _dispose_at_exit() -> None:
    if _engine is not None:
        _engine.dispose()
