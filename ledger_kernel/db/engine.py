"""
Module: ledger_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and table creation.  This is the single point of database connection
    configuration for the kernel.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from store/, services/, domain/, or outer layers
    (except for create_tables/drop_tables which import models).

Invariants enforced:
    - PostgreSQL is the production backend: READ COMMITTED isolation and a
      QueuePool with pre-ping to handle stale connections.
    - Pool waits are bounded by the calling transaction's deadline as well
      as pool_timeout (db/pool.py).
    - SQLite is supported for tests and local runs: foreign keys are switched
      on per connection, and writers wait ``busy_timeout`` seconds on a
      locked database.
    - The engine and session factory are process-wide; sessions (and so
      transactions) are never stored here.  Each transaction owns its own
      session, handed out by the factory.

Failure modes:
    - RuntimeError if get_engine/get_session_factory called before
      init_engine_from_url().
    - Connection pool exhaustion if pool_size + max_overflow is exceeded
      (surfaces as TransactionStartError from the transaction boundary, or
      DeadlineExceededError when the caller's deadline ran out first).
"""

import atexit

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.config import LedgerSettings
from ledger_kernel.db.pool import DeadlineQueuePool
from ledger_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_busy_timeout_listener(busy_timeout: float):
    """Restore the configured busy timeout on every checkout.

    The transaction boundary lowers it to the caller's remaining time for
    one transaction; the next checkout must not inherit that.
    """
    busy_ms = int(busy_timeout * 1000)

    def _on_checkout(dbapi_connection, connection_record, connection_proxy):
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA busy_timeout = {busy_ms}")
        cursor.close()

    return _on_checkout


def _is_sqlite_memory(url: URL) -> bool:
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    busy_timeout: float = 5.0,
) -> Engine:
    """
    Create an engine without touching module state.

    Args:
        database_url: PostgreSQL (production) or SQLite (tests) URL.
        echo: If True, log all SQL statements.
        pool_size: Number of connections to keep in the pool.
        max_overflow: Max connections beyond pool_size.
        pool_pre_ping: If True, test connections before use.
        pool_timeout: Seconds to wait for a pooled connection before giving up.
        pool_recycle: Seconds after which a connection is recycled.
        busy_timeout: SQLite only; seconds a writer waits on a locked file.

    The pool settings apply to PostgreSQL and to file-backed SQLite.  An
    in-memory SQLite database lives inside one connection, so it keeps
    SQLAlchemy's single-connection pool and ignores them.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = make_url(database_url)
    pool_options = dict(
        poolclass=DeadlineQueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
    )

    if url.get_backend_name() == "sqlite":
        if _is_sqlite_memory(url):
            pool_options = {}
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"timeout": busy_timeout, "check_same_thread": False},
            **pool_options,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        event.listen(engine, "checkout", _sqlite_busy_timeout_listener(busy_timeout))
        return engine

    return create_engine(
        url,
        echo=echo,
        isolation_level="READ COMMITTED",
        **pool_options,
    )


def init_engine_from_url(database_url: str, **engine_options) -> Engine:
    """
    Initialize the module-level engine and session factory.

    Idempotent in the sense that a second call replaces the first; the
    previous engine is disposed.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(database_url, **engine_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pool_size": engine_options.get("pool_size"),
            "echo": engine_options.get("echo", False),
        },
    )

    return _engine


def init_engine_from_settings(settings: LedgerSettings) -> Engine:
    """Initialize the engine and logging from loaded settings."""
    configure_logging(level=settings.logging.level_number)
    db = settings.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        busy_timeout=db.busy_timeout,
    )


def get_engine() -> Engine:
    """The process-wide engine; RuntimeError before init_engine_from_url()."""
    if _engine is None:
        raise RuntimeError("ledger engine is not initialized; call init_engine_from_url()")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory for creating sessions.

    Each transaction (and so each thread) takes its own session from it.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("ledger engine is not initialized; call init_engine_from_url()")
    return _SessionFactory


def create_tables(engine: Engine | None = None) -> None:
    """
    Create all ledger tables (accounts, transfers, entries).

    There is no migration tooling; existing tables are left untouched.
    """
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  (registers tables on Base.metadata)

    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables(engine: Engine | None = None) -> None:
    """Drop the ledger tables (test teardown)."""
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    engine = engine or get_engine()
    Base.metadata.drop_all(engine)


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    """Close pooled connections at interpreter exit."""
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)


def _dialect_name(bind: Engine | Connection | None) -> str | None:
    bind = bind if bind is not None else _engine
    if bind is None:
        return None
    return bind.dialect.name


def is_postgres(bind: Engine | Connection | None = None) -> bool:
    """True if the given engine or connection (default: current engine) is PostgreSQL."""
    return _dialect_name(bind) == "postgresql"


def is_sqlite(bind: Engine | Connection | None = None) -> bool:
    """True if the given engine or connection (default: current engine) is SQLite."""
    return _dialect_name(bind) == "sqlite"
