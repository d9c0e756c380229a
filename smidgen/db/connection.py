from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import DbConfig, PrivilegeTier
from ..errors import DbConnectionError
from .metrics import observe_connection_init

logger = logging.getLogger(__name__)

EngineFactory = Callable[[URL], Engine]


def default_engine_factory(url: URL) -> Engine:
    return create_engine(url, pool_pre_ping=True)


def _ping(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.exec_driver_sql("SELECT 1")


class ConnectionManager:
    """
    Owns one SQLAlchemy Engine (a small connection pool) per privilege tier.

    Engines are created lazily on first ``acquire`` and verified with a
    ``SELECT 1`` round trip. Initialization is double-checked under a lock,
    so concurrent first use of a tier builds exactly one engine; the first
    successful initialization wins and is reused until ``close()``.

    A failed initialization is not cached: the half-built engine is disposed
    and every caller that hits the uninitialized tier gets DbConnectionError,
    never a missing handle.

    Query execution on a shared Engine is thread-safe because every
    operation checks out its own connection from the pool.

    Usage:
        with ConnectionManager(load_db_config()) as manager:
            engine = manager.acquire("read")
    """

    def __init__(
        self,
        config: DbConfig,
        engine_factory: Optional[EngineFactory] = None,
    ) -> None:
        self.config = config
        self._engine_factory = engine_factory or default_engine_factory
        self._engines: dict[PrivilegeTier, Engine] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def schema(self) -> str:
        return self.config.schema

    def acquire(self, tier: PrivilegeTier | str) -> Engine:
        """
        Return the Engine for ``tier``, creating and pinging it on first use.

        Raises:
            InvalidPrivilegeError: If ``tier`` is not a known privilege level
            DbConnectionError: If the manager is closed or the database is unreachable
        """
        resolved = PrivilegeTier.parse(tier)

        engine = self._engines.get(resolved)
        if engine is not None and not self._closed:
            return engine

        with self._lock:
            if self._closed:
                raise DbConnectionError("connection manager is closed")
            engine = self._engines.get(resolved)
            if engine is None:
                engine = self._initialize(resolved)
                self._engines[resolved] = engine
            return engine

    def _initialize(self, tier: PrivilegeTier) -> Engine:
        credentials = self.config.credentials_for(tier)
        try:
            engine = self._engine_factory(credentials.url())
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            observe_connection_init(tier.value, "error")
            logger.error("failed to create %s engine: %s", tier.value, exc)
            raise DbConnectionError(
                f"failed to open {tier.value} database connection: {exc}"
            ) from exc

        try:
            _ping(engine)
        except SQLAlchemyError as exc:
            engine.dispose()
            observe_connection_init(tier.value, "error")
            logger.error("failed to ping database as %s: %s", tier.value, exc)
            raise DbConnectionError(
                f"failed to ping database as {tier.value}: {exc}"
            ) from exc

        observe_connection_init(tier.value, "success")
        logger.info("successfully established %s database connection", tier.value)
        return engine

    def ping(self, tier: PrivilegeTier | str) -> float:
        """
        Round-trip ``SELECT 1`` on the tier's engine.

        Returns:
            Latency in milliseconds (acquisition excluded)

        Raises:
            DbConnectionError: If the round trip fails
        """
        engine = self.acquire(tier)
        start = time.monotonic()
        try:
            _ping(engine)
        except SQLAlchemyError as exc:
            raise DbConnectionError(f"failed to ping database: {exc}") from exc
        return (time.monotonic() - start) * 1000.0

    def close(self) -> None:
        """
        Dispose every engine. Idempotent; a closed manager never reconnects.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            engines = list(self._engines.items())
            self._engines.clear()

        for tier, engine in engines:
            engine.dispose()
            logger.debug("closed %s database connection", tier.value)
