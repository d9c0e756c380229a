from __future__ import annotations

import logging
import queue
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from ..config import PrivilegeTier
from ..errors import SmidgenError
from .connection import ConnectionManager
from .helpers import qualified_table
from .metrics import observe_audit_entry
from .models import record, schema_of
from .session import DbSession

logger = logging.getLogger(__name__)


class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    WARN = "WARN"


@record
@dataclass(frozen=True)
class AuditLog:
    log_id: str
    action_timestamp: datetime
    action: str
    action_status: str

    @classmethod
    def new(cls, action: str, status: AuditStatus) -> "AuditLog":
        return cls(
            log_id=str(uuid.uuid4()),
            # naive UTC; DATETIME columns carry no zone
            action_timestamp=datetime.now(timezone.utc).replace(tzinfo=None),
            action=action,
            action_status=AuditStatus(status).value,
        )


class AuditSink:
    """
    Best-effort, non-blocking audit trail writer.

    ``record()`` only enqueues. A daemon thread drains the bounded queue and
    makes exactly one INSERT attempt per entry on the write tier. Nothing
    here raises into the caller: a full queue drops the entry, a failed
    insert is logged and counted. The audit trail is advisory and is never
    transactional with the operation it describes.

    Usage:
        sink = AuditSink(manager)
        sink.record("ADD_BUSINESS_UNIT", AuditStatus.SUCCESS)
        ...
        sink.close()  # drains what is queued
    """

    def __init__(self, manager: ConnectionManager, queue_size: Optional[int] = None) -> None:
        self.manager = manager
        self.table = qualified_table(manager.config.schema, manager.config.audit_table)
        self._queue: queue.Queue[Optional[AuditLog]] = queue.Queue(
            maxsize=queue_size or manager.config.audit_queue_size
        )
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False

        fields = schema_of(AuditLog).fields
        columns = ", ".join(f.column for f in fields)
        placeholders = ", ".join(f":{f.column}" for f in fields)
        self._insert_stmt = text(
            f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})"
        ).bindparams(*[bindparam(f.column, type_=f.sql_type) for f in fields])

    def __enter__(self) -> "AuditSink":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
        return False

    def start(self) -> None:
        with self._lock:
            if self._closed or self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._drain, name="smidgen-audit", daemon=True
            )
            self._thread.start()

    def record(self, action: str, status: AuditStatus) -> None:
        """Enqueue one audit entry without blocking."""
        entry = AuditLog.new(action, status)
        self.start()
        with self._lock:
            if self._closed:
                reason = "audit sink closed"
            else:
                try:
                    self._queue.put_nowait(entry)
                    return
                except queue.Full:
                    reason = "audit queue full"

        logger.warning("%s; dropping %s (%s)", reason, action, entry.action_status)
        observe_audit_entry("dropped")

    def write(self, entry: AuditLog) -> bool:
        """
        Make the single insert attempt for ``entry``.

        Returns:
            True if the row was written, False if the attempt failed (already logged)
        """
        try:
            engine = self.manager.acquire(PrivilegeTier.WRITE)
            with DbSession(engine) as session:
                session.execute(self._insert_stmt, schema_of(AuditLog).values(entry))
        except (SmidgenError, SQLAlchemyError) as exc:
            logger.warning(
                "failed to log action %s (%s): %s", entry.action, entry.action_status, exc
            )
            observe_audit_entry("failed")
            return False

        observe_audit_entry("written")
        return True

    def flush(self) -> None:
        """Block until every queued entry has been attempted."""
        self._queue.join()

    def close(self, timeout: float = 5.0) -> None:
        """Drain the queue and stop the worker. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread

        if thread is not None:
            self._queue.put(None)
            thread.join(timeout)

    def _drain(self) -> None:
        while True:
            entry = self._queue.get()
            try:
                if entry is None:
                    return
                self.write(entry)
            except Exception:
                # keep the worker alive; write() already handles DB errors
                logger.exception("unexpected error in audit worker")
            finally:
                self._queue.task_done()
