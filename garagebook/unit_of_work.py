"""
Unit of Work
Explicit transaction handle passed to services: owns the session, the locks
taken during the transaction and the callbacks that must only run once the
transaction is durable.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .database import SessionLocal
from .shared.errors import TransientStoreError

logger = logging.getLogger(__name__)


def translate_store_error(exc: Exception) -> TransientStoreError:
    """Map lock timeouts, serialization failures and stale versions to a retryable error"""
    if isinstance(exc, StaleDataError):
        return TransientStoreError("Record was modified concurrently, retry the operation")
    return TransientStoreError(f"Storage is busy, retry the operation ({type(exc).__name__})")


class UnitOfWork:
    """One database transaction plus its post-commit side effects"""

    def __init__(self, session: Session):
        self.session = session
        self._after_commit: list[Callable[[], None]] = []
        self._locks: list[threading.Lock] = []

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Post-commit hooks
    # ------------------------------------------------------------------

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run callback after the next successful commit; dropped on rollback"""
        self._after_commit.append(callback)

    @property
    def pending_callbacks(self) -> int:
        return len(self._after_commit)

    # ------------------------------------------------------------------
    # Locks held until the transaction ends
    # ------------------------------------------------------------------

    def holds(self, lock: threading.Lock) -> bool:
        return any(held is lock for held in self._locks)

    def hold(self, lock: threading.Lock) -> None:
        self._locks.append(lock)

    def _release_locks(self) -> None:
        while self._locks:
            self._locks.pop().release()

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    def flush(self) -> None:
        try:
            self.session.flush()
        except (StaleDataError, OperationalError) as e:
            raise translate_store_error(e) from e

    def commit(self) -> None:
        try:
            self.session.commit()
        except (StaleDataError, OperationalError) as e:
            logger.warning(f"⚠️ Commit failed, rolling back: {e}")
            self.rollback()
            raise translate_store_error(e) from e
        except Exception:
            self.rollback()
            raise

        callbacks, self._after_commit = self._after_commit, []
        self._release_locks()

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                # Post-commit work never undoes a durable transaction
                logger.error(f"❌ Post-commit callback failed: {e}", exc_info=True)

    def rollback(self) -> None:
        discarded = len(self._after_commit)
        self._after_commit = []
        try:
            self.session.rollback()
        except DBAPIError as e:
            logger.error(f"❌ Rollback failed: {e}")
        finally:
            self._release_locks()
        if discarded:
            logger.info(f"Rolled back, discarded {discarded} post-commit callback(s)")

    def close(self) -> None:
        if self.session.in_transaction() or self._after_commit or self._locks:
            self.rollback()
        self.session.close()

    @contextmanager
    def transaction(self):
        """Commit on success, roll back and re-raise on any error"""
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()


def get_uow():
    """FastAPI dependency: one unit of work per request"""
    uow = UnitOfWork(SessionLocal())
    try:
        yield uow
    finally:
        uow.close()
