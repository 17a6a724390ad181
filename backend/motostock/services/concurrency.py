# Overview: Transaction helpers: row locking and retry on concurrency failures.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for stock transitions.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; the version_id columns on
    motorcycles and transfers still catch a concurrent double move there.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The session is rolled back before each
    retry, so func must re-read everything it checks; a race lost to another
    writer then shows up as a precondition failure on the next attempt.
    """
    attempt = 1
    while True:
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts:
                logger.error("Giving up after %s attempts: %s", attempts, exc.__class__.__name__)
                raise
            logger.warning(
                "Concurrent update detected (attempt %s/%s): %s",
                attempt, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
            attempt += 1


def commit_with_retry(*, attempts: int = 3, backoff_base: float = 0.1):
    """Commit audit-only work (logins, denials) that has no operation to replay."""
    return run_with_retry(db.session.commit, attempts=attempts, backoff_base=backoff_base)


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run one engine operation and commit it as a single unit of work.

    The operation and its commit are retried together: a conflict detected
    at flush or commit time replays the whole operation against fresh state
    instead of committing an empty session. Any other exception rolls back
    and propagates.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
        except (OperationalError, StaleDataError):
            raise
        except Exception:
            db.session.rollback()
            raise
        return result
    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
