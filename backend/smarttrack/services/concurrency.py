# Overview: Bounded retry for optimistic stock updates.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


# Lost-update signals worth re-reading and trying again:
# - StaleDataError: UPDATE ... WHERE version_id = ? matched no row
# - IntegrityError: a concurrent request inserted the same product name first
# - OperationalError: database locked (SQLite) or deadlock
RETRYABLE_ERRORS = (StaleDataError, IntegrityError, OperationalError)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05, retry_on=RETRYABLE_ERRORS):
    """
    Execute a read-modify-write DB operation with retry on concurrency failures.

    func must do its own reads, so each attempt sees fresh rows after the
    rollback. The final failure is re-raised unchanged.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return func()
        except retry_on:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
