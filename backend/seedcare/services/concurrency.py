# Overview: Service-layer helpers for store conflicts; bounded retry with jittered backoff.

from __future__ import annotations

import random
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_min: float = 0.05,
    backoff_max: float = 0.15,
    retry_on: tuple[type[BaseException], ...] = (OperationalError, StaleDataError),
    on_retry=None,
):
    """
    Execute a DB operation, retrying on the given store conflicts.

    The session is rolled back before each retry and the caller sleeps a
    random interval in [backoff_min, backoff_max]. The last exception is
    re-raised once attempts are exhausted.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if attempt >= attempts:
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
            time.sleep(random.uniform(backoff_min, backoff_max))


def insert_unique(build_row, *, attempts: int, backoff_min: float, backoff_max: float, on_retry=None):
    """
    Insert a row produced by build_row() and flush it, regenerating on
    uniqueness violations. build_row is called again for every attempt.
    """
    def _op():
        row = build_row()
        db.session.add(row)
        db.session.flush()
        return row

    return run_with_retry(
        _op,
        attempts=attempts,
        backoff_min=backoff_min,
        backoff_max=backoff_max,
        retry_on=(IntegrityError,),
        on_retry=on_retry,
    )
