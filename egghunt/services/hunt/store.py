"""Database access helpers shared by the hunt services.

Reads are idempotent and get a bounded number of retries when the
connection drops. Writes run inside ``transaction()`` which rolls back on
any error and never retries, so callers are never unsure whether a write
landed twice.
"""

from contextlib import contextmanager
from functools import wraps

from flask import current_app
from sqlalchemy.exc import OperationalError

from egghunt import db
from egghunt.errors import StoreUnavailable


def read_with_retry(func):
    """Retry an idempotent read up to STORE_READ_RETRIES times."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, int(current_app.config.get('STORE_READ_RETRIES', 3)))
        last_exc = None
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except OperationalError as exc:
                last_exc = exc
                db.session.rollback()
                current_app.logger.warning(
                    f"[store-retry] {func.__name__} attempt={attempt}/{attempts} error={exc.orig!r}"
                )
        raise StoreUnavailable() from last_exc

    return wrapper


@contextmanager
def transaction(label):
    """Commit everything done in the block, or roll it all back.

    ``OperationalError`` surfaces as ``StoreUnavailable``; every other
    exception (including ``IntegrityError``) is re-raised unchanged for the
    caller to classify.
    """
    try:
        yield db.session
        db.session.commit()
    except OperationalError as exc:
        db.session.rollback()
        current_app.logger.error(f"[store-down] {label}: {exc.orig!r}")
        raise StoreUnavailable() from exc
    except Exception:
        db.session.rollback()
        raise
