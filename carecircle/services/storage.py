"""Transaction helpers shared by the services.

Every service operation ends in a single commit. If the database
rejects it, the session is rolled back so no partial effect survives,
and the failure is re-raised as a ``StorageError`` unless the caller
asked to see integrity violations itself.

Operations that span several services, such as deleting an account,
stage their writes inside ``transaction`` and commit once at the end.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import StorageError

logger = logging.getLogger(__name__)


def commit(db: SQLAlchemy, action: str, *, reraise_integrity: bool = False) -> None:
    """Commit the current session, rolling back on failure.

    Parameters
    ----------
    db: SQLAlchemy
        The extension whose scoped session should be committed.
    action: str
        Short description of the operation, used in log messages.
    reraise_integrity: bool, default False
        Re-raise ``IntegrityError`` unchanged so the caller can map a
        constraint violation to a business error.
    """
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if reraise_integrity:
            raise
        logger.exception("Integrity violation while trying to %s", action)
        raise StorageError(f"Could not {action}.")
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Database failure while trying to %s", action)
        raise StorageError(f"Could not {action}.") from exc


@contextmanager
def transaction(db: SQLAlchemy, action: str) -> Iterator[None]:
    """Stage several writes and commit them together.

    Writes made inside the block must not commit on their own. If the
    block raises, everything staged so far is rolled back before the
    exception propagates.
    """
    try:
        yield
    except Exception:
        db.session.rollback()
        raise
    commit(db, action)
