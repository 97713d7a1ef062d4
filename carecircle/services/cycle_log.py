"""Per-user daily health log.

A user has at most one entry per calendar day. The entry's owner and
date are fixed at creation; only symptoms, mood, flow and notes can be
changed afterwards. Callers must run ``assert_author_is_user`` before
``update`` or ``delete``.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError

from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..models import NOTES_MAX_LENGTH, FlowIntensity, LogEntry, Mood, Symptom
from ..util.sanitization import clean_text
from .storage import commit

logger = logging.getLogger(__name__)


def _symptom_values(symptoms: Iterable[Symptom] | None) -> list[str]:
    return sorted({Symptom(symptom).value for symptom in symptoms or ()})


class CycleLog:
    def __init__(self, db: SQLAlchemy) -> None:
        self._db = db

    def create(
        self,
        owner_id: int,
        log_date: date,
        symptoms: Iterable[Symptom] | None = None,
        mood: Optional[Mood] = None,
        flow: Optional[FlowIntensity] = None,
        notes: str | None = "",
    ) -> LogEntry:
        if self.get_by_date(owner_id, log_date) is not None:
            raise ConflictError(f"A log for {log_date.isoformat()} already exists!")
        entry = LogEntry(
            owner_id=owner_id,
            date=log_date,
            symptoms=_symptom_values(symptoms),
            mood=mood,
            flow=flow,
            notes=clean_text(notes, NOTES_MAX_LENGTH),
        )
        self._db.session.add(entry)
        try:
            commit(self._db, "create log", reraise_integrity=True)
        except IntegrityError:
            raise ConflictError(f"A log for {log_date.isoformat()} already exists!")
        logger.info("Created log %s for user %s on %s", entry.id, owner_id, log_date)
        return entry

    def update(
        self,
        entry_id: int,
        symptoms: Iterable[Symptom] | None = None,
        mood: Optional[Mood] = None,
        flow: Optional[FlowIntensity] = None,
        notes: str | None = "",
    ) -> LogEntry:
        """Replace the mutable fields of an entry. Owner and date never change."""
        entry = self.get(entry_id)
        entry.symptoms = _symptom_values(symptoms)
        entry.mood = mood
        entry.flow = flow
        entry.notes = clean_text(notes, NOTES_MAX_LENGTH)
        commit(self._db, "update log")
        return entry

    def get(self, entry_id: int) -> LogEntry:
        entry = self._db.session.get(LogEntry, entry_id)
        if entry is None:
            raise NotFoundError(f"Log {entry_id} does not exist!")
        return entry

    def get_by_date(self, owner_id: int, log_date: date) -> LogEntry | None:
        return LogEntry.query.filter_by(owner_id=owner_id, date=log_date).first()

    def get_entries(
        self, owner_id: int, start: date | None = None, end: date | None = None
    ) -> list[LogEntry]:
        """Return the owner's entries in ascending date order, optionally bounded."""
        query = LogEntry.query.filter(LogEntry.owner_id == owner_id)
        if start is not None:
            query = query.filter(LogEntry.date >= start)
        if end is not None:
            query = query.filter(LogEntry.date <= end)
        return query.order_by(LogEntry.date.asc()).all()

    def get_flow_days(self, owner_id: int) -> list[date]:
        rows = (
            self._db.session.query(LogEntry.date)
            .filter(LogEntry.owner_id == owner_id, LogEntry.flow.isnot(None))
            .order_by(LogEntry.date.asc())
            .all()
        )
        return [row.date for row in rows]

    def assert_author_is_user(self, entry_id: int, user_id: int) -> None:
        entry = self.get(entry_id)
        if entry.owner_id != user_id:
            raise AuthorizationError(f"User {user_id} is not the author of log {entry_id}!")

    def delete(self, entry_id: int) -> None:
        entry = self.get(entry_id)
        self._db.session.delete(entry)
        commit(self._db, "delete log")
        logger.info("Deleted log %s", entry_id)

    def delete_all_for(self, owner_id: int, autocommit: bool = True) -> int:
        count = LogEntry.query.filter_by(owner_id=owner_id).delete(synchronize_session=False)
        if autocommit:
            commit(self._db, "delete logs")
        return count
