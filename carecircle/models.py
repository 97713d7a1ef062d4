"""
Database models for the CareCircle backend.

Three concepts own data here: users (the identity every other record is
keyed by), the friend graph (pending requests and confirmed
friendships) and the cycle log (one health entry per user per day).
Invariants that the queries rely on are backed by constraints so that
concurrent writers cannot break them: a single pending request per
unordered pair of users, a single friendship per pair, and a single log
entry per owner and date.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timezone
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db

NOTES_MAX_LENGTH = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def ordered_pair(a: int, b: int) -> tuple[int, int]:
    """Return the pair ``(a, b)`` sorted so that it identifies an unordered pair."""
    return (a, b) if a <= b else (b, a)


class RequestStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FlowIntensity(enum.Enum):
    SPOTTING = "spotting"
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class Mood(enum.Enum):
    HAPPY = "happy"
    CALM = "calm"
    SAD = "sad"
    ANXIOUS = "anxious"
    IRRITABLE = "irritable"
    TIRED = "tired"


class Symptom(enum.Enum):
    CRAMPS = "cramps"
    HEADACHE = "headache"
    BLOATING = "bloating"
    FATIGUE = "fatigue"
    ACNE = "acne"
    BACKACHE = "backache"
    NAUSEA = "nausea"
    TENDER_BREASTS = "tender_breasts"
    CRAVINGS = "cravings"
    INSOMNIA = "insomnia"


class User(db.Model):
    __allow_unmapped__ = True
    """A registered user. ``id`` is the identity reference used everywhere else."""
    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    username: str = db.Column(db.String(50), unique=True, nullable=False)
    password_hash: str = db.Column(db.String(255), nullable=False)
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class FriendRequest(db.Model):
    __allow_unmapped__ = True
    """A directed friend request from ``from_id`` to ``to_id``.

    Only pending requests are stored. Accepting or rejecting a request
    deletes the row; the ``status`` of the returned object records the
    outcome. ``pair_low``/``pair_high`` hold the sorted user ids so the
    unique constraint covers both directions of the pair.
    """
    __tablename__ = "friend_requests"

    id: int = db.Column(db.Integer, primary_key=True)
    from_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    to_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    pair_low: int = db.Column(db.Integer, nullable=False)
    pair_high: int = db.Column(db.Integer, nullable=False)
    status: RequestStatus = db.Column(
        db.Enum(RequestStatus, values_callable=_values),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("pair_low", "pair_high", name="uix_friend_request_pair"),
        db.CheckConstraint("from_id <> to_id", name="ck_friend_request_not_self"),
    )

    @classmethod
    def pending(cls, from_id: int, to_id: int) -> FriendRequest:
        low, high = ordered_pair(from_id, to_id)
        return cls(
            from_id=from_id,
            to_id=to_id,
            pair_low=low,
            pair_high=high,
            status=RequestStatus.PENDING,
        )

    def resolved(self, status: RequestStatus) -> FriendRequest:
        """Return a detached copy of this request carrying a terminal ``status``."""
        return FriendRequest(
            from_id=self.from_id,
            to_id=self.to_id,
            pair_low=self.pair_low,
            pair_high=self.pair_high,
            status=status,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<FriendRequest {self.from_id}->{self.to_id} ({self.status.value})>"


class Friendship(db.Model):
    __allow_unmapped__ = True
    """A confirmed, symmetric friendship. ``user1_id`` is always the smaller id."""
    __tablename__ = "friendships"

    id: int = db.Column(db.Integer, primary_key=True)
    user1_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    user2_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("user1_id", "user2_id", name="uix_friendship_pair"),
        db.CheckConstraint("user1_id < user2_id", name="ck_friendship_ordered"),
    )

    @classmethod
    def between(cls, a: int, b: int) -> Friendship:
        low, high = ordered_pair(a, b)
        return cls(user1_id=low, user2_id=high)

    def other(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def __repr__(self) -> str:
        return f"<Friendship {self.user1_id}<->{self.user2_id}>"


class LogEntry(db.Model):
    __allow_unmapped__ = True
    """A user's health log for a single calendar day.

    ``owner_id`` and ``date`` are fixed at creation. Symptoms are stored
    as a sorted JSON list of ``Symptom`` values.
    """
    __tablename__ = "log_entries"

    id: int = db.Column(db.Integer, primary_key=True)
    owner_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    date: date = db.Column(db.Date, nullable=False)
    symptoms: list = db.Column(db.JSON, nullable=False, default=list)
    mood: Optional[Mood] = db.Column(db.Enum(Mood, values_callable=_values), nullable=True)
    flow: Optional[FlowIntensity] = db.Column(
        db.Enum(FlowIntensity, values_callable=_values), nullable=True
    )
    notes: str = db.Column(db.String(NOTES_MAX_LENGTH), nullable=False, default="")
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        db.UniqueConstraint("owner_id", "date", name="uix_log_owner_date"),
    )

    @property
    def symptom_set(self) -> set[Symptom]:
        return {Symptom(value) for value in self.symptoms or []}

    def __repr__(self) -> str:
        return f"<LogEntry owner={self.owner_id} date={self.date}>"
