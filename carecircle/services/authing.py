"""User accounts and identity resolution.

This is the thin authentication collaborator the rest of the backend
relies on: it issues identity references (``User.id``), resolves them
back from a token subject, and translates between ids and usernames
for responses. Password storage uses werkzeug's salted hashes.
"""
from __future__ import annotations

import logging
from typing import Iterable

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from ..models import User
from .storage import commit

logger = logging.getLogger(__name__)

DELETED_USER = "DELETED_USER"


class Authing:
    def __init__(self, db: SQLAlchemy) -> None:
        self._db = db

    def create(self, username: str, password: str) -> User:
        """Register a new user. Usernames are unique and case-sensitive."""
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password must be non-empty.")
        if self._find_by_username(username) is not None:
            raise ConflictError(f"User {username} already exists!")
        user = User(username=username)
        user.set_password(password)
        self._db.session.add(user)
        try:
            commit(self._db, "create user", reraise_integrity=True)
        except IntegrityError:
            raise ConflictError(f"User {username} already exists!")
        logger.info("Created user %s (id=%s)", user.username, user.id)
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self._find_by_username((username or "").strip())
        if user is None or not user.check_password(password or ""):
            raise UnauthenticatedError("Username or password is incorrect.")
        return user

    def resolve_identity(self, subject: object) -> int:
        """Turn a token subject into the id of an existing user."""
        try:
            user_id = int(subject)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise UnauthenticatedError("Invalid session.")
        if self._db.session.get(User, user_id) is None:
            raise UnauthenticatedError("Session user no longer exists.")
        return user_id

    def get_user_by_id(self, user_id: int) -> User:
        user = self._db.session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User with id {user_id} does not exist!")
        return user

    def get_user_by_username(self, username: str) -> User:
        user = self._find_by_username(username)
        if user is None:
            raise NotFoundError(f"User with username {username} does not exist!")
        return user

    def get_users(self) -> list[User]:
        return User.query.order_by(User.username.asc()).all()

    def ids_to_usernames(self, ids: Iterable[int]) -> list[str]:
        """Map ids to usernames, keeping order. Unknown ids map to ``DELETED_USER``."""
        ids = list(ids)
        if not ids:
            return []
        users = User.query.filter(User.id.in_(set(ids))).all()
        names = {user.id: user.username for user in users}
        return [names.get(user_id, DELETED_USER) for user_id in ids]

    def update_username(self, user_id: int, username: str) -> User:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username must be non-empty.")
        user = self.get_user_by_id(user_id)
        if username == user.username:
            return user
        if self._find_by_username(username) is not None:
            raise ConflictError(f"User {username} already exists!")
        old_username = user.username
        user.username = username
        try:
            commit(self._db, "update username", reraise_integrity=True)
        except IntegrityError:
            raise ConflictError(f"User {username} already exists!")
        logger.info("Renamed user %s to %s (id=%s)", old_username, username, user_id)
        return user

    def update_password(self, user_id: int, current_password: str, new_password: str) -> User:
        """Replace the password after checking the current one."""
        if not new_password:
            raise ValidationError("Password must be non-empty.")
        user = self.get_user_by_id(user_id)
        if not user.check_password(current_password or ""):
            raise AuthorizationError("The given current password is wrong!")
        user.set_password(new_password)
        commit(self._db, "update password")
        logger.info("Updated password for user id=%s", user_id)
        return user

    def delete(self, user_id: int, autocommit: bool = True) -> None:
        user = self.get_user_by_id(user_id)
        self._db.session.delete(user)
        if autocommit:
            commit(self._db, "delete user")
        logger.info("Deleted user id=%s", user_id)

    def _find_by_username(self, username: str) -> User | None:
        return User.query.filter_by(username=username).first()
