"""Friend requests and friendships.

Each unordered pair of users moves through ``none -> pending -> friends``
or ``none -> pending -> none``. A friendship can be removed, which puts
the pair back at ``none``; there is no path from ``friends`` back to
``pending``.

The single-pending-request and single-friendship rules are checked
here before writing and are also backed by unique constraints, so two
racing requests for the same pair cannot both succeed. Accepting is
idempotent: if the friendship already exists the call succeeds.
"""
from __future__ import annotations

import logging

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyFriendsError,
    DuplicateRequestError,
    NotFoundError,
    SelfRequestError,
)
from ..models import FriendRequest, Friendship, RequestStatus, ordered_pair
from .storage import commit

logger = logging.getLogger(__name__)


class FriendGraph:
    def __init__(self, db: SQLAlchemy) -> None:
        self._db = db

    def send_request(self, from_id: int, to_id: int) -> FriendRequest:
        if from_id == to_id:
            raise SelfRequestError("Cannot send a friend request to yourself!")
        if self._find_friendship(from_id, to_id) is not None:
            raise AlreadyFriendsError(f"{from_id} and {to_id} are already friends!")
        if self._find_pair_request(from_id, to_id) is not None:
            raise DuplicateRequestError(
                f"Friend request between {from_id} and {to_id} already exists!"
            )
        request = FriendRequest.pending(from_id, to_id)
        self._db.session.add(request)
        try:
            commit(self._db, "send friend request", reraise_integrity=True)
        except IntegrityError:
            raise DuplicateRequestError(
                f"Friend request between {from_id} and {to_id} already exists!"
            )
        logger.info("Friend request sent %s -> %s", from_id, to_id)
        return request

    def remove_request(self, from_id: int, to_id: int) -> None:
        request = self._get_pending(from_id, to_id)
        self._db.session.delete(request)
        commit(self._db, "remove friend request")
        logger.info("Friend request withdrawn %s -> %s", from_id, to_id)

    def accept_request(self, from_id: int, to_id: int) -> Friendship:
        """Accept the pending request ``from_id -> to_id`` on behalf of ``to_id``.

        The request is deleted and the friendship created in one commit.
        When the friendship is already there (a repeated or racing
        accept) the existing friendship is returned instead of failing.
        """
        request = self._find_request(from_id, to_id)
        friendship = self._find_friendship(from_id, to_id)
        if request is None:
            if friendship is not None:
                return friendship
            raise NotFoundError(f"Friend request from {from_id} to {to_id} does not exist!")

        self._db.session.delete(request)
        if friendship is None:
            friendship = Friendship.between(from_id, to_id)
            self._db.session.add(friendship)
        try:
            commit(self._db, "accept friend request", reraise_integrity=True)
        except IntegrityError:
            # Another accept created the friendship first.
            return self._settle_concurrent_accept(from_id, to_id)
        logger.info("Friend request accepted %s -> %s", from_id, to_id)
        return friendship

    def reject_request(self, from_id: int, to_id: int) -> FriendRequest:
        """Reject the pending request ``from_id -> to_id``.

        The stored row is deleted; the returned copy has status ``REJECTED``.
        """
        request = self._get_pending(from_id, to_id)
        rejected = request.resolved(RequestStatus.REJECTED)
        self._db.session.delete(request)
        commit(self._db, "reject friend request")
        logger.info("Friend request rejected %s -> %s", from_id, to_id)
        return rejected

    def remove_friend(self, user_id: int, friend_id: int) -> None:
        friendship = self._find_friendship(user_id, friend_id)
        if friendship is None:
            raise NotFoundError(f"Friendship between {user_id} and {friend_id} not found!")
        self._db.session.delete(friendship)
        commit(self._db, "remove friend")
        logger.info("Friendship removed %s <-> %s", user_id, friend_id)

    def get_friends(self, user_id: int) -> set[int]:
        friendships = Friendship.query.filter(
            or_(Friendship.user1_id == user_id, Friendship.user2_id == user_id)
        ).all()
        return {friendship.other(user_id) for friendship in friendships}

    def are_friends(self, a: int, b: int) -> bool:
        return self._find_friendship(a, b) is not None

    def get_requests(self, user_id: int) -> list[FriendRequest]:
        """Pending requests waiting on ``user_id`` to act, oldest first."""
        return (
            FriendRequest.query.filter_by(to_id=user_id, status=RequestStatus.PENDING)
            .order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
            .all()
        )

    def get_sent_requests(self, user_id: int) -> list[FriendRequest]:
        return (
            FriendRequest.query.filter_by(from_id=user_id, status=RequestStatus.PENDING)
            .order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
            .all()
        )

    def forget_user(self, user_id: int, autocommit: bool = True) -> None:
        """Delete every request and friendship that involves ``user_id``.

        With ``autocommit=False`` the deletes are only staged in the session
        so the caller can commit them together with other writes.
        """
        FriendRequest.query.filter(
            or_(FriendRequest.from_id == user_id, FriendRequest.to_id == user_id)
        ).delete(synchronize_session=False)
        Friendship.query.filter(
            or_(Friendship.user1_id == user_id, Friendship.user2_id == user_id)
        ).delete(synchronize_session=False)
        if autocommit:
            commit(self._db, "remove user from friend graph")

    def _settle_concurrent_accept(self, from_id: int, to_id: int) -> Friendship:
        request = self._find_request(from_id, to_id)
        if request is not None:
            self._db.session.delete(request)
            commit(self._db, "accept friend request")
        friendship = self._find_friendship(from_id, to_id)
        if friendship is None:
            raise NotFoundError(f"Friend request from {from_id} to {to_id} does not exist!")
        return friendship

    def _get_pending(self, from_id: int, to_id: int) -> FriendRequest:
        request = self._find_request(from_id, to_id)
        if request is None:
            raise NotFoundError(f"Friend request from {from_id} to {to_id} does not exist!")
        return request

    def _find_request(self, from_id: int, to_id: int) -> FriendRequest | None:
        return FriendRequest.query.filter_by(
            from_id=from_id, to_id=to_id, status=RequestStatus.PENDING
        ).first()

    def _find_pair_request(self, a: int, b: int) -> FriendRequest | None:
        low, high = ordered_pair(a, b)
        return FriendRequest.query.filter_by(pair_low=low, pair_high=high).first()

    def _find_friendship(self, a: int, b: int) -> Friendship | None:
        low, high = ordered_pair(a, b)
        return Friendship.query.filter_by(user1_id=low, user2_id=high).first()
