"""Tests for the friend request lifecycle."""
from __future__ import annotations

import pytest

from carecircle import db
from carecircle.errors import (
    AlreadyFriendsError,
    ConflictError,
    DuplicateRequestError,
    NotFoundError,
    SelfReferenceError,
)
from carecircle.models import FriendRequest, Friendship, RequestStatus


@pytest.fixture
def graph(services):
    return services.friending


def test_send_then_accept_makes_mutual_friends(graph, users):
    alice, bob = users["alice"], users["bob"]
    request = graph.send_request(alice, bob)
    assert request.status == RequestStatus.PENDING

    friendship = graph.accept_request(alice, bob)

    assert {friendship.user1_id, friendship.user2_id} == {alice, bob}
    assert graph.get_friends(alice) == {bob}
    assert graph.get_friends(bob) == {alice}
    assert graph.get_requests(bob) == []
    assert graph.get_sent_requests(alice) == []
    assert FriendRequest.query.count() == 0


def test_duplicate_request_in_same_direction_conflicts(graph, users):
    graph.send_request(users["alice"], users["bob"])
    with pytest.raises(DuplicateRequestError):
        graph.send_request(users["alice"], users["bob"])


def test_reverse_request_while_pending_conflicts(graph, users):
    graph.send_request(users["alice"], users["bob"])
    with pytest.raises(ConflictError):
        graph.send_request(users["bob"], users["alice"])
    assert FriendRequest.query.count() == 1


def test_racing_request_hits_pair_constraint(graph, users, monkeypatch):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)
    # Skip the pre-check so the insert reaches the unique pair constraint.
    monkeypatch.setattr(graph, "_find_pair_request", lambda a, b: None)

    with pytest.raises(DuplicateRequestError):
        graph.send_request(bob, alice)

    assert [r.from_id for r in graph.get_requests(bob)] == [alice]
    assert FriendRequest.query.count() == 1
    graph.accept_request(alice, bob)
    assert graph.are_friends(alice, bob)


def test_request_to_self_is_rejected(graph, users):
    with pytest.raises(SelfReferenceError):
        graph.send_request(users["alice"], users["alice"])


def test_request_between_friends_is_rejected(graph, users):
    graph.send_request(users["alice"], users["bob"])
    graph.accept_request(users["alice"], users["bob"])
    with pytest.raises(AlreadyFriendsError):
        graph.send_request(users["bob"], users["alice"])


def test_get_requests_only_returns_incoming(graph, users):
    alice, bob, carol = users["alice"], users["bob"], users["carol"]
    graph.send_request(alice, bob)
    graph.send_request(carol, bob)

    incoming = graph.get_requests(bob)
    assert [(r.from_id, r.to_id) for r in incoming] == [(alice, bob), (carol, bob)]
    assert graph.get_requests(alice) == []
    assert [r.to_id for r in graph.get_sent_requests(alice)] == [bob]


def test_remove_request_only_affects_given_direction(graph, users):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)

    with pytest.raises(NotFoundError):
        graph.remove_request(bob, alice)
    assert len(graph.get_requests(bob)) == 1

    graph.remove_request(alice, bob)
    assert graph.get_requests(bob) == []
    with pytest.raises(NotFoundError):
        graph.remove_request(alice, bob)


def test_accept_requires_pending_request(graph, users):
    with pytest.raises(NotFoundError):
        graph.accept_request(users["alice"], users["bob"])


def test_accept_only_in_request_direction(graph, users):
    graph.send_request(users["alice"], users["bob"])
    with pytest.raises(NotFoundError):
        graph.accept_request(users["bob"], users["alice"])


def test_repeated_accept_is_not_an_error(graph, users):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)
    first = graph.accept_request(alice, bob)
    second = graph.accept_request(alice, bob)

    assert first.id == second.id
    assert Friendship.query.count() == 1


def test_accept_when_friendship_already_recorded_clears_request(graph, users):
    alice, bob = users["alice"], users["bob"]
    db.session.add(Friendship.between(alice, bob))
    db.session.add(FriendRequest.pending(alice, bob))
    db.session.commit()

    friendship = graph.accept_request(alice, bob)

    assert {friendship.user1_id, friendship.user2_id} == {alice, bob}
    assert Friendship.query.count() == 1
    assert FriendRequest.query.count() == 0


def test_concurrent_accept_that_loses_the_race_returns_existing_friendship(
    graph, users, monkeypatch
):
    alice, bob = users["alice"], users["bob"]
    db.session.add(Friendship.between(alice, bob))
    db.session.add(FriendRequest.pending(alice, bob))
    db.session.commit()
    existing_id = Friendship.query.one().id

    # The first lookup misses the friendship, as if another accept had
    # committed it in between; the insert then hits the unique constraint.
    find_friendship = graph._find_friendship
    lookups = []

    def stale_find_friendship(a, b):
        lookups.append((a, b))
        return None if len(lookups) == 1 else find_friendship(a, b)

    monkeypatch.setattr(graph, "_find_friendship", stale_find_friendship)

    friendship = graph.accept_request(alice, bob)

    assert friendship.id == existing_id
    assert len(lookups) == 2
    assert Friendship.query.count() == 1
    assert FriendRequest.query.count() == 0
    assert graph.get_friends(bob) == {alice}


def test_reject_removes_request_without_friendship(graph, users):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)

    rejected = graph.reject_request(alice, bob)

    assert rejected.status == RequestStatus.REJECTED
    assert (rejected.from_id, rejected.to_id) == (alice, bob)
    assert FriendRequest.query.count() == 0
    assert graph.get_friends(alice) == set()
    assert graph.get_friends(bob) == set()
    assert graph.get_requests(bob) == []
    with pytest.raises(NotFoundError):
        graph.reject_request(alice, bob)


def test_request_can_be_sent_again_after_reject(graph, users):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)
    graph.reject_request(alice, bob)
    request = graph.send_request(bob, alice)
    assert request.from_id == bob


@pytest.mark.parametrize("order", [("alice", "bob"), ("bob", "alice")])
def test_remove_friend_is_symmetric(graph, users, order):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)
    graph.accept_request(alice, bob)

    graph.remove_friend(users[order[0]], users[order[1]])

    assert bob not in graph.get_friends(alice)
    assert alice not in graph.get_friends(bob)
    assert not graph.are_friends(alice, bob)


def test_remove_missing_friend_raises(graph, users):
    with pytest.raises(NotFoundError):
        graph.remove_friend(users["alice"], users["bob"])


def test_unfriended_pair_needs_a_fresh_request(graph, users):
    alice, bob = users["alice"], users["bob"]
    graph.send_request(alice, bob)
    graph.accept_request(alice, bob)
    graph.remove_friend(alice, bob)

    with pytest.raises(NotFoundError):
        graph.accept_request(alice, bob)
    graph.send_request(alice, bob)
    graph.accept_request(alice, bob)
    assert graph.are_friends(bob, alice)


def test_forget_user_drops_requests_and_friendships(graph, users):
    alice, bob, carol = users["alice"], users["bob"], users["carol"]
    graph.send_request(alice, bob)
    graph.accept_request(alice, bob)
    graph.send_request(carol, alice)
    graph.send_request(bob, carol)

    graph.forget_user(alice)

    assert graph.get_friends(bob) == set()
    assert graph.get_requests(alice) == []
    assert [r.from_id for r in graph.get_requests(carol)] == [bob]
