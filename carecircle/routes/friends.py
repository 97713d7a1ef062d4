"""
Friend routes.

Friends are addressed by username in URLs; the handlers translate them
to user ids before calling the friend graph and translate ids back to
usernames in responses.
"""

from __future__ import annotations

from ..models import RequestStatus
from ..schemas import FriendRequestSchema
from . import Route


def _user_id(services, username: str) -> int:
    return services.authing.get_user_by_username(username).id


def _requests_response(services, requests) -> list:
    from_names = services.authing.ids_to_usernames(r.from_id for r in requests)
    to_names = services.authing.ids_to_usernames(r.to_id for r in requests)
    rows = [
        {"from_": sender, "to": recipient, "status": r.status.value}
        for r, sender, recipient in zip(requests, from_names, to_names)
    ]
    return FriendRequestSchema(many=True).dump(rows)


def get_friends(services, user_id) -> list:
    return sorted(services.authing.ids_to_usernames(services.friending.get_friends(user_id)))


def remove_friend(services, user_id, friend: str) -> dict:
    services.friending.remove_friend(user_id, _user_id(services, friend))
    return {"msg": "Unfriended!"}


def get_requests(services, user_id) -> list:
    return _requests_response(services, services.friending.get_requests(user_id))


def get_sent_requests(services, user_id) -> list:
    return _requests_response(services, services.friending.get_sent_requests(user_id))


def send_friend_request(services, user_id, to: str) -> dict:
    services.friending.send_request(user_id, _user_id(services, to))
    return {"msg": "Sent request!"}


def remove_friend_request(services, user_id, to: str) -> dict:
    services.friending.remove_request(user_id, _user_id(services, to))
    return {"msg": "Removed request!"}


def accept_friend_request(services, user_id, from_: str) -> dict:
    services.friending.accept_request(_user_id(services, from_), user_id)
    to = services.authing.get_user_by_id(user_id).username
    request = {"from_": from_, "to": to, "status": RequestStatus.ACCEPTED.value}
    return {"msg": "Accepted request!", "request": FriendRequestSchema().dump(request)}


def reject_friend_request(services, user_id, from_: str) -> dict:
    rejected = services.friending.reject_request(_user_id(services, from_), user_id)
    return {"msg": "Rejected request!", "request": _requests_response(services, [rejected])[0]}


ROUTES = [
    Route("GET", "/friends", get_friends),
    Route("DELETE", "/friends/<friend>", remove_friend),
    Route("GET", "/friend/requests", get_requests),
    Route("GET", "/friend/requests/sent", get_sent_requests),
    Route("POST", "/friend/requests/<to>", send_friend_request, status=201),
    Route("DELETE", "/friend/requests/<to>", remove_friend_request),
    Route("PUT", "/friend/accept/<from_>", accept_friend_request),
    Route("PUT", "/friend/reject/<from_>", reject_friend_request),
]
