"""
Account and session routes.

Registering and logging in are the only routes open to anonymous
callers. Logging in returns a JSON Web Token whose subject is the
user's id; every other route resolves the caller from that token.
"""

from __future__ import annotations

from flask_jwt_extended import create_access_token

from ..schemas import CredentialsSchema, PasswordChangeSchema, UserSchema, UsernameSchema
from . import Route


def health(services, user_id) -> dict:
    """Return a simple health check response."""
    return {"status": "ok"}


def create_user(services, user_id, username: str, password: str) -> dict:
    user = services.authing.create(username, password)
    return {"msg": "User created successfully!", "user": UserSchema().dump(user)}


def log_in(services, user_id, username: str, password: str) -> dict:
    user = services.authing.authenticate(username, password)
    access_token = create_access_token(identity=str(user.id))
    return {"msg": "Logged in!", "access_token": access_token, "user": UserSchema().dump(user)}


def get_session_user(services, user_id) -> dict:
    return UserSchema().dump(services.authing.get_user_by_id(user_id))


def get_users(services, user_id) -> list:
    return UserSchema(many=True).dump(services.authing.get_users())


def get_user(services, user_id, username: str) -> dict:
    return UserSchema().dump(services.authing.get_user_by_username(username))


def update_username(services, user_id, username: str) -> dict:
    user = services.authing.update_username(user_id, username)
    return {"msg": "Username updated!", "user": UserSchema().dump(user)}


def update_password(services, user_id, current_password: str, new_password: str) -> dict:
    services.authing.update_password(user_id, current_password, new_password)
    return {"msg": "Password updated!"}


def delete_user(services, user_id) -> dict:
    """Delete the caller's account together with their friend graph and logs."""
    services.delete_account(user_id)
    return {"msg": "Deleted user!"}


ROUTES = [
    Route("GET", "/health", health, auth=False),
    Route("POST", "/users", create_user, CredentialsSchema, auth=False, status=201),
    Route("POST", "/login", log_in, CredentialsSchema, auth=False),
    Route("GET", "/session", get_session_user),
    Route("GET", "/users", get_users),
    Route("GET", "/users/<username>", get_user, UsernameSchema),
    Route("PATCH", "/users/username", update_username, UsernameSchema),
    Route("PATCH", "/users/password", update_password, PasswordChangeSchema),
    Route("DELETE", "/users", delete_user),
]
