"""
Route table for the CareCircle API.

Routes are declared as plain ``Route`` entries in an ordered table
rather than with decorators, and registered on one blueprint when the
application starts. Each entry names the HTTP method and path, the
handler, an optional Marshmallow schema that validates the request
parameters, and whether the caller must be logged in.

For every request the generated view:

1. resolves the caller's user id from the JWT (authenticated routes),
2. merges path parameters, query string and JSON body into one mapping
   and loads it through the route's schema,
3. calls ``handler(services, user_id, **params)`` and JSON-encodes the
   result.

Handlers never touch Flask's request object; they receive validated
arguments and the shared ``Services`` container.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from flask import Blueprint, Flask, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from marshmallow import Schema

from ..services import Services


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    handler: Callable[..., Any]
    schema: Optional[type[Schema]] = None
    auth: bool = True
    status: int = 200


def _collect_params(path_params: dict) -> dict:
    params: dict = dict(request.args.items())
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        params.update(body)
    params.update(path_params)
    return params


def _make_view(route: Route, services: Services) -> Callable[..., Any]:
    def view(**path_params):
        user_id = None
        if route.auth:
            verify_jwt_in_request()
            user_id = services.authing.resolve_identity(get_jwt_identity())
        if route.schema is not None:
            params = route.schema().load(_collect_params(path_params))
        else:
            params = path_params
        result = route.handler(services, user_id, **params)
        return jsonify(result), route.status

    view.__name__ = route.handler.__name__
    view.__doc__ = route.handler.__doc__
    return view


def build_blueprint(services: Services, table: Iterable[Route]) -> Blueprint:
    """Create a blueprint with one URL rule per table entry, in table order."""
    blueprint = Blueprint("api", __name__)
    for route in table:
        blueprint.add_url_rule(
            route.path,
            endpoint=route.handler.__name__,
            view_func=_make_view(route, services),
            methods=[route.method],
        )
    return blueprint


def route_table() -> list[Route]:
    from . import auth, friends, logs

    return [*auth.ROUTES, *friends.ROUTES, *logs.ROUTES]


def register_routes(app: Flask, services: Services, url_prefix: str = "/api") -> None:
    app.register_blueprint(build_blueprint(services, route_table()), url_prefix=url_prefix)
