"""Centralised error handling and custom exceptions.

Services raise the exceptions defined here to signal business rule
violations without knowing anything about HTTP. The Flask app registers
handlers during application factory initialisation that serialise them
into JSON responses with the matching status code.
"""
from __future__ import annotations

import logging

from flask import jsonify
from marshmallow import ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for failures the service layer reports to its caller."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"code": self.code, "message": self.message}

    def to_response(self, status_code: int | None = None):
        return jsonify({"error": self.payload()}), status_code or self.status_code


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, fields: dict | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}

    def payload(self) -> dict:
        return {**super().payload(), "fields": self.fields}


class UnauthenticatedError(ServiceError):
    """Raised when the caller's identity cannot be resolved."""

    code = "UNAUTHENTICATED"
    status_code = 401


class AuthorizationError(ServiceError):
    """Raised when a user tries to mutate something they do not own."""

    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(ServiceError):
    """Raised when a requested resource cannot be found."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(ServiceError):
    """Raised when a uniqueness or resource conflict occurs."""

    code = "CONFLICT"
    status_code = 409


class DuplicateRequestError(ConflictError):
    """A pending friend request already exists between the two users."""


class AlreadyFriendsError(ConflictError):
    """The two users are already friends."""


class SelfReferenceError(ServiceError):
    """Raised when a user targets themselves, e.g. a friend request to self."""

    code = "SELF_REFERENCE"
    status_code = 400


SelfRequestError = SelfReferenceError


class InsufficientDataError(ServiceError):
    """Raised when there are too few complete cycles to compute statistics."""

    code = "INSUFFICIENT_DATA"
    status_code = 422

    def __init__(self, message: str, complete_cycles: int = 0) -> None:
        super().__init__(message)
        self.complete_cycles = complete_cycles

    def payload(self) -> dict:
        return {**super().payload(), "complete_cycles": self.complete_cycles}


class StorageError(ServiceError):
    """Raised when the database fails underneath an operation."""

    code = "STORAGE_ERROR"
    status_code = 503


def register_error_handlers(app) -> None:
    """Register custom error handlers on the given Flask app."""

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        if isinstance(err, StorageError):
            logger.error("Storage failure: %s", err.message)
        return err.to_response()

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(err: SchemaValidationError):
        messages = err.messages if isinstance(err.messages, dict) else {"_schema": err.messages}
        return ValidationError("Invalid request.", fields=messages).to_response()


def register_jwt_handlers(jwt) -> None:
    """Report token failures as ``UNAUTHENTICATED`` errors instead of ``{"msg": ...}``."""

    @jwt.unauthorized_loader
    def handle_missing_token(reason: str):
        logger.debug("Missing token: %s", reason)
        return UnauthenticatedError("Not logged in.").to_response()

    @jwt.invalid_token_loader
    def handle_invalid_token(reason: str):
        logger.debug("Invalid token: %s", reason)
        return UnauthenticatedError("Invalid session.").to_response()

    @jwt.expired_token_loader
    def handle_expired_token(jwt_header: dict, jwt_payload: dict):
        return UnauthenticatedError("Session has expired.").to_response()
