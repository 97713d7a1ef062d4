"""
Application factory for the CareCircle backend.

This module provides a function to create and configure the Flask
application. Extensions (SQLAlchemy, Migrate, JWT) are initialised
here, the concept services are constructed once and the route table is
registered with them.

Environment variables control the database connection, the JWT secret
and the log level. In production set ``DATABASE_URL`` and
``JWT_SECRET_KEY``; in development SQLite is used when no database URL
is available.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import timedelta

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate

# instantiate extensions without binding them to an app yet.  They are
# bound in create_app().
from .db import db  # use shared db object from db.py
migrate = Migrate()
jwt = JWTManager()

SERVICES_KEY = "carecircle.services"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S", stream=sys.stdout)
    logging.getLogger("carecircle").setLevel(level.upper())


def create_app(test_config: dict | None = None) -> Flask:
    """Create and configure a Flask application.

    Parameters
    ----------
    test_config: dict | None, optional
        Optional configuration overrides used when running tests.

    Returns
    -------
    Flask
        A configured Flask application instance. The service container
        is available as ``app.extensions["carecircle.services"]``.
    """
    app = Flask(__name__)

    app.config.update(
        SQLALCHEMY_DATABASE_URI=os.environ.get("DATABASE_URL", "sqlite:///carecircle.db"),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        JWT_SECRET_KEY=os.environ.get("JWT_SECRET_KEY", "please-change-this-secret-key"),
        JWT_ACCESS_TOKEN_EXPIRES=timedelta(days=1),
        LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO"),
    )

    if test_config:
        app.config.update(test_config)

    _configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    from .errors import register_error_handlers, register_jwt_handlers
    register_error_handlers(app)
    register_jwt_handlers(jwt)

    # Imported here so models bind to the initialised ``db``.
    from .routes import register_routes
    from .services import build_services

    services = build_services(db)
    app.extensions[SERVICES_KEY] = services
    register_routes(app, services)

    logging.getLogger(__name__).info("CareCircle app created")
    return app


def get_services(app: Flask):
    """Return the service container built for ``app``."""
    return app.extensions[SERVICES_KEY]
