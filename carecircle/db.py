"""Database setup utilities.

This module exposes the ``db`` object shared by the models and the
service layer. The application factory binds it to the Flask app, and
the services receive it by reference when they are constructed.
"""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
