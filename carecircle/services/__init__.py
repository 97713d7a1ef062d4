"""Service layer for the CareCircle backend.

Each concept lives in its own module and owns its own tables. Nothing
in this package performs HTTP handling: services return model objects
or plain Python values and raise the exceptions defined in
``carecircle.errors`` when a business rule is violated.

The services are built once per application by ``build_services`` and
handed to the route table by reference.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask_sqlalchemy import SQLAlchemy

from .authing import Authing
from .cycle_analytics import CycleAnalytics, CycleStats, compute_cycle_stats
from .cycle_log import CycleLog
from .friending import FriendGraph
from .storage import transaction


@dataclass(frozen=True)
class Services:
    authing: Authing
    friending: FriendGraph
    cycle_log: CycleLog
    cycle_analytics: CycleAnalytics
    db: SQLAlchemy

    def delete_account(self, user_id: int) -> None:
        """Delete a user together with their friend graph entries and logs.

        All three deletes are committed together or not at all.
        """
        with transaction(self.db, "delete account"):
            self.friending.forget_user(user_id, autocommit=False)
            self.cycle_log.delete_all_for(user_id, autocommit=False)
            self.authing.delete(user_id, autocommit=False)


def build_services(db: SQLAlchemy) -> Services:
    cycle_log = CycleLog(db)
    return Services(
        authing=Authing(db),
        friending=FriendGraph(db),
        cycle_log=cycle_log,
        cycle_analytics=CycleAnalytics(cycle_log),
        db=db,
    )


__all__ = [
    "Authing",
    "CycleAnalytics",
    "CycleLog",
    "CycleStats",
    "FriendGraph",
    "Services",
    "build_services",
    "compute_cycle_stats",
]
