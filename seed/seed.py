"""Seed script for demo data.

Running this script populates the database with three demo users, a
friendship, a pending friend request and cycle logs covering four bleeds,
which is enough for the statistics endpoint to return a result. It can
be executed with ``python -m seed.seed`` from the repository root.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from flask import Flask

from carecircle import create_app, db, get_services
from carecircle.models import FlowIntensity, Mood, Symptom

logger = logging.getLogger("carecircle.seed")

DEMO_PASSWORD = "password"
DEMO_USERS = ("alice", "bella", "cara")
# First day of each demo bleed; each bleed lasts four days.
BLEED_STARTS = (date(2024, 1, 1), date(2024, 1, 29), date(2024, 2, 27), date(2024, 3, 26))
BLEED_FLOW = (FlowIntensity.MEDIUM, FlowIntensity.HEAVY, FlowIntensity.MEDIUM, FlowIntensity.LIGHT)


def run_seeds(app: Flask | None = None) -> None:
    """Insert demo users, friends and logs into the database."""
    app = app or create_app()
    with app.app_context():
        db.create_all()
        services = get_services(app)
        alice, bella, cara = (
            services.authing.create(name, DEMO_PASSWORD) for name in DEMO_USERS
        )

        services.friending.send_request(alice.id, bella.id)
        services.friending.accept_request(alice.id, bella.id)
        services.friending.send_request(cara.id, alice.id)

        for start in BLEED_STARTS:
            for offset, flow in enumerate(BLEED_FLOW):
                services.cycle_log.create(
                    alice.id,
                    start + timedelta(days=offset),
                    symptoms=[Symptom.CRAMPS] if offset < 2 else [],
                    mood=Mood.TIRED if offset == 0 else None,
                    flow=flow,
                )
        services.cycle_log.create(
            alice.id,
            BLEED_STARTS[0] + timedelta(days=14),
            symptoms=[Symptom.BLOATING],
            mood=Mood.HAPPY,
            notes="Felt great on my run.",
        )
        logger.info("Seed data inserted successfully.")


if __name__ == "__main__":
    run_seeds()
