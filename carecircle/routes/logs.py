"""
Cycle log and statistics routes.

Every route that changes or removes an entry first checks that the
caller wrote it.
"""

from __future__ import annotations

from ..errors import NotFoundError
from ..schemas import (
    CycleStatsSchema,
    LogCreateSchema,
    LogDateQuerySchema,
    LogEntrySchema,
    LogIdSchema,
    LogRangeQuerySchema,
    LogUpdateSchema,
)
from . import Route


def get_cycle_stats(services, user_id) -> dict:
    stats = services.cycle_analytics.calculate_cycle_stats(user_id)
    return {
        "msg": "Successfully retrieved cycle statistics!",
        "stats": CycleStatsSchema().dump(stats),
    }


def create_log(services, user_id, log_date, symptoms, mood, flow, notes) -> dict:
    entry = services.cycle_log.create(user_id, log_date, symptoms, mood, flow, notes)
    return {"msg": "Log created successfully!", "log": LogEntrySchema().dump(entry)}


def get_logs(services, user_id, start, end) -> list:
    return LogEntrySchema(many=True).dump(services.cycle_log.get_entries(user_id, start, end))


def get_log(services, user_id, log_date) -> dict:
    entry = services.cycle_log.get_by_date(user_id, log_date)
    if entry is None:
        raise NotFoundError(f"No log found for {log_date.isoformat()}.")
    return LogEntrySchema().dump(entry)


def update_log(services, user_id, id, symptoms, mood, flow, notes) -> dict:
    services.cycle_log.assert_author_is_user(id, user_id)
    entry = services.cycle_log.update(id, symptoms, mood, flow, notes)
    return {"msg": "Log updated successfully!", "log": LogEntrySchema().dump(entry)}


def delete_log(services, user_id, id) -> dict:
    services.cycle_log.assert_author_is_user(id, user_id)
    services.cycle_log.delete(id)
    return {"msg": "Log deleted successfully!"}


ROUTES = [
    Route("GET", "/cycles/stats", get_cycle_stats),
    Route("POST", "/logs", create_log, LogCreateSchema, status=201),
    Route("GET", "/logs", get_logs, LogRangeQuerySchema),
    Route("GET", "/log", get_log, LogDateQuerySchema),
    Route("PUT", "/logs/<int:id>", update_log, LogUpdateSchema),
    Route("DELETE", "/logs/<int:id>", delete_log, LogIdSchema),
]
