"""Cycle length and regularity statistics.

Statistics are derived from the days a user logged any menstrual flow.
A flow day starts a new cycle when it is the first flow day on record
or when at least two flow-free days separate it from the previous flow
day; a single missed day inside a bleed does not split it. A cycle's
length is the number of days between two consecutive starts.

The mean and the (population) standard deviation only mean something
with at least two complete cycles, i.e. three cycle starts. With less
data ``InsufficientDataError`` is raised instead of returning a
misleading number. The next start is predicted as the last start plus
the mean cycle length rounded to whole days, with halves rounded up.

Nothing here writes to the log and nothing is cached; every call reads
the current flow days and recomputes.
"""
from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from ..errors import InsufficientDataError
from .cycle_log import CycleLog

# A gap of more than one flow-free day separates two bleeds.
MAX_DAYS_WITHIN_BLEED = 2
MIN_COMPLETE_CYCLES = 2
IRREGULAR_STD_DAYS = 7.0


@dataclass
class CycleStats:
    average_cycle_length_days: float
    cycle_length_std_deviation: float
    number_of_complete_cycles: int
    cycle_lengths: list[int] = field(default_factory=list)
    is_irregular: bool = False
    average_period_length_days: float | None = None
    last_cycle_start: date | None = None
    predicted_next_start: date | None = None


def _bleeds(flow_days: Iterable[date]) -> list[list[date]]:
    """Group sorted, de-duplicated flow days into bleed episodes."""
    episodes: list[list[date]] = []
    for day in sorted(set(flow_days)):
        if episodes and (day - episodes[-1][-1]).days <= MAX_DAYS_WITHIN_BLEED:
            episodes[-1].append(day)
        else:
            episodes.append([day])
    return episodes


def find_cycle_starts(flow_days: Iterable[date]) -> list[date]:
    return [episode[0] for episode in _bleeds(flow_days)]


def find_period_lengths(flow_days: Iterable[date]) -> list[int]:
    """Length in days of each bleed, first to last flow day inclusive."""
    return [(episode[-1] - episode[0]).days + 1 for episode in _bleeds(flow_days)]


def compute_cycle_stats(flow_days: Iterable[date]) -> CycleStats:
    episodes = _bleeds(flow_days)
    starts = [episode[0] for episode in episodes]
    lengths = [(later - earlier).days for earlier, later in zip(starts, starts[1:])]

    if len(lengths) < MIN_COMPLETE_CYCLES:
        raise InsufficientDataError(
            f"At least {MIN_COMPLETE_CYCLES} complete cycles are needed for statistics; "
            f"found {len(lengths)}.",
            complete_cycles=len(lengths),
        )

    mean_length = statistics.mean(lengths)
    std_length = statistics.pstdev(lengths)
    # The last bleed may still be in progress, so only completed ones count.
    period_lengths = [(episode[-1] - episode[0]).days + 1 for episode in episodes[:-1]]

    return CycleStats(
        average_cycle_length_days=round(mean_length, 1),
        cycle_length_std_deviation=round(std_length, 1),
        number_of_complete_cycles=len(lengths),
        cycle_lengths=lengths,
        is_irregular=std_length > IRREGULAR_STD_DAYS,
        average_period_length_days=round(statistics.mean(period_lengths), 1),
        last_cycle_start=starts[-1],
        predicted_next_start=starts[-1] + timedelta(days=int(mean_length + 0.5)),
    )


class CycleAnalytics:
    """Computes ``CycleStats`` for a user from their ``CycleLog``."""

    def __init__(self, cycle_log: CycleLog) -> None:
        self._cycle_log = cycle_log

    def calculate_cycle_stats(self, owner_id: int) -> CycleStats:
        return compute_cycle_stats(self._cycle_log.get_flow_days(owner_id))
