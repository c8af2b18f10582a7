"""Weighted driver selection.

Drivers with a positive weight each own a half-open slice of
``[0, total_weight)`` in registration order. A uniform integer draw picks
the slice, so selection probability is proportional to weight. When no
driver has a positive weight the choice is uniform over every driver.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from taskbalance.core.exceptions import InternalInvariantError

logger = logging.getLogger("taskbalance.balancer.selection")


class Weighted(Protocol):
    name: str
    weight: int


@dataclass(frozen=True)
class WeightInterval:
    """Slice ``[low, high)`` of the cumulative weight range owned by a driver."""
    driver: str
    low: int
    high: int

    def contains(self, number: int) -> bool:
        return self.low <= number < self.high


def build_intervals(drivers: Iterable[Weighted]) -> tuple[list[WeightInterval], int]:
    """Lay positive-weight drivers end to end. Returns (intervals, total)."""
    intervals: list[WeightInterval] = []
    base = 0
    for driver in drivers:
        if driver.weight > 0:
            high = base + driver.weight
            intervals.append(WeightInterval(driver.name, base, high))
            base = high
    return intervals, base


def select_by_weight(
    drivers: Iterable[Weighted],
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    """Pick a driver name proportionally to weight.

    Returns None only when ``drivers`` is empty.

    Raises:
        InternalInvariantError: If the draw lands in no interval although
            the total weight is positive.
    """
    rng = rng or random.Random()
    drivers = list(drivers)
    if not drivers:
        return None

    intervals, total = build_intervals(drivers)
    if total < 1:
        name = rng.choice([d.name for d in drivers])
        logger.debug("All weights are zero, picked '%s' uniformly", name)
        return name

    number = rng.randrange(total)
    for interval in intervals:
        if interval.contains(number):
            logger.debug("Weighted draw %d/%d -> '%s'", number, total, interval.driver)
            return interval.driver

    raise InternalInvariantError(
        f"Weighted draw {number} fell outside every interval (total weight {total})"
    )


def selection_probabilities(drivers: Iterable[Weighted]) -> dict[str, float]:
    """Probability of each driver being picked by select_by_weight()."""
    drivers = list(drivers)
    if not drivers:
        return {}
    intervals, total = build_intervals(drivers)
    if total < 1:
        share = 1.0 / len(drivers)
        return {d.name: share for d in drivers}
    probabilities = {d.name: 0.0 for d in drivers}
    for interval in intervals:
        probabilities[interval.driver] = (interval.high - interval.low) / total
    return probabilities
