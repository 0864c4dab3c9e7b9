# region Imports
from __future__ import annotations
from dataclasses import dataclass
import math
from typing import Tuple

from .config import MAX_SAMPLES, MIN_SAMPLES
from .geometry import destination_points, rhumb_bearing_deg, surface_distance_m
from .models import Coordinate
# endregion


@dataclass(frozen=True)
class SampledPath:
    total_distance: float
    bearing: float
    interval: float
    samples: Tuple[Coordinate, ...]
    distances: Tuple[float, ...]   # distance of each sample from the source (m)

    @property
    def intervals(self) -> int:
        return len(self.samples) - 1


# region Adaptive Spacing
def adaptive_interval(distance_m: float) -> float:
    """Sample spacing (m) for a path of the given length."""
    if distance_m < 5_000:
        return 30.0     # short links
    if distance_m < 20_000:
        return 100.0
    if distance_m < 100_000:
        return 500.0    # regional
    return 1_000.0


def sample_count(distance_m: float) -> int:
    n = math.ceil(distance_m / adaptive_interval(distance_m))
    return max(MIN_SAMPLES, min(n, MAX_SAMPLES))
# endregion


# region Path Sampling
def sample_path(source: Coordinate, target: Coordinate) -> SampledPath:
    """
    Evenly spaced points from source to target, both endpoints included.

    Every intermediate point is projected from the source along one rhumb
    bearing computed up front; the bearing is not refreshed per step.
    A zero-length path yields n+1 copies of the source position.
    """
    source.validate()
    target.validate()

    total = surface_distance_m(source.lat, source.lng, target.lat, target.lng)
    bearing = rhumb_bearing_deg(source.lat, source.lng, target.lat, target.lng)
    n = sample_count(total)

    distances = [(i / n) * total for i in range(n + 1)]
    lats, lngs = destination_points(source.lat, source.lng, bearing, distances)

    samples = [Coordinate(float(la), float(lo)) for la, lo in zip(lats, lngs)]
    # endpoints are the caller's positions, not re-projected ones
    samples[0] = Coordinate(source.lat, source.lng)
    samples[-1] = Coordinate(target.lat, target.lng)

    return SampledPath(
        total_distance=total,
        bearing=bearing,
        interval=adaptive_interval(total),
        samples=tuple(samples),
        distances=tuple(distances),
    )
# endregion
