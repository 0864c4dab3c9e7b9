# region Imports
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import OBSTRUCTION_TOLERANCE_M
from .models import Coordinate, TerrainSample
# endregion


@dataclass(frozen=True)
class Profile:
    samples: Tuple[TerrainSample, ...]
    max_obstruction: float
    obstruction_point: Optional[Coordinate]

    @property
    def blocked(self) -> bool:
        return self.obstruction_point is not None


# region Line-of-Sight Model
def curvature_correction(d, total_distance: float, k_factor: float, earth_radius: float):
    """Drop (m) of the effective-Earth chord below the straight line at distance d."""
    return (d * (total_distance - d)) / (2.0 * k_factor * earth_radius)


def los_heights(distances, total_distance: float, start_alt: float, end_alt: float,
                k_factor: float, earth_radius: float) -> np.ndarray:
    d = np.asarray(distances, dtype=np.float64)
    if total_distance > 0:
        frac = d / total_distance
    else:
        frac = np.zeros_like(d)
    flat = start_alt + (end_alt - start_alt) * frac
    return flat - curvature_correction(d, total_distance, k_factor, earth_radius)
# endregion


# region Profile Construction
def build_profile(
    samples: Sequence[Coordinate],
    elevations: Sequence[float],
    distances: Sequence[float],
    k_factor: float,
    earth_radius: float,
) -> Profile:
    """
    Pair each sample with its ground elevation and LoS height.

    A sample is obstructed when terrain rises more than OBSTRUCTION_TOLERANCE_M
    above the LoS. The reported obstruction is the first sample reaching the
    largest excess; it stays at 0 / None when nothing is obstructed.
    """
    if not (len(samples) == len(elevations) == len(distances)):
        raise ValueError(
            f"length mismatch: {len(samples)} samples, {len(elevations)} elevations, "
            f"{len(distances)} distances"
        )
    if len(samples) < 2:
        raise ValueError("a profile needs at least the two endpoints")

    ground = np.asarray(elevations, dtype=np.float64)
    d = np.asarray(distances, dtype=np.float64)
    total = float(d[-1])

    los = los_heights(d, total, float(ground[0]), float(ground[-1]), k_factor, earth_radius)
    excess = ground - los
    obstructed = excess > OBSTRUCTION_TOLERANCE_M

    profile = tuple(
        TerrainSample(
            lat=c.lat,
            lng=c.lng,
            alt=float(ground[i]),
            distance_from_start=float(d[i]),
            los_height=float(los[i]),
            obstructed=bool(obstructed[i]),
        )
        for i, c in enumerate(samples)
    )

    if not obstructed.any():
        return Profile(profile, 0.0, None)

    idx = int(np.argmax(np.where(obstructed, excess, -np.inf)))
    worst = samples[idx]
    return Profile(
        profile,
        float(excess[idx]),
        Coordinate(worst.lat, worst.lng, float(ground[idx]), worst.name),
    )
# endregion
