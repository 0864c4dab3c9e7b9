# region Imports
import math
from typing import Tuple

import numpy as np
from pyproj import Geod

from .config import GEODESIC_RADIUS_M
# endregion

# Spherical Earth shared by distance and sample placement
SPHERE = Geod(a=GEODESIC_RADIUS_M, b=GEODESIC_RADIUS_M)
_POLE_LIMIT_DEG = 89.9999999


# region Distance and Bearing
def surface_distance_m(lat1, lng1, lat2, lng2) -> float:
    """Great-circle distance (m) on the shared sphere."""
    _, _, dist = SPHERE.inv(lng1, lat1, lng2, lat2)
    return float(dist)


def rhumb_bearing_deg(lat1, lng1, lat2, lng2) -> float:
    """Constant compass bearing of the loxodrome from point 1 to point 2, in [0, 360)."""
    # keep tan() finite and non-zero at the poles
    phi1 = math.radians(max(-_POLE_LIMIT_DEG, min(_POLE_LIMIT_DEG, lat1)))
    phi2 = math.radians(max(-_POLE_LIMIT_DEG, min(_POLE_LIMIT_DEG, lat2)))
    d_lng = math.radians(lng2) - math.radians(lng1)
    d_psi = math.log(
        math.tan(phi2 / 2.0 + math.pi / 4.0) / math.tan(phi1 / 2.0 + math.pi / 4.0)
    )
    # take the short way across the antimeridian
    if abs(d_lng) > math.pi:
        d_lng = -(2.0 * math.pi - d_lng) if d_lng > 0 else 2.0 * math.pi + d_lng
    return (math.degrees(math.atan2(d_lng, d_psi)) + 360.0) % 360.0
# endregion


# region Projection
def destination_points(lat, lng, bearing_deg: float, distances_m) -> Tuple[np.ndarray, np.ndarray]:
    """Project one origin along a fixed bearing to every distance; returns (lats, lngs)."""
    d = np.asarray(distances_m, dtype=np.float64)
    lngs, lats, _ = SPHERE.fwd(
        np.full(d.shape, float(lng)),
        np.full(d.shape, float(lat)),
        np.full(d.shape, float(bearing_deg)),
        d,
    )
    return np.asarray(lats, dtype=np.float64), np.asarray(lngs, dtype=np.float64)
# endregion
