# region Imports
from __future__ import annotations
import asyncio
from dataclasses import dataclass
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Set

import numpy as np
import rasterio
import requests
from rasterio.crs import CRS
from rasterio.errors import RasterioError
from rasterio.warp import transform as warp_transform

from .cache import ElevationCache, QuantKey, quant_key
from .config import ELEVATION_API_URL, ELEVATION_TIMEOUT_S
from .errors import ElevationFetchError
from .models import Coordinate
# endregion

logger = logging.getLogger(__name__)

Location = Dict[str, float]   # {"latitude": .., "longitude": ..}


# region Upstream Clients
class OpenElevationClient:
    """POST /lookup client for Open-Elevation compatible services."""

    def __init__(self, url: str = ELEVATION_API_URL, timeout: float = ELEVATION_TIMEOUT_S):
        self.url = url
        self.timeout = timeout

    def lookup(self, locations: List[Location]) -> List[Dict[str, Any]]:
        try:
            resp = requests.post(
                self.url,
                json={"locations": locations},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ElevationFetchError(f"Elevation API request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise ElevationFetchError(f"Elevation API status {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ElevationFetchError("Elevation API returned a non-JSON body") from e

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ElevationFetchError("Elevation API response has no 'results'")
        return results


class RasterElevationClient:
    """Samples a GeoTIFF / COG. Nodata and out-of-extent points are left out of the reply."""

    def __init__(self, path: str):
        self.path = path

    def lookup(self, locations: List[Location]) -> List[Dict[str, Any]]:
        if not locations:
            return []
        lons = [float(p["longitude"]) for p in locations]
        lats = [float(p["latitude"]) for p in locations]
        try:
            with rasterio.open(self.path) as ds:
                xs, ys = lons, lats
                if ds.crs and ds.crs != CRS.from_epsg(4326):
                    xs, ys = warp_transform(CRS.from_epsg(4326), ds.crs, lons, lats)
                b = ds.bounds
                inside = [b.left <= x <= b.right and b.bottom <= y <= b.top for x, y in zip(xs, ys)]
                pts = [(x, y) for x, y, ok in zip(xs, ys, inside) if ok]
                values = [v[0] for v in ds.sample(pts, indexes=1, masked=True)] if pts else []
        except RasterioError as e:
            raise ElevationFetchError(f"DEM read failed for {self.path}: {e}") from e

        out = []
        it = iter(values)
        for lon, lat, ok in zip(lons, lats, inside):
            if not ok:
                continue
            v = next(it)
            if np.ma.is_masked(v) or not np.isfinite(float(v)):
                continue
            out.append({"latitude": lat, "longitude": lon, "elevation": float(v)})
        return out
# endregion


# region Provider
@dataclass(frozen=True)
class ResolvedElevation:
    elevation: float
    resolved: bool   # False: upstream had no value for this key, elevation is the 0 m fallback


class ElevationProvider:
    """
    Resolves sample coordinates to elevations.

    Cache hits are answered locally. Misses are deduplicated on their quantized
    key and sent upstream in one request; every returned value is written to
    the cache and fanned back out to all inputs sharing its key.
    """

    FALLBACK_ELEVATION = 0.0

    def __init__(self, client, cache: Optional[ElevationCache] = None):
        self.client = client
        self.cache = cache if cache is not None else ElevationCache()
        # lookups still running in worker threads, including ones whose caller gave up
        self._pending: Set[asyncio.Future] = set()
        self._pending_lock = threading.Lock()  # one event loop per Flask worker thread

    async def resolve(self, coords: Sequence[Coordinate]) -> List[float]:
        return [r.elevation for r in await self.resolve_points(coords)]

    async def resolve_points(self, coords: Sequence[Coordinate]) -> List[ResolvedElevation]:
        if not coords:
            return []
        precision = self.cache.precision
        out: List[Optional[ResolvedElevation]] = [None] * len(coords)
        misses: Dict[QuantKey, List[int]] = {}

        for i, c in enumerate(coords):
            hit = self.cache.get(c)
            if hit is not None:
                out[i] = ResolvedElevation(hit, True)
            else:
                misses.setdefault(quant_key(c.lat, c.lng, precision), []).append(i)

        logger.debug("elevation lookup: %d points, %d cache hits, %d distinct misses",
                     len(coords), len(coords) - sum(map(len, misses.values())), len(misses))
        if misses:
            fetched = await self._fetch(list(misses))
            for key, idxs in misses.items():
                elev = fetched.get(key)
                r = (ResolvedElevation(self.FALLBACK_ELEVATION, False) if elev is None
                     else ResolvedElevation(elev, True))
                for i in idxs:
                    out[i] = r
        return out

    async def _fetch(self, keys: List[QuantKey]) -> Dict[QuantKey, float]:
        precision = self.cache.precision
        locations = [{"latitude": float(lat), "longitude": float(lng)} for lat, lng in keys]
        logger.info("requesting %d elevations upstream", len(locations))
        fut = asyncio.get_running_loop().run_in_executor(None, self.client.lookup, locations)
        with self._pending_lock:
            self._pending.add(fut)
        fut.add_done_callback(self._forget)
        # shield: a cancelled caller leaves the lookup tracked until its thread ends
        results = await asyncio.shield(fut)
        if not results:
            raise ElevationFetchError("No elevation data returned from provider.")

        fetched: Dict[QuantKey, float] = {}
        for entry in results:
            try:
                key = quant_key(entry["latitude"], entry["longitude"], precision)
                elev = float(entry["elevation"])
            except (KeyError, TypeError, ValueError):
                logger.warning("ignoring malformed elevation entry %r", entry)
                continue
            fetched[key] = elev
            self.cache.put(Coordinate(float(key[0]), float(key[1])), elev)
        if not fetched:
            raise ElevationFetchError(
                f"Elevation provider returned {len(results)} entries but none carried an elevation"
            )
        return fetched

    def _forget(self, fut) -> None:
        with self._pending_lock:
            self._pending.discard(fut)

    async def drain(self) -> None:
        """Wait until no upstream lookup started on this loop is still running."""
        loop = asyncio.get_running_loop()
        with self._pending_lock:
            pending = [f for f in self._pending if f.get_loop() is loop]
        if pending:
            logger.debug("waiting for %d abandoned elevation lookups", len(pending))
            await asyncio.wait(pending)
# endregion
