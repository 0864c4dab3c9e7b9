# region Imports
from __future__ import annotations
import asyncio
from dataclasses import dataclass
import itertools
import logging
import time
from typing import Callable, Iterable, List, Optional, Sequence

from .config import (
    BATCH_GROUP_SIZE,
    DEFAULT_EARTH_RADIUS_M,
    DEFAULT_K_FACTOR,
    MAX_RETAINED_RESULTS,
    PAIR_TIMEOUT_S,
)
from .elevation import ElevationProvider
from .errors import ElevationFetchError
from .models import AnalysisResult, Coordinate, Settings, Status
from .profile import build_profile
from .sampler import sample_path
# endregion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkPair:
    source: Coordinate
    target: Coordinate
    id: Optional[str] = None


def star_pairs(source: Coordinate, targets: Iterable[Coordinate]) -> List[LinkPair]:
    """One fixed source against every target."""
    return [LinkPair(source, t) for t in targets]


# region Orchestrator
class LinkAnalyzer:
    """Runs sampler -> elevation -> profile for each (source, target) pair."""

    def __init__(
        self,
        provider: ElevationProvider,
        *,
        group_size: int = BATCH_GROUP_SIZE,
        pair_timeout: Optional[float] = PAIR_TIMEOUT_S,
    ):
        if group_size < 1:
            raise ValueError("group_size must be >= 1")
        self.provider = provider
        self.group_size = group_size
        self.pair_timeout = pair_timeout
        self._seq = itertools.count()

    def new_id(self, prefix: str = "TERRA") -> str:
        """Run-unique id: epoch ms plus a per-analyzer sequence number."""
        return f"{prefix}-{int(time.time() * 1000)}-{next(self._seq)}"

    async def run(self, id: str, source: Coordinate, target: Coordinate,
                  k_factor: float = DEFAULT_K_FACTOR,
                  earth_radius: float = DEFAULT_EARTH_RADIUS_M) -> AnalysisResult:
        """Single pair; raises on any failure."""
        path = sample_path(source, target)

        points = await self.provider.resolve_points(path.samples)
        if len(points) != len(path.samples):
            raise ElevationFetchError(
                f"expected {len(path.samples)} elevations, got {len(points)}"
            )
        unresolved = sum(1 for p in points if not p.resolved)
        if unresolved:
            logger.warning("%s: %d of %d samples had no upstream elevation, using 0 m",
                           id, unresolved, len(points))
        elevations = [p.elevation for p in points]

        prof = build_profile(path.samples, elevations, path.distances, k_factor, earth_radius)
        return AnalysisResult(
            id=id,
            source=source.with_alt(elevations[0]),
            target=target.with_alt(elevations[-1]),
            status=Status.BLOCKED if prof.blocked else Status.CLEAR,
            settings=Settings(k_factor, earth_radius),
            total_distance=path.total_distance,
            max_obstruction=prof.max_obstruction,
            obstruction_point=prof.obstruction_point,
            profile=prof.samples,
        )

    async def analyze(self, id: str, source: Coordinate, target: Coordinate,
                      k_factor: float = DEFAULT_K_FACTOR,
                      earth_radius: float = DEFAULT_EARTH_RADIUS_M,
                      error_id: Optional[str] = None) -> AnalysisResult:
        """Single pair; any failure comes back as an Error result instead of raising."""
        try:
            coro = self.run(id, source, target, k_factor, earth_radius)
            if self.pair_timeout is not None:
                return await asyncio.wait_for(coro, self.pair_timeout)
            return await coro
        except asyncio.TimeoutError:
            detail = f"Analysis timed out after {self.pair_timeout:g}s"
        except Exception as e:  # per-pair isolation boundary
            detail = str(e) or type(e).__name__
        logger.warning("link %s failed: %s", id, detail)
        return AnalysisResult.failed(error_id or id, source, target,
                                     Settings(k_factor, earth_radius), detail)

    async def analyze_batch(
        self,
        pairs: Sequence[LinkPair],
        k_factor: float = DEFAULT_K_FACTOR,
        earth_radius: float = DEFAULT_EARTH_RADIUS_M,
        on_group: Optional[Callable[[List[AnalysisResult]], None]] = None,
    ) -> List[AnalysisResult]:
        """
        Analyze pairs in input order, group_size at a time.

        Groups run one after another; pairs inside a group run concurrently.
        on_group receives each group's results before the next group starts.
        """
        stamp = int(time.time() * 1000)
        results: List[AnalysisResult] = []
        for start in range(0, len(pairs), self.group_size):
            group = pairs[start:start + self.group_size]
            seqs = [next(self._seq) for _ in group]
            tasks = [
                self.analyze(
                    p.id or f"TERRA-{stamp}-{n}",
                    p.source,
                    p.target,
                    k_factor,
                    earth_radius,
                    error_id=p.id or f"TERRA-ERR-{stamp}-{n}",
                )
                for p, n in zip(group, seqs)
            ]
            done = await asyncio.gather(*tasks)
            # timed-out pairs may have left lookups running; admit no new group until they end
            await self.provider.drain()
            results.extend(done)
            logger.info("batch progress: %d/%d links", len(results), len(pairs))
            if on_group is not None:
                on_group(list(done))
        return results
# endregion


# region Retained Results
class ResultLog:
    """Newest-first list of results kept for display until cleared."""

    def __init__(self, limit: int = MAX_RETAINED_RESULTS):
        self.limit = limit
        self._items: List[AnalysisResult] = []

    def add(self, results: Sequence[AnalysisResult]) -> None:
        self._items = (list(results) + self._items)[: self.limit]

    def clear(self) -> None:
        self._items = []

    def successful(self) -> List[AnalysisResult]:
        return [r for r in self._items if r.status is not Status.ERROR]

    def __iter__(self):
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
# endregion
