# region Imports
from __future__ import annotations
import dbm.dumb
import logging
import threading
from typing import MutableMapping, Optional, Tuple

from .config import CACHE_PRECISION, CACHE_PREFIX
# endregion

logger = logging.getLogger(__name__)

QuantKey = Tuple[str, str]


# region Quantization
def quantize(value: float, precision: int = CACHE_PRECISION) -> float:
    # + 0.0 folds -0.0 into 0.0 so both format as "0.00000"
    return round(float(value), precision) + 0.0


def quant_key(lat: float, lng: float, precision: int = CACHE_PRECISION) -> QuantKey:
    """Fixed-decimal (lat, lng) strings; points within ~1 m share a key."""
    return (f"{quantize(lat, precision):.{precision}f}", f"{quantize(lng, precision):.{precision}f}")
# endregion


# region Cache
class ElevationCache:
    """
    Read-through elevation store over any string-keyed mapping.

    Keys are "<prefix><lat>_<lng>" with both parts at fixed precision; values
    are the elevation in meters as a decimal string. Entries never expire.
    """

    def __init__(self, store: Optional[MutableMapping] = None, prefix: str = CACHE_PREFIX,
                 precision: int = CACHE_PRECISION):
        self._store = {} if store is None else store
        self.prefix = prefix
        self.precision = precision
        # Flask serves requests on several threads; dbm handles are not safe to share unguarded
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path, **kwargs) -> "ElevationCache":
        """Durable cache in a dbm.dumb file set, created if missing.

        dbm.dumb is used whatever the platform default is: it has no thread
        affinity (the sqlite3 backend does) and no exclusive file lock (gdbm does).
        """
        logger.debug("opening elevation cache at %s", path)
        return cls(dbm.dumb.open(str(path), "c"), **kwargs)

    def key_for(self, lat: float, lng: float) -> str:
        qlat, qlng = quant_key(lat, lng, self.precision)
        return f"{self.prefix}{qlat}_{qlng}"

    def get(self, coord) -> Optional[float]:
        key = self.key_for(coord.lat, coord.lng)
        with self._lock:
            try:
                raw = self._store[key]
            except KeyError:
                return None
        if isinstance(raw, bytes):
            raw = raw.decode("ascii")
        return float(raw)

    def put(self, coord, elevation: float) -> None:
        key = self.key_for(coord.lat, coord.lng)
        with self._lock:
            self._store[key] = repr(float(elevation))

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def close(self) -> None:
        close = getattr(self._store, "close", None)
        if close is not None:
            with self._lock:
                close()
# endregion
