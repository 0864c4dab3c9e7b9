# config.py
import os


def _env_str(name: str, default=None):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value


def _env_float(name: str, default):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Upstream elevation source (HTTP lookup, or a GeoTIFF/COG when TERRASCAN_DEM_PATH is set)
ELEVATION_API_URL = _env_str("TERRASCAN_ELEVATION_URL", "https://api.open-elevation.com/api/v1/lookup")
ELEVATION_TIMEOUT_S = _env_float("TERRASCAN_ELEVATION_TIMEOUT", 30.0)
ELEVATION_RASTER = _env_str("TERRASCAN_DEM_PATH")

# Elevation cache (dbm file when a path is given, in-memory otherwise)
CACHE_PATH = _env_str("TERRASCAN_CACHE_PATH")
CACHE_PREFIX = "terrascan_elev_v2_"
CACHE_PRECISION = 5  # ~1.1 m at the equator

# Batch admission control
BATCH_GROUP_SIZE = max(1, _env_int("TERRASCAN_GROUP_SIZE", 3))
PAIR_TIMEOUT_S = _env_float("TERRASCAN_PAIR_TIMEOUT", None)

# Propagation model
DEFAULT_K_FACTOR = 1.333
DEFAULT_EARTH_RADIUS_M = 6_371_000.0
GEODESIC_RADIUS_M = 6_378_137.0  # sphere used for path length and sample placement
OBSTRUCTION_TOLERANCE_M = 0.05

# Sampling
MIN_SAMPLES = 2
MAX_SAMPLES = 400

MAX_RETAINED_RESULTS = 500
