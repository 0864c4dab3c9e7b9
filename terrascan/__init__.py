# terrascan: terrain line-of-sight analysis
from .analysis import LinkAnalyzer, LinkPair, ResultLog, star_pairs
from .cache import ElevationCache
from .elevation import ElevationProvider, OpenElevationClient, RasterElevationClient, ResolvedElevation
from .errors import ElevationFetchError, InvalidCoordinateError, TerraScanError
from .models import AnalysisResult, Coordinate, Settings, Status, TerrainSample
from .profile import build_profile
from .sampler import adaptive_interval, sample_path

__all__ = [
    "AnalysisResult",
    "Coordinate",
    "ElevationCache",
    "ElevationFetchError",
    "ElevationProvider",
    "InvalidCoordinateError",
    "LinkAnalyzer",
    "LinkPair",
    "OpenElevationClient",
    "RasterElevationClient",
    "ResolvedElevation",
    "ResultLog",
    "Settings",
    "Status",
    "TerraScanError",
    "TerrainSample",
    "adaptive_interval",
    "build_profile",
    "sample_path",
    "star_pairs",
]
