# errors.py
from __future__ import annotations


class TerraScanError(Exception):
    """Base class for analysis failures."""


class ElevationFetchError(TerraScanError, RuntimeError):
    """Upstream elevation lookup failed or came back empty."""


class InvalidCoordinateError(TerraScanError, ValueError):
    def __init__(self, message: str, coordinate=None):
        super().__init__(message)
        self.coordinate = coordinate
