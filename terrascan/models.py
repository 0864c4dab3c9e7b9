# models.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
import math
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidCoordinateError


# region Coordinate
@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float
    alt: Optional[float] = None   # meters, filled after elevation lookup
    name: Optional[str] = None

    def validate(self) -> "Coordinate":
        """Reject NaN / infinite / out-of-range lat-lng. Returns self for chaining."""
        for label, value, limit in (("latitude", self.lat, 90.0), ("longitude", self.lng, 180.0)):
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidCoordinateError(f"{label} must be a number, got {value!r}", self)
            if not math.isfinite(value):
                raise InvalidCoordinateError(f"{label} is not finite: {value!r}", self)
            if abs(value) > limit:
                raise InvalidCoordinateError(f"{label} {value} outside [-{limit:g}, {limit:g}]", self)
        return self

    def with_alt(self, alt: float) -> "Coordinate":
        return replace(self, alt=float(alt))

    @classmethod
    def from_dict(cls, data: Any) -> "Coordinate":
        """Parse {"lat", "lng", "alt"?, "name"?}; "lon"/"latitude"/"longitude" are accepted too."""
        if not isinstance(data, dict):
            raise InvalidCoordinateError(f"coordinate must be an object, got {type(data).__name__}")
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("lon", data.get("longitude")))
        if lat is None or lng is None:
            raise InvalidCoordinateError("coordinate requires lat and lng")
        # float(True) is 1.0
        if isinstance(lat, bool) or isinstance(lng, bool):
            raise InvalidCoordinateError(f"non-numeric coordinate: lat={lat!r} lng={lng!r}")
        try:
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError):
            raise InvalidCoordinateError(f"non-numeric coordinate: lat={lat!r} lng={lng!r}") from None
        alt = data.get("alt")
        name = data.get("name")
        coord = cls(lat, lng, None if alt is None else float(alt), None if name is None else str(name))
        return coord.validate()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"lat": self.lat, "lng": self.lng}
        if self.alt is not None:
            out["alt"] = self.alt
        if self.name is not None:
            out["name"] = self.name
        return out
# endregion


# region Profile Sample
@dataclass(frozen=True)
class TerrainSample:
    lat: float
    lng: float
    alt: float                  # ground elevation (m)
    distance_from_start: float  # m
    los_height: float           # m, curvature-corrected
    obstructed: bool

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng, self.alt)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "alt": self.alt,
            "distance": self.distance_from_start,
            "losHeight": self.los_height,
            "isObstructed": self.obstructed,
        }
# endregion


# region Analysis Result
class Status(str, Enum):
    CLEAR = "Clear"
    BLOCKED = "Blocked"
    ERROR = "Error"


@dataclass(frozen=True)
class Settings:
    k_factor: float
    earth_radius: float

    def to_dict(self) -> Dict[str, float]:
        return {"kFactor": self.k_factor, "earthRadius": self.earth_radius}


@dataclass(frozen=True)
class AnalysisResult:
    id: str
    source: Coordinate
    target: Coordinate
    status: Status
    settings: Settings
    total_distance: float = 0.0
    max_obstruction: float = 0.0
    obstruction_point: Optional[Coordinate] = None
    profile: Tuple[TerrainSample, ...] = field(default_factory=tuple)
    error_detail: Optional[str] = None

    @property
    def source_label(self) -> Optional[str]:
        return self.source.name

    @property
    def target_label(self) -> Optional[str]:
        return self.target.name

    @classmethod
    def failed(cls, id: str, source: Coordinate, target: Coordinate,
               settings: Settings, detail: str) -> "AnalysisResult":
        """Error result: endpoints as given, no geometry."""
        return cls(
            id=id,
            source=source,
            target=target,
            status=Status.ERROR,
            settings=settings,
            error_detail=detail or "Elevation fetch failure",
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "nameA": self.source_label,
            "nameB": self.target_label,
            "pointA": self.source.to_dict(),
            "pointB": self.target.to_dict(),
            "distance": self.total_distance,
            "status": self.status.value,
            "maxObstructionHeight": self.max_obstruction,
            "maxObstructionPoint": None if self.obstruction_point is None else self.obstruction_point.to_dict(),
            "profile": [s.to_dict() for s in self.profile],
            "settings": self.settings.to_dict(),
        }
        if self.error_detail is not None:
            out["errorMessage"] = self.error_detail
        return out
# endregion
