from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from impulse.utils.text import normalize

# --- Reference Data Models (static JSON, immutable) ---

class CampusLocation(BaseModel):
    """A named campus place from campus_locations.json."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique slug, e.g. 'ecsw'.")
    name: str = Field(..., min_length=1, description="Canonical display name.")
    lat: float = Field(..., description="Latitude, building-level precision.")
    lng: float = Field(..., description="Longitude, building-level precision.")
    description: Optional[str] = Field(None, description="Free text shown in the location picker.")
    aliases: Tuple[str, ...] = Field(default_factory=tuple, description="Alternate strings used for matching only.")

    @field_validator("aliases")
    @classmethod
    def _dedupe_aliases(cls, aliases: Tuple[str, ...]) -> Tuple[str, ...]:
        seen = set()
        unique = []
        for alias in aliases:
            key = normalize(alias)
            if key and key not in seen:
                seen.add(key)
                unique.append(alias)
        return tuple(unique)


class Gazetteer(BaseModel):
    """Root model for campus_locations.json. Declaration order breaks ties during matching."""
    model_config = ConfigDict(frozen=True)

    locations: Tuple[CampusLocation, ...]

    @model_validator(mode="after")
    def _check_keys(self) -> "Gazetteer":
        seen_ids = set()
        for location in self.locations:
            if location.id in seen_ids:
                raise ValueError(f"Duplicate location id: {location.id!r}")
            seen_ids.add(location.id)

        # An alias may never point at a different location than the name it shadows
        owners: Dict[str, str] = {}
        for location in self.locations:
            owners.setdefault(normalize(location.name), location.id)
        for location in self.locations:
            for alias in location.aliases:
                key = normalize(alias)
                owner = owners.setdefault(key, location.id)
                if owner != location.id:
                    raise ValueError(
                        f"Alias {alias!r} of {location.id!r} collides with location {owner!r}"
                    )
        return self


class PointClassification(BaseModel):
    """One lobby-size band and the points a meetup in that band is worth."""
    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Tier tag, e.g. 'medium'.")
    min_size: int = Field(..., ge=1, description="Inclusive lower bound on lobby size.")
    max_size: int = Field(..., ge=1, description="Inclusive upper bound on lobby size.")
    base_points: int = Field(..., ge=0, description="Points awarded for attending.")
    label: str = Field(..., description="Display label.")
    color: str = Field(..., description="Display color.")

    @model_validator(mode="after")
    def _check_bounds(self) -> "PointClassification":
        if self.max_size < self.min_size:
            raise ValueError(f"Band {self.type!r} has max_size < min_size")
        return self

    def contains(self, lobby_size: int) -> bool:
        return self.min_size <= lobby_size <= self.max_size


class PointClassificationTable(BaseModel):
    """Root model for point_classifications.json."""
    model_config = ConfigDict(frozen=True)

    classifications: Tuple[PointClassification, ...]

    @model_validator(mode="after")
    def _check_partition(self) -> "PointClassificationTable":
        if not self.classifications:
            raise ValueError("Point classification table is empty")
        if self.classifications[0].min_size != 1:
            raise ValueError("First band must start at lobby size 1")
        for prev, band in zip(self.classifications, self.classifications[1:]):
            if band.min_size != prev.max_size + 1:
                raise ValueError(
                    f"Bands {prev.type!r} and {band.type!r} are not contiguous "
                    f"({prev.max_size} -> {band.min_size})"
                )
        return self


# --- Matching Results ---

class MatchRule(str, Enum):
    LIBRARY = "LIBRARY"
    EXACT_NAME = "EXACT_NAME"
    EXACT_ALIAS = "EXACT_ALIAS"
    CANONICAL_KEY = "CANONICAL_KEY"
    CONTAINMENT = "CONTAINMENT"
    WORD_PREFIX = "WORD_PREFIX"
    ENGINEERING = "ENGINEERING"


class MatchResult(BaseModel):
    """Outcome of resolving one query. `location` is None when unresolved."""
    model_config = ConfigDict(frozen=True)

    query: str
    location: Optional[CampusLocation] = None
    rule: Optional[MatchRule] = None

    @computed_field
    @property
    def resolved(self) -> bool:
        return self.location is not None


class DiscrepancyKind(str, Enum):
    UNRESOLVED = "UNRESOLVED"
    DISTANCE = "DISTANCE"


class CoordinateDiscrepancy(BaseModel):
    """A legacy table entry that needs a human to look at it."""
    kind: DiscrepancyKind
    legacy_name: str
    legacy_lat: float
    legacy_lng: float
    location_id: Optional[str] = None
    canonical_lat: Optional[float] = None
    canonical_lng: Optional[float] = None
    distance_m: Optional[float] = None


# --- Leveling ---

class UserLevelState(BaseModel):
    """Caller-owned progress of one user. Level is derived, never stored."""
    model_config = ConfigDict(frozen=True)

    points: int = Field(0, ge=0, description="Accumulated points, only ever increases.")
    attended_meetups: Tuple[str, ...] = Field(default_factory=tuple)


class LevelProgress(BaseModel):
    points: int
    level: int
    progress_percent: int = Field(..., ge=0, le=100)
    next_level: int
    points_to_next_level: int


# --- API Request/Response Models ---

class MeetupAnnotationRequest(BaseModel):
    """Request model for /api/meetups/annotate."""
    location: str = Field(..., description="Free-text location typed by the organizer.")
    lobby_size: int = Field(..., description="Maximum participants.")


class MeetupAnnotation(BaseModel):
    """Coordinates and point tier attached to a new meetup."""
    location: CampusLocation
    used_default: bool = Field(..., description="True when the text did not resolve and the default location was used.")
    rule: Optional[MatchRule] = None
    lat: float
    lng: float
    classification: PointClassification


class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="A machine-readable error code.")
    detail: str = Field(..., description="A human-readable explanation.")
