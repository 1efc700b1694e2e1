# impulse/services/gazetteer_service.py
# Loading, review and consolidation of campus location reference data.

import json
import os
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError

from impulse.core.config import settings, is_inside_campus_bbox
from impulse.models.dto import (
    CampusLocation,
    CoordinateDiscrepancy,
    DiscrepancyKind,
    Gazetteer,
)
from impulse.utils.haversine import distance_m
from impulse.utils.text import decimal_places, normalize

if TYPE_CHECKING:
    from impulse.services.location_resolver import LocationResolver

log = structlog.get_logger(__name__)

DEFAULT_GAZETTEER_PATH = os.path.join(
    os.path.dirname(__file__), "..", "static", "campus_locations.json"
)


def load_gazetteer(path: Optional[str] = None) -> Gazetteer:
    """Load and validate the campus gazetteer.

    `path` falls back to `settings.GAZETTEER_PATH` and then to the packaged
    JSON file. Any problem with the file is logged and re-raised: a process
    without reference data must not start.
    """
    file_path = path or settings.GAZETTEER_PATH or DEFAULT_GAZETTEER_PATH
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        gazetteer = Gazetteer.model_validate(data)
    except FileNotFoundError:
        log.error("gazetteer_not_found", path=file_path)
        raise
    except (json.JSONDecodeError, ValidationError) as e:
        log.error("gazetteer_invalid", path=file_path, error=str(e))
        raise

    review_gazetteer(gazetteer)
    log.info("gazetteer_loaded", path=file_path, locations=len(gazetteer.locations))
    return gazetteer


def coordinate_precision(lat: float, lng: float) -> int:
    """Decimal digits of the less precise of the two coordinates."""
    return min(decimal_places(lat), decimal_places(lng))


def review_gazetteer(gazetteer: Gazetteer) -> List[Dict[str, str]]:
    """
    Flag entries that load fine but need a human to look at them.

    Returns one dict per issue (`location_id`, `issue`). Nothing is rewritten.
    """
    issues: List[Dict[str, str]] = []
    seen_names: Dict[str, str] = {}

    for location in gazetteer.locations:
        key = normalize(location.name)
        if key in seen_names:
            issues.append({"location_id": location.id, "issue": "duplicate_name"})
            log.warning("gazetteer_duplicate_name", location_id=location.id, other=seen_names[key])
        else:
            seen_names[key] = location.id

        precision = coordinate_precision(location.lat, location.lng)
        if precision < settings.MIN_COORDINATE_DECIMALS:
            issues.append({"location_id": location.id, "issue": "low_precision"})
            log.warning("gazetteer_low_precision", location_id=location.id, decimals=precision)

        if not is_inside_campus_bbox(location.lat, location.lng):
            issues.append({"location_id": location.id, "issue": "outside_campus"})
            log.warning("gazetteer_outside_campus", location_id=location.id, lat=location.lat, lng=location.lng)

    return issues


def reconcile_coordinates(
    gazetteer: Gazetteer,
    legacy_table: Mapping[str, Tuple[float, float]],
    resolver: "LocationResolver",
    threshold_m: Optional[float] = None,
) -> Tuple[Gazetteer, List[CoordinateDiscrepancy]]:
    """
    Fold a historical building-name -> (lat, lng) table into the gazetteer.

    Each legacy name is resolved with `resolver`. The more precise of the
    two coordinate pairs is kept; pairs further apart than `threshold_m`
    (default `settings.COORDINATE_DISCREPANCY_METERS`) and names that do not
    resolve are reported for manual review. Returns a new gazetteer.
    """
    if threshold_m is None:
        threshold_m = settings.COORDINATE_DISCREPANCY_METERS

    updated: Dict[str, CampusLocation] = {loc.id: loc for loc in gazetteer.locations}
    discrepancies: List[CoordinateDiscrepancy] = []

    for legacy_name, (lat, lng) in legacy_table.items():
        match = resolver.resolve(legacy_name)
        if match is None or match.id not in updated:
            discrepancies.append(
                CoordinateDiscrepancy(
                    kind=DiscrepancyKind.UNRESOLVED,
                    legacy_name=legacy_name,
                    legacy_lat=lat,
                    legacy_lng=lng,
                )
            )
            log.warning("legacy_location_unresolved", legacy_name=legacy_name)
            continue

        current = updated[match.id]
        gap = distance_m(current.lat, current.lng, lat, lng)
        if gap > threshold_m:
            discrepancies.append(
                CoordinateDiscrepancy(
                    kind=DiscrepancyKind.DISTANCE,
                    legacy_name=legacy_name,
                    legacy_lat=lat,
                    legacy_lng=lng,
                    location_id=current.id,
                    canonical_lat=current.lat,
                    canonical_lng=current.lng,
                    distance_m=round(gap, 1),
                )
            )
            log.warning(
                "legacy_coordinate_mismatch",
                legacy_name=legacy_name,
                location_id=current.id,
                distance_m=round(gap, 1),
            )

        if coordinate_precision(lat, lng) > coordinate_precision(current.lat, current.lng):
            updated[current.id] = current.model_copy(update={"lat": lat, "lng": lng})

    merged = Gazetteer(locations=tuple(updated[loc.id] for loc in gazetteer.locations))
    return merged, discrepancies
