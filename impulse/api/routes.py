# impulse/api/routes.py
# Read-only HTTP surface over the location resolver and the points engine.

from fastapi import APIRouter, Request, HTTPException, status
from typing import List

from impulse.models.dto import (
    CampusLocation,
    ErrorResponse,
    LevelProgress,
    MatchResult,
    MeetupAnnotation,
    MeetupAnnotationRequest,
    PointClassification,
)
from impulse.services.location_resolver import LocationResolver
from impulse.services.meetup_service import MeetupService
from impulse.services.points_classifier import PointsClassifier, level_for

router = APIRouter()


def _resolver(request: Request) -> LocationResolver:
    return request.app.state.location_resolver


def _classifier(request: Request) -> PointsClassifier:
    return request.app.state.points_classifier


# ----------------------------------------------------------------------
# Locations
# ----------------------------------------------------------------------
@router.get("/locations", response_model=List[CampusLocation])
async def list_locations(request: Request):
    """Whole gazetteer in declaration order."""
    return list(_resolver(request).locations)


@router.get("/locations/search", response_model=List[CampusLocation])
async def search_locations(request: Request, q: str = ""):
    """Location-picker search. Never fails; may return an empty list."""
    return _resolver(request).search_prefix(q)


@router.get("/locations/resolve", response_model=MatchResult)
async def resolve_location(request: Request, q: str = ""):
    """Resolve free text. An unresolved query is a normal 200 with `resolved: false`."""
    return _resolver(request).match(q)


@router.get(
    "/locations/{location_id}",
    response_model=CampusLocation,
    responses={404: {"model": ErrorResponse}},
)
async def get_location(request: Request, location_id: str):
    location = _resolver(request).get_by_id(location_id)
    if location is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorResponse(
                error="LOCATION_NOT_FOUND",
                detail=f"No campus location with id '{location_id}'.",
            ).model_dump(),
        )
    return location


# ----------------------------------------------------------------------
# Points
# ----------------------------------------------------------------------
@router.get("/points/classifications", response_model=List[PointClassification])
async def list_classifications(request: Request):
    return list(_classifier(request).classifications)


@router.get(
    "/points/classify",
    response_model=PointClassification,
    responses={400: {"model": ErrorResponse}},
)
async def classify_lobby(request: Request, lobby_size: int):
    return _classifier(request).classify(lobby_size)


@router.get(
    "/points/level",
    response_model=LevelProgress,
    responses={400: {"model": ErrorResponse}},
)
async def level_progress(points: int):
    return level_for(points)


# ----------------------------------------------------------------------
# Meetups
# ----------------------------------------------------------------------
@router.post(
    "/meetups/annotate",
    response_model=MeetupAnnotation,
    responses={400: {"model": ErrorResponse}},
)
async def annotate_meetup(request: Request, data: MeetupAnnotationRequest):
    """Coordinates and point tier for a meetup about to be created."""
    meetup_service: MeetupService = request.app.state.meetup_service
    return meetup_service.annotate(data.location, data.lobby_size)
