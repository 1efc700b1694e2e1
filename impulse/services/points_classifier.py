# impulse/services/points_classifier.py
# Lobby-size tiers and point-based leveling. Everything here is a pure
# function of its arguments; user state is owned and stored by the caller.

import json
import os
from typing import Optional, Tuple

import structlog
from pydantic import ValidationError

from impulse.core.config import settings
from impulse.models.dto import (
    LevelProgress,
    PointClassification,
    PointClassificationTable,
    UserLevelState,
)

log = structlog.get_logger(__name__)

POINTS_PER_LEVEL = 10

DEFAULT_CLASSIFICATIONS_PATH = os.path.join(
    os.path.dirname(__file__), "..", "static", "point_classifications.json"
)


class InvalidArgument(ValueError):
    """Raised when a caller passes a value outside an operation's contract."""


def _require_int(name: str, value: object) -> int:
    # bool is an int subclass, but True is not a lobby size
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    return value


def load_point_classifications(path: Optional[str] = None) -> PointClassificationTable:
    """Load and validate the tier table. Failures are logged and re-raised."""
    file_path = path or settings.POINT_CLASSIFICATIONS_PATH or DEFAULT_CLASSIFICATIONS_PATH
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        table = PointClassificationTable.model_validate(data)
    except FileNotFoundError:
        log.error("point_classifications_not_found", path=file_path)
        raise
    except (json.JSONDecodeError, ValidationError) as e:
        log.error("point_classifications_invalid", path=file_path, error=str(e))
        raise

    log.info("point_classifications_loaded", path=file_path, bands=len(table.classifications))
    return table


class PointsClassifier:
    """
    Maps a meetup's lobby size to its point tier.

    Lobby sizes above the last band's `max_size` belong to the last band.
    """

    def __init__(self, table: Optional[PointClassificationTable] = None):
        self.table = table if table is not None else load_point_classifications()

    @property
    def classifications(self) -> Tuple[PointClassification, ...]:
        return self.table.classifications

    def classify(self, lobby_size: int) -> PointClassification:
        """
        Args:
            lobby_size: Maximum participants, must be > 0.

        Returns:
            The band containing `lobby_size`, or the top band for oversized lobbies.

        Raises:
            InvalidArgument: If `lobby_size` is not a positive integer.
        """
        lobby_size = _require_int("lobby_size", lobby_size)
        if lobby_size <= 0:
            raise InvalidArgument(f"lobby_size must be greater than 0, got {lobby_size}")

        for band in self.classifications:
            if band.contains(lobby_size):
                return band
        return self.classifications[-1]

    def points_for(self, lobby_size: int) -> int:
        return self.classify(lobby_size).base_points


def level_for(points: int) -> LevelProgress:
    """
    Level and progress for an accumulated point total.

    Every level costs POINTS_PER_LEVEL points, so level 2 starts at 20 points.

    Raises:
        InvalidArgument: If `points` is negative or not an integer.
    """
    points = _require_int("points", points)
    if points < 0:
        raise InvalidArgument(f"points must be >= 0, got {points}")

    level, remainder = divmod(points, POINTS_PER_LEVEL)
    return LevelProgress(
        points=points,
        level=level,
        progress_percent=remainder * 100 // POINTS_PER_LEVEL,
        next_level=level + 1,
        points_to_next_level=POINTS_PER_LEVEL - remainder,
    )


def award_points(state: UserLevelState, amount: int) -> UserLevelState:
    """Return a copy of `state` with `amount` more points. Points never go down."""
    amount = _require_int("amount", amount)
    if amount < 0:
        raise InvalidArgument(f"amount must be >= 0, got {amount}")
    return state.model_copy(update={"points": state.points + amount})


def attend_meetup(
    state: UserLevelState,
    meetup_id: str,
    lobby_size: int,
    classifier: PointsClassifier,
) -> UserLevelState:
    """
    Record attendance and add the meetup's tier points.

    A meetup already in `state.attended_meetups` earns nothing the second time.
    """
    if not meetup_id:
        raise InvalidArgument("meetup_id must be a non-empty string")
    if meetup_id in state.attended_meetups:
        return state

    earned = classifier.points_for(lobby_size)
    log.info("meetup_attended", meetup_id=meetup_id, lobby_size=lobby_size, points=earned)
    return state.model_copy(
        update={
            "points": state.points + earned,
            "attended_meetups": state.attended_meetups + (meetup_id,),
        }
    )
