# impulse/services/meetup_service.py
# Meetup-creation glue: attach coordinates and a point tier to a new meetup.

from typing import Optional

import structlog

from impulse.core.config import settings
from impulse.models.dto import MeetupAnnotation
from impulse.services.location_resolver import LocationResolver
from impulse.services.points_classifier import PointsClassifier

log = structlog.get_logger(__name__)


class MeetupService:
    """Combines the resolver and the classifier for meetup creation.

    Falling back to a default location is this service's policy; the
    resolver itself always reports unresolved text as unresolved.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        classifier: PointsClassifier,
        default_location_id: Optional[str] = None,
    ):
        self.resolver = resolver
        self.classifier = classifier
        self.default_location_id = default_location_id or settings.DEFAULT_LOCATION_ID

        if self.resolver.get_by_id(self.default_location_id) is None:
            raise ValueError(f"Default location {self.default_location_id!r} is not in the gazetteer")

    def annotate(self, location_text: str, lobby_size: int) -> MeetupAnnotation:
        """Resolve `location_text` and classify `lobby_size`.

        Raises InvalidArgument (from the classifier) for a non-positive lobby size.
        """
        classification = self.classifier.classify(lobby_size)

        result = self.resolver.resolve_text(location_text)
        location = result.location
        used_default = location is None
        if used_default:
            location = self.resolver.get_by_id(self.default_location_id)
            log.info("meetup_location_defaulted", location_text=location_text, location_id=location.id)

        return MeetupAnnotation(
            location=location,
            used_default=used_default,
            rule=result.rule,
            lat=location.lat,
            lng=location.lng,
            classification=classification,
        )
