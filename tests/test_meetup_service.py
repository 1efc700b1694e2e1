"""
End-to-end tests for meetup annotation: free-text location + lobby size in,
coordinates + point tier out.

Run with:
    pytest tests/test_meetup_service.py -v
"""
import pytest

from impulse.models.dto import MatchRule
from impulse.services.gazetteer_service import load_gazetteer
from impulse.services.location_resolver import LocationResolver
from impulse.services.meetup_service import MeetupService
from impulse.services.points_classifier import InvalidArgument, PointsClassifier


@pytest.fixture(scope="module")
def resolver():
    return LocationResolver(load_gazetteer())


@pytest.fixture(scope="module")
def service(resolver):
    return MeetupService(resolver, PointsClassifier())


class TestAnnotate:

    def test_ecsw_courtyard_medium_lobby(self, service, resolver):
        annotation = service.annotate("ECSW Courtyard", 8)
        ecsw = resolver.get_by_id("ecsw")
        assert annotation.location == ecsw
        assert (annotation.lat, annotation.lng) == (ecsw.lat, ecsw.lng)
        assert annotation.classification.type == "medium"
        assert annotation.rule == MatchRule.CONTAINMENT
        assert not annotation.used_default

    def test_unresolved_text_uses_default_location(self, service):
        annotation = service.annotate("Zzyzx road trip", 3)
        assert annotation.location.id == "library"
        assert annotation.used_default
        assert annotation.rule is None
        assert annotation.classification.type == "small"

    def test_description_with_location_line(self, service):
        annotation = service.annotate("Board games night\nLocation: The Plinth", 30)
        assert annotation.location.id == "plinth"
        assert annotation.classification.type == "massive"

    def test_custom_default_location(self, resolver):
        service = MeetupService(resolver, PointsClassifier(), default_location_id="studentunion")
        assert service.annotate("", 2).location.id == "studentunion"

    def test_invalid_lobby_size(self, service):
        with pytest.raises(InvalidArgument):
            service.annotate("ECSW", 0)

    def test_unknown_default_location_rejected(self, resolver):
        with pytest.raises(ValueError):
            MeetupService(resolver, PointsClassifier(), default_location_id="nowhere")
