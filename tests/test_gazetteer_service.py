"""
Tests for gazetteer loading, validation, review and legacy coordinate reconciliation.

Run with:
    pytest tests/test_gazetteer_service.py -v
"""
import json

import pytest
from pydantic import ValidationError

from impulse.core.config import settings
from impulse.models.dto import CampusLocation, DiscrepancyKind, Gazetteer
from impulse.services.gazetteer_service import (
    coordinate_precision,
    load_gazetteer,
    reconcile_coordinates,
    review_gazetteer,
)
from impulse.services.location_resolver import LocationResolver
from impulse.utils.haversine import distance_m, haversine
from impulse.utils.text import decimal_places, normalize, strip_generic_words


def _loc(id_, name, lat=32.98612345, lng=-96.74912345, aliases=()):
    return {"id": id_, "name": name, "lat": lat, "lng": lng, "aliases": list(aliases)}


# ── Text and geometry helpers ─────────────────────────────────────────────────

class TestHelpers:

    def test_normalize(self):
        assert normalize("  ECSW \t  Building\n") == "ecsw building"

    @pytest.mark.parametrize("text,expected", [
        ("ECSW Building", "ecsw"),
        ("Jonsson Performance Hall", "jonsson performance"),
        ("Callier CENTER for Communication", "callier for communication"),
        ("Residence Halls", "residence halls"),
        ("building hall center", ""),
    ])
    def test_strip_generic_words(self, text, expected):
        assert strip_generic_words(text) == expected

    @pytest.mark.parametrize("value,expected", [
        (32.9886, 4),
        (-96.74944890766317, 14),
        (40.0, 0),
        (1.5e-07, 8),
    ])
    def test_decimal_places(self, value, expected):
        assert decimal_places(value) == expected

    def test_coordinate_precision_uses_weaker_axis(self):
        assert coordinate_precision(32.98605047033769, -96.7517) == 4

    def test_haversine(self):
        # 0.001 degrees of latitude is roughly 111 m
        assert distance_m(32.9886, -96.7491, 32.9896, -96.7491) == pytest.approx(111.2, abs=0.5)
        assert haversine(32.9886, -96.7491, 32.9886, -96.7491) == 0.0


# ── Loading and validation ─────────────────────────────────────────────────────

class TestLoadGazetteer:

    def test_packaged_gazetteer(self):
        gazetteer = load_gazetteer()
        ids = [loc.id for loc in gazetteer.locations]
        assert len(ids) == 16
        assert ids[0] == "studentunion"
        assert ids[-1] == "rec_west"
        assert len(set(ids)) == len(ids)

    def test_path_from_settings(self, tmp_path, monkeypatch):
        path = tmp_path / "campus.json"
        path.write_text(json.dumps({"locations": [_loc("plaza", "Main Plaza")]}))
        monkeypatch.setattr(settings, "GAZETTEER_PATH", str(path))
        assert [loc.id for loc in load_gazetteer().locations] == ["plaza"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_gazetteer(str(tmp_path / "missing.json"))

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_gazetteer(str(path))

    def test_duplicate_id_rejected(self):
        with pytest.raises(ValidationError):
            Gazetteer.model_validate({"locations": [_loc("a", "Alpha"), _loc("a", "Beta")]})

    def test_alias_shadowing_another_name_rejected(self):
        with pytest.raises(ValidationError):
            Gazetteer.model_validate({"locations": [
                _loc("a", "Alpha"),
                _loc("b", "Beta", aliases=["ALPHA"]),
            ]})

    def test_alias_shared_between_locations_rejected(self):
        with pytest.raises(ValidationError):
            Gazetteer.model_validate({"locations": [
                _loc("a", "Alpha", aliases=["Common"]),
                _loc("b", "Beta", aliases=["common "]),
            ]})

    def test_aliases_are_deduplicated(self):
        location = CampusLocation(id="a", name="Alpha", lat=1.0, lng=2.0, aliases=("ECSW", "ecsw ", " ", "Other"))
        assert location.aliases == ("ECSW", "Other")

    def test_locations_are_immutable(self):
        location = load_gazetteer().locations[0]
        with pytest.raises(ValidationError):
            location.lat = 0.0


class TestReviewGazetteer:

    def test_packaged_low_precision_entries_are_flagged(self):
        issues = review_gazetteer(load_gazetteer())
        low = {i["location_id"] for i in issues if i["issue"] == "low_precision"}
        assert "library" in low
        assert "ecsw" not in low
        assert not [i for i in issues if i["issue"] in ("outside_campus", "duplicate_name")]

    def test_outside_campus_and_duplicate_name(self):
        gazetteer = Gazetteer.model_validate({"locations": [
            _loc("a", "Main Plaza"),
            _loc("b", "main  plaza", lat=40.0, lng=-96.749),
        ]})
        issues = review_gazetteer(gazetteer)
        assert {"location_id": "b", "issue": "duplicate_name"} in issues
        assert {"location_id": "b", "issue": "outside_campus"} in issues
        assert {"location_id": "b", "issue": "low_precision"} in issues
        assert not [i for i in issues if i["location_id"] == "a"]


# ── Legacy reconciliation ──────────────────────────────────────────────────────

class TestReconcileCoordinates:

    @pytest.fixture
    def gazetteer(self):
        return load_gazetteer()

    @pytest.fixture
    def legacy(self):
        return {
            "McDermott Library": (32.988612, -96.749113),
            "ECSW Building": (32.986050, -96.751523),
            "Callier Center": (32.9950, -96.7463),
            "Zzyzx Annex": (32.9800, -96.7400),
        }

    def test_more_precise_coordinates_are_kept(self, gazetteer, legacy):
        merged, _ = reconcile_coordinates(gazetteer, legacy, LocationResolver(gazetteer))
        by_id = {loc.id: loc for loc in merged.locations}
        assert (by_id["library"].lat, by_id["library"].lng) == (32.988612, -96.749113)
        assert by_id["ecsw"].lat == 32.98605047033769
        assert by_id["callier"].lat == 32.9892

    def test_discrepancies_are_reported(self, gazetteer, legacy):
        _, discrepancies = reconcile_coordinates(gazetteer, legacy, LocationResolver(gazetteer))
        kinds = {d.legacy_name: d.kind for d in discrepancies}
        assert kinds == {
            "Callier Center": DiscrepancyKind.DISTANCE,
            "Zzyzx Annex": DiscrepancyKind.UNRESOLVED,
        }
        callier = next(d for d in discrepancies if d.legacy_name == "Callier Center")
        assert callier.location_id == "callier"
        assert callier.distance_m > 600

    def test_threshold_override(self, gazetteer, legacy):
        _, discrepancies = reconcile_coordinates(
            gazetteer, legacy, LocationResolver(gazetteer), threshold_m=1000.0
        )
        assert [d.kind for d in discrepancies] == [DiscrepancyKind.UNRESOLVED]

    def test_input_gazetteer_is_untouched(self, gazetteer, legacy):
        merged, _ = reconcile_coordinates(gazetteer, legacy, LocationResolver(gazetteer))
        assert merged is not gazetteer
        assert gazetteer.locations[1].lat == 32.9886
        assert [loc.id for loc in merged.locations] == [loc.id for loc in gazetteer.locations]
