"""
tests/test_locations.py — Online / Physical Location Variant
"""

from __future__ import annotations

import pytest

from questboard.engine.locations import (
    OnlineLocation,
    PhysicalLocation,
    location_city,
    location_to_dict,
    parse_location,
)
from questboard.errors import InvalidLocation


class TestParseLocation:
    def test_empty_payload(self):
        assert parse_location(True, None) is None
        assert parse_location(False, {}) is None

    def test_online_camel_case(self):
        loc = parse_location(True, {"serverName": "Tavern", "channelName": "#table-2"})
        assert loc == OnlineLocation(server_name="Tavern", channel_name="#table-2")

    def test_physical_with_coordinates(self):
        loc = parse_location(False, {
            "name": "Dragon's Lair",
            "city": "Stockholm",
            "zipCode": "111 22",
            "coordinates": {"lat": "59.33", "lng": 18.06},
        })
        assert isinstance(loc, PhysicalLocation)
        assert loc.zip_code == "111 22"
        assert loc.lat == pytest.approx(59.33)

    def test_fields_of_other_variant_rejected(self):
        with pytest.raises(InvalidLocation, match="online"):
            parse_location(True, {"address": "Storgatan 1"})
        with pytest.raises(InvalidLocation, match="physical"):
            parse_location(False, {"joinLink": "https://example.org"})

    def test_non_numeric_coordinate(self):
        with pytest.raises(InvalidLocation, match="lat"):
            parse_location(False, {"coordinates": {"lat": "north", "lng": 1}})

    @pytest.mark.parametrize("coords", [{"lat": 59.3}, {"lng": 18.1}, {"lat": None, "lng": 18.1}])
    def test_half_a_coordinate_pair(self, coords):
        with pytest.raises(InvalidLocation, match="both lat and lng"):
            parse_location(False, {"city": "Stockholm", "coordinates": coords})

    def test_flat_lat_without_lng(self):
        with pytest.raises(InvalidLocation, match="both lat and lng"):
            parse_location(False, {"lat": 59.3})

    def test_not_an_object(self):
        with pytest.raises(InvalidLocation):
            parse_location(False, ["Stockholm"])


class TestLocationToDict:
    def test_none(self):
        assert location_to_dict(None) is None

    def test_online_drops_unset(self):
        assert location_to_dict(OnlineLocation(room_id="r1")) == {"room_id": "r1"}

    def test_physical_nests_coordinates(self):
        data = location_to_dict(PhysicalLocation(name="Café", city="Lund", lat=55.7, lng=13.2))
        assert data == {"name": "Café", "city": "Lund", "coordinates": {"lat": 55.7, "lng": 13.2}}

    def test_stored_shape_parses_back(self):
        stored = location_to_dict(PhysicalLocation(city="Lund", lat=55.7, lng=13.2))
        assert parse_location(False, stored) == PhysicalLocation(city="Lund", lat=55.7, lng=13.2)


class TestLocationCity:
    def test_physical(self):
        assert location_city(PhysicalLocation(city="Malmö")) == "Malmö"

    def test_online_and_missing(self):
        assert location_city(OnlineLocation(server_name="Tavern")) is None
        assert location_city(PhysicalLocation(name="Somewhere")) is None
        assert location_city(None) is None
