"""
questboard.engine.locations — Online / Physical Location Variant
=================================================================

A session takes place either online (voice server, VTT room …) or at a
physical venue.  The two shapes share no fields, so they are modelled as
a tagged variant discriminated by the session's ``is_online`` flag::

    Location = OnlineLocation | PhysicalLocation

The database stores the variant as a JSON object; :func:`parse_location`
and :func:`location_to_dict` convert in both directions.  Incoming
payloads may use snake_case or the camelCase keys sent by the web client
(``serverName``, ``zipCode``, ``coordinates: {lat, lng}``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from questboard.errors import InvalidLocation

__all__ = [
    "Location",
    "OnlineLocation",
    "PhysicalLocation",
    "location_city",
    "location_to_dict",
    "parse_location",
]


@dataclass(frozen=True, slots=True)
class OnlineLocation:
    server_name: str | None = None
    channel_name: str | None = None
    join_link: str | None = None
    room_id: str | None = None
    password: str | None = None


@dataclass(frozen=True, slots=True)
class PhysicalLocation:
    name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    lat: float | None = None
    lng: float | None = None
    description: str | None = None


Location = OnlineLocation | PhysicalLocation

_CAMEL_TO_SNAKE = {
    "serverName": "server_name",
    "channelName": "channel_name",
    "joinLink": "join_link",
    "roomId": "room_id",
    "zipCode": "zip_code",
}


def _normalise_keys(payload: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in payload.items():
        if key == "coordinates" and isinstance(value, dict):
            out["lat"] = value.get("lat")
            out["lng"] = value.get("lng")
            continue
        out[_CAMEL_TO_SNAKE.get(key, key)] = value
    return out


def parse_location(is_online: bool, payload: dict[str, Any] | None) -> Location | None:
    """Build the variant selected by *is_online* from a JSON payload.

    Returns ``None`` when there is no payload.  Keys that belong to the
    other variant (or to neither) raise :class:`InvalidLocation`, so an
    online session can never carry a street address and vice versa.
    """
    if not payload:
        return None
    if not isinstance(payload, dict):
        raise InvalidLocation("Location must be a JSON object")

    cls = OnlineLocation if is_online else PhysicalLocation
    data = _normalise_keys(payload)
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        kind = "online" if is_online else "physical"
        raise InvalidLocation(
            f"Unexpected field(s) for an {kind} location: {', '.join(unknown)}"
        )

    for coord in ("lat", "lng"):
        if data.get(coord) is not None:
            try:
                data[coord] = float(data[coord])
            except (TypeError, ValueError):
                raise InvalidLocation(f"Location {coord} must be a number") from None

    if (data.get("lat") is None) != (data.get("lng") is None):
        raise InvalidLocation("Location coordinates need both lat and lng")

    return cls(**data)


def location_to_dict(location: Location | None) -> dict[str, Any] | None:
    """Serialise a variant to the JSON shape stored on the session row."""
    match location:
        case None:
            return None
        case OnlineLocation():
            return {k: v for k, v in asdict(location).items() if v is not None}
        case PhysicalLocation(lat=lat, lng=lng):
            data = {
                k: v for k, v in asdict(location).items()
                if k not in ("lat", "lng") and v not in (None, "")
            }
            if lat is not None and lng is not None:
                data["coordinates"] = {"lat": lat, "lng": lng}
            return data
    raise TypeError(f"Not a location: {location!r}")


def location_city(location: Location | None) -> str | None:
    """City of a physical venue; online sessions have none."""
    match location:
        case PhysicalLocation(city=city) if city:
            return city
        case _:
            return None
