"""
Record Geocoder — Geocoder Response Model
==========================================
Decodes the loosely structured JSON returned by a Google-style geocoder
into a closed set of variants, so nothing downstream has to probe nested
optional keys.

Variants:
    Resolved       ``results[0]`` carried a usable geometry.
    ZeroResults    The service reported ``ZERO_RESULTS``.
    Malformed      Anything else; keeps the raw payload and a reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

ZERO_RESULTS = "ZERO_RESULTS"


@dataclass(frozen=True)
class AddressComponent:
    """One entry of ``results[0].address_components``.

    Attributes:
        long_name: Full text name of the component (e.g. ``"France"``).
        types: Category strings (e.g. ``{"country", "political"}``).
    """

    long_name: str
    types: frozenset[str]


@dataclass(frozen=True)
class Resolved:
    """A response with a resolved location.

    Attributes:
        status: ``results[0].geometry.location_type`` (e.g. ``"ROOFTOP"``),
                which takes precedence over the top-level ``status``.
        lat: Latitude, copied verbatim from the response.
        lng: Longitude, copied verbatim from the response.
        components: Address components in response order.
        raw: The decoded JSON payload.
    """

    status: str
    lat: float
    lng: float
    components: tuple[AddressComponent, ...]
    raw: Any


@dataclass(frozen=True)
class ZeroResults:
    """The geocoder found nothing for the address."""

    raw: Any
    status: str = ZERO_RESULTS


@dataclass(frozen=True)
class Malformed:
    """A response whose structure could not be decoded.

    Attributes:
        raw: The payload exactly as received, for diagnostics.
        reason: What was missing or mistyped.
    """

    raw: Any
    reason: str


GeocodeResponse = Union[Resolved, ZeroResults, Malformed]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_response(payload: Any) -> GeocodeResponse:
    """Decode a geocoder JSON payload into a response variant.

    Args:
        payload: The parsed JSON body.

    Returns:
        :class:`ZeroResults` when ``status == "ZERO_RESULTS"``,
        :class:`Resolved` when ``results[0]`` holds a geometry with a
        ``location_type`` and numeric ``lat``/``lng``, and
        :class:`Malformed` otherwise.
    """
    if not isinstance(payload, dict):
        return Malformed(payload, f"expected a JSON object, got {type(payload).__name__}")

    status = payload.get("status")
    if status == ZERO_RESULTS:
        return ZeroResults(payload)

    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return Malformed(payload, f"no results for status {status!r}")

    first = results[0]
    geometry = first.get("geometry") if isinstance(first, dict) else None
    if not isinstance(geometry, dict):
        return Malformed(payload, "results[0].geometry missing")

    location_type = geometry.get("location_type")
    if not isinstance(location_type, str) or not location_type:
        return Malformed(payload, "results[0].geometry.location_type missing")

    location = geometry.get("location")
    if not isinstance(location, dict):
        return Malformed(payload, "results[0].geometry.location missing")
    lat, lng = location.get("lat"), location.get("lng")
    if not (_is_number(lat) and _is_number(lng)):
        return Malformed(payload, "results[0].geometry.location lat/lng missing or not numeric")

    raw_components = first.get("address_components") or []
    if not isinstance(raw_components, list):
        return Malformed(payload, "results[0].address_components is not a list")

    components = []
    for entry in raw_components:
        if not isinstance(entry, dict):
            return Malformed(payload, "address component is not an object")
        long_name = entry.get("long_name")
        if not isinstance(long_name, str):
            return Malformed(payload, "address component long_name is not a string")
        types = entry.get("types", [])
        if not isinstance(types, list) or not all(isinstance(t, str) for t in types):
            return Malformed(payload, "address component types is not a list of strings")
        components.append(AddressComponent(long_name=long_name, types=frozenset(types)))

    return Resolved(
        status=location_type,
        lat=lat,
        lng=lng,
        components=tuple(components),
        raw=payload,
    )
