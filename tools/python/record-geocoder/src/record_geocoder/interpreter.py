"""
Record Geocoder — Response Interpreter
======================================
Turns a decoded geocoder response into a :class:`GeocodeOutcome`, the set
of fields merged back into a record.

Classes / functions:
    GeocodeOutcome    Normalised result for one record.
    interpret         Decoded response → outcome (raises on malformed input).
    first_component   First ``long_name`` of a given component category.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from shared.python.exceptions import GeocodeError

from record_geocoder.decoding import (
    AddressComponent,
    GeocodeResponse,
    Malformed,
    Resolved,
    ZeroResults,
)
from record_geocoder.store import STATUS_FIELD

#: Status written to records whose geocode attempt failed.
ERROR_STATUS = "ERROR"

LOCALITY = "locality"
ADMIN_AREA_LEVEL_1 = "administrative_area_level_1"
COUNTRY = "country"


@dataclass(frozen=True)
class GeocodeOutcome:
    """Normalised geocode result for a single record.

    Attributes:
        status: ``location_type`` of the match, ``"ZERO_RESULTS"``, or
                :data:`ERROR_STATUS`.
        full_address: The exact address string sent to the geocoder.
        lat: Latitude; ``None`` unless the location was resolved.
        lng: Longitude; ``None`` unless the location was resolved.
        locality: ``long_name`` of the first ``locality`` component, or ``""``.
        admin_area_level_1: First ``administrative_area_level_1``, or ``""``.
        country: First ``country`` component, or ``""``.
        error: Diagnostic message for failed records.
    """

    status: str
    full_address: str
    lat: float | None = None
    lng: float | None = None
    locality: str = ""
    admin_area_level_1: str = ""
    country: str = ""
    error: str | None = None

    @classmethod
    def failed(cls, full_address: str, message: str) -> "GeocodeOutcome":
        """Build the outcome recorded when geocoding a record fails."""
        return cls(status=ERROR_STATUS, full_address=full_address, error=message)

    @property
    def is_resolved(self) -> bool:
        return self.lat is not None and self.lng is not None

    def to_fields(self) -> dict[str, Any]:
        """Return the record fields to merge into the stored record.

        Coordinates are only written for resolved locations and the error
        message only for failed ones.
        """
        fields: dict[str, Any] = {}
        if self.is_resolved:
            fields["GeocodeLat"] = self.lat
            fields["GeocodeLng"] = self.lng
        fields[STATUS_FIELD] = self.status
        fields["GeocodeLocality"] = self.locality
        fields["GeocodeAdminAreaLevel1"] = self.admin_area_level_1
        fields["GeocodeCountry"] = self.country
        fields["FullAddress"] = self.full_address
        if self.error is not None:
            fields["GeocodeErrorMessage"] = self.error
        return fields


def first_component(components: Sequence[AddressComponent], category: str) -> str:
    """Return the ``long_name`` of the first component typed *category*.

    Returns ``""`` when no component matches; many results legitimately
    lack a category (a country-level match has no locality).
    """
    for component in components:
        if category in component.types:
            return component.long_name
    return ""


def interpret(response: GeocodeResponse, full_address: str) -> GeocodeOutcome:
    """Interpret a decoded geocoder response.

    Args:
        response: Output of :func:`~record_geocoder.decoding.decode_response`.
        full_address: The address string that produced *response*.

    Returns:
        The :class:`GeocodeOutcome` for the record.

    Raises:
        GeocodeError: If *response* is :class:`Malformed`.  The raw payload
            is attached as ``exc.raw``.
    """
    if isinstance(response, ZeroResults):
        return GeocodeOutcome(status=response.status, full_address=full_address)

    if isinstance(response, Resolved):
        return GeocodeOutcome(
            status=response.status,
            full_address=full_address,
            lat=response.lat,
            lng=response.lng,
            locality=first_component(response.components, LOCALITY),
            admin_area_level_1=first_component(response.components, ADMIN_AREA_LEVEL_1),
            country=first_component(response.components, COUNTRY),
        )

    if isinstance(response, Malformed):
        raise GeocodeError(f"Malformed geocoder response: {response.reason}", raw=response.raw)

    raise TypeError(f"Unsupported response type: {type(response).__name__}")
