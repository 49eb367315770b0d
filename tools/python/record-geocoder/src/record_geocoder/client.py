"""
Record Geocoder — Geocode Client
================================
HTTP client for a Google-style geocoding endpoint running at a configurable
host and port (a self-hosted geocoder or a local proxy in front of one).

Each call issues ``GET http://{host}:{port}/maps/api/geocode/json`` with the
``address`` and ``sensor=false`` query parameters and decodes the body into
a :mod:`record_geocoder.decoding` variant.

Usage::

    from record_geocoder.client import GeocodeClient

    client = GeocodeClient(host="localhost", port=8080)
    response = client.geocode("10 Downing Street, London")
"""

from __future__ import annotations

import logging

import requests

from shared.python.exceptions import GeocodeError

from record_geocoder.decoding import GeocodeResponse, decode_response

logger = logging.getLogger("record_geocoder.client")

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT = 10.0

GEOCODE_PATH = "/maps/api/geocode/json"


class GeocodeClient:
    """Thin :mod:`requests` wrapper around a Google-compatible geocoder.

    Args:
        host: Geocoder host name.
        port: Geocoder port.
        timeout: HTTP request timeout in seconds.
        session: Optional pre-configured :class:`requests.Session`.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{GEOCODE_PATH}"

    def geocode(self, address: str) -> GeocodeResponse:
        """Geocode *address*.

        Args:
            address: The single-line address to look up.

        Returns:
            The decoded response (``Resolved``, ``ZeroResults`` or
            ``Malformed``).

        Raises:
            GeocodeError: On a network failure, a non-2xx status, or a body
                that is not JSON.  ``exc.raw`` holds the response text when
                one was received.
        """
        params = {"address": address, "sensor": "false"}
        try:
            response = self._session.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise GeocodeError(f"Geocoder request failed: {exc}") from exc

        if not response.ok:
            raise GeocodeError(
                f"Geocoder returned HTTP {response.status_code}", raw=response.text
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise GeocodeError("Geocoder returned a non-JSON body", raw=response.text) from exc

        decoded = decode_response(payload)
        logger.debug("Geocoded %r → %s", address, type(decoded).__name__)
        return decoded

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "GeocodeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
