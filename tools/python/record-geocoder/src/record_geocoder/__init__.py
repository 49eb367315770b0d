"""
Record Geocoder
===============
Batch-geocodes address records from a JSON/CSV file or a resumable record
store through a Google-style geocoding service, and exports the annotated
records.

Public API::

    from record_geocoder import RecordGeocoder, GeocodePipeline, RecordStore
"""

from record_geocoder.address import build_address
from record_geocoder.client import GeocodeClient
from record_geocoder.decoding import Malformed, Resolved, ZeroResults, decode_response
from record_geocoder.interpreter import GeocodeOutcome, interpret
from record_geocoder.pipeline import GeocodePipeline, RecordGeocoder, RunSummary
from record_geocoder.store import RecordStore
from record_geocoder.throttle import ThrottlePolicy

__all__ = [
    "RecordGeocoder",
    "GeocodePipeline",
    "RunSummary",
    "RecordStore",
    "GeocodeClient",
    "GeocodeOutcome",
    "ThrottlePolicy",
    "Resolved",
    "ZeroResults",
    "Malformed",
    "build_address",
    "decode_response",
    "interpret",
]
__version__ = "1.0.0"
