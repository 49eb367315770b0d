"""
Record Geocoder — Shared Python Package
========================================
Re-exports the shared base class, exception hierarchy, and validator
utilities so the tool modules can import from a single location::

    from shared.python import GeoTool, Validators
    from shared.python.exceptions import GeocodeError
"""

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    ExportError,
    GeocodeError,
    InputValidationError,
    RecordGeocoderError,
    RecordImportError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from shared.python.validators import Validators

__all__ = [
    "GeoTool",
    "Validators",
    "RecordGeocoderError",
    "InputValidationError",
    "RecordImportError",
    "GeocodeError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "ExportError",
]
