"""
Record Geocoder — Custom Exception Hierarchy
============================================
Every module in the record geocoder raises exceptions from this module so
callers can catch them at the right level of granularity.

Hierarchy::

    RecordGeocoderError                  ← catch-all base
    ├── InputValidationError             ← bad options, missing/unparsable input
    ├── RecordImportError                ← bulk import into the store failed
    ├── GeocodeError                     ← remote call / response parse failure
    ├── StoreError                       ← record store problems
    │   ├── StoreReadError               ← store file cannot be loaded
    │   └── StoreWriteError              ← insert / update could not be persisted
    └── ExportError                      ← cannot write the final export

Only :class:`RecordImportError`, :class:`StoreReadError` and
:class:`ExportError` end a run.  :class:`GeocodeError` and
:class:`StoreWriteError` raised while processing a single record are caught by
the pipeline and recorded against that record.

Usage::

    from shared.python.exceptions import GeocodeError

    raise GeocodeError("Geocoder returned HTTP 500", raw=response.text)
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class RecordGeocoderError(Exception):
    """Base exception for the record geocoder.

    Catch this to handle any tool-specific error without caring about
    the exact subtype.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(RecordGeocoderError):
    """Raised when the tool's inputs fail pre-processing validation."""


class RecordImportError(RecordGeocoderError):
    """Raised when parsed file records cannot be loaded into the store.

    Args:
        source: The file the records were read from.
        reason: Underlying store error message.
    """

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to import records from '{source}': {reason}")
        self.source: str = source
        self.reason: str = reason


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------


class GeocodeError(RecordGeocoderError):
    """Raised when geocoding a single address fails.

    Covers network failures, non-2xx responses, non-JSON bodies and
    responses whose structure cannot be decoded.

    Args:
        message: Human-readable description of the failure.
        raw: The raw response payload (decoded JSON or body text), kept
             for diagnostics.  ``None`` when no response was received.

    Example::

        raise GeocodeError("results[0].geometry missing", raw=payload)
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw: Any = raw


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------


class StoreError(RecordGeocoderError):
    """Base class for record store failures."""


class StoreReadError(StoreError):
    """Raised when an existing store file cannot be loaded.

    Args:
        store_path: String representation of the store file.
        reason: What was wrong with it.
    """

    def __init__(self, store_path: str, reason: str) -> None:
        super().__init__(f"Cannot load record store '{store_path}': {reason}")
        self.store_path: str = store_path
        self.reason: str = reason


class StoreWriteError(StoreError):
    """Raised when an insert or update cannot be applied to the store.

    Example::

        raise StoreWriteError(f"No record with id {record_id!r}")
    """


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class ExportError(RecordGeocoderError):
    """Raised when the final export cannot be written to disk.

    Args:
        output_path: String representation of the path that failed.
        reason: Underlying OS or library error message.

    Example::

        raise ExportError("/read-only/dir/out.json", "Permission denied")
    """

    def __init__(self, output_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to write output to '{output_path}': {reason}"
        )
        self.output_path: str = output_path
        self.reason: str = reason
