"""
Record Geocoder — Pipeline
==========================
Drives geocoding of every unprocessed record in a :class:`RecordStore` and
wraps a full run (load → geocode → export) as a GeoTool.

Architecture:
    ``GeocodePipeline`` processes records strictly one at a time:
    build address → geocode → interpret → persist → throttle.  A failure on
    one record is recorded as that record's ``"ERROR"`` status and the batch
    continues.  Records that already carry a status are never picked up
    again, so an interrupted run can simply be restarted.

    ``RecordGeocoder`` owns the surrounding run: it imports the input file
    into a fresh store (or reopens an existing one), runs the pipeline,
    and exports every record.

Classes:
    RunSummary        Status counts for one pipeline run.
    GeocodePipeline   Per-record geocoding loop.
    RecordGeocoder    Full-run tool class (inherits GeoTool).

Usage::

    from pathlib import Path
    from record_geocoder.client import GeocodeClient
    from record_geocoder.pipeline import RecordGeocoder

    tool = RecordGeocoder(
        input_path=Path("data/addresses.csv"),
        address_fields=["street", "city", "country"],
        file_format="csv",
        client=GeocodeClient(host="localhost", port=8080),
    )
    tool.run()
    print(tool.summary.as_dict())
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    GeocodeError,
    InputValidationError,
    RecordImportError,
    StoreWriteError,
)
from shared.python.validators import Validators

from record_geocoder.address import build_address
from record_geocoder.client import GeocodeClient
from record_geocoder.formats import (
    FORMATS,
    JSON,
    default_output_path,
    default_store_path,
    export_records,
    read_records,
)
from record_geocoder.interpreter import ERROR_STATUS, GeocodeOutcome, interpret
from record_geocoder.store import ID_FIELD, RecordStore
from record_geocoder.throttle import ThrottlePolicy

logger = logging.getLogger("record_geocoder.pipeline")

#: Called after each record with ``(processed, total)``.
ProgressCallback = Callable[[int, int], None]


# ---------------------------------------------------------------------------
# Run summary
# ---------------------------------------------------------------------------


@dataclass
class RunSummary:
    """Status counts accumulated over one pipeline run.

    Attributes:
        total: Number of unprocessed records found at the start of the run.
        processed: Number of records handled so far.
        counts: Occurrences of each status value.
    """

    total: int = 0
    processed: int = 0
    counts: Counter[str] = field(default_factory=Counter)

    def record(self, status: str) -> None:
        self.counts[status] += 1
        self.processed += 1

    def as_dict(self) -> dict[str, int]:
        return dict(self.counts)

    def format_table(self) -> str:
        """The status frequency table as indented JSON."""
        return json.dumps(self.as_dict(), indent=2)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class GeocodePipeline:
    """Geocode every unprocessed record in *store*.

    Args:
        store: The record store to read from and write back to.
        client: Object with a ``geocode(address)`` method returning a
                decoded response (normally a :class:`GeocodeClient`).
        address_fields: Record fields joined to form each address.
        throttle: Pause applied between records.
        progress: Optional ``(processed, total)`` callback.
    """

    def __init__(
        self,
        store: RecordStore,
        client: GeocodeClient,
        address_fields: Sequence[str],
        throttle: ThrottlePolicy | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.address_fields = list(address_fields)
        self.throttle = throttle or ThrottlePolicy()
        self.progress = progress

    def run(self) -> RunSummary:
        """Process all pending records and return the run summary."""
        pending = self.store.find_unprocessed()
        summary = RunSummary(total=len(pending))
        logger.info("Geocoding %d unprocessed record(s)...", summary.total)

        for record in pending:
            status = self._process_one(record)
            summary.record(status)
            logger.debug("[%d/%d] %s", summary.processed, summary.total, status)
            if self.progress is not None:
                self.progress(summary.processed, summary.total)
            self.throttle.wait()

        return summary

    def geocode_address(self, address: str) -> GeocodeOutcome:
        """Geocode a single address, folding failures into an error outcome."""
        try:
            return interpret(self.client.geocode(address), address)
        except GeocodeError as exc:
            logger.error("Geocoding failed for %r: %s", address, exc.message)
            if exc.raw is not None:
                logger.error("Raw response:\n%s", _dump_raw(exc.raw))
            return GeocodeOutcome.failed(address, exc.message)

    def _process_one(self, record: dict) -> str:
        address = build_address(record, self.address_fields)
        outcome = self.geocode_address(address)
        try:
            self.store.update(record[ID_FIELD], outcome.to_fields())
        except StoreWriteError as exc:
            logger.error("Could not save result for %r: %s", address, exc.message)
            return ERROR_STATUS
        return outcome.status


def _dump_raw(raw: object) -> str:
    if isinstance(raw, str):
        return raw
    return json.dumps(raw, indent=4, default=str)


# ---------------------------------------------------------------------------
# Main tool class
# ---------------------------------------------------------------------------


class RecordGeocoder(GeoTool):
    """Geocode a record file (or a stored dataset) and export the results.

    When *database* is ``None`` the input file is parsed and imported into a
    fresh store at :func:`~record_geocoder.formats.default_store_path`,
    replacing whatever that store held.  When *database* is given, the
    existing store is reused as-is and *input_path* is only used to name the
    output.

    Args:
        input_path: Input JSON/CSV file.  Optional when *database* is set.
        address_fields: Record fields joined to build each address.
        file_format: ``"json"`` or ``"csv"``; used for input and output.
        database: Existing record store to resume from.
        output_path: Export destination.  Defaults to
                     ``<base>-output.<format>`` beside the input.
        client: Geocode client.  Defaults to ``GeocodeClient()``.
        throttle: Inter-record pause.  Defaults to no pause.
        progress: Optional ``(processed, total)`` callback.
        verbose: Enable DEBUG-level logging.
    """

    def __init__(
        self,
        input_path: Path | None,
        address_fields: Sequence[str],
        file_format: str = JSON,
        *,
        database: Path | None = None,
        output_path: Path | None = None,
        client: GeocodeClient | None = None,
        throttle: ThrottlePolicy | None = None,
        progress: ProgressCallback | None = None,
        verbose: bool = False,
    ) -> None:
        source = input_path if input_path is not None else database
        if source is None:
            raise InputValidationError("Either an input file or a database is required.")
        output = output_path or default_output_path(Path(source), file_format)
        super().__init__(Path(source), output, verbose=verbose)

        self.address_fields = list(address_fields)
        self.file_format = file_format.lower()
        self.database = Path(database) if database is not None else None
        self.client = client or GeocodeClient()
        self.throttle = throttle or ThrottlePolicy()
        self.progress = progress

        self._summary: RunSummary | None = None
        self._exported = 0

    # ------------------------------------------------------------------
    # GeoTool abstract method implementations
    # ------------------------------------------------------------------

    def validate_inputs(self) -> None:
        """Check options and input paths before anything is written.

        Raises:
            InputValidationError: On an empty field list, an unknown format,
                or a missing input file or store.
            ExportError: If the output directory cannot be created.
        """
        Validators.assert_non_empty(self.address_fields, "address field")
        Validators.assert_choice(self.file_format, FORMATS, "format")
        if self.database is None:
            Validators.assert_file_exists(self.input_path)
        else:
            Validators.assert_file_exists(self.database)
        Validators.assert_output_dir_writable(self.output_path)
        logger.debug("Inputs validated successfully.")

    def process(self) -> None:
        """Load the records, geocode the pending ones, and export everything.

        Raises:
            RecordImportError: If the input records cannot be imported.
            StoreReadError: If a reused store cannot be loaded.
            ExportError: If writing the export fails.
        """
        store = self._load_store()

        pipeline = GeocodePipeline(
            store,
            self.client,
            self.address_fields,
            throttle=self.throttle,
            progress=self.progress,
        )
        self._summary = pipeline.run()
        logger.info("Summary:\n%s", self._summary.format_table())

        records = store.find_all()
        export_records(records, self.output_path, self.file_format)
        self._exported = len(records)

    def _report_success(self, elapsed: float) -> None:
        """Log the geocoded and exported record counts with the elapsed time."""
        geocoded = self._summary.processed if self._summary else 0
        logger.info(
            "Geocoded %d record(s), exported %d in %.2fs → %s",
            geocoded,
            self._exported,
            elapsed,
            self.output_path,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load_store(self) -> RecordStore:
        if self.database is not None:
            store = RecordStore.open(self.database)
            logger.info("Resuming from store %s (%d records).", self.database, len(store))
            return store

        records = read_records(self.input_path, self.file_format)
        store = RecordStore(default_store_path(self.input_path))
        try:
            count = store.import_all(records)
        except StoreWriteError as exc:
            raise RecordImportError(str(self.input_path), exc.message) from exc
        logger.info("Imported %d records.", count)
        return store

    @property
    def summary(self) -> RunSummary | None:
        """The :class:`RunSummary` from the last run, or ``None``."""
        return self._summary
