"""
Record Geocoder — File Formats
==============================
Reading input records and writing the final export, in either of the two
supported formats:

* ``json`` — an array of objects.
* ``csv``  — a header row followed by data rows; every value is read as a
  string, and the export header is the union of all field names.

Functions:
    read_records          Parse an input file into a list of records.
    export_records        Write records (minus ``_id``) to the export file.
    default_output_path   ``<dir>/<base>-output.<format>``.
    default_store_path    ``<dir>/<base>.db.jsonl``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from shared.python.exceptions import ExportError, InputValidationError

from record_geocoder.store import ID_FIELD

logger = logging.getLogger("record_geocoder.formats")

JSON = "json"
CSV = "csv"
FORMATS = (JSON, CSV)


def _base_name(path: Path) -> str:
    """File name up to its first dot (``addresses.v2.csv`` → ``addresses``)."""
    return Path(path).name.split(".")[0]


def default_output_path(source: Path, file_format: str) -> Path:
    """Derive the export path next to *source*."""
    source = Path(source)
    return source.with_name(f"{_base_name(source)}-output.{file_format.lower()}")


def default_store_path(source: Path) -> Path:
    """Derive the record store path for a freshly imported *source* file."""
    source = Path(source)
    return source.with_name(f"{_base_name(source)}.db.jsonl")


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def read_records(path: Path, file_format: str) -> list[Any]:
    """Parse *path* as *file_format* and return its records.

    JSON elements are returned as-is; the record store rejects any that are
    not objects.  CSV values are all strings and blank cells stay ``""``.

    Raises:
        InputValidationError: If the file cannot be read or parsed, or the
            JSON document is not an array.
    """
    path = Path(path)
    file_format = file_format.lower()

    if file_format == JSON:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InputValidationError(f"Cannot parse JSON file '{path}': {exc}") from exc
        if not isinstance(data, list):
            raise InputValidationError(
                f"Expected a JSON array of records in '{path}', got {type(data).__name__}."
            )
        return data

    if file_format == CSV:
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return []
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
            raise InputValidationError(f"Cannot parse CSV file '{path}': {exc}") from exc
        return df.to_dict(orient="records")

    raise InputValidationError(
        f"Unsupported format '{file_format}'. Accepted values: {', '.join(FORMATS)}"
    )


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _strip_id(records: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    return [{k: v for k, v in r.items() if k != ID_FIELD} for r in records]


def _csv_cell(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _to_frame(records: list[dict[str, Any]]) -> pd.DataFrame:
    """Build a DataFrame whose columns are the union of fields, first seen first."""
    columns: list[str] = []
    seen: set[str] = set()
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    rows = [{k: _csv_cell(v) for k, v in r.items()} for r in records]
    return pd.DataFrame(rows, columns=columns, dtype=object)


def export_records(
    records: Sequence[Mapping[str, Any]],
    path: Path,
    file_format: str,
) -> Path:
    """Write *records* to *path* without their internal ``_id``.

    Args:
        records: Records to export.
        path: Destination file.
        file_format: ``"json"`` (4-space indented array) or ``"csv"``.

    Returns:
        *path*, for convenience.

    Raises:
        InputValidationError: If *file_format* is not supported.
        ExportError: If the file cannot be written.
    """
    path = Path(path)
    file_format = file_format.lower()
    clean = _strip_id(records)

    try:
        if file_format == JSON:
            path.write_text(
                json.dumps(clean, indent=4, ensure_ascii=False, default=str),
                encoding="utf-8",
            )
        elif file_format == CSV:
            _to_frame(clean).to_csv(path, index=False)
        else:
            raise InputValidationError(
                f"Unsupported format '{file_format}'. Accepted values: {', '.join(FORMATS)}"
            )
    except OSError as exc:
        raise ExportError(str(path), str(exc)) from exc

    logger.info("Exported %d records → %s", len(clean), path)
    return path
