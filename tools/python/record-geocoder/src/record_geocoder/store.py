"""
Record Geocoder — Record Store
==============================
A named, file-backed record collection that persists geocoding progress
between runs.

The store is a JSON Lines file: one record (a JSON object) per line.  Each
record is tagged with an internal ``_id`` when inserted.  Every mutation
rewrites the whole file through a temporary sibling and :func:`os.replace`,
so each per-record update is durable as soon as :meth:`RecordStore.update`
returns.  Expected datasets are hundreds to low thousands of records, so
lookups are plain linear scans.

Usage::

    from pathlib import Path
    from record_geocoder.store import RecordStore

    store = RecordStore.open(Path("addresses.db.jsonl"))
    store.import_all([{"city": "Paris"}, {"city": "Lyon"}])
    for record in store.find_unprocessed():
        store.update(record["_id"], {"GeocodeStatus": "ROOFTOP"})
"""

from __future__ import annotations

import copy
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Iterable, Mapping

from shared.python.exceptions import StoreReadError, StoreWriteError

logger = logging.getLogger("record_geocoder.store")

#: Internal identifier assigned to every stored record.
ID_FIELD = "_id"

#: A record is "processed" once this field is present.
STATUS_FIELD = "GeocodeStatus"

Record = dict[str, Any]


class RecordStore:
    """JSON Lines backed record collection.

    Args:
        path: Location of the store file.  It is created on the first write.
        records: Initial in-memory contents (normally supplied by
                 :meth:`open`).
    """

    def __init__(self, path: Path, records: list[Record] | None = None) -> None:
        self.path = Path(path)
        self._records: list[Record] = records or []

    @classmethod
    def open(cls, path: Path) -> "RecordStore":
        """Load the store at *path*, or start an empty one if it does not exist.

        Raises:
            StoreReadError: If the file cannot be read or a line is not a
                JSON object.
        """
        path = Path(path)
        if not path.exists():
            logger.debug("Store %s does not exist yet; starting empty.", path)
            return cls(path)

        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise StoreReadError(str(path), str(exc)) from exc

        records: list[Record] = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                doc = json.loads(line)
            except json.JSONDecodeError as exc:
                raise StoreReadError(str(path), f"line {lineno}: {exc}") from exc
            if not isinstance(doc, dict) or ID_FIELD not in doc:
                raise StoreReadError(
                    str(path), f"line {lineno} is not a stored record"
                )
            records.append(doc)

        logger.debug("Loaded %d records from %s", len(records), path)
        return cls(path, records)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def import_all(self, records: Iterable[Mapping[str, Any]]) -> int:
        """Replace the store contents with *records*.

        Each record is copied and given a fresh ``_id``.  Nothing is kept if
        any element is rejected or the file cannot be written.

        Returns:
            The number of records inserted.

        Raises:
            StoreWriteError: If an element is not a mapping or the store
                file cannot be written.
        """
        fresh: list[Record] = []
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise StoreWriteError(
                    f"Record #{index} is a {type(record).__name__}, expected an object."
                )
            doc = {k: v for k, v in record.items() if k != ID_FIELD}
            doc[ID_FIELD] = uuid.uuid4().hex
            fresh.append(doc)

        self._flush(fresh)
        self._records = fresh
        return len(fresh)

    def find_unprocessed(self) -> list[Record]:
        """Return copies of every record without a geocode status."""
        return [copy.deepcopy(r) for r in self._records if STATUS_FIELD not in r]

    def update(self, record_id: str, fields: Mapping[str, Any]) -> None:
        """Merge *fields* into the record identified by *record_id*.

        Raises:
            StoreWriteError: If no record has that id, or the change cannot
                be persisted.  The in-memory record is left untouched on
                failure.
        """
        for index, record in enumerate(self._records):
            if record.get(ID_FIELD) == record_id:
                break
        else:
            raise StoreWriteError(f"No record with id {record_id!r} in {self.path}")

        merged = {**record, **fields, ID_FIELD: record_id}
        updated = self._records[:index] + [merged] + self._records[index + 1:]
        self._flush(updated)
        self._records = updated

    def find_all(self) -> list[Record]:
        """Return copies of every record with the internal ``_id`` removed."""
        return [
            {k: copy.deepcopy(v) for k, v in r.items() if k != ID_FIELD}
            for r in self._records
        ]

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"RecordStore(path={self.path!r}, records={len(self._records)})"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _flush(self, records: list[Record]) -> None:
        """Atomically write *records* to the store file."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                for record in records:
                    fh.write(json.dumps(record, ensure_ascii=False) + "\n")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            raise StoreWriteError(f"Cannot write store {self.path}: {exc}") from exc
