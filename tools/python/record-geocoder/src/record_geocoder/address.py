"""
Record Geocoder — Address Builder
=================================
Assembles the single-line address sent to the geocoder from a record's
fields.  Input schemas vary, so assembly is best effort: a missing field
contributes an empty segment instead of an error.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

SEPARATOR = ", "


def build_address(record: Mapping[str, Any], field_order: Sequence[str]) -> str:
    """Join the record's values for *field_order* with ``", "``.

    Args:
        record: The record to read address parts from.
        field_order: Field names, in the order they appear in the address.

    Returns:
        The address string.  ``None`` and absent fields become empty
        segments, so ``{"city": "Springfield"}`` with ``["city", "state"]``
        yields ``"Springfield, "``.

    Example::

        build_address({"city": "Springfield", "state": "IL"}, ["city", "state"])
        # 'Springfield, IL'
    """
    parts = []
    for name in field_order:
        value = record.get(name)
        parts.append("" if value is None else str(value))
    return SEPARATOR.join(parts)


def parse_field_list(fields: str) -> list[str]:
    """Split a comma-separated ``--fields`` value into field names."""
    return [f.strip() for f in fields.split(",") if f.strip()]
