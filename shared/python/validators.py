"""
Record Geocoder — Shared Input Validators
==========================================
Static utility methods used to validate common preconditions before
processing begins.

All methods raise an appropriate exception from
:mod:`shared.python.exceptions` rather than returning booleans — this
keeps ``validate_inputs`` implementations simple and readable::

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_file_exists(self.input_path)
            Validators.assert_choice(self.file_format, ["json", "csv"], "format")
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from shared.python.exceptions import ExportError, InputValidationError


class Validators:
    """Collection of static precondition checks.

    All methods are ``@staticmethod`` — this class is never instantiated.
    It exists purely as a logical namespace.
    """

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* points to an existing regular file.

        Args:
            path: Path object to check.

        Raises:
            InputValidationError: If *path* does not exist or is a
                directory rather than a file.

        Example::

            Validators.assert_file_exists(Path("data/addresses.json"))
        """
        path = Path(path)
        if not path.exists():
            raise InputValidationError(
                f"Input file not found: '{path}'. "
                "Check that the path is correct and the file exists."
            )
        if path.is_dir():
            raise InputValidationError(
                f"Expected a file but got a directory: '{path}'."
            )

    @staticmethod
    def assert_output_dir_writable(output_path: Path) -> None:
        """Assert that the parent directory of *output_path* is writable.

        Creates the parent directory (and any missing parents) if it does
        not yet exist.

        Args:
            output_path: Intended output file path.

        Raises:
            ExportError: If the parent directory cannot be created.
        """
        parent = Path(output_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportError(str(output_path), str(exc)) from exc

    # ------------------------------------------------------------------
    # Option checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_choice(value: str, allowed: Sequence[str], label: str) -> None:
        """Assert that *value* is one of *allowed* (case-insensitive).

        Args:
            value: The option value supplied by the caller.
            allowed: Accepted values.
            label: Option name used in the error message.

        Raises:
            InputValidationError: If *value* is not accepted.
        """
        if value.lower() not in [a.lower() for a in allowed]:
            raise InputValidationError(
                f"Unsupported {label} '{value}'. "
                f"Accepted values: {', '.join(allowed)}"
            )

    @staticmethod
    def assert_non_empty(values: Sequence[str], label: str) -> None:
        """Assert that *values* contains at least one non-blank entry.

        Raises:
            InputValidationError: If *values* is empty.
        """
        if not [v for v in values if v and v.strip()]:
            raise InputValidationError(f"At least one {label} is required.")

    @staticmethod
    def assert_non_negative(value: float, label: str) -> None:
        """Assert that a numeric option is ``>= 0``.

        Raises:
            InputValidationError: If *value* is negative.
        """
        if value < 0:
            raise InputValidationError(f"{label} must be >= 0, got {value}.")
