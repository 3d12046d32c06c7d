"""
placement — Shared Input Validators
===================================
Static utility methods used across placement to validate preconditions
before any request is built or sent.

All methods raise an appropriate exception from
:mod:`shared.python.exceptions` rather than returning booleans, so
validation blocks read as a flat list of assertions::

    Validators.assert_not_empty(client_id, "client_id")
    Validators.assert_choice(units, ("metric", "imperial"), "units")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Sequence

from shared.python.exceptions import (
    ColumnNotFoundError,
    InputValidationError,
    OutputWriteError,
)


class Validators:
    """Collection of static precondition checks.

    All methods are ``@staticmethod``; this class is never instantiated.
    """

    # ------------------------------------------------------------------
    # Parameter checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_choice(value: Any, choices: Sequence[str], name: str) -> None:
        """Assert that *value* is one of *choices*.

        Raises:
            InputValidationError: If *value* is not in *choices*.

        Example::

            Validators.assert_choice(auth, ("standard_api", "work"), "auth")
        """
        if value not in choices:
            allowed = ", ".join(f"'{c}'" for c in choices)
            raise InputValidationError(
                f"Invalid {name} {value!r}. Must be one of: {allowed}"
            )

    @staticmethod
    def assert_not_empty(value: str | None, name: str) -> None:
        """Assert that a credential-like string is present and non-empty.

        Raises:
            InputValidationError: If *value* is ``None`` or blank.
        """
        if value is None or not str(value).strip():
            raise InputValidationError(f"You must specify a {name}.")

    @staticmethod
    def assert_string_sequence(values: Iterable[Any], name: str) -> list[str]:
        """Assert that *values* is a sequence of strings and return it as a list.

        A bare ``str`` is rejected because iterating it would silently
        treat every character as an address.

        Raises:
            InputValidationError: If *values* is a string, not iterable,
                or contains a non-string item.
        """
        if isinstance(values, (str, bytes)):
            raise InputValidationError(
                f"{name} must be a sequence of strings, not a single string."
            )
        try:
            items = list(values)
        except TypeError as exc:
            raise InputValidationError(
                f"{name} must be a sequence of strings."
            ) from exc
        for i, item in enumerate(items):
            if not isinstance(item, str):
                raise InputValidationError(
                    f"{name}[{i}] is {type(item).__name__}, expected str."
                )
        return items

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* points to an existing regular file.

        Raises:
            InputValidationError: If *path* does not exist or is a
                directory rather than a file.
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

        Raises:
            OutputWriteError: If the parent directory cannot be created.
        """
        parent = Path(output_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(str(output_path), str(exc)) from exc

    @staticmethod
    def assert_supported_extension(path: Path, extensions: Sequence[str]) -> None:
        """Assert that *path* has one of the allowed file extensions.

        Args:
            path: File path to check.
            extensions: Allowed extensions, each starting with a dot.

        Raises:
            InputValidationError: If the extension is not in *extensions*.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        allowed = [ext.lower() for ext in extensions]
        if suffix not in allowed:
            raise InputValidationError(
                f"Unsupported file extension '{suffix}' for '{path.name}'. "
                f"Accepted extensions: {', '.join(allowed)}"
            )

    # ------------------------------------------------------------------
    # Tabular data checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_columns_exist(
        df: object,  # pandas DataFrame, typed loosely to avoid hard dep
        required_columns: Sequence[str],
    ) -> None:
        """Assert that all *required_columns* are present in *df*.

        Raises:
            ColumnNotFoundError: On the first missing column found.
        """
        available = list(df.columns)  # type: ignore[attr-defined]
        for col in required_columns:
            if col not in available:
                raise ColumnNotFoundError(col, available)
