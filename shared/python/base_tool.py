"""
placement — Shared Base Tool
============================
Abstract base class for the file-driven placement tools (CSV in, CSV out).

Design Pattern:
    Template Method: the public ``run()`` method defines a fixed
    pipeline (validate → process → report) that subclasses fill in
    by implementing ``validate_inputs`` and ``process``.

Usage::

    from shared.python.base_tool import GeoTool

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            ...
        def process(self) -> None:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

# ---------------------------------------------------------------------------
# Package-level logger; each module gets its own child logger via
#   logging.getLogger("placement.<module>").
# ---------------------------------------------------------------------------
logger = logging.getLogger("placement")


class GeoTool(ABC):
    """Abstract base class for placement's CSV tools.

    Attributes:
        input_path: Path to the input CSV file.
        output_path: Path where the output CSV will be written.
        rows_written: Rows in the output file, set by :meth:`_record_rows`.
        rows_ok: Rows whose API ``status`` was ``OK``, or ``None`` when the
            output has no status column (cleaning, dry runs).
        verbose: When ``True`` the ``placement`` logger emits DEBUG
            messages (per-step cleaning progress, per-URL fetches).
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        *,
        verbose: bool = False,
    ) -> None:
        self.input_path: Path = Path(input_path)
        self.output_path: Path = Path(output_path)
        self.verbose: bool = verbose
        self.rows_written: int = 0
        self.rows_ok: int | None = None

        self._configure_logging()

    # ------------------------------------------------------------------
    # Abstract interface, subclasses MUST implement these
    # ------------------------------------------------------------------

    @abstractmethod
    def validate_inputs(self) -> None:
        """Validate all inputs before processing begins.

        Raises:
            InputValidationError: If a required file or column is missing
                or a parameter is out of range.
        """

    @abstractmethod
    def process(self) -> None:
        """Execute the tool's work. Called by :meth:`run` after validation."""

    # ------------------------------------------------------------------
    # Template method, the public API callers use
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Execute the full tool pipeline.

        1. :meth:`validate_inputs`
        2. :meth:`process`
        3. :meth:`_report_success`

        Exceptions from either step propagate unchanged.
        """
        logger.info("Starting %s", self.__class__.__name__)
        start = time.perf_counter()

        self.validate_inputs()
        self.process()

        elapsed = time.perf_counter() - start
        self._report_success(elapsed)

    # ------------------------------------------------------------------
    # Protected helpers
    # ------------------------------------------------------------------

    def _record_rows(self, rows_written: int, statuses: list[str] | None = None) -> None:
        """Remember how many rows were written and how many came back ``OK``."""
        self.rows_written = rows_written
        self.rows_ok = None if statuses is None else sum(s == "OK" for s in statuses)

    def _report_success(self, elapsed: float) -> None:
        logger.info(
            "%s wrote %d row(s) in %.2fs → %s",
            self.__class__.__name__,
            self.rows_written,
            elapsed,
            self.output_path,
        )
        if self.rows_ok is not None and self.rows_ok < self.rows_written:
            logger.warning(
                "%d of %d row(s) did not return status OK; see the "
                "status and error_message columns.",
                self.rows_written - self.rows_ok,
                self.rows_written,
            )

    def _configure_logging(self) -> None:
        """Attach a console handler to the ``placement`` logger once and
        set its level from ``self.verbose``."""
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                fmt="[%(asctime)s] %(levelname)-8s %(name)s — %(message)s",
                datefmt="%H:%M:%S",
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"input_path={self.input_path!r}, "
            f"output_path={self.output_path!r})"
        )
