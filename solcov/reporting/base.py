"""
Reporter interface.

A reporter ingests a finalized CoverageMap once with ``build`` and renders
it with ``finalize``. The set of report kinds is closed.
"""

from abc import ABC, abstractmethod
from enum import Enum

from solcov.coverage.map import CoverageMap


class CoverageReportKind(str, Enum):
    """Available report formats."""

    SUMMARY = "summary"
    LCOV = "lcov"
    DEBUG = "debug"


class CoverageReporter(ABC):
    """Base class for coverage reporters."""

    def __init__(self):
        self._map: CoverageMap | None = None

    def build(self, coverage_map: CoverageMap) -> None:
        """
        Ingest the coverage map to report on.

        Raises:
            RuntimeError: If called more than once
        """
        if self._map is not None:
            raise RuntimeError(f"{type(self).__name__}.build() may only be called once")
        self._map = coverage_map

    @property
    def coverage_map(self) -> CoverageMap:
        if self._map is None:
            raise RuntimeError(f"{type(self).__name__}.build() was not called")
        return self._map

    @abstractmethod
    def finalize(self) -> None:
        """Render the report to its destination."""
