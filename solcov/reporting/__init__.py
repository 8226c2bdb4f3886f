"""
Solcov Reporting.

Render a finalized coverage map as a console summary, an LCOV tracefile,
or a raw per-item dump.
"""

from typing import TextIO

from rich.console import Console

from solcov.reporting.base import CoverageReporter, CoverageReportKind
from solcov.reporting.debug import DebugReporter
from solcov.reporting.lcov import LcovReporter
from solcov.reporting.summary import SummaryReporter


def create_reporter(
    kind: CoverageReportKind,
    console: Console | None = None,
    destination: TextIO | None = None,
) -> CoverageReporter:
    """
    Create the reporter for a report kind.

    Args:
        kind: Report kind
        console: Console for the summary and debug reports
        destination: Open text stream for the LCOV report

    Returns:
        Reporter ready for ``build``
    """
    if kind == CoverageReportKind.SUMMARY:
        return SummaryReporter(console)
    if kind == CoverageReportKind.DEBUG:
        return DebugReporter(console)
    if destination is None:
        raise ValueError("LCOV reports need a destination stream")
    return LcovReporter(destination)


__all__ = [
    "CoverageReportKind",
    "CoverageReporter",
    "DebugReporter",
    "LcovReporter",
    "SummaryReporter",
    "create_reporter",
]
