"""
LCOV reporter - the line-coverage exchange format.

Each source file becomes one record:

    SF:<path>
    DA:<line>,<hits>          one per reportable line
    BRDA:<line>,<block>,<branch>,<taken>
    BRF:/BRH:                 branches found / hit
    LF:/LH:                   lines found / hit
    end_of_record
"""

from typing import TextIO

from solcov.coverage.map import CoverageMap
from solcov.coverage.models import ItemKind, SourceEntry
from solcov.errors import ReportError
from solcov.reporting.base import CoverageReporter


def line_hits(entry: SourceEntry) -> dict[int, int]:
    """Hits per reportable line: the highest counter among items starting on it."""
    lines: dict[int, int] = {}
    for item in entry.items:
        lines[item.line] = max(lines.get(item.line, 0), item.hits)
    return dict(sorted(lines.items()))


def render_record(entry: SourceEntry) -> list[str]:
    """Render the LCOV record of one source file."""
    record = [f"SF:{entry.path}"]

    lines = line_hits(entry)
    for line, hits in lines.items():
        record.append(f"DA:{line},{hits}")

    branches = entry.items_of_kind(ItemKind.BRANCH)
    for item in branches:
        record.append(f"BRDA:{item.line},{item.branch_id},{item.path_id},{item.hits}")
    if branches:
        record.append(f"BRF:{len(branches)}")
        record.append(f"BRH:{sum(1 for item in branches if item.is_hit)}")

    record.append(f"LF:{len(lines)}")
    record.append(f"LH:{sum(1 for hits in lines.values() if hits > 0)}")
    record.append("end_of_record")
    return record


class LcovReporter(CoverageReporter):
    """Write an LCOV tracefile to a text stream."""

    def __init__(self, destination: TextIO):
        super().__init__()
        self.destination = destination
        self.records: list[list[str]] = []

    def build(self, coverage_map: CoverageMap) -> None:
        super().build(coverage_map)
        self.records = [render_record(entry) for _, entry in coverage_map]

    def finalize(self) -> None:
        """
        Write all records.

        Raises:
            ReportError: If the destination cannot be written
        """
        try:
            for record in self.records:
                self.destination.write("\n".join(record) + "\n")
            self.destination.flush()
        except OSError as e:
            raise ReportError(f"Cannot write LCOV report: {e}") from e
