"""
Summary reporter - per-file coverage table on the console.
"""

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from solcov.coverage.map import CoverageMap
from solcov.coverage.models import ItemKind, SourceEntry
from solcov.reporting.base import CoverageReporter


@dataclass
class SummaryRow:
    """Hit and total counts for one file, or for the whole map."""

    name: str
    hit: int = 0
    total: int = 0
    lines_hit: int = 0
    lines_total: int = 0
    statements_hit: int = 0
    statements_total: int = 0
    branches_hit: int = 0
    branches_total: int = 0

    @classmethod
    def from_entry(cls, name: str, entry: SourceEntry) -> "SummaryRow":
        row = cls(name=name)
        for item in entry.items:
            row.add(item.kind, item.is_hit)
        return row

    def add(self, kind: ItemKind, is_hit: bool) -> None:
        hit = 1 if is_hit else 0
        self.hit += hit
        self.total += 1
        if kind == ItemKind.LINE:
            self.lines_hit += hit
            self.lines_total += 1
        elif kind == ItemKind.STATEMENT:
            self.statements_hit += hit
            self.statements_total += 1
        else:
            self.branches_hit += hit
            self.branches_total += 1

    def absorb(self, other: "SummaryRow") -> None:
        self.hit += other.hit
        self.total += other.total
        self.lines_hit += other.lines_hit
        self.lines_total += other.lines_total
        self.statements_hit += other.statements_hit
        self.statements_total += other.statements_total
        self.branches_hit += other.branches_hit
        self.branches_total += other.branches_total


def format_ratio(hit: int, total: int) -> str:
    """Format ``hit/total`` with a percentage; an empty set counts as fully covered."""
    percent = 100.0 if total == 0 else hit / total * 100.0
    return f"{percent:.2f}% ({hit}/{total})"


class SummaryReporter(CoverageReporter):
    """
    Human-readable coverage table.

    One row per source file, plus a total row. Items hit are items with a
    non-zero counter; items total are all registered items.
    """

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console()
        self.rows: list[SummaryRow] = []
        self.total = SummaryRow(name="Total")

    def build(self, coverage_map: CoverageMap) -> None:
        super().build(coverage_map)
        # Multiple compiler versions of one path are reported separately
        multi_version = len(coverage_map.versions) > 1
        for version, entry in coverage_map:
            name = f"{entry.path} ({version})" if multi_version else entry.path
            row = SummaryRow.from_entry(name, entry)
            self.rows.append(row)
            self.total.absorb(row)

    def finalize(self) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("File", style="cyan")
        table.add_column("% Lines")
        table.add_column("% Statements")
        table.add_column("% Branches")
        table.add_column("% Items")

        for row in [*self.rows, self.total]:
            table.add_row(
                f"[bold]{row.name}[/bold]" if row is self.total else escape(row.name),
                format_ratio(row.lines_hit, row.lines_total),
                format_ratio(row.statements_hit, row.statements_total),
                format_ratio(row.branches_hit, row.branches_total),
                format_ratio(row.hit, row.total),
            )

        self.console.print(table)
