"""
Debug reporter - raw per-item dump for diagnosing extraction and correlation.
"""

from rich.console import Console

from solcov.coverage.map import CoverageMap
from solcov.reporting.base import CoverageReporter


class DebugReporter(CoverageReporter):
    """Print every item with its kind, byte range, line, and hit count."""

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console()
        self.lines: list[str] = []

    def build(self, coverage_map: CoverageMap) -> None:
        super().build(coverage_map)
        for version, entry in coverage_map:
            self.lines.append(f"{entry.path} (solc {version}, source id {entry.source_id})")
            for item in entry.items:
                line = (
                    f"  #{item.index} {item.kind.value} "
                    f"[{item.start}, {item.end}) line {item.line}: {item.hits} hits"
                )
                if item.branch_id is not None:
                    line += f" (branch {item.branch_id}, path {item.path_id})"
                self.lines.append(line)

    def finalize(self) -> None:
        for line in self.lines:
            # Plain output; item ranges contain brackets rich would parse as markup
            self.console.print(line, markup=False, highlight=False)
