"""
Execution results delivered by a suite runner.

A SuiteResult is produced per test contract as soon as it finishes; each
test in it may carry a hit map and the call traces it executed.
"""

from dataclasses import dataclass, field
from typing import Any

from solcov.coverage.models import HitMap


@dataclass
class Trace:
    """Addresses touched by one call trace, and their runtime code if known."""

    addresses: list[str] = field(default_factory=list)
    code: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Trace":
        return cls(
            addresses=[address.lower() for address in data.get("addresses", [])],
            code={address.lower(): code for address, code in data.get("code", {}).items()},
        )


@dataclass
class TestResult:
    """Outcome of one test function."""

    success: bool = True
    coverage: HitMap | None = None
    traces: list[Trace] = field(default_factory=list)
    reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestResult":
        coverage = data.get("coverage")
        return cls(
            success=data.get("success", True),
            coverage=HitMap.from_dict(coverage) if coverage is not None else None,
            traces=[Trace.from_dict(trace) for trace in data.get("traces", [])],
            reason=data.get("reason"),
        )


@dataclass
class SuiteResult:
    """Results of every selected test in one test contract."""

    test_results: dict[str, TestResult] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def passed(self) -> int:
        return sum(1 for result in self.test_results.values() if result.success)

    @property
    def failed(self) -> int:
        return len(self.test_results) - self.passed
