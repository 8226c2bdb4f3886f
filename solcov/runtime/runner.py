"""
Suite runners.

The EVM executor itself lives outside Solcov; anything that can run the
selected suites and hand back one SuiteResult per suite satisfies the
SuiteRunner protocol. ReplayRunner replays results recorded to a file.
"""

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import yaml

from solcov.config import TestFilter
from solcov.errors import ExecutionError
from solcov.runtime.models import SuiteResult, TestResult

logger = logging.getLogger(__name__)

# Delivers one finished suite to the consumer
ResultSender = Callable[[str, SuiteResult], None]


class SuiteRunner(Protocol):
    """Runs the filtered test suites, sending each result as it completes."""

    def test(self, test_filter: TestFilter, send: ResultSender) -> None: ...


class ReplayRunner:
    """
    Replay recorded execution results.

    Usage:
        runner = ReplayRunner.from_file("runs.json")
        runner.test(TestFilter(match_test="^testDeposit"), send)
    """

    def __init__(self, suites: dict[str, dict[str, Any]]):
        """
        Initialize the runner.

        Args:
            suites: Suite name -> {"tests": {test name -> recorded result}}
        """
        self.suites = suites

    @classmethod
    def from_file(cls, path: str | Path) -> "ReplayRunner":
        """
        Load recorded results from a JSON or YAML file.

        Raises:
            ExecutionError: If the file is missing or cannot be parsed
        """
        path = Path(path)
        if not path.exists():
            raise ExecutionError(f"Results file not found: {path}")
        try:
            with path.open(encoding="utf-8") as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ExecutionError(f"Cannot read results file {path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("suites"), dict):
            raise ExecutionError(f"Results file {path} has no 'suites' mapping")
        return cls(data["suites"])

    def test(self, test_filter: TestFilter, send: ResultSender) -> None:
        """Send one SuiteResult per suite that has at least one selected test."""
        for suite_name, suite in self.suites.items():
            if not test_filter.matches_suite(suite_name):
                logger.debug("Skipping suite %s", suite_name)
                continue

            started = time.perf_counter()
            results = {
                test_name: TestResult.from_dict(recorded)
                for test_name, recorded in (suite.get("tests") or {}).items()
                if test_filter.matches_test(test_name)
            }
            if not results:
                continue

            send(
                suite_name,
                SuiteResult(
                    test_results=results,
                    duration_seconds=time.perf_counter() - started,
                ),
            )
