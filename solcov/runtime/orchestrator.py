"""
Test orchestration.

Runs the whole filtered test suite on a worker thread and streams each
finished suite back to the calling thread over a queue, so correlation can
start before the last test completes. The worker never sees the coverage
map; it only produces result messages.
"""

import logging
import queue
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

from solcov.config import TestFilter
from solcov.errors import ExecutionError
from solcov.runtime.models import SuiteResult
from solcov.runtime.runner import SuiteRunner

logger = logging.getLogger(__name__)

# End-of-stream marker, sent once the runner returns or raises
_DONE = object()


class TestOrchestrator:
    """
    Stream suite results from a runner executing on a worker thread.

    Usage:
        orchestrator = TestOrchestrator(runner, test_filter)
        for suite_name, suite in orchestrator.run():
            correlator.correlate_suite(suite)
    """

    def __init__(self, runner: SuiteRunner, test_filter: TestFilter | None = None):
        self.runner = runner
        self.test_filter = test_filter or TestFilter()
        self.suites_completed = 0

    def run(self) -> Iterator[tuple[str, SuiteResult]]:
        """
        Run the suite and yield ``(suite_name, SuiteResult)`` in send order.

        The worker is joined before the iterator is exhausted.

        Raises:
            ExecutionError: If the runner raised; any suites it sent before
                failing have already been yielded
        """
        channel: queue.Queue = queue.Queue()

        def send(suite_name: str, result: SuiteResult) -> None:
            channel.put((suite_name, result))

        def execute() -> None:
            try:
                self.runner.test(self.test_filter, send)
            finally:
                channel.put(_DONE)

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="solcov-tests") as executor:
            future = executor.submit(execute)
            while (message := channel.get()) is not _DONE:
                suite_name, result = message
                self.suites_completed += 1
                logger.debug("Suite %s finished with %d tests", suite_name, len(result.test_results))
                yield suite_name, result

            try:
                future.result()
            except Exception as e:
                raise ExecutionError(f"Test execution failed: {e}") from e
