"""
Coverage Pipeline - from compiler output to a rendered report.

Orchestrates the full coverage flow:
1. prepare: extract items from every AST and decode every source map
2. collect: run the tests on a worker thread and merge hits as suites finish
3. report: hand the finished map to the selected reporter
"""

import logging
from dataclasses import dataclass, field

from rich.console import Console

from solcov.analysis.artifacts import ArtifactId, CompiledArtifact, CompileOutput
from solcov.analysis.sourcemap import SourceMap, decode_source_map
from solcov.analysis.visitor import Visitor
from solcov.config import CoverageConfig
from solcov.coverage.correlator import HitCorrelator, SourceMapPair
from solcov.coverage.map import CoverageMap
from solcov.coverage.models import SourceEntry
from solcov.errors import ReportError, SourceMapError, VisitorError
from solcov.reporting import CoverageReportKind, create_reporter
from solcov.runtime.identifier import LocalTraceIdentifier, TraceIdentifier
from solcov.runtime.orchestrator import TestOrchestrator
from solcov.runtime.runner import SuiteRunner

logger = logging.getLogger(__name__)


@dataclass
class PreparedCoverage:
    """Static coverage structure, built before any test runs."""

    coverage_map: CoverageMap
    source_maps: dict[ArtifactId, SourceMapPair] = field(default_factory=dict)
    known_contracts: dict[ArtifactId, str] = field(default_factory=dict)

    @property
    def source_count(self) -> int:
        return len(self.coverage_map)


@dataclass
class CollectionStats:
    """Counts gathered while merging test results."""

    suites: int = 0
    tests: int = 0
    tests_with_coverage: int = 0
    item_hits: int = 0


class CoveragePipeline:
    """
    Coverage pipeline for a compiled project.

    Usage:
        pipeline = CoveragePipeline(config)
        prepared = pipeline.prepare(output)
        coverage_map = pipeline.collect(prepared, runner)
        pipeline.report(coverage_map)
    """

    def __init__(self, config: CoverageConfig | None = None):
        """Initialize the pipeline with optional configuration."""
        self.config = config or CoverageConfig()
        self.stats = CollectionStats()

    def prepare(self, output: CompileOutput) -> PreparedCoverage:
        """
        Build the coverage map and source maps from compiler output.

        Sources without an AST or without items, excluded sources, and
        artifacts without a decodable source map are skipped.

        Args:
            output: Compiler output of the project

        Returns:
            PreparedCoverage holding the empty-hit map and the source maps
        """
        prepared = PreparedCoverage(coverage_map=CoverageMap())

        for artifact in output.artifacts:
            if artifact.deployed_bytecode and not artifact.deployed_bytecode.is_empty:
                prepared.known_contracts[artifact.id] = artifact.deployed_bytecode.code
            pair = self._decode_pair(artifact)
            if pair is not None:
                prepared.source_maps[artifact.id] = pair

        for source in output.sources:
            if source.ast is None:
                logger.debug("No AST for %s", source.path)
                continue
            if self.config.is_excluded(source.path):
                logger.debug("Excluded %s", source.path)
                continue
            try:
                items = Visitor().visit_ast(source.ast, source.content)
            except VisitorError as e:
                logger.debug("Skipping %s: %s", source.path, e)
                continue
            if not items:
                continue

            prepared.coverage_map.register_source(
                source.version,
                source.path,
                SourceEntry(
                    path=source.path,
                    source_id=source.source_id,
                    source=source.content,
                    items=items,
                ),
                source.build,
            )

        return prepared

    def _decode_pair(self, artifact: CompiledArtifact) -> SourceMapPair | None:
        creation, runtime = artifact.bytecode, artifact.deployed_bytecode
        if creation is None or runtime is None or not creation.source_map or not runtime.source_map:
            logger.debug("No source maps for %s", artifact.id)
            return None

        def decode(source_map: str, code: str) -> SourceMap:
            return decode_source_map(source_map, code if self.config.pc_offsets else None)

        try:
            return decode(creation.source_map, creation.code), decode(runtime.source_map, runtime.code)
        except SourceMapError as e:
            logger.debug("Skipping source maps of %s: %s", artifact.id, e)
            return None

    def collect(
        self,
        prepared: PreparedCoverage,
        runner: SuiteRunner,
        identifier: TraceIdentifier | None = None,
    ) -> CoverageMap:
        """
        Run the tests and merge their hits into the prepared map.

        Args:
            prepared: Output of ``prepare``
            runner: Executes the filtered suites
            identifier: Address resolver; defaults to matching runtime code
                against the known contracts

        Returns:
            The prepared map, now holding the accumulated hits

        Raises:
            ExecutionError: If the test run terminated abnormally
        """
        correlator = HitCorrelator(
            prepared.coverage_map,
            prepared.source_maps,
            identifier or LocalTraceIdentifier(prepared.known_contracts),
        )
        orchestrator = TestOrchestrator(runner, self.config.test_filter)

        for suite_name, suite in orchestrator.run():
            self.stats.suites += 1
            for result in suite.test_results.values():
                self.stats.tests += 1
                if result.coverage is not None:
                    self.stats.tests_with_coverage += 1
                self.stats.item_hits += correlator.correlate(result)
            logger.info("Collected coverage of %s", suite_name)

        return prepared.coverage_map

    def report(self, coverage_map: CoverageMap, console: Console | None = None) -> None:
        """
        Render the finished map with the configured reporter.

        Raises:
            ReportError: If the LCOV file cannot be created or written
        """
        kind = CoverageReportKind(self.config.report)
        if kind != CoverageReportKind.LCOV:
            reporter = create_reporter(kind, console=console)
            reporter.build(coverage_map)
            reporter.finalize()
            return

        path = self.config.lcov_path
        try:
            destination = path.open("w", encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Cannot create {path}: {e}") from e
        with destination:
            reporter = create_reporter(kind, destination=destination)
            reporter.build(coverage_map)
            reporter.finalize()
