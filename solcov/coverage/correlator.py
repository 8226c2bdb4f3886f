"""
HitCorrelator - joins raw execution hits with source maps.

For every address a test touched, the address is resolved to a compiled
artifact and its hits are merged into the CoverageMap through both the
creation and the runtime source map of that artifact. Traces do not record
whether code ran during deployment or a call, so both layouts are tried.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from solcov.analysis.artifacts import ArtifactId
from solcov.analysis.sourcemap import SourceMap
from solcov.coverage.map import CoverageMap

if TYPE_CHECKING:
    from solcov.runtime.identifier import TraceIdentifier
    from solcov.runtime.models import SuiteResult, TestResult

logger = logging.getLogger(__name__)

# (creation, runtime) source maps of one artifact
SourceMapPair = tuple[SourceMap, SourceMap]


class HitCorrelator:
    """
    Merge test results into a CoverageMap.

    Owns no state besides the map it writes to; it must only be used from
    the thread that owns the map.
    """

    def __init__(
        self,
        coverage_map: CoverageMap,
        source_maps: dict[ArtifactId, SourceMapPair],
        identifier: TraceIdentifier,
    ):
        """
        Initialize the correlator.

        Args:
            coverage_map: Map to merge hits into
            source_maps: Artifact id -> (creation, runtime) source maps
            identifier: Resolves trace addresses to artifact ids
        """
        self.coverage_map = coverage_map
        self.source_maps = source_maps
        self.identifier = identifier

    def correlate(self, result: TestResult) -> int:
        """
        Merge the hits of one test into the map.

        Args:
            result: Test result; without a hit map it contributes nothing

        Returns:
            Number of item increments applied
        """
        hit_map = result.coverage
        if hit_map is None:
            return 0

        applied = 0
        merged: set[str] = set()
        for trace in result.traces:
            for identity in self.identifier.identify_addresses(trace.addresses, trace.code):
                # The hit map covers the whole test; merge each address once
                if identity.artifact_id is None or identity.address in merged:
                    continue
                pair = self.source_maps.get(identity.artifact_id)
                hits = hit_map.get(identity.address)
                if pair is None or hits is None:
                    continue
                merged.add(identity.address)
                applied += self.merge(identity.artifact_id, pair, hits)
        return applied

    def merge(self, artifact_id: ArtifactId, pair: SourceMapPair, hits: dict[int, int]) -> int:
        """Merge one address's hits through both source maps of its artifact."""
        creation, runtime = pair
        applied = self.coverage_map.merge_hits(
            artifact_id.version, creation, hits, artifact_id.build
        )
        applied += self.coverage_map.merge_hits(
            artifact_id.version, runtime, hits, artifact_id.build
        )
        logger.debug("Merged %d item hits for %s", applied, artifact_id)
        return applied

    def correlate_suite(self, suite: SuiteResult) -> int:
        """Merge every test result of a suite."""
        return sum(self.correlate(result) for result in suite.test_results.values())
