"""
Solcov Coverage.

Coverage items, the accumulated coverage map, and hit correlation.
"""

from solcov.coverage.models import CoverageItem, HitMap, ItemKind, SourceEntry
from solcov.coverage.map import CoverageMap
from solcov.coverage.correlator import HitCorrelator

__all__ = [
    "CoverageItem",
    "CoverageMap",
    "HitCorrelator",
    "HitMap",
    "ItemKind",
    "SourceEntry",
]
