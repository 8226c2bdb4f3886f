"""
Solcov - Source-level coverage for smart-contract test suites.

Correlates per-instruction execution hits with statements, branches and
lines of the Solidity sources they were compiled from.

Usage:
    solcov coverage build-info.json --results runs.json            # Summary table
    solcov coverage build-info.json --results runs.json -r lcov    # Write lcov.info
"""

__version__ = "0.1.0"
