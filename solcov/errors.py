"""
Exception hierarchy for Solcov.

Faults at artifact or process granularity are raised and end the run;
misses at item or offset granularity never raise.
"""


class SolcovError(Exception):
    """Base class for all Solcov errors."""


class BuildError(SolcovError):
    """A build-info file is missing, unreadable, or malformed."""


class VisitorError(SolcovError):
    """An AST node could not be turned into coverage items."""


class SourceMapError(SolcovError):
    """A compressed source map could not be decoded."""


class ExecutionError(SolcovError):
    """The test-execution thread terminated abnormally."""


class ReportError(SolcovError):
    """A report could not be written to its destination."""
