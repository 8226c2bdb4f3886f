"""
Solcov Runtime.

Test execution on a worker thread, recorded-result replay, and resolution
of trace addresses to compiled artifacts.
"""

from solcov.runtime.identifier import AddressIdentity, LocalTraceIdentifier, TraceIdentifier
from solcov.runtime.models import SuiteResult, TestResult, Trace
from solcov.runtime.orchestrator import TestOrchestrator
from solcov.runtime.runner import ReplayRunner, ResultSender, SuiteRunner

__all__ = [
    "AddressIdentity",
    "LocalTraceIdentifier",
    "ReplayRunner",
    "ResultSender",
    "SuiteResult",
    "SuiteRunner",
    "TestOrchestrator",
    "TestResult",
    "Trace",
    "TraceIdentifier",
]
