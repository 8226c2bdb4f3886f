"""
Address identification.

Resolves the addresses seen in call traces to the compiled artifacts whose
code runs there. Unknown and ambiguous addresses resolve to no artifact.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol

from solcov.analysis.artifacts import ArtifactId
from solcov.analysis.sourcemap import LIBRARY_PLACEHOLDER

logger = logging.getLogger(__name__)

# Deployed code may differ from compiled code where immutables and library
# addresses are filled in; above this share of differing bytes it is a mismatch
MAX_DIFF_RATIO = 0.1


@dataclass(frozen=True)
class AddressIdentity:
    """An address and the artifact identified for it, if any."""

    address: str
    artifact_id: ArtifactId | None = None


class TraceIdentifier(Protocol):
    """Anything that can resolve trace addresses to artifacts."""

    def identify_addresses(
        self,
        addresses: Iterable[str],
        code: Mapping[str, str],
    ) -> list[AddressIdentity]: ...


def _normalize(code: str) -> bytes:
    code = code[2:] if code.startswith("0x") else code
    code = LIBRARY_PLACEHOLDER.sub("0" * 40, code)
    try:
        raw = bytes.fromhex(code)
    except ValueError:
        return b""
    return strip_metadata(raw)


def strip_metadata(code: bytes) -> bytes:
    """Remove the trailing CBOR metadata section, whose length is in the last two bytes."""
    if len(code) < 2:
        return code
    length = int.from_bytes(code[-2:], "big")
    if length + 2 > len(code):
        return code
    return code[: -(length + 2)]


def _same_contract(left: ArtifactId, right: ArtifactId) -> bool:
    """One contract compiled in two builds of the same compiler version."""
    return (left.version, left.path, left.name) == (right.version, right.path, right.name)


def diff_ratio(left: bytes, right: bytes) -> float:
    """Share of differing bytes between two code blobs; 1.0 if lengths differ."""
    if len(left) != len(right) or not left:
        return 1.0
    differing = sum(1 for a, b in zip(left, right) if a != b)
    return differing / len(left)


class LocalTraceIdentifier:
    """
    Identify addresses by comparing their runtime code to known contracts.

    Usage:
        identifier = LocalTraceIdentifier({artifact_id: deployed_code})
        identities = identifier.identify_addresses(trace.addresses, trace.code)
    """

    def __init__(self, known_contracts: Mapping[ArtifactId, str]):
        """
        Initialize the identifier.

        Args:
            known_contracts: Artifact id -> compiled runtime bytecode (hex)
        """
        self._known = {
            artifact_id: _normalize(code)
            for artifact_id, code in known_contracts.items()
            if _normalize(code)
        }
        self._cache: dict[str, ArtifactId | None] = {}

    def identify_code(self, code: str) -> ArtifactId | None:
        """Find the single best-matching artifact for a runtime code blob."""
        if code in self._cache:
            return self._cache[code]

        target = _normalize(code)
        best: ArtifactId | None = None
        best_ratio = MAX_DIFF_RATIO
        ambiguous = False
        for artifact_id, known in self._known.items():
            ratio = diff_ratio(known, target)
            if ratio < best_ratio:
                best, best_ratio, ambiguous = artifact_id, ratio, False
            elif (
                ratio == best_ratio
                and best is not None
                and not _same_contract(best, artifact_id)
            ):
                ambiguous = True

        if ambiguous:
            logger.debug("Ambiguous code match between artifacts, leaving unresolved")
            best = None
        self._cache[code] = best
        return best

    def identify_addresses(
        self,
        addresses: Iterable[str],
        code: Mapping[str, str],
    ) -> list[AddressIdentity]:
        """
        Resolve each address to an artifact.

        Args:
            addresses: Addresses touched by a trace
            code: Address -> runtime code observed at that address

        Returns:
            One identity per distinct address, in first-seen order
        """
        identities: list[AddressIdentity] = []
        seen: set[str] = set()
        for address in addresses:
            address = address.lower()
            if address in seen:
                continue
            seen.add(address)
            runtime = code.get(address)
            artifact_id = self.identify_code(runtime) if runtime else None
            if artifact_id is None:
                logger.debug("Could not identify %s", address)
            identities.append(AddressIdentity(address=address, artifact_id=artifact_id))
        return identities
