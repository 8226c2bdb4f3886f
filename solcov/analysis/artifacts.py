"""
Compiled artifact bundles.

Reads solc standard-JSON build-info files into the pieces coverage needs:
per-source ASTs and texts, and per-contract creation and runtime bytecode
with their compressed source maps.
"""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from solcov.errors import BuildError

logger = logging.getLogger(__name__)


class ArtifactId(BaseModel):
    """Identity of one compiled contract: compiler version, name, and path."""

    version: str = Field(..., description="Compiler version")
    name: str = Field(..., description="Contract name")
    path: str = Field(..., description="Source path of the contract")
    build: str = Field(default="", description="Build the contract was compiled in")

    model_config = ConfigDict(frozen=True)

    @property
    def identifier(self) -> str:
        """Fully qualified name, e.g. ``src/Counter.sol:Counter``."""
        return f"{self.path}:{self.name}"

    def __str__(self) -> str:
        return f"{self.identifier} ({self.version})"


class Bytecode(BaseModel):
    """A bytecode object and its compressed source map."""

    code: str = Field(default="", alias="object", description="Hex bytecode")
    source_map: str | None = Field(default=None, alias="sourceMap")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_empty(self) -> bool:
        return not self.code.removeprefix("0x")


class CompiledArtifact(BaseModel):
    """Creation and runtime code of one contract."""

    id: ArtifactId
    bytecode: Bytecode | None = None
    deployed_bytecode: Bytecode | None = None


class CompiledSource(BaseModel):
    """One source file as seen by the compiler."""

    path: str
    source_id: int
    version: str
    build: str = ""
    content: str = ""
    ast: dict[str, Any] | None = None


class CompileOutput(BaseModel):
    """Sources and artifacts of one or more compiler runs."""

    sources: list[CompiledSource] = Field(default_factory=list)
    artifacts: list[CompiledArtifact] = Field(default_factory=list)

    def merge(self, other: "CompileOutput") -> "CompileOutput":
        """Combine two outputs, e.g. builds from different compiler versions."""
        return CompileOutput(
            sources=[*self.sources, *other.sources],
            artifacts=[*self.artifacts, *other.artifacts],
        )

    @property
    def versions(self) -> set[str]:
        return {source.version for source in self.sources}


def _strip_root(path: str, root: Path | None) -> str:
    """Make a source path relative to the project root when it lies under it."""
    if root is None:
        return path
    candidate = Path(path)
    if candidate.is_absolute():
        try:
            return candidate.relative_to(root.resolve()).as_posix()
        except ValueError:
            return path
    return PurePosixPath(path).as_posix()


def _read_content(path: str, root: Path | None) -> str:
    """Fall back to the file on disk when the build omits source text."""
    candidate = Path(path) if Path(path).is_absolute() or root is None else root / path
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")
    logger.warning("No source text for %s; line numbers will be unavailable", path)
    return ""


def parse_build_info(
    data: dict[str, Any],
    root: Path | None = None,
    solc_version: str | None = None,
    build_id: str | None = None,
) -> CompileOutput:
    """
    Parse a build-info dictionary.

    Accepts either a build-info document (``solcVersion``, ``input``,
    ``output``) or a bare solc standard-JSON output, in which case the
    compiler version must be passed explicitly.

    Args:
        data: Decoded JSON document
        root: Project root; absolute source paths under it are made relative
        solc_version: Compiler version override
        build_id: Scope of the solc source ids; defaults to the document's ``id``

    Returns:
        CompileOutput with sources and artifacts

    Raises:
        BuildError: If the document has no compiler version or no output
    """
    output = data.get("output", data)
    version = solc_version or data.get("solcVersion")
    if not version:
        raise BuildError("Build has no compiler version; pass --solc-version")
    if not isinstance(output, dict) or "sources" not in output:
        raise BuildError("Build has no compiler output")

    errors = [e for e in output.get("errors", []) if e.get("severity") == "error"]
    if errors:
        message = errors[0].get("formattedMessage") or errors[0].get("message", "")
        raise BuildError(f"Compilation failed: {message.strip()}")

    # Source ids are numbered per compiler run, so they are only unique within a build
    build = build_id if build_id is not None else str(data.get("id", ""))
    input_sources = data.get("input", {}).get("sources", {})
    result = CompileOutput()

    for path, source in output["sources"].items():
        content = input_sources.get(path, {}).get("content")
        if content is None:
            content = _read_content(path, root)
        result.sources.append(
            CompiledSource(
                path=_strip_root(path, root),
                source_id=source["id"],
                version=version,
                build=build,
                content=content,
                ast=source.get("ast"),
            )
        )

    for path, contracts in output.get("contracts", {}).items():
        for name, contract in contracts.items():
            evm = contract.get("evm", {})
            result.artifacts.append(
                CompiledArtifact(
                    id=ArtifactId(
                        version=version, name=name, path=_strip_root(path, root), build=build
                    ),
                    bytecode=evm.get("bytecode"),
                    deployed_bytecode=evm.get("deployedBytecode"),
                )
            )

    return result


def load_build_info(
    path: str | Path,
    root: Path | None = None,
    solc_version: str | None = None,
    build_id: str | None = None,
) -> CompileOutput:
    """
    Load a build-info JSON file.

    Args:
        path: Path to the build-info file
        root: Project root for path normalization
        solc_version: Compiler version override
        build_id: Scope of the solc source ids; defaults to the document's
            ``id``, else the file path

    Returns:
        CompileOutput with sources and artifacts

    Raises:
        BuildError: If the file is missing, not JSON, or malformed
    """
    path = Path(path)
    if not path.exists():
        raise BuildError(f"Build file not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise BuildError(f"Cannot read build file {path}: {e}") from e

    try:
        if build_id is None:
            build_id = str(data.get("id") or path.resolve())
        return parse_build_info(data, root=root, solc_version=solc_version, build_id=build_id)
    except (KeyError, TypeError, ValueError) as e:
        raise BuildError(f"Malformed build file {path}: {e}") from e
