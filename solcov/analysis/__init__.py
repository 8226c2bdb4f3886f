"""
Solcov Analysis.

Static inputs to coverage: compiled artifact bundles, decoded source maps,
and coverage items extracted from ASTs.
"""

from solcov.analysis.artifacts import (
    ArtifactId,
    Bytecode,
    CompiledArtifact,
    CompiledSource,
    CompileOutput,
    load_build_info,
    parse_build_info,
)
from solcov.analysis.sourcemap import (
    JumpType,
    SourceMap,
    SourceMapEntry,
    decode_source_map,
)
from solcov.analysis.visitor import Visitor

__all__ = [
    "ArtifactId",
    "Bytecode",
    "CompileOutput",
    "CompiledArtifact",
    "CompiledSource",
    "JumpType",
    "SourceMap",
    "SourceMapEntry",
    "Visitor",
    "decode_source_map",
    "load_build_info",
    "parse_build_info",
]
