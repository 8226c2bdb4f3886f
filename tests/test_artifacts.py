"""
Tests for build-info loading.
"""

import json

import pytest

from solcov.analysis.artifacts import (
    ArtifactId,
    Bytecode,
    CompileOutput,
    load_build_info,
    parse_build_info,
)
from solcov.errors import BuildError
from tests.counter_project import RUNTIME_CODE, RUNTIME_MAP, SOURCE, SOURCE_PATH, VERSION


class TestArtifactId:
    """Tests for ArtifactId."""

    def test_identifier(self):
        artifact_id = ArtifactId(version=VERSION, name="Counter", path=SOURCE_PATH)
        assert artifact_id.identifier == "src/Counter.sol:Counter"
        assert str(artifact_id) == "src/Counter.sol:Counter (0.8.19)"

    def test_hashable(self):
        first = ArtifactId(version=VERSION, name="Counter", path=SOURCE_PATH)
        second = ArtifactId(version=VERSION, name="Counter", path=SOURCE_PATH)
        assert {first: 1}[second] == 1


class TestBytecode:
    """Tests for Bytecode."""

    def test_solc_field_names(self):
        bytecode = Bytecode.model_validate({"object": "0x6000", "sourceMap": "0:1:0"})
        assert bytecode.code == "0x6000"
        assert bytecode.source_map == "0:1:0"

    def test_is_empty(self):
        assert Bytecode(code="0x").is_empty
        assert Bytecode(code="").is_empty
        assert not Bytecode(code="00").is_empty


class TestParseBuildInfo:
    """Tests for parse_build_info."""

    def test_sources(self, build_info):
        output = parse_build_info(build_info)

        counter = next(source for source in output.sources if source.path == SOURCE_PATH)
        assert counter.source_id == 0
        assert counter.version == VERSION
        assert counter.content == SOURCE
        assert counter.ast["nodeType"] == "SourceUnit"
        assert output.versions == {VERSION}

    def test_artifacts(self, build_info):
        output = parse_build_info(build_info)

        counter = next(a for a in output.artifacts if a.id.name == "Counter")
        assert counter.id == ArtifactId(version=VERSION, name="Counter", path=SOURCE_PATH)
        assert counter.deployed_bytecode.code == RUNTIME_CODE
        assert counter.deployed_bytecode.source_map == RUNTIME_MAP

    def test_bare_output_needs_version(self, build_info):
        with pytest.raises(BuildError, match="compiler version"):
            parse_build_info(build_info["output"])

    def test_bare_output_with_version(self, build_info):
        output = parse_build_info(build_info["output"], solc_version="0.8.20")
        assert output.versions == {"0.8.20"}

    def test_compile_errors_raise(self, build_info):
        build_info["output"]["errors"] = [
            {"severity": "warning", "message": "unused variable"},
            {"severity": "error", "formattedMessage": "TypeError: bad\n"},
        ]
        with pytest.raises(BuildError, match="TypeError: bad"):
            parse_build_info(build_info)

    def test_missing_output_raises(self):
        with pytest.raises(BuildError):
            parse_build_info({"solcVersion": VERSION, "output": {}})

    def test_absolute_paths_made_relative(self, tmp_path, build_info):
        root = tmp_path.resolve()
        absolute = str(root / "src" / "Counter.sol")
        output_sources = build_info["output"]["sources"]
        output_sources[absolute] = output_sources.pop(SOURCE_PATH)
        build_info["input"]["sources"][absolute] = build_info["input"]["sources"].pop(SOURCE_PATH)

        output = parse_build_info(build_info, root=tmp_path)

        assert SOURCE_PATH in {source.path for source in output.sources}

    def test_content_read_from_disk(self, tmp_path, build_info):
        (tmp_path / "src").mkdir()
        (tmp_path / SOURCE_PATH).write_text(SOURCE)
        del build_info["input"]["sources"][SOURCE_PATH]

        output = parse_build_info(build_info, root=tmp_path)

        counter = next(source for source in output.sources if source.path == SOURCE_PATH)
        assert counter.content == SOURCE

    def test_build_taken_from_document_id(self, build_info):
        build_info["id"] = "abc123"
        output = parse_build_info(build_info)

        assert {source.build for source in output.sources} == {"abc123"}
        assert {artifact.id.build for artifact in output.artifacts} == {"abc123"}

    def test_explicit_build_id(self, build_info):
        build_info["id"] = "abc123"
        output = parse_build_info(build_info, build_id="override")
        assert {source.build for source in output.sources} == {"override"}

    def test_merge(self, build_info):
        first = parse_build_info(build_info)
        second = parse_build_info(build_info, solc_version="0.7.6")

        merged = first.merge(second)

        assert merged.versions == {VERSION, "0.7.6"}
        assert len(merged.artifacts) == len(first.artifacts) * 2


class TestLoadBuildInfo:
    """Tests for load_build_info."""

    def test_loads_file(self, build_info_file):
        output = load_build_info(build_info_file)
        assert isinstance(output, CompileOutput)
        assert len(output.sources) == 2

    def test_build_defaults_to_file_path(self, build_info_file):
        """Without an id in the document, each file is its own build."""
        output = load_build_info(build_info_file)
        assert {source.build for source in output.sources} == {str(build_info_file.resolve())}

    def test_build_from_document_id(self, tmp_path, build_info):
        build_info["id"] = "abc123"
        path = tmp_path / "build.json"
        path.write_text(json.dumps(build_info))

        output = load_build_info(path)

        assert {artifact.id.build for artifact in output.artifacts} == {"abc123"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(BuildError, match="not found"):
            load_build_info(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "build.json"
        path.write_text("{")
        with pytest.raises(BuildError):
            load_build_info(path)

    def test_malformed_source_entry(self, tmp_path):
        path = tmp_path / "build.json"
        path.write_text(json.dumps({"solcVersion": VERSION, "output": {"sources": {"a.sol": {}}}}))
        with pytest.raises(BuildError, match="Malformed"):
            load_build_info(path)
