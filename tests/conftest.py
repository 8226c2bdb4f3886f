"""
Shared fixtures built on the Counter project.
"""

import json
from typing import Any

import pytest

from tests.counter_project import build_counter_ast, build_info_document, recorded_results


@pytest.fixture
def counter_ast() -> dict[str, Any]:
    return build_counter_ast()


@pytest.fixture
def build_info() -> dict[str, Any]:
    return build_info_document()


@pytest.fixture
def build_info_file(tmp_path, build_info):
    path = tmp_path / "build-info.json"
    path.write_text(json.dumps(build_info))
    return path


@pytest.fixture
def results_file(tmp_path):
    path = tmp_path / "runs.json"
    path.write_text(json.dumps(recorded_results()))
    return path
