"""
Configuration loading for coverage runs.

Settings come from an optional ``solcov.yaml`` at the project root; options
given on the command line override the file.
"""

import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from solcov.reporting.base import CoverageReportKind

DEFAULT_CONFIG_FILE = "solcov.yaml"


class TestFilter(BaseModel):
    """Regex filters selecting which tests run."""

    match_test: str | None = Field(default=None, description="Only tests matching this regex")
    no_match_test: str | None = Field(default=None, description="Skip tests matching this regex")
    match_contract: str | None = Field(default=None, description="Only contracts matching this")
    no_match_contract: str | None = Field(default=None, description="Skip contracts matching this")
    match_path: str | None = Field(default=None, description="Only source paths matching this glob")
    no_match_path: str | None = Field(default=None, description="Skip paths matching this glob")

    @field_validator("match_test", "no_match_test", "match_contract", "no_match_contract")
    @classmethod
    def _valid_regex(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"Invalid regex {value!r}: {e}") from e
        return value

    def matches_test(self, name: str) -> bool:
        if self.match_test and not re.search(self.match_test, name):
            return False
        if self.no_match_test and re.search(self.no_match_test, name):
            return False
        return True

    def matches_contract(self, name: str) -> bool:
        if self.match_contract and not re.search(self.match_contract, name):
            return False
        if self.no_match_contract and re.search(self.no_match_contract, name):
            return False
        return True

    def matches_path(self, path: str) -> bool:
        if self.match_path and not fnmatch(path, self.match_path):
            return False
        if self.no_match_path and fnmatch(path, self.no_match_path):
            return False
        return True

    def matches_suite(self, suite_name: str) -> bool:
        """Match a ``path:Contract`` suite identifier against path and contract filters."""
        path, _, contract = suite_name.rpartition(":")
        if not path:
            path, contract = "", suite_name
        return self.matches_contract(contract) and (not path or self.matches_path(path))


class CoverageConfig(BaseModel):
    """Configuration for one coverage run."""

    report: CoverageReportKind = CoverageReportKind.SUMMARY
    root: Path = Field(default_factory=Path.cwd)
    lcov_file: str = "lcov.info"

    # Source selection
    exclude_paths: list[str] = Field(
        default_factory=list, description="Glob patterns of sources to leave out, e.g. lib/**"
    )

    # Offsets recorded by the tracer are program counters unless disabled
    pc_offsets: bool = True

    test_filter: TestFilter = Field(default_factory=TestFilter)

    @property
    def lcov_path(self) -> Path:
        return self.root / self.lcov_file

    def is_excluded(self, path: str) -> bool:
        return any(fnmatch(path, pattern) for pattern in self.exclude_paths)


class CoverageConfigLoader:
    """Load and merge coverage configuration."""

    @classmethod
    def from_yaml(cls, path: str | Path) -> CoverageConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            CoverageConfig loaded from file
        """
        path = Path(path)
        if not path.exists():
            msg = f"Configuration file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f) or {}

        data.setdefault("root", str(path.parent))
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoverageConfig:
        """Create configuration from a dictionary."""
        return CoverageConfig.model_validate(data)

    @classmethod
    def load(cls, root: Path, config_file: str | Path | None = None) -> CoverageConfig:
        """
        Load the config file if one exists, else defaults rooted at ``root``.

        Args:
            root: Project root
            config_file: Explicit config path; defaults to ``<root>/solcov.yaml``
        """
        if config_file is not None:
            return cls.from_yaml(config_file)
        default = root / DEFAULT_CONFIG_FILE
        if default.exists():
            return cls.from_yaml(default)
        return CoverageConfig(root=root)

    @classmethod
    def merge_cli(cls, config: CoverageConfig, **overrides: Any) -> CoverageConfig:
        """
        Apply command-line options on top of a loaded configuration.

        Options left as None keep the configured value. Filter options
        (``match_test`` and friends) are applied to the nested test filter.
        """
        filter_fields = set(TestFilter.model_fields)
        filter_updates = {
            key: value
            for key, value in overrides.items()
            if key in filter_fields and value is not None
        }
        updates = {
            key: value
            for key, value in overrides.items()
            if key not in filter_fields and value is not None
        }
        if filter_updates:
            updates["test_filter"] = config.test_filter.model_copy(update=filter_updates)
        merged = config.model_copy(update=updates)
        # model_copy skips validation; round-trip so enum and path fields are coerced
        return CoverageConfig.model_validate(merged.model_dump())

    @classmethod
    def generate_sample_config(cls) -> str:
        """Generate a sample YAML configuration file."""
        sample = {
            "report": "summary",
            "lcov_file": "lcov.info",
            "exclude_paths": ["lib/**", "test/**"],
            "pc_offsets": True,
            "test_filter": {
                "match_contract": "Test$",
                "no_match_test": "^testFork",
            },
        }
        return yaml.dump(sample, default_flow_style=False, sort_keys=False)
