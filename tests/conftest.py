"""Pytest configuration and shared fixtures for mapconf tests."""

import tempfile
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, Iterator

import pytest
import yaml

from mapconf import ConfigBuilder, Resources


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def build(temp_dir: Path):
    """Build a configuration from YAML text, resolving resources under temp_dir."""

    def _build(text: str, **kwargs: Any):
        kwargs.setdefault("resources", Resources([temp_dir]))
        return ConfigBuilder.from_string(dedent(text), **kwargs).parse()

    return _build


def write_yaml_file(file_path: Path, data: Dict[str, Any]) -> None:
    """Write data to YAML file.

    Args:
        file_path: Path to write file
        data: Data to write
    """
    with open(file_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def write_text_file(file_path: Path, text: str) -> Path:
    """Write dedented text to a file and return its path."""
    file_path.write_text(dedent(text), encoding="utf-8")
    return file_path
