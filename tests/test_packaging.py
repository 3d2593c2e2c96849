"""Tests for the project metadata in pyproject.toml."""
from __future__ import annotations

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


@pytest.fixture(scope="module")
def project() -> dict:
    with PYPROJECT.open("rb") as fh:
        return tomllib.load(fh)["project"]


def test_no_long_description_file(project: dict) -> None:
    assert "readme" not in project


def test_runtime_dependencies(project: dict) -> None:
    names = {dep.split(">")[0].split("=")[0].strip() for dep in project["dependencies"]}
    assert names == {"click", "rich", "PyYAML"}


def test_builtin_plugins_are_entry_points(project: dict) -> None:
    assert set(project["entry-points"]["nodecompat.plugins"]) == {
        "nodejs-hybrid",
        "external-files",
        "runtime-internal",
    }
