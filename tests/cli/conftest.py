"""Fixtures for CLI tests: specification files on disk."""

from __future__ import annotations

import copy
import json

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def spec_file(tmp_path, spec_dict):
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(spec_dict), encoding="utf-8")
    return path


@pytest.fixture
def edited_spec_file(tmp_path, spec_dict):
    edited = copy.deepcopy(spec_dict)
    edited["pages"][2]["mainPrompt"] = "Landing page with a hero banner"
    path = tmp_path / "spec-v2.json"
    path.write_text(json.dumps(edited), encoding="utf-8")
    return path
