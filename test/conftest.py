"""Shared fixtures for command tests."""

import os
import textwrap
from pathlib import Path

import pytest


def write_script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + textwrap.dedent(body).lstrip("\n"))
    os.chmod(path, 0o755)
    return path


@pytest.fixture
def make_script(tmp_path):
    """Factory writing an executable /bin/sh script under tmp_path."""

    def _make(name: str, body: str) -> Path:
        return write_script(tmp_path / "bin" / name, body)

    return _make


@pytest.fixture
def plugin_root(tmp_path) -> Path:
    """A plugin root with a bootstrap script and a reference document."""
    root = tmp_path / "plugin"
    write_script(
        root / "scripts" / "bootstrap.sh",
        """
        echo "bootstrapped $1"
        """,
    )
    (root / "references").mkdir(parents=True)
    (root / "references" / "CORTEX.md").write_text("# Ontology\n\nAgents have identity.\n")
    (root / "agents" / "meta-agent").mkdir(parents=True)
    return root
