# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path

import pytest


def write_fake_binary(path: Path, output: str, exit_code: int = 0) -> Path:
    """Create an executable shell script printing `output`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if output and not output.endswith("\n"):
        output += "\n"
    path.write_text(f"#!/bin/sh\ncat <<'EOF'\n{output}EOF\nexit {exit_code}\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def fake_binary():
    return write_fake_binary
