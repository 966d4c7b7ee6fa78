# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from pathlib import Path


@dataclass
class SystemConfig:
    """
    Description of the system jobs are executed on.
    """

    # Directory used for transient per-job files (batch scripts, job output).
    scratch_dir: Path | None = None
    # Directory with persistently installed software. If set, batch scripts get
    # deterministic names instead of being created as temporary files.
    persistent: Path | None = None
    # Working directory of the current process.
    cur_path: Path | None = None


@dataclass
class NetworkConfig:
    """
    Network configuration used when launching MPI applications.
    """

    # Network device to use for communication (e.g. `mlx5_0:1`).
    device: str | None = None
