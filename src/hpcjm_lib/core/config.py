# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration system for hpcjm.

This module defines dataclasses representing all configurable aspects of hpcjm,
including environment variables, timeouts, job-manager options, launcher
defaults, and exit codes.

The `Config` class loads user configuration from a TOML file (if available)
and provides a globally accessible `CFG` instance.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class EnvironmentVariables:
    """Environment variable names used by hpcjm."""

    # Enables hpcjm debug mode.
    debug_mode: str = "HPCJM_DEBUG"
    # Forces the use of a specific job manager.
    job_manager: str = "HPCJM_JOB_MANAGER"
    # Path to the hpcjm configuration file.
    config: str = "HPCJM_CONFIG"
    # Search path for executables.
    path: str = "PATH"
    # Search path for shared libraries.
    ld_library_path: str = "LD_LIBRARY_PATH"


@dataclass
class TimeoutSettings:
    """Timeout settings in seconds."""

    # Timeout for any external command (submission, queries, version probes).
    command: int = 600
    # Timeout for MPI version probes.
    probe: int = 60


@dataclass
class SlurmOptions:
    """Options associated with Slurm."""

    # Prefix of directive lines in a batch script.
    script_prefix: str = "#SBATCH"
    # Text preceding the job ID in the acknowledgment printed by sbatch.
    job_id_prefix: str = "Submitted batch job "
    # Wall time requested when the job does not specify one.
    default_walltime: str = "0:30:0"
    # Flag making sbatch wait for the termination of the job.
    wait_flag: str = "-W"
    # Additional arguments always passed to sbatch.
    extra_args: list[str] = field(default_factory=list)
    # Prefix of generated batch script names.
    batch_script_prefix: str = "sbatch"
    # Name of the output files when the job has no name.
    default_job_name: str = "job"


@dataclass
class IntelSlurmOptions:
    """Options associated with the Intel-Slurm job manager."""

    # Flag making bsub wait for the termination of the job.
    wait_flag: str = "-W"
    # Additional arguments always passed to bsub.
    extra_args: list[str] = field(default_factory=list)


@dataclass
class PrunOptions:
    """Options associated with prun."""

    # Additional arguments always passed to prun.
    extra_args: list[str] = field(default_factory=list)


@dataclass
class LauncherSettings:
    """Settings for the launcher."""

    # Number of processes used when neither processes nor nodes are requested.
    default_np: int = 2
    # Number of nodes used when neither processes nor nodes are requested.
    default_nnodes: int = 2


@dataclass
class MPISettings:
    """Settings for MPI detection and launching."""

    # Name of the manifest file located in the root of an MPI installation.
    manifest_name: str = "mpi.MANIFEST"


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format used by hpcjm.
    standard: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExitCodes:
    """Exit codes used for various errors."""

    # Default error code for failures of hpcjm commands.
    default: int = 1
    # Returned on an unexpected or unhandled error.
    unexpected_error: int = 1


@dataclass
class Config:
    """Main configuration for hpcjm."""

    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    slurm_options: SlurmOptions = field(default_factory=SlurmOptions)
    intel_slurm_options: IntelSlurmOptions = field(default_factory=IntelSlurmOptions)
    prun_options: PrunOptions = field(default_factory=PrunOptions)
    launcher: LauncherSettings = field(default_factory=LauncherSettings)
    mpi: MPISettings = field(default_factory=MPISettings)
    date_formats: DateFormats = field(default_factory=DateFormats)
    exit_codes: ExitCodes = field(default_factory=ExitCodes)

    # Name of the hpcjm binary.
    binary_name: str = "hpcjm"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Load configuration from TOML file or use defaults.

        Args:
            config_path: Explicit path to config file. If None, searches standard locations.

        Returns:
            Config instance with loaded or default values.
        """
        if config_path is None:
            config_path = Config._get_config_path()

        try:
            if config_path and config_path.exists():
                with config_path.open("rb") as f:
                    config_data = tomllib.load(f)
                return _dict_to_dataclass(cls, config_data)
        except Exception as e:
            raise ValueError(f"Could not read hpcjm config '{config_path}': {e}.")

        # no config found - use defaults
        return cls()

    @staticmethod
    def _get_config_path() -> Path | None:
        """
        Search for config file in standard locations (XDG compliant).
        Returns the first existing config file, or None.
        """
        config_locations: list[Path | None] = [
            # 1. Explicit environment variable (highest priority)
            Path(env_path)
            if (env_path := os.getenv(EnvironmentVariables.config))
            else None,
            # 2. Current working directory
            Path.cwd() / "hpcjm_config.toml",
            # 3. XDG config home
            Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            / "hpcjm"
            / "config.toml",
        ]

        for path in config_locations:
            if path and path.is_file():
                return path

        return None


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Recursively convert a dictionary to a dataclass instance.
    Unknown keys are ignored.
    """
    if not is_dataclass(cls):
        return data

    field_values = {}
    for field_info in fields(cls):
        name = field_info.name
        if name not in data:
            continue

        value = data[name]
        if is_dataclass(field_info.type) and isinstance(value, dict):
            value = _dict_to_dataclass(field_info.type, value)
        field_values[name] = value

    return cls(**field_values)


# Global configuration for hpcjm.
CFG = Config.load()
