# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from hpcjm_lib.app import AppInfo
from hpcjm_lib.core.error import JMConfigurationError
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import NetworkConfig, SystemConfig
from hpcjm_lib.mpi import MPIConfig

logger = get_logger(__name__)

# function retrieving stdout or stderr of a finished job
OutputFn = Callable[["Job", SystemConfig | None], str]


@dataclass
class Job:
    """
    Description of a single submission of an application.

    The job is created by the caller and updated by the job manager during
    submission (execution time, batch script, job ID, output retrieval).
    A job must not be submitted concurrently by multiple callers.
    """

    # Name of the job.
    name: str = ""
    # Number of MPI ranks.
    np: int = 0
    # Number of nodes.
    nnodes: int = 0
    # Partition to submit the job to.
    partition: str | None = None
    # Custom environment variables of the job.
    env_vars: dict[str, str] = field(default_factory=dict)
    # Environment modules to load before running the application.
    modules: list[str] = field(default_factory=list)
    # MPI configuration. If None, the application is started directly.
    mpi_cfg: MPIConfig | None = None
    # Network configuration used by mpirun.
    net_cfg: NetworkConfig | None = None
    # Application to execute.
    app: AppInfo = field(default_factory=AppInfo)
    # Additional arguments for the job manager.
    args: list[str] = field(default_factory=list)
    # Path to the batch script. Either provided by the user or generated.
    batch_script: Path | None = None
    # Directory in which the job is submitted.
    run_dir: Path | None = None
    # Wall time requested for the job (e.g. `1:00:00`).
    walltime: str | None = None
    # Deadline for the submission command in seconds. If None, the configured default is used.
    timeout: float | None = None
    # Whether the submission returns as soon as the job is queued.
    non_blocking: bool = False

    # Time of the submission.
    exec_time: datetime | None = None
    # Identifier assigned to the job by the job manager.
    id: int | None = None
    # Captured standard output of the job.
    out_buffer: str = ""
    # Captured standard error output of the job.
    err_buffer: str = ""
    # Removes the files generated for the job. Never called by hpcjm itself.
    cleanup: Callable[[], None] | None = None

    _output_fn: OutputFn | None = field(default=None, repr=False)
    _error_fn: OutputFn | None = field(default=None, repr=False)

    def setOutputFn(self, fn: OutputFn) -> None:
        """Set the job-manager-specific function retrieving the output of the job."""
        self._output_fn = fn

    def setErrorFn(self, fn: OutputFn) -> None:
        """Set the job-manager-specific function retrieving the error output of the job."""
        self._error_fn = fn

    def getOutput(self, sys_cfg: SystemConfig | None = None) -> str:
        """
        Return the standard output of the job.

        Raises:
            JMConfigurationError: If the job has not been submitted yet.
        """
        if not self._output_fn:
            raise JMConfigurationError(f"Job '{self.name}' has not been submitted.")
        return self._output_fn(self, sys_cfg)

    def getError(self, sys_cfg: SystemConfig | None = None) -> str:
        """
        Return the standard error output of the job.

        Raises:
            JMConfigurationError: If the job has not been submitted yet.
        """
        if not self._error_fn:
            raise JMConfigurationError(f"Job '{self.name}' has not been submitted.")
        return self._error_fn(self, sys_cfg)

    def hasUserScript(self) -> bool:
        """Return True if the job is executed using an existing batch script."""
        return self.batch_script is not None and self.batch_script.is_file()

    def ensureRunnable(self) -> None:
        """
        Make sure that the job specifies what to execute.

        Raises:
            JMConfigurationError: If neither the application binary nor an existing
                batch script is set.
        """
        if not self.app.bin_path and not self.hasUserScript():
            raise JMConfigurationError(
                f"Job '{self.name}' specifies neither an application binary nor a batch script."
            )
