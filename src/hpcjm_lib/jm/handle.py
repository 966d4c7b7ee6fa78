# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Self

from hpcjm_lib.core.executor import ExecResult
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.job import Job, JobStatus

from .interface import JobManagerInterface
from .meta import JobManagerMeta

logger = get_logger(__name__)


@dataclass(frozen=True)
class JobManager:
    """
    Handle of a detected job manager.

    The handle is immutable and can be shared between submissions:
    `load` returns a new handle instead of modifying the arguments in place.
    """

    # Class implementing the job manager.
    backend: type[JobManagerInterface]
    # Path to the binary used to submit jobs.
    bin_path: Path | None = None
    # Arguments added to every submission command.
    cmd_args: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        """Identifier of the job manager."""
        return self.backend.envName()

    def __str__(self) -> str:
        return self.id

    @classmethod
    def fromBackend(cls, backend: type[JobManagerInterface]) -> Self:
        """
        Create a handle for the specified job manager class.
        """
        return cls(backend, backend.getBinPath())

    @classmethod
    def detect(cls) -> Self:
        """
        Detect the job manager to use on the current host.

        Raises:
            JMDetectionError: If no default job manager is registered.
        """
        return cls.fromBackend(JobManagerMeta.detect())

    @classmethod
    def obtain(cls, name: str | None) -> Self:
        """
        Obtain a handle for the job manager with the given name, the job manager
        specified by an environment variable, or the detected job manager.

        Raises:
            JMError: If the requested job manager is not registered.
        """
        return cls.fromBackend(JobManagerMeta.obtain(name))

    def load(self, sys_cfg: SystemConfig | None = None) -> Self:
        """
        Return a new handle with the job-manager-specific arguments appended.

        The current handle is not modified.
        """
        args = self.backend.loadArgs(sys_cfg)
        logger.debug(f"Loaded job manager '{self}' with arguments {args}.")
        return replace(self, cmd_args=self.cmd_args + tuple(args))

    def submit(self, job: Job | None, sys_cfg: SystemConfig) -> ExecResult:
        """Submit a job. See `JobManagerInterface.submit`."""
        return self.backend.submit(self, job, sys_cfg)

    def jobStatus(self, job_ids: list[int]) -> list[JobStatus]:
        """Return the status of the specified jobs. See `JobManagerInterface.jobStatus`."""
        return self.backend.jobStatus(self, job_ids)

    def numJobs(self, partition: str, user: str) -> int:
        """Return the number of jobs of a user in a partition. See `JobManagerInterface.numJobs`."""
        return self.backend.numJobs(self, partition, user)

    def postRun(self, result: ExecResult, job: Job, sys_cfg: SystemConfig) -> ExecResult:
        """Collect the output of a finished job. See `JobManagerInterface.postRun`."""
        return self.backend.postRun(self, result, job, sys_cfg)
