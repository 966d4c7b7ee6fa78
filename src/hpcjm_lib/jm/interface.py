# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import shutil
from abc import ABC
from pathlib import Path
from typing import TYPE_CHECKING

from hpcjm_lib.core.error import JMConfigurationError, JMNotSupportedError
from hpcjm_lib.core.executor import ExecResult
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.job import Job, JobStatus

if TYPE_CHECKING:
    from .handle import JobManager

logger = get_logger(__name__)


def read_output_buffer(job: Job, sys_cfg: SystemConfig | None) -> str:
    """Return the standard output of a job captured during its synchronous execution."""
    return job.out_buffer


def read_error_buffer(job: Job, sys_cfg: SystemConfig | None) -> str:
    """Return the standard error output of a job captured during its synchronous execution."""
    return job.err_buffer


class JobManagerInterface(ABC):
    """
    Abstract base class for job-manager integrations.

    Concrete job managers must implement `envName`, `isAvailable` and `submit`
    to allow hpcjm to interact with different job managers uniformly.
    Capabilities a job manager does not provide raise JMNotSupportedError,
    which callers report as a normal condition.

    All functions should raise JMError (or its subclass) when encountering an error.
    """

    # name of the binary used to submit jobs (None if jobs are started directly)
    SUBMIT_BINARY: str | None = None

    @classmethod
    def envName(cls) -> str:
        """
        Return the identifier of the job manager.

        Returns:
            str: The job manager identifier (e.g. `slurm`).
        """
        raise NotImplementedError(
            "envName method is not implemented for this job manager implementation"
        )

    @classmethod
    def isAvailable(cls) -> bool:
        """
        Determine whether the job manager is available on the current host.

        Implementations verify this by checking for the presence of the required
        commands in PATH. A missing command only excludes the job manager
        from detection.

        Returns:
            bool: True if the job manager is available, False otherwise.
        """
        raise NotImplementedError(
            "isAvailable method is not implemented for this job manager implementation"
        )

    @classmethod
    def getBinPath(cls) -> Path | None:
        """
        Return the path to the binary used to submit jobs, as resolved from PATH.

        Returns:
            Path | None: Path to the binary or None if the job manager does not
            use one or the binary is not available.
        """
        if not cls.SUBMIT_BINARY:
            return None

        path = shutil.which(cls.SUBMIT_BINARY)
        return Path(path) if path else None

    @classmethod
    def loadArgs(cls, sys_cfg: SystemConfig | None) -> list[str]:
        """
        Return the arguments added to every submission command of this job manager.

        Args:
            sys_cfg (SystemConfig | None): Configuration of the system.
        """
        return []

    @classmethod
    def submit(
        cls, jobmgr: "JobManager", job: Job | None, sys_cfg: SystemConfig
    ) -> ExecResult:
        """
        Submit a job.

        In blocking mode, the call returns once the job has finished and the
        result contains the output of the job. In non-blocking mode, the call
        returns as soon as the job is queued and the result contains the output
        of the submission command.

        Args:
            jobmgr (JobManager): Handle of the job manager.
            job (Job | None): The job to submit.
            sys_cfg (SystemConfig): Configuration of the system.

        Returns:
            ExecResult: The result of the submission.

        Raises:
            JMConfigurationError: If the job, the job manager or the system is not usable.
            JMExecutionError: If the submission command fails.
            JMTimeoutError: If the submission command exceeds its deadline.
            JMParseError: If the job ID cannot be obtained.
        """
        raise NotImplementedError(
            "submit method is not implemented for this job manager implementation"
        )

    @classmethod
    def jobStatus(cls, jobmgr: "JobManager", job_ids: list[int]) -> list[JobStatus]:
        """
        Return the status of the specified jobs.

        Args:
            jobmgr (JobManager): Handle of the job manager.
            job_ids (list[int]): Identifiers of the jobs.

        Returns:
            list[JobStatus]: Status of each job, in the order of `job_ids`.

        Raises:
            JMNotSupportedError: If the job manager cannot query jobs.
        """
        raise JMNotSupportedError(
            f"Job manager '{cls.envName()}' does not support querying job status."
        )

    @classmethod
    def numJobs(cls, jobmgr: "JobManager", partition: str, user: str) -> int:
        """
        Return the number of jobs of a user in a partition.

        Raises:
            JMNotSupportedError: If the job manager cannot query jobs.
        """
        raise JMNotSupportedError(
            f"Job manager '{cls.envName()}' does not support counting jobs."
        )

    @classmethod
    def postRun(
        cls,
        jobmgr: "JobManager",
        result: ExecResult,
        job: Job,
        sys_cfg: SystemConfig,
    ) -> ExecResult:
        """
        Collect the output of a finished job.

        Args:
            jobmgr (JobManager): Handle of the job manager.
            result (ExecResult): Result of the submission command.
            job (Job): The finished job.
            sys_cfg (SystemConfig): Configuration of the system.

        Returns:
            ExecResult: Result containing the output of the job.

        Raises:
            JMNotSupportedError: If the job manager does not collect output after the run.
        """
        raise JMNotSupportedError(
            f"Job manager '{cls.envName()}' does not support collecting output of finished jobs."
        )

    @classmethod
    def _checkJob(cls, jobmgr: "JobManager", job: Job | None) -> Job:
        """
        Check the preconditions shared by all job managers before submitting a job.

        Raises:
            JMConfigurationError: If the job is undefined, specifies nothing to run,
                or the submission binary of the job manager is missing.
        """
        if job is None:
            raise JMConfigurationError("Job is undefined.")

        job.ensureRunnable()

        if cls.SUBMIT_BINARY and not (jobmgr.bin_path and jobmgr.bin_path.is_file()):
            raise JMConfigurationError(
                f"Submission binary '{jobmgr.bin_path or cls.SUBMIT_BINARY}' of job manager '{cls.envName()}' does not exist."
            )

        return job
