# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import shutil
from datetime import datetime
from pathlib import Path

from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import (
    JMConfigurationError,
    JMExecutionError,
    JMParseError,
)
from hpcjm_lib.core.executor import Command, ExecResult, run_command
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.job import Job, JobStatus

from .handle import JobManager
from .interface import JobManagerInterface
from .meta import JobManagerMeta, job_manager
from .script import (
    get_error_file,
    get_output_file,
    prepare_batch_script_path,
    write_batch_script,
)

logger = get_logger(__name__)

# conversion of squeue state codes into job states
STATE_CONVERTER: dict[str, JobStatus] = {
    "R": JobStatus.RUNNING,
    "PD": JobStatus.QUEUED,
    "ST": JobStatus.STOPPED,
}

# header printed by `squeue --format=%t`
STATE_HEADER = "ST"

# squeue reports this for jobs that already left the queue
INVALID_JOB_ID = "invalid job id"

# state reported by sacct for successfully finished jobs
SACCT_COMPLETED = "COMPLETED"


def read_output_file(job: Job, sys_cfg: SystemConfig | None) -> str:
    """Read the standard output of a job from its output file (empty if unreadable)."""
    if not sys_cfg or not sys_cfg.scratch_dir:
        return job.out_buffer
    return _read_or_empty(get_output_file(job, sys_cfg))


def read_error_file(job: Job, sys_cfg: SystemConfig | None) -> str:
    """Read the standard error output of a job from its error file (empty if unreadable)."""
    if not sys_cfg or not sys_cfg.scratch_dir:
        return job.err_buffer
    return _read_or_empty(get_error_file(job, sys_cfg))


def _read_or_empty(path: Path) -> str:
    try:
        return path.read_text(errors="replace")
    except OSError as e:
        logger.debug(f"Could not read '{path}': {e}.")
        return ""


@job_manager
class Slurm(JobManagerInterface, metaclass=JobManagerMeta):
    """
    Implementation of JobManagerInterface for Slurm.
    """

    SUBMIT_BINARY = "sbatch"

    @classmethod
    def envName(cls) -> str:
        return "slurm"

    @classmethod
    def isAvailable(cls) -> bool:
        return shutil.which("sbatch") is not None

    @classmethod
    def loadArgs(cls, sys_cfg: SystemConfig | None) -> list[str]:
        return list(CFG.slurm_options.extra_args)

    @classmethod
    def submit(
        cls, jobmgr: JobManager, job: Job | None, sys_cfg: SystemConfig
    ) -> ExecResult:
        job = cls._checkJob(jobmgr, job)
        cls._checkScratchDir(sys_cfg)

        script = cls._prepareBatchScript(job, sys_cfg)

        args = [*jobmgr.cmd_args, *job.args]
        # blocking submission by default; the user can request non-blocking one
        if not job.non_blocking:
            args.append(cls._waitFlag())
        args.append(str(script))

        job.setOutputFn(read_output_file)
        job.setErrorFn(read_error_file)
        job.exec_time = datetime.now()

        # a blocking submission exits with the exit code of the job itself
        result = run_command(
            Command(jobmgr.bin_path, args, exec_dir=job.run_dir, timeout=job.timeout),
            check=False,
        )

        try:
            job.id = cls._parseJobId(result.stdout)
        except JMParseError as e:
            if result.returncode != 0:
                raise JMExecutionError(
                    f"Submission of job '{job.name}' failed with exit code {result.returncode}: {result.stderr.strip()}.",
                    stdout=result.stdout,
                    stderr=result.stderr,
                    returncode=result.returncode,
                ) from e
            raise

        logger.info(f"Job '{job.name}' submitted as '{job.id}'.")

        if job.non_blocking:
            if result.returncode != 0:
                raise JMExecutionError(
                    f"Submission of job '{job.id}' failed with exit code {result.returncode}: {result.stderr.strip()}.",
                    stdout=result.stdout,
                    stderr=result.stderr,
                    returncode=result.returncode,
                )
            return result

        if result.returncode != 0:
            cls._raiseJobFailure(result, job, sys_cfg)

        return cls.postRun(jobmgr, result, job, sys_cfg)

    @classmethod
    def postRun(
        cls,
        jobmgr: JobManager,
        result: ExecResult,
        job: Job,
        sys_cfg: SystemConfig,
    ) -> ExecResult:
        out_file = get_output_file(job, sys_cfg)
        err_file = get_error_file(job, sys_cfg)
        try:
            job.out_buffer = out_file.read_text(errors="replace")
            job.err_buffer = err_file.read_text(errors="replace")
        except OSError as e:
            raise JMExecutionError(
                f"Unable to read output of job '{job.id}': {e}.",
                stdout=result.stdout,
                stderr=result.stderr,
                returncode=result.returncode,
            ) from e

        return ExecResult(job.out_buffer, job.err_buffer, result.returncode)

    @classmethod
    def jobStatus(cls, jobmgr: JobManager, job_ids: list[int]) -> list[JobStatus]:
        squeue = cls._requireCommand("squeue")
        return [cls._getJobStatus(squeue, job_id) for job_id in job_ids]

    @classmethod
    def numJobs(cls, jobmgr: JobManager, partition: str, user: str) -> int:
        squeue = cls._requireCommand("squeue")
        result = run_command(Command(squeue, ["-p", partition, "-u", user]))

        # the first line is the header
        lines = result.stdout.splitlines()[1:]
        return sum(1 for line in lines if line.strip())

    @staticmethod
    def _raiseJobFailure(result: ExecResult, job: Job, sys_cfg: SystemConfig) -> None:
        """
        Collect whatever output a failed blocking job left behind and report the failure.

        Raises:
            JMExecutionError: Always. Carries the output and error files of the job.
        """
        job.out_buffer = _read_or_empty(get_output_file(job, sys_cfg))
        job.err_buffer = _read_or_empty(get_error_file(job, sys_cfg))

        raise JMExecutionError(
            f"Job '{job.id}' failed with exit code {result.returncode}.",
            stdout=job.out_buffer,
            stderr=job.err_buffer,
            returncode=result.returncode,
        )

    @classmethod
    def _waitFlag(cls) -> str:
        return CFG.slurm_options.wait_flag

    @classmethod
    def _prepareBatchScript(cls, job: Job, sys_cfg: SystemConfig) -> Path:
        """
        Return the batch script to submit, generating it if necessary.

        A user-provided script (job without an application binary) is submitted as is.

        Raises:
            JMConfigurationError: If the batch script of a job with an application
                binary already exists.
        """
        if not job.app.bin_path:
            logger.debug(f"Submitting user-provided batch script '{job.batch_script}'.")
            return job.batch_script

        if job.batch_script is None:
            prepare_batch_script_path(job, sys_cfg)
        elif job.batch_script.exists():
            raise JMConfigurationError(
                f"Batch script '{job.batch_script}' already exists and would be overwritten."
            )

        return write_batch_script(job, sys_cfg)

    @staticmethod
    def _checkScratchDir(sys_cfg: SystemConfig) -> None:
        if not sys_cfg.scratch_dir:
            raise JMConfigurationError("Scratch directory is undefined.")
        if not Path(sys_cfg.scratch_dir).is_dir():
            raise JMConfigurationError(
                f"Scratch directory '{sys_cfg.scratch_dir}' does not exist."
            )

    @staticmethod
    def _requireCommand(name: str) -> Path:
        if not (path := shutil.which(name)):
            raise JMConfigurationError(f"Command '{name}' is not available.")
        return Path(path)

    @staticmethod
    def _parseJobId(output: str) -> int:
        """
        Extract the job ID from the acknowledgment printed on submission.

        Raises:
            JMParseError: If the output contains no valid acknowledgment.
        """
        prefix = CFG.slurm_options.job_id_prefix
        for line in output.splitlines():
            if line.startswith(prefix):
                try:
                    return int(line.removeprefix(prefix).strip())
                except ValueError as e:
                    raise JMParseError(
                        f"Unable to get job ID from '{line.strip()}'.", output
                    ) from e

        raise JMParseError(f"Unable to get job ID from '{output.strip()}'.", output)

    @classmethod
    def _getJobStatus(cls, squeue: Path, job_id: int) -> JobStatus:
        result = run_command(
            Command(squeue, ["-j", str(job_id), "--format=%t"]), check=False
        )

        if result.returncode != 0:
            if INVALID_JOB_ID in result.stderr.lower():
                logger.debug(f"Job '{job_id}' is no longer queued.")
                return JobStatus.DONE
            raise JMExecutionError(
                f"Unable to get status of job '{job_id}': {result.stderr.strip()}.",
                stdout=result.stdout,
                stderr=result.stderr,
                returncode=result.returncode,
            )

        codes = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if codes and codes[0] == STATE_HEADER:
            codes = codes[1:]

        if not codes:
            return JobStatus.DONE

        status = STATE_CONVERTER.get(codes[0], JobStatus.UNKNOWN)
        if status == JobStatus.STOPPED:
            return cls._refineStopped(job_id)

        return status

    @classmethod
    def _refineStopped(cls, job_id: int) -> JobStatus:
        """
        Distinguish a stopped job from a job that has already completed using sacct.
        """
        if not (sacct := shutil.which("sacct")):
            return JobStatus.STOPPED

        try:
            result = run_command(
                Command(
                    sacct,
                    ["-j", str(job_id), "--format=State", "--noheader", "--parsable2"],
                )
            )
        except JMExecutionError as e:
            logger.debug(f"Unable to get accounting state of job '{job_id}': {e}")
            return JobStatus.STOPPED

        states = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if states and states[0].startswith(SACCT_COMPLETED):
            return JobStatus.DONE

        return JobStatus.STOPPED
