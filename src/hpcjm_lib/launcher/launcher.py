# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from pathlib import Path

from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMConfigurationError, JMError, JMTimeoutError
from hpcjm_lib.core.executor import ExecResult
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.jm import JobManager
from hpcjm_lib.job import Job
from hpcjm_lib.mpi import MPIConfig

logger = get_logger(__name__)


@dataclass
class Verdict:
    """
    Outcome of a job launched through the launcher.
    """

    # Whether the job was successfully executed.
    passed: bool = True
    # Diagnostic note describing the failure.
    note: str = ""


def load() -> tuple[SystemConfig, JobManager]:
    """
    Prepare the system configuration and detect the job manager to use.

    Returns:
        tuple[SystemConfig, JobManager]: Configuration of the system with the
        current working directory set and the handle of the detected job manager.

    Raises:
        JMConfigurationError: If the current working directory cannot be determined.
        JMDetectionError: If no default job manager is registered.
    """
    try:
        cur_path = Path.cwd()
    except OSError as e:
        raise JMConfigurationError(f"Cannot detect current directory: {e}.") from e

    return SystemConfig(cur_path=cur_path), JobManager.detect()


def run(
    job: Job,
    host_mpi: MPIConfig | None,
    jobmgr: JobManager,
    sys_cfg: SystemConfig,
    args: list[str] | None = None,
) -> tuple[Verdict, ExecResult]:
    """
    Submit a job and report whether it succeeded.

    If no arguments are provided and the job requests neither processes nor
    nodes, it is executed with the default number of processes and nodes.
    Partial requests are kept unchanged. Provided arguments are passed to
    the job manager.

    Args:
        job (Job): The job to submit.
        host_mpi (MPIConfig | None): MPI configuration of the host, copied onto the job.
        jobmgr (JobManager): Handle of the job manager.
        sys_cfg (SystemConfig): Configuration of the system.
        args (list[str] | None): Additional arguments for the job manager.

    Returns:
        tuple[Verdict, ExecResult]: The verdict and the result of the submission.
        On failure, the result contains the output collected before the failure.
    """
    if host_mpi:
        job.mpi_cfg = host_mpi.copy()

    if args:
        job.args.extend(args)
    elif job.np == 0 and job.nnodes == 0:
        job.np = CFG.launcher.default_np
        job.nnodes = CFG.launcher.default_nnodes

    try:
        result = jobmgr.submit(job, sys_cfg)
    except JMTimeoutError as e:
        note = f"Command timed out - stdout: {e.stdout} - stderr: {e.stderr}"
        logger.error(f"Job '{job.name}' timed out: {e}")
        return Verdict(False, note), ExecResult(e.stdout, e.stderr, -1)
    except JMError as e:
        stdout = getattr(e, "stdout", "")
        stderr = getattr(e, "stderr", "")
        returncode = getattr(e, "returncode", None)
        note = f"Command failed - stdout: {stdout} - stderr: {stderr} - err: {e}"
        logger.error(f"Job '{job.name}' failed: {e}")
        return Verdict(False, note), ExecResult(
            stdout, stderr, returncode if returncode is not None else -1
        )

    return Verdict(), result
