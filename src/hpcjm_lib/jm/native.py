# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import datetime
from pathlib import Path

from hpcjm_lib.core.common import prefix_search_path
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMConfigurationError, JMExecutionError
from hpcjm_lib.core.executor import (
    Command,
    ExecResult,
    environment_with,
    run_command,
)
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.job import Job

from .handle import JobManager
from .interface import JobManagerInterface, read_error_buffer, read_output_buffer
from .meta import JobManagerMeta, job_manager
from .script import get_launch_command

logger = get_logger(__name__)


@job_manager(default=True)
class Native(JobManagerInterface, metaclass=JobManagerMeta):
    """
    Implementation of JobManagerInterface starting applications directly,
    either through mpirun or as plain processes.

    Native is always available and is used when no other job manager is detected.
    Jobs are always executed synchronously. If mpirun is missing, the failure
    surfaces on submission.
    """

    @classmethod
    def envName(cls) -> str:
        return "native"

    @classmethod
    def isAvailable(cls) -> bool:
        return True

    @classmethod
    def submit(
        cls, jobmgr: JobManager, job: Job | None, sys_cfg: SystemConfig
    ) -> ExecResult:
        job = cls._checkJob(jobmgr, job)
        if not job.app.bin_path:
            raise JMConfigurationError(
                f"Application binary of job '{job.name}' is undefined."
            )

        if job.non_blocking:
            logger.debug("Native job manager ignores non-blocking mode.")

        command = get_launch_command(job, sys_cfg)
        if job.mpi_cfg and not Path(command[0]).is_file():
            raise JMConfigurationError(f"mpirun '{command[0]}' does not exist.")

        job.setOutputFn(read_output_buffer)
        job.setErrorFn(read_error_buffer)
        job.exec_time = datetime.now()

        try:
            result = run_command(
                Command(
                    command[0],
                    command[1:],
                    exec_dir=job.run_dir,
                    env=cls._environment(job),
                    timeout=job.timeout,
                )
            )
        except JMExecutionError as e:
            job.out_buffer, job.err_buffer = e.stdout, e.stderr
            raise

        job.out_buffer, job.err_buffer = result.stdout, result.stderr
        return result

    @staticmethod
    def _environment(job: Job) -> dict[str, str]:
        """
        Return the environment of the job.

        With an MPI configuration, the installation's `bin` and `lib` directories
        are prepended to PATH and LD_LIBRARY_PATH unless the job overrides them.
        """
        env = environment_with(job.env_vars)
        if not job.mpi_cfg:
            return env

        implem = job.mpi_cfg.implem
        for var, directory in (
            (CFG.env_vars.path, implem.bin_dir),
            (CFG.env_vars.ld_library_path, implem.lib_dir),
        ):
            if var not in job.env_vars:
                env[var] = prefix_search_path(directory, env.get(var))

        return env
