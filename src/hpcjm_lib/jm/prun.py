# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import shutil
from datetime import datetime

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

logger = get_logger(__name__)


@job_manager
class Prun(JobManagerInterface, metaclass=JobManagerMeta):
    """
    Implementation of JobManagerInterface for the prun resource manager.

    The application is started synchronously through prun, which forwards
    PATH and the custom environment variables of the job to the ranks.
    """

    SUBMIT_BINARY = "prun"

    @classmethod
    def envName(cls) -> str:
        return "prun"

    @classmethod
    def isAvailable(cls) -> bool:
        return shutil.which("prun") is not None

    @classmethod
    def loadArgs(cls, sys_cfg: SystemConfig | None) -> list[str]:
        return list(CFG.prun_options.extra_args)

    @classmethod
    def submit(
        cls, jobmgr: JobManager, job: Job | None, sys_cfg: SystemConfig
    ) -> ExecResult:
        job = cls._checkJob(jobmgr, job)
        if not job.app.bin_path:
            raise JMConfigurationError(
                f"Application binary of job '{job.name}' is undefined."
            )

        args = [*jobmgr.cmd_args, *job.args]
        if job.np > 0:
            args.extend(["-np", str(job.np)])
        for name in [CFG.env_vars.path, *job.env_vars]:
            args.extend(["-x", name])
        args.extend(job.app.command())

        job.setOutputFn(read_output_buffer)
        job.setErrorFn(read_error_buffer)
        job.exec_time = datetime.now()

        try:
            result = run_command(
                Command(
                    jobmgr.bin_path,
                    args,
                    exec_dir=job.run_dir,
                    env=environment_with(job.env_vars),
                    timeout=job.timeout,
                )
            )
        except JMExecutionError as e:
            job.out_buffer, job.err_buffer = e.stdout, e.stderr
            raise

        job.out_buffer, job.err_buffer = result.stdout, result.stderr
        return result
