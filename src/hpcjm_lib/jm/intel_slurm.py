# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import shutil
from pathlib import Path

from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.logger import get_logger
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.job import Job

from .meta import JobManagerMeta, job_manager
from .script import prepare_batch_script_path, write_batch_script
from .slurm import Slurm

logger = get_logger(__name__)


@job_manager
class IntelSlurm(Slurm, metaclass=JobManagerMeta):
    """
    Implementation of JobManagerInterface for Intel clusters submitting
    Slurm-style batch scripts through `bsub` and querying jobs through `squeue`.
    """

    SUBMIT_BINARY = "bsub"

    @classmethod
    def envName(cls) -> str:
        return "intel-slurm"

    @classmethod
    def isAvailable(cls) -> bool:
        return shutil.which("bsub") is not None and shutil.which("squeue") is not None

    @classmethod
    def loadArgs(cls, sys_cfg: SystemConfig | None) -> list[str]:
        return list(CFG.intel_slurm_options.extra_args)

    @classmethod
    def _waitFlag(cls) -> str:
        return CFG.intel_slurm_options.wait_flag

    @classmethod
    def _prepareBatchScript(cls, job: Job, sys_cfg: SystemConfig) -> Path:
        """
        Return the batch script to submit, generating it if necessary.

        Unlike Slurm, an already existing batch script is reused as is.
        """
        if job.batch_script is not None and job.batch_script.exists():
            logger.debug(f"Reusing existing batch script '{job.batch_script}'.")
            return job.batch_script

        if job.batch_script is None:
            prepare_batch_script_path(job, sys_cfg)

        return write_batch_script(job, sys_cfg)
