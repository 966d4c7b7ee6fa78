# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Job managers: detection, submission and tracking of jobs.

This module provides:

- `JobManagerInterface`: the operations every job manager provides
  (submission, status queries, counting of jobs, output collection).
  Operations a job manager does not support raise JMNotSupportedError.

- `JobManagerMeta`: a metaclass registering the job managers and detecting
  the one to use. Slurm, prun and Intel-Slurm are checked in this order,
  the native job manager (direct launch through mpirun) is the required default.

- `JobManager`: an immutable handle of the detected job manager.

- `script`: generation of Slurm-style batch scripts and launch commands.
"""

from .handle import JobManager
from .interface import JobManagerInterface
from .meta import JobManagerMeta

# import in the order in which the job managers are detected
from .native import Native  # isort: skip
from .slurm import Slurm  # isort: skip
from .prun import Prun  # isort: skip
from .intel_slurm import IntelSlurm  # isort: skip

__all__ = [
    "IntelSlurm",
    "JobManager",
    "JobManagerInterface",
    "JobManagerMeta",
    "Native",
    "Prun",
    "Slurm",
]
