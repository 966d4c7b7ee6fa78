# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Jobs submitted through job managers.

`Job` describes one submission attempt (resources, environment, MPI
configuration and the application) and collects the results of the submission.
`JobStatus` is the closed set of states every job-manager-specific status is
mapped into.
"""

from hpcjm_lib.app import AppInfo

from .job import Job
from .status import JobStatus

__all__ = ["AppInfo", "Job", "JobStatus"]
