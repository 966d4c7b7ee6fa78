# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Orchestration of job submission.

`load` detects the job manager of the current host, `run` submits a job
through it and turns the outcome into a `Verdict` carrying diagnostic notes.
"""

from .launcher import Verdict, load, run

__all__ = ["Verdict", "load", "run"]
