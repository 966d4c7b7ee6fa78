# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Command running an application through the job manager.

Builds a `Job` from the command-line options, optionally attaches the MPI
installation to launch it with, and submits it using `hpcjm_lib.launcher`.
"""
