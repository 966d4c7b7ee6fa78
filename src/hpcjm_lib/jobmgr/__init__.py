# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Command querying the job manager detected on the current host.

Reports the status of individual jobs and the number of jobs
of the current user in a partition.
"""
