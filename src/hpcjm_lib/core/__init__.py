# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for hpcjm.

This module collects the foundational helpers used across the hpcjm codebase:
configuration, structured logging, error types, execution of external
commands with deadlines, and integrity checks of MPI installations.
"""
