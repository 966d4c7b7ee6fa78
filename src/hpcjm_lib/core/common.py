# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for the hpcjm library.

This module provides helpers for string normalization, splitting of
user-provided lists, search-path manipulation and path checks.
"""

import os
import re
from pathlib import Path

from .error import JMError
from .logger import get_logger

logger = get_logger(__name__)


def normalize(s: str) -> str:
    """
    Normalize a string for consistent comparison.

    The string is converted to lowercase and all hyphens and underscores are removed.

    Args:
        s (str): The input string to normalize.

    Returns:
        str: The normalized string.
    """
    return s.lower().replace("-", "").replace("_", "")


def equals_normalized(a: str, b: str) -> bool:
    """
    Compare two strings for equality, ignoring case, hyphens, and underscores.

    Args:
        a (str): First string to compare.
        b (str): Second string to compare.

    Returns:
        bool: True if the normalized strings are equal, False otherwise.
    """
    return normalize(a) == normalize(b)


def split_list(string: str | None) -> list[str]:
    """
    Split a string containing multiple items separated by commas or whitespace.

    Args:
        string (str | None): The string to split. If None or empty, an empty list is returned.

    Returns:
        list[str]: The individual non-empty items.
    """
    if not string:
        return []

    return [item for item in re.split(r"[,\s]+", string) if item]


def parse_job_ids(string: str) -> list[int]:
    """
    Parse a comma-separated list of numeric job IDs.

    Args:
        string (str): The list of job IDs, e.g. `12,13,14`.

    Returns:
        list[int]: Parsed job IDs.

    Raises:
        JMError: If the list is empty or any item is not a valid job ID.
    """
    ids = []
    for item in split_list(string):
        try:
            ids.append(int(item))
        except ValueError as e:
            raise JMError(f"Invalid job ID '{item}'.") from e

    if not ids:
        raise JMError("No job ID specified.")

    return ids


def parse_env_assignments(assignments: list[str]) -> dict[str, str]:
    """
    Convert a list of `NAME=VALUE` strings into a dictionary.

    Raises:
        JMError: If an item is not a valid assignment.
    """
    env = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise JMError(f"Invalid environment variable assignment '{item}'.")
        env[name] = value

    return env


def prefix_search_path(directory: Path, current: str | None) -> str:
    """
    Prepend a directory to a colon-separated search path (e.g. PATH).

    Args:
        directory (Path): The directory to prepend.
        current (str | None): The current value of the search path.

    Returns:
        str: The new value of the search path.
    """
    if not current:
        return str(directory)

    return f"{directory}{os.pathsep}{current}"


def is_executable_file(path: Path | str | None) -> bool:
    """
    Check whether the path points to an existing executable file.
    """
    if not path:
        return False

    path = Path(path)
    return path.is_file() and os.access(path, os.X_OK)
